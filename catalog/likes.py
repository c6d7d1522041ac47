"""Like relations between users and catalog subjects.

A relation row keyed by (subject id, user id) exists while the user likes the
subject. The same store class serves liked collections and liked NFTs; only
the subject attribute of the table differs.
"""

import logging
from typing import Any, Dict, List, Optional

from database import KeyValueTable
from .models import LikeRelation, now_ms
from .tables import USER_ID_INDEX

logger = logging.getLogger(__name__)

class LikeRelationStore:
    """Composite-key relation store with a per-user reverse index."""

    def __init__(self, table: KeyValueTable):
        self.table = table
        self.subject_field = table.spec.partition_key

    def _key(self, subject_id: str, user_id: str) -> Dict[str, Any]:
        return {self.subject_field: subject_id, 'userId': user_id}

    def _relation(self, item: Dict[str, Any]) -> LikeRelation:
        return LikeRelation(
            subject_id=item[self.subject_field],
            user_id=item['userId'],
            created_at=item.get('createdAt')
        )

    async def like(self, subject_id: str, user_id: str) -> LikeRelation:
        """Record that user likes subject. Liking twice leaves a single row."""
        item = {**self._key(subject_id, user_id), 'createdAt': now_ms()}
        await self.table.put_item(item)
        logger.debug(f"{user_id} liked {self.subject_field}={subject_id}")
        return self._relation(item)

    async def unlike(self, subject_id: str, user_id: str) -> None:
        """Remove the relation. Unliking something never liked is not an error."""
        await self.table.delete_item(self._key(subject_id, user_id))
        logger.debug(f"{user_id} unliked {self.subject_field}={subject_id}")

    async def get_relation(self, subject_id: str, user_id: str) -> Optional[LikeRelation]:
        item = await self.table.get_item(self._key(subject_id, user_id))
        return self._relation(item) if item else None

    async def is_liked(self, subject_id: str, user_id: str) -> bool:
        return await self.get_relation(subject_id, user_id) is not None

    async def list_by_user(self, user_id: str) -> List[LikeRelation]:
        """Every relation row of a user, via the user id index."""
        items = await self.table.query_index(USER_ID_INDEX, user_id)
        return [self._relation(item) for item in items]
