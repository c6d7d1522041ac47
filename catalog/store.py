"""Append-only store for versioned catalog entities.

Each write of a Collection or NFT is a new immutable ``(id, version)`` row.
The ``isLatest`` flag is set on every new row but never cleared on older
ones, so it cannot be trusted as a filter: the current version of an entity
is always resolved by loading every version of the id and taking the highest
``version`` number.

The same store hosts unversioned kinds (assets) whose table has no sort key;
for those an id has at most one row and writes overwrite it in place.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from database import KeyValueTable
from .exceptions import EntityNotFoundError
from .models import CatalogRecord, now_ms

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=CatalogRecord)

VERSION_FIELD = 'version'

def _version_of(item: Dict[str, Any]) -> int:
    return item.get(VERSION_FIELD) or 0

def reduce_to_latest(entities: Iterable[E]) -> List[E]:
    """Keep the highest version of each entity id, in first-seen order."""
    latest: Dict[str, E] = {}
    for entity in entities:
        if entity.is_empty:
            continue
        current = latest.get(entity.entity_id)
        if current is None or (entity.version or 0) > (current.version or 0):
            latest[entity.entity_id] = entity
    return list(latest.values())

class VersionedEntityStore:
    """Store of entity rows keyed by (id, version)."""

    def __init__(self, table: KeyValueTable, model: Type[E]):
        """Initialize the store.

        Args:
            table: Table holding the entity rows
            model: Record class rows are built into
        """
        self.table = table
        self.model = model

    @property
    def versioned(self) -> bool:
        return self.table.spec.sort_key == VERSION_FIELD

    def _key(self, entity_id: str, version: Optional[int] = None) -> Dict[str, Any]:
        key: Dict[str, Any] = {self.table.spec.partition_key: entity_id}
        if self.versioned:
            key[VERSION_FIELD] = version
        return key

    def _build(self, item: Optional[Dict[str, Any]] = None) -> E:
        return self.model.from_item(item)

    def _latest_of(self, items: List[Dict[str, Any]]) -> E:
        if not items:
            return self._build()
        return self._build(sorted(items, key=_version_of, reverse=True)[0])

    async def put(self, entity: E) -> E:
        """Write an entity row under its own (id, version).

        The caller chooses the version. An existing row with the same key is
        silently overwritten; store errors propagate unchanged.
        """
        await self.table.put_item(entity.to_item())
        logger.debug(f"Stored {self.table.name} row {entity.entity_id} v{getattr(entity, 'version', None)}")
        return entity

    async def create(self, entity: E) -> E:
        """Write the first version of a new entity."""
        if not self.versioned:
            return await self.put(entity)
        now = now_ms()
        first = entity.model_copy(update={
            'version': 1,
            'created_at': now,
            'updated_at': now,
            'is_latest': True
        })
        return await self.put(first)

    async def append_version(self, entity_id: str, changes: Dict[str, Any]) -> E:
        """Write a new version of an entity with changes merged over the latest one.

        Older versions keep their ``isLatest`` flag as stored.

        Raises:
            EntityNotFoundError: If the entity has no stored version
        """
        latest = await self.get_latest(entity_id)
        if latest.is_empty:
            raise EntityNotFoundError(f"{self.table.name}: {entity_id} not found")

        merged = {**latest.to_item(), **self._build(changes).to_item()}
        merged[self.table.spec.partition_key] = entity_id
        merged[VERSION_FIELD] = (latest.version or 0) + 1
        merged['isLatest'] = True
        merged['updatedAt'] = now_ms()
        return await self.put(self._build(merged))

    async def get_latest(self, entity_id: str) -> E:
        """Return the highest version of an entity, or an empty entity."""
        items = await self.table.query(entity_id)
        return self._latest_of(items)

    async def get_version(self, entity_id: str, version: int) -> E:
        """Return one exact version of an entity, or an empty entity."""
        item = await self.table.get_item(self._key(entity_id, version))
        return self._build(item)

    async def get_by_index(self, index_name: str, value: Any) -> List[E]:
        """Return every row matching a secondary index value, all versions included."""
        items = await self.table.query_index(index_name, value)
        logger.debug(f"{self.table.name}.{index_name}={value!r} matched {len(items)} rows")
        return [self._build(item) for item in items]

    async def get_latest_by_index(self, index_name: str, value: Any) -> E:
        """Return the highest version among rows sharing an indexed value."""
        items = await self.table.query_index(index_name, value)
        return self._latest_of(items)

    async def scan_all(self) -> List[E]:
        """Return every row of the table. Cost grows with the table size."""
        items = await self.table.scan()
        return [self._build(item) for item in items]

    async def increment(self, entity_id: str, attribute: str, amount: int = 1) -> E:
        """Atomically bump a counter on the latest version of an entity.

        Raises:
            EntityNotFoundError: If the entity has no stored version
        """
        latest = await self.get_latest(entity_id)
        if latest.is_empty:
            raise EntityNotFoundError(f"{self.table.name}: {entity_id} not found")
        item = await self.table.increment(
            self._key(entity_id, getattr(latest, 'version', None)), attribute, amount
        )
        return self._build(item)

    async def delete(self, entity_id: str, version: Optional[int] = None) -> None:
        """Delete one row. Only used to clean up fixtures."""
        await self.table.delete_item(self._key(entity_id, version))
