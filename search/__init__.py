"""Keyword search over catalog collections.

Documents are stored in the search_documents table, which narrows them with a
case-insensitive contains match (ILIKE on PostgreSQL). Candidates are then
matched with phrase-prefix semantics: the keyword's words must appear
consecutively at a word boundary, the last word matching as a prefix
(``"blue dra"`` matches ``"The Blue Dragon"``). Matching is case-insensitive
over the name, description and creator address of a collection.

The index only produces candidate ids; visibility and the other catalog
filters are applied by the query engine on the latest stored version.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

from database import KeyValueTable

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ('name', 'description', 'creatorAddress')

def _phrase_prefix_pattern(words: List[str]) -> Optional[Pattern]:
    if not words:
        return None
    return re.compile(r'(?<!\w)' + r'\W+'.join(re.escape(word) for word in words), re.IGNORECASE)

class SearchIndex:
    """Search index stored in a key-value table."""

    def __init__(self, table: KeyValueTable):
        self.table = table

    async def upsert(self, doc_id: str, document: Dict[str, Any]) -> None:
        """Insert or replace the document indexed under doc_id.

        Only the searchable fields are stored, as top-level attributes the
        table can match in place.
        """
        item = {'id': doc_id}
        for field in SEARCH_FIELDS:
            if document.get(field) is not None:
                item[field] = str(document[field])
        await self.table.put_item(item)

    async def upsert_many(self, documents: Dict[str, Dict[str, Any]]) -> int:
        """Upsert documents concurrently. Returns how many were written."""
        await asyncio.gather(*(
            self.upsert(doc_id, document) for doc_id, document in documents.items()
        ))
        return len(documents)

    async def search(self, keyword: str) -> List[str]:
        """Return ids of matching documents, best match first.

        Matches in earlier fields rank higher, then matches closer to the
        start of the field.
        """
        words = (keyword or '').split()
        pattern = _phrase_prefix_pattern(words)
        if pattern is None:
            return []

        # The table narrows to items holding the words in order; the pattern
        # then enforces word boundaries and adjacency
        candidates = await self.table.query_text(SEARCH_FIELDS, words)

        ranked: List[Tuple[int, int, str]] = []
        for item in candidates:
            for rank, field in enumerate(SEARCH_FIELDS):
                match = pattern.search(str(item.get(field) or ''))
                if match:
                    ranked.append((rank, match.start(), item['id']))
                    break

        ranked.sort(key=lambda entry: (entry[0], entry[1]))
        logger.debug(f"Search for {keyword!r} matched {len(ranked)} documents")
        return [doc_id for _, _, doc_id in ranked]

async def sync_collections(store, index: SearchIndex) -> int:
    """Index the latest version of every stored collection.

    Args:
        store: VersionedEntityStore of collections
        index: Search index to upsert into

    Returns:
        Number of collections indexed
    """
    # Import here to avoid circular imports
    from catalog.store import reduce_to_latest

    collections = reduce_to_latest(await store.scan_all())
    count = await index.upsert_many({
        collection.collection_id: collection.to_item() for collection in collections
    })
    logger.info(f"Indexed {count} collections")
    return count

__all__ = ['SearchIndex', 'sync_collections', 'SEARCH_FIELDS']
