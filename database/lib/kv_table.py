"""Key-value table abstraction over the catalog database.

Every catalog table is a partition+sort key table holding schemaless items.
Items can be fetched by full key, by partition (range query), by equality on a
named secondary index, or by a full scan that pages with a continuation key.

Two backends implement the same interface:
- PostgresTable stores each item as JSONB in its own table, with expression
  indexes for the secondary indexes (see database/schema/).
- MemoryTable (memory_table.py) keeps items in process.
"""
import json
import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import UnknownIndexError

logger = logging.getLogger(__name__)

# Continuation token returned by a scan page: (partition_key, sort_key)
ScanKey = Tuple[str, str]

DEFAULT_SCAN_PAGE_SIZE = 100

@dataclass(frozen=True)
class TableSpec:
    """Key layout of a logical table."""
    name: str
    partition_key: str
    sort_key: Optional[str] = None
    indexes: Dict[str, str] = field(default_factory=dict)

    def key_of(self, item: Dict[str, Any]) -> ScanKey:
        """Return the normalized (partition, sort) key of an item or key dict.

        Raises:
            ValueError: If a key attribute is missing
        """
        partition_value = item.get(self.partition_key)
        if partition_value is None or partition_value == '':
            raise ValueError(f"{self.name}: missing partition key '{self.partition_key}'")
        if self.sort_key is None:
            return str(partition_value), ''
        sort_value = item.get(self.sort_key)
        if sort_value is None or sort_value == '':
            raise ValueError(f"{self.name}: missing sort key '{self.sort_key}'")
        return str(partition_value), str(sort_value)

    def index_attribute(self, index_name: str) -> str:
        """Return the attribute a secondary index is built on."""
        try:
            return self.indexes[index_name]
        except KeyError:
            raise UnknownIndexError(f"Table {self.name} has no index named {index_name}")

@dataclass
class ScanPage:
    """One page of a scan."""
    items: List[Dict[str, Any]]
    last_evaluated_key: Optional[ScanKey] = None

def index_value(value: Any) -> str:
    """Render a value the way it is compared against an indexed JSON attribute."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)

def like_pattern(words: Sequence[str]) -> str:
    """ILIKE pattern matching the words in order anywhere in a value."""
    escaped = [re.sub(r"([\\%_])", r"\\\1", word) for word in words]
    return "%" + "%".join(escaped) + "%"

def contains_in_order(value: Any, words: Sequence[str]) -> bool:
    """Case-insensitive equivalent of ``value ILIKE like_pattern(words)``."""
    text = str(value).lower()
    position = 0
    for word in words:
        found = text.find(word.lower(), position)
        if found < 0:
            return False
        position = found + len(word)
    return True

class KeyValueTable(ABC):
    """Base class for partition+sort key tables."""

    def __init__(self, spec: TableSpec):
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    @abstractmethod
    async def put_item(self, item: Dict[str, Any]) -> None:
        """Insert or overwrite the item stored under the item's key."""

    @abstractmethod
    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Fetch a single item by full key."""

    @abstractmethod
    async def delete_item(self, key: Dict[str, Any]) -> None:
        """Delete the item stored under key. Deleting a missing item is a no-op."""

    @abstractmethod
    async def query(self, partition_value: Any) -> List[Dict[str, Any]]:
        """Fetch every item sharing a partition key."""

    @abstractmethod
    async def query_index(self, index_name: str, value: Any) -> List[Dict[str, Any]]:
        """Fetch every item whose indexed attribute equals value."""

    @abstractmethod
    async def scan_page(
        self,
        exclusive_start_key: Optional[ScanKey] = None,
        limit: int = DEFAULT_SCAN_PAGE_SIZE
    ) -> ScanPage:
        """Fetch one page of a full scan."""

    @abstractmethod
    async def increment(
        self,
        key: Dict[str, Any],
        attribute: str,
        amount: int = 1
    ) -> Optional[Dict[str, Any]]:
        """Atomically add amount to a numeric attribute, returning the new item."""

    @abstractmethod
    async def query_text(self, attributes: Sequence[str], words: Sequence[str]) -> List[Dict[str, Any]]:
        """Fetch items where any of attributes contains words in order, ignoring case."""

    async def scan(self, page_size: int = DEFAULT_SCAN_PAGE_SIZE) -> List[Dict[str, Any]]:
        """Scan the whole table, following continuation keys until exhausted."""
        results: List[Dict[str, Any]] = []
        start_key = None
        pages = 0
        while True:
            page = await self.scan_page(exclusive_start_key=start_key, limit=page_size)
            results.extend(page.items)
            pages += 1
            start_key = page.last_evaluated_key
            if start_key is None:
                break
        logger.debug(f"Scanned {len(results)} items from {self.name} in {pages} pages")
        return results

class PostgresTable(KeyValueTable):
    """Table backed by a PostgreSQL/CockroachDB relation of JSONB items."""

    def __init__(self, pool, spec: TableSpec):
        super().__init__(spec)
        self.pool = pool

    async def put_item(self, item: Dict[str, Any]) -> None:
        partition_value, sort_value = self.spec.key_of(item)
        async with self.pool.acquire() as conn:
            await conn.execute(
                f'''
                INSERT INTO {self.name} (partition_key, sort_key, item)
                VALUES ($1, $2, $3::JSONB)
                ON CONFLICT (partition_key, sort_key)
                DO UPDATE SET item = EXCLUDED.item, updated_at = now()
                ''',
                partition_value,
                sort_value,
                json.dumps(item)
            )

    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        partition_value, sort_value = self.spec.key_of(key)
        async with self.pool.acquire() as conn:
            raw = await conn.fetchval(
                f'SELECT item FROM {self.name} WHERE partition_key = $1 AND sort_key = $2',
                partition_value,
                sort_value
            )
        return json.loads(raw) if raw is not None else None

    async def delete_item(self, key: Dict[str, Any]) -> None:
        partition_value, sort_value = self.spec.key_of(key)
        async with self.pool.acquire() as conn:
            await conn.execute(
                f'DELETE FROM {self.name} WHERE partition_key = $1 AND sort_key = $2',
                partition_value,
                sort_value
            )

    async def query(self, partition_value: Any) -> List[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'SELECT item FROM {self.name} WHERE partition_key = $1 ORDER BY sort_key',
                str(partition_value)
            )
        return [json.loads(row['item']) for row in rows]

    async def query_index(self, index_name: str, value: Any) -> List[Dict[str, Any]]:
        attribute = self.spec.index_attribute(index_name)
        # Attribute name comes from the table spec, never from caller input
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT item FROM {self.name} WHERE item->>'{attribute}' = $1",
                index_value(value)
            )
        return [json.loads(row['item']) for row in rows]

    async def scan_page(
        self,
        exclusive_start_key: Optional[ScanKey] = None,
        limit: int = DEFAULT_SCAN_PAGE_SIZE
    ) -> ScanPage:
        async with self.pool.acquire() as conn:
            if exclusive_start_key is None:
                rows = await conn.fetch(
                    f'''
                    SELECT partition_key, sort_key, item FROM {self.name}
                    ORDER BY partition_key, sort_key
                    LIMIT $1
                    ''',
                    limit
                )
            else:
                rows = await conn.fetch(
                    f'''
                    SELECT partition_key, sort_key, item FROM {self.name}
                    WHERE (partition_key, sort_key) > ($1, $2)
                    ORDER BY partition_key, sort_key
                    LIMIT $3
                    ''',
                    exclusive_start_key[0],
                    exclusive_start_key[1],
                    limit
                )

        items = [json.loads(row['item']) for row in rows]
        last_key = None
        if len(rows) == limit:
            last_key = (rows[-1]['partition_key'], rows[-1]['sort_key'])
        return ScanPage(items=items, last_evaluated_key=last_key)

    async def increment(
        self,
        key: Dict[str, Any],
        attribute: str,
        amount: int = 1
    ) -> Optional[Dict[str, Any]]:
        partition_value, sort_value = self.spec.key_of(key)
        async with self.pool.acquire() as conn:
            raw = await conn.fetchval(
                f'''
                UPDATE {self.name}
                SET
                    item = jsonb_set(
                        item,
                        ARRAY[$3::TEXT],
                        to_jsonb(COALESCE((item->>$3::TEXT)::INT8, 0) + $4)
                    ),
                    updated_at = now()
                WHERE partition_key = $1 AND sort_key = $2
                RETURNING item
                ''',
                partition_value,
                sort_value,
                attribute,
                amount
            )
        return json.loads(raw) if raw is not None else None

    async def query_text(self, attributes: Sequence[str], words: Sequence[str]) -> List[Dict[str, Any]]:
        if not attributes or not words:
            return []
        # Attribute names come from the caller's constants, never from request input
        condition = ' OR '.join(f"(item->>'{attribute}') ILIKE $1" for attribute in attributes)
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'SELECT item FROM {self.name} WHERE {condition}',
                like_pattern(words)
            )
        return [json.loads(row['item']) for row in rows]
