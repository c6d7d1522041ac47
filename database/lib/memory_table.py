"""In-process table backend used with the memory:// database URL."""
import copy
from typing import Any, Dict, List, Optional, Sequence

from .kv_table import (
    DEFAULT_SCAN_PAGE_SIZE, KeyValueTable, ScanKey, ScanPage, TableSpec, contains_in_order, index_value
)

class MemoryTable(KeyValueTable):
    """Dictionary backed table.

    Items are copied on the way in and out so callers never share state with
    the stored rows, matching a real store's serialization boundary.
    """

    def __init__(self, spec: TableSpec):
        super().__init__(spec)
        self._items: Dict[ScanKey, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._items)

    async def put_item(self, item: Dict[str, Any]) -> None:
        self._items[self.spec.key_of(item)] = copy.deepcopy(item)

    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        item = self._items.get(self.spec.key_of(key))
        return copy.deepcopy(item) if item is not None else None

    async def delete_item(self, key: Dict[str, Any]) -> None:
        self._items.pop(self.spec.key_of(key), None)

    async def query(self, partition_value: Any) -> List[Dict[str, Any]]:
        partition_value = str(partition_value)
        return [
            copy.deepcopy(item)
            for (pk, _), item in sorted(self._items.items(), key=lambda entry: entry[0])
            if pk == partition_value
        ]

    async def query_index(self, index_name: str, value: Any) -> List[Dict[str, Any]]:
        attribute = self.spec.index_attribute(index_name)
        wanted = index_value(value)
        return [
            copy.deepcopy(item)
            for item in self._items.values()
            if attribute in item and item[attribute] is not None
            and index_value(item[attribute]) == wanted
        ]

    async def scan_page(
        self,
        exclusive_start_key: Optional[ScanKey] = None,
        limit: int = DEFAULT_SCAN_PAGE_SIZE
    ) -> ScanPage:
        keys = sorted(self._items)
        if exclusive_start_key is not None:
            keys = [key for key in keys if key > exclusive_start_key]
        page_keys = keys[:limit]
        last_key = page_keys[-1] if len(page_keys) == limit else None
        return ScanPage(
            items=[copy.deepcopy(self._items[key]) for key in page_keys],
            last_evaluated_key=last_key
        )

    async def increment(
        self,
        key: Dict[str, Any],
        attribute: str,
        amount: int = 1
    ) -> Optional[Dict[str, Any]]:
        item = self._items.get(self.spec.key_of(key))
        if item is None:
            return None
        item[attribute] = (item.get(attribute) or 0) + amount
        return copy.deepcopy(item)

    async def query_text(self, attributes: Sequence[str], words: Sequence[str]) -> List[Dict[str, Any]]:
        if not attributes or not words:
            return []
        return [
            copy.deepcopy(item)
            for item in self._items.values()
            if any(item.get(attribute) is not None and contains_in_order(item[attribute], words)
                   for attribute in attributes)
        ]
