from typing import Any, List, Optional

from .database import Row, StorageEngine
from .predicates import OrderBy, Where


class Repository:
    """Table bound view of the storage engine, keyed by the table's primary key columns."""

    def __init__(self, store: StorageEngine, table: str, *primary_keys: str):
        self.store = store
        self.table = table
        self.primary_keys = primary_keys

    def where(self, **values: Any) -> Where:
        return Where.matching(self.table, **values)

    def key(self, *values: Any) -> Where:
        """Predicate selecting the row(s) identified by a (possibly partial) primary key."""
        return Where.matching(self.table, **dict(zip(self.primary_keys, values)))

    async def insert(self, row: Row) -> None:
        await self.store.insert(self.table, row)

    async def upsert(self, row: Row, *by_columns: str) -> None:
        await self.store.upsert(self.table, row, by_columns or self.primary_keys)

    async def get(self, where: Optional[Where] = None, order_by: OrderBy = ()) -> List[Row]:
        return await self.store.find(self.table, where, order_by=order_by)

    async def first(self, where: Optional[Where] = None) -> Optional[Row]:
        rows = await self.store.find(self.table, where, limit=1)
        return rows[0] if rows else None

    async def scan(
        self,
        where: Optional[Where] = None,
        order_by: OrderBy = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        return await self.store.find(self.table, where, order_by=order_by, offset=offset, limit=limit)

    async def update(self, patch: Row, where: Optional[Where] = None) -> int:
        return await self.store.update(self.table, where, patch)

    async def delete(self, where: Where) -> int:
        return await self.store.delete(self.table, where)

    async def exists(self, where: Optional[Where] = None) -> bool:
        return await self.store.exists(self.table, where)

    async def not_exist(self, where: Optional[Where] = None) -> bool:
        return not await self.store.exists(self.table, where)

    async def count(self, where: Optional[Where] = None) -> int:
        return await self.store.count(self.table, where)

    def __repr__(self) -> str:
        return f"Repository({self.table!r}, keys={self.primary_keys!r})"

