"""
TableStore: record storage capability consumed by auto-generated CRUD actions.
Stores raise StoreError on failure; the CRUD handlers turn it into an Err.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

Record = Dict[str, Any]


class StoreError(Exception):
    pass


class TableStore(ABC):
    table_name: str = ""

    @abstractmethod
    async def create_item(self, data: Record) -> Record:
        ...

    @abstractmethod
    async def get_one(self, prop: str, value: Any) -> Optional[Record]:
        ...

    @abstractmethod
    async def get_many(self, prop: str, value: Any) -> List[Record]:
        ...

    @abstractmethod
    async def get_all(self) -> List[Record]:
        ...

    @abstractmethod
    async def update_item(self, prop: str, value: Any, data: Record) -> Optional[Record]:
        ...

    @abstractmethod
    async def delete_one(self, prop: str, value: Any) -> Optional[Record]:
        ...

    @abstractmethod
    async def delete_all(self) -> int:
        ...

    @abstractmethod
    async def get_many_with(
        self,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort: Optional[Sequence[Dict[str, str]]] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Returns {"items": [...], "total": n, "page": p, "per_page": pp}."""

    async def get_one_with(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Record]:
        page = await self.get_many_with(page=1, per_page=1, filters=filters)
        items = page.get("items") or []
        return items[0] if items else None
