"""
In-process TableStore over a list of dicts. Used for tests and local development.
"""
import copy
import uuid
from typing import Any, Dict, List, Optional, Sequence

from nile.storage.protocol import Record, StoreError, TableStore


def _matches(row: Record, filters: Optional[Dict[str, Any]]) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class MemoryTableStore(TableStore):
    def __init__(self, table_name: str, rows: Optional[List[Record]] = None, id_name: str = "id"):
        self.table_name = table_name
        self.id_name = id_name
        self._rows: List[Record] = [dict(r) for r in (rows or [])]

    async def create_item(self, data: Record) -> Record:
        row = dict(data)
        row.setdefault(self.id_name, uuid.uuid4().hex)
        if any(r.get(self.id_name) == row[self.id_name] for r in self._rows):
            raise StoreError(f"duplicate {self.id_name}: {row[self.id_name]}")
        self._rows.append(row)
        return copy.deepcopy(row)

    async def get_one(self, prop: str, value: Any) -> Optional[Record]:
        for row in self._rows:
            if row.get(prop) == value:
                return copy.deepcopy(row)
        return None

    async def get_many(self, prop: str, value: Any) -> List[Record]:
        return [copy.deepcopy(r) for r in self._rows if r.get(prop) == value]

    async def get_all(self) -> List[Record]:
        return copy.deepcopy(self._rows)

    async def update_item(self, prop: str, value: Any, data: Record) -> Optional[Record]:
        for row in self._rows:
            if row.get(prop) == value:
                row.update({k: v for k, v in data.items() if k != self.id_name})
                return copy.deepcopy(row)
        return None

    async def delete_one(self, prop: str, value: Any) -> Optional[Record]:
        for i, row in enumerate(self._rows):
            if row.get(prop) == value:
                return self._rows.pop(i)
        return None

    async def delete_all(self) -> int:
        count = len(self._rows)
        self._rows.clear()
        return count

    async def get_many_with(
        self,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort: Optional[Sequence[Dict[str, str]]] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        rows = [r for r in self._rows if _matches(r, filters)]
        # apply sort keys last-to-first so the first key has priority
        for key in reversed(list(sort or [])):
            field_name = key.get("field")
            rows.sort(key=lambda r: (r.get(field_name) is None, r.get(field_name)), reverse=key.get("direction") == "desc")
        total = len(rows)
        page = page or 1
        per_page = per_page or total or 1
        start = (page - 1) * per_page
        return {
            "items": copy.deepcopy(rows[start : start + per_page]),
            "total": total,
            "page": page,
            "per_page": per_page,
        }
