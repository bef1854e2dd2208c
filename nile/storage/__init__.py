from nile.storage.memory import MemoryTableStore
from nile.storage.protocol import StoreError, TableStore
from nile.storage.sql import SqlTableStore, create_engine

__all__ = ["MemoryTableStore", "SqlTableStore", "StoreError", "TableStore", "create_engine"]
