from .interface import BoardStore
from .memory import InMemoryStore
from .tables import TABLES, TableSpec

__all__ = [
    "BoardStore",
    "InMemoryStore",
    "TABLES",
    "TableSpec",
]
