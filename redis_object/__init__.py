from .config import StoreConfig
from .cursor import SearchResult
from .database import Database, Record
from .errors import (
    DataCorruptionError,
    RedisObjectError,
    StoreError,
    UnknownTableError,
    ValidationError,
)
from .query import Equals, Predicate, Prefix, Regex
from .schema import FieldSpec, SchemaRegistry, TableSchema
from .storage import KeyValueStore, MemoryStore, RedisStore

__all__ = [
    "Database",
    "Record",
    "SearchResult",
    "SchemaRegistry",
    "TableSchema",
    "FieldSpec",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "StoreConfig",
    "Equals",
    "Prefix",
    "Regex",
    "Predicate",
    "RedisObjectError",
    "UnknownTableError",
    "ValidationError",
    "DataCorruptionError",
    "StoreError",
]
