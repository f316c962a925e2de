from __future__ import annotations


class RedisObjectError(Exception):
    """Base class for all errors raised by redis_object."""


class UnknownTableError(RedisObjectError, KeyError):
    """Table name was never registered in the schema."""

    def __init__(self, table: str) -> None:
        super().__init__(table)
        self.table = table

    def __str__(self) -> str:
        return f"table '{self.table}' is unknown"


class ValidationError(RedisObjectError, ValueError):
    """
    A record failed its schema: missing mandatory field, unknown field,
    wrong type or a constrained value (e.g. str_indexed_safe) out of range.
    Always raised before any key is written.
    """


class DataCorruptionError(RedisObjectError):
    """A stored value could not be decoded back into its declared type."""


class StoreError(RedisObjectError):
    """Failure inside the key-value store primitives."""
