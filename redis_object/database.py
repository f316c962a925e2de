from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from .codec import decode_field, encode_field
from .config import StoreConfig
from .cursor import SearchResult
from .errors import ValidationError
from .progress import Progress, ProgressCallback
from .query import Equals, Prefix, RecordTest, clause_test, id_test, split_filter
from .schema import SchemaRegistry, TableSchema
from .storage import KeyValueStore, RedisStore
from .utils import escape_glob, keyname, normalize_index_value, now_ts

logger = logging.getLogger(__name__)

_GLOB_CHARS = set("*?[]\\")


class Record(dict):
    """
    Dict-like record of one table, bound to the Database it came from.
    Field assignment is checked against the table schema.
    """
    __slots__ = ("_db", "_table", "_id")

    def __init__(self, db: "Database", table: str, initial: Mapping[str, Any], rec_id: Optional[int] = None) -> None:
        super().__init__(initial)
        self._db = db
        self._table = table
        self._id = rec_id

    @property
    def id(self) -> Optional[int]:
        return self._id

    @property
    def table(self) -> str:
        return self._table

    def __setitem__(self, key: str, value: Any) -> None:
        self._db._schema.table(self._table).field(key).check(value)
        super().__setitem__(key, value)

    def save(self, fields: Optional[Mapping[str, Any]] = None) -> "Record":
        """Write the record (with optional overrides) back to the store."""
        return self._db.update(self, fields)

    def remove(self) -> None:
        self._db.remove(self)

    def increment(self, attrib: str, amount: int = 1) -> int:
        return self._db.increment(self, attrib, amount)

    def reload(self) -> "Record":
        if self._id is None:
            raise ValidationError("record has no id; create() it first")
        rec = self._db.find(self._table, self._id)
        if rec is None:
            raise ValidationError(f"record {self._table}:{self._id} no longer exists")
        super().clear()
        super().update(rec)
        return self

    def __repr__(self) -> str:
        return f"<Record {self._table}:{self._id} {dict.__repr__(self)}>"


class Database:
    """
    Object mapper over a flat key-value store. Each record is spread over
    one key per attribute plus a holder key and one key per indexed value:

        <prefix>:<table>:_id                                  counter
        <prefix>:<table>:<id>:_                                holder (timestamp)
        <prefix>:<table>:<id>:<attrib>                         value
        <prefix>:<table>:<id>:_:<attrib>:<normalized_value>    index (timestamp)

    None of the multi-key writes are atomic.
    """

    def __init__(
        self,
        store: KeyValueStore,
        schema: Union[SchemaRegistry, Mapping[str, Mapping[str, Any]]],
        *,
        prefix: str = "",
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if _GLOB_CHARS & set(prefix):
            raise ValueError(f"prefix may not contain glob characters: {prefix!r}")
        self._store = store
        self._schema = schema if isinstance(schema, SchemaRegistry) else SchemaRegistry(schema)
        if not list(self._schema.tables()):
            raise ValueError("schema declares no tables")
        self.prefix = prefix
        self._progress = Progress(on_progress)

    @classmethod
    def connect(
        cls,
        schema: Union[SchemaRegistry, Mapping[str, Mapping[str, Any]]],
        config: Optional[StoreConfig] = None,
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "Database":
        """Open a Redis-backed database; settings default to StoreConfig.from_env()."""
        config = config or StoreConfig.from_env()
        store = RedisStore(config.server, db=config.db, password=config.password)
        return cls(store, schema, prefix=config.prefix, on_progress=on_progress)

    @property
    def schema(self) -> SchemaRegistry:
        return self._schema

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def close(self) -> None:
        self._store.close()

    def _key(self, *parts: Any) -> str:
        return keyname(self.prefix, *parts)

    # ----- CRUD -----

    def create(self, table: str, fields: Mapping[str, Any]) -> Record:
        ts = self._schema.table(table)
        data = ts.build(fields)
        rec_id = self._next_id(table)
        self._write(ts, rec_id, data)
        return Record(self, table, data, rec_id)

    def update(
        self,
        record: Union[Record, Sequence[Record]],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Write the current values of `record`, overridden by `overrides`.
        Accepts a list of records as well and then returns the list.
        """
        if isinstance(record, (list, tuple)):
            return [self.update(r, overrides) for r in record]
        if record.id is None:
            raise ValidationError("record has no id; create() it first")
        ts = self._schema.table(record.table)
        data = ts.build(overrides or {}, base=record)
        self._write(ts, record.id, data)
        dict.clear(record)
        dict.update(record, data)
        return record

    def find(self, table: str, rec_id: Any) -> Optional[Record]:
        ts = self._schema.table(table)
        try:
            rec_id = int(rec_id)
        except (TypeError, ValueError):
            return None
        base = self._key(table, rec_id)
        keys = self._store.keys(base + ":*")
        if not keys:
            return None
        cut = len(base) + 1
        data: Dict[str, Any] = {}
        for key in keys:
            suffix = key[cut:]
            if suffix.startswith("_"):
                continue
            spec = ts.field_for_key(suffix)
            if spec is None:
                logger.warning("ignoring stray key %s", key)
                continue
            raw = self._store.get(key)
            if raw is None:
                continue
            data[spec.name] = decode_field(spec, raw)
        # keep declaration order
        ordered = {name: data[name] for name in ts.attributes if name in data}
        return Record(self, table, ordered, rec_id)

    def remove(self, record: Record) -> None:
        if record.id is None:
            raise ValidationError("record has no id; nothing to remove")
        keys =self._store.keys(self._key(record.table, record.id, "*"))
        if keys:
            self._store.delete(*keys)
        logger.debug("removed %s:%s (%d keys)", record.table, record.id, len(keys))

    def delete(self, table: str, flt: Any, *, or_search: bool = False) -> int:
        """Remove every record matching `flt`. Returns the number removed."""
        return self.search(table, flt, or_search=or_search).remove_all()

    def truncate(self, table: str) -> None:
        """Drop every key of the table, including the id counter."""
        self._schema.table(table)
        self._progress.start("truncate", table)
        keys = self._store.keys(self._key(table, "*"))
        if keys:
            self._store.delete(*keys)
        self._progress.done("truncate", f"{len(keys)} keys")

    def count(self, table: str) -> int:
        self._schema.table(table)
        return len(self._ids_from_keys(table, self._store.keys(self._key(table, "*", "_")), "_"))

    def current_id(self, table: str) -> int:
        """Highest id handed out so far (0 for an empty or truncated table)."""
        raw = self._store.get(self._key(table, "_id"))
        return int(raw) if raw else 0

    def increment(self, record: Record, attrib: str, amount: int = 1) -> int:
        """Atomically add `amount` to an int attribute in the store and on the record."""
        if record.id is None:
            raise ValidationError("record has no id; create() it first")
        spec = self._schema.table(record.table).field(attrib)
        if spec.type != "int" or spec.is_indexed:
            raise ValidationError(f"field '{attrib}' is not a plain int field")
        n = self._store.incr(self._key(record.table, record.id, attrib), amount)
        dict.__setitem__(record, attrib, n)
        return n

    def _next_id(self, table: str) -> int:
        return self._store.incr(self._key(table, "_id"))

    def _write(self, ts: TableSchema, rec_id: int, data: Dict[str, Any]) -> None:
        now = now_ts()
        table = ts.name
        self._store.set(self._key(table, rec_id, "_"), now)

        for attrib in ts.attributes:
            if attrib not in data or attrib not in ts.indexed:
                continue
            idx_base = self._key(table, rec_id, "_", attrib)
            stale = self._store.keys(idx_base + ":*")
            if stale:
                self._store.delete(*stale)
            # value part is case sensitive
            self._store.set(idx_base + ":" + normalize_index_value(data[attrib]), now)

        for attrib, value in data.items():
            key = self._key(table, rec_id, attrib)
            if value is None:
                self._store.delete(key)
            else:
                self._store.set(key, encode_field(ts.field(attrib), value, now))
        logger.debug("wrote %s:%s (%d fields)", table, rec_id, len(data))

    # ----- search -----

    def search(self, table: str, flt: Any, *, or_search: bool = False) -> SearchResult:
        """
        Search a table. `flt` is either a callable taking a Record, or a
        mapping of field -> value / regex / callable / clause. Mapping
        entries are AND-ed unless or_search is set.
        """
        self._schema.table(table)
        return SearchResult(self, table, flt, or_search)

    def _plan_search(self, table: str, flt: Any, or_search: bool) -> Tuple[List[RecordTest], Optional[List[int]]]:
        """
        Returns (post-fetch tests, candidate ids). Candidate ids is None when
        the cursor has to scan the whole table.
        """
        ts = self._schema.table(table)
        if callable(flt) and not isinstance(flt, Mapping):
            return [lambda rec: bool(flt(rec))], None
        if not isinstance(flt, Mapping):
            raise TypeError(f"cannot use filter of type {type(flt).__name__}; use a callable or a mapping")
        for attrib in flt:
            ts.field(attrib)
        by_index, post = split_filter(flt, ts.indexed)
        tests = [clause_test(a, c) for a, c in post.items()]
        id_sets = [self._index_lookup(table, a, c) for a, c in by_index.items()]
        logger.debug(
            "search %s: %d index clauses, %d post-fetch tests, or=%s",
            table, len(id_sets), len(tests), or_search,
        )
        if or_search:
            tests.extend(id_test(s) for s in id_sets)
            return tests, None
        if not id_sets:
            return tests, None
        return tests, sorted(set.intersection(*id_sets))

    def _index_lookup(self, table: str, attrib: str, clause: Union[Equals, Prefix]) -> Set[int]:
        if isinstance(clause, Prefix):
            value = escape_glob(normalize_index_value(clause.value), keep_star=False) + "*" if clause.value else "*"
        else:
            value = escape_glob(normalize_index_value(clause.value))
        pattern = self._key(table, "*", "_", attrib) + ":" + value
        return self._ids_from_keys(table, self._store.keys(pattern), "_:" + attrib.lower() + ":")

    def _ids_from_keys(self, table: str, keys: List[str], tail: str) -> Set[int]:
        """
        Record ids from keys shaped <table>:<id>:<tail...>. With tail "_" the
        rest must be exactly "_" (holder keys), otherwise it must start with tail.
        """
        base = self._key(table) + ":"
        out: Set[int] = set()
        for key in keys:
            id_part, _, rest = key[len(base):].partition(":")
            if not id_part.isdigit():
                continue
            if (rest == tail) if tail == "_" else rest.startswith(tail):
                out.add(int(id_part))
        return out
