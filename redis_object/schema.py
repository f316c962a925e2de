from __future__ import annotations
import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .errors import UnknownTableError, ValidationError
from .utils import canonical_json

logger = logging.getLogger(__name__)

SCALAR_TYPES = {"str", "int", "float", "bool", "str_indexed", "str_indexed_safe"}
COMPLEX_TYPES = {"list", "dict"}
# String types that are indexed whether or not "index" is set
INDEXED_STR_TYPES = {"str_indexed", "str_indexed_safe"}

_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_\-]*$")
_SAFE_RE = re.compile(r"^[A-Za-z0-9_-]{1,256}$")

_MISSING = object()


def _is_reserved(name: str) -> bool:
    return name == "id" or name.startswith("_")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: str
    mandatory: bool = False
    default: Any = None
    index: bool = False

    @property
    def is_complex(self) -> bool:
        return self.type in COMPLEX_TYPES

    @property
    def is_indexed(self) -> bool:
        return self.index or self.type in INDEXED_STR_TYPES

    def check(self, value: Any) -> None:
        """Raise ValidationError if value does not fit this field."""
        if value is None:
            if self.mandatory:
                raise ValidationError(f"field '{self.name}' is mandatory")
            return
        t = self.type
        if t in ("str", "str_indexed", "str_indexed_safe"):
            ok = isinstance(value, str)
        elif t == "int":
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif t == "float":
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif t == "bool":
            ok = isinstance(value, bool)
        elif t == "list":
            ok = isinstance(value, (list, tuple))
        else:
            ok = isinstance(value, dict)
        if not ok:
            raise ValidationError(
                f"field '{self.name}' expects {t}, got {type(value).__name__}"
            )
        if t == "str_indexed_safe" and not _SAFE_RE.match(value):
            raise ValidationError(
                f"field '{self.name}' must match [A-Za-z0-9_-]{{1,256}}: {value!r}"
            )
        if self.is_complex:
            try:
                canonical_json(value)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"field '{self.name}' is not serializable: {e}") from e


class TableSchema:
    """Field specs of one table, in declaration order."""

    def __init__(self, name: str, fields: Mapping[str, Mapping[str, Any]]) -> None:
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise ValueError(f"invalid table name: {name!r}")
        self.name = name
        self._fields: Dict[str, FieldSpec] = {}
        self._by_key: Dict[str, str] = {}
        for fname, raw in fields.items():
            if _is_reserved(fname):
                logger.debug("table %s: skipping reserved field %r", name, fname)
                continue
            if not _NAME_RE.match(fname):
                raise ValueError(f"table '{name}': invalid field name {fname!r}")
            t = raw.get("type", "str")
            if t not in SCALAR_TYPES and t not in COMPLEX_TYPES:
                raise ValueError(f"table '{name}': unsupported type {t!r} for '{fname}'")
            spec = FieldSpec(
                name=fname,
                type=t,
                mandatory=bool(raw.get("mandatory", False)),
                default=raw.get("default"),
                index=bool(raw.get("index", False)),
            )
            if spec.is_indexed and spec.is_complex:
                raise ValueError(f"table '{name}': complex field '{fname}' cannot be indexed")
            lowered = fname.lower()
            if lowered in self._by_key:
                raise ValueError(
                    f"table '{name}': fields '{self._by_key[lowered]}' and '{fname}' collide"
                )
            self._by_key[lowered] = fname
            self._fields[fname] = spec

    @property
    def attributes(self) -> List[str]:
        return list(self._fields)

    @property
    def indexed(self) -> Set[str]:
        return {n for n, f in self._fields.items() if f.is_indexed}

    def field(self, name: str) -> FieldSpec:
        try:
            return self._fields[name]
        except KeyError:
            raise ValidationError(f"table '{self.name}' has no field '{name}'") from None

    def field_for_key(self, suffix: str) -> Optional[FieldSpec]:
        """Field stored under a lowercased key suffix, if any."""
        name = self._by_key.get(suffix)
        return self._fields[name] if name else None

    def build(self, values: Mapping[str, Any], base: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        """
        Full validated field map. `base` holds current values (update), `values`
        overrides them. Defaults fill the gaps; on update an optional field
        missing from both becomes None so its stored keys are cleared.
        """
        for k in values:
            if k not in self._fields:
                raise ValidationError(f"table '{self.name}' has no field '{k}'")
        out: Dict[str, Any] = {}
        for name, spec in self._fields.items():
            v = values.get(name, _MISSING)
            if v is _MISSING and base is not None:
                v = base.get(name, _MISSING)
            if v is _MISSING:
                if spec.default is None:
                    if spec.mandatory:
                        raise ValidationError(f"field '{name}' is mandatory")
                    if base is not None:
                        out[name] = None
                    continue
                v = copy.deepcopy(spec.default)
            spec.check(v)
            out[name] = v
        return out


class SchemaRegistry:
    """
    Table schemas keyed by name. Built once; read-only after construction.
    """

    def __init__(self, tables: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None) -> None:
        self._tables: Dict[str, TableSchema] = {}
        self._frozen = False
        for name, fields in (tables or {}).items():
            self.register(name, fields)
        self._frozen = True

    def register(self, name: str, fields: Mapping[str, Mapping[str, Any]]) -> TableSchema:
        if self._frozen:
            raise RuntimeError("schema registry is read-only once built")
        ts = TableSchema(name, fields)
        for other in self._tables:
            if other.lower() == name.lower():
                raise ValueError(f"tables '{other}' and '{name}' collide")
        self._tables[name] = ts
        return ts

    def table(self, name: str) -> TableSchema:
        try:
            return self._tables[name]
        except KeyError:
            raise UnknownTableError(name) from None

    def tables(self) -> Iterable[str]:
        return list(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def attributes(self, table: str) -> List[str]:
        return self.table(table).attributes

    def indexed_attributes(self, table: str) -> Set[str]:
        return self.table(table).indexed

    def is_indexed(self, table: str, attrib: str) -> bool:
        return self.table(table).field(attrib).is_indexed

    def is_complex(self, table: str, attrib: str) -> bool:
        return self.table(table).field(attrib).is_complex
