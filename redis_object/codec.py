"""
Value codec: complex attributes (list/dict) are stored as a JSON envelope
{"ts": <unix_ts>, "value": <value>}; scalars are stored as their string form
and coerced back to the declared type on read.
"""
from __future__ import annotations
import json
from typing import Any

from .errors import DataCorruptionError
from .schema import FieldSpec, SchemaRegistry
from .utils import canonical_json


def is_complex(registry: SchemaRegistry, table: str, attrib: str) -> bool:
    return registry.is_complex(table, attrib)


def encode(value: Any, ts: int) -> str:
    return canonical_json({"ts": ts, "value": value})


def decode(blob: Any) -> Any:
    try:
        obj = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise DataCorruptionError(f"cannot decode stored value: {e}") from e
    if not isinstance(obj, dict) or "value" not in obj:
        raise DataCorruptionError("stored value has no envelope")
    return obj["value"]


def encode_scalar(value: Any) -> Any:
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def decode_scalar(spec: FieldSpec, raw: str) -> Any:
    t = spec.type
    try:
        if t == "int":
            return int(raw)
        if t == "float":
            return float(raw)
        if t == "bool":
            if raw not in ("0", "1"):
                raise ValueError(f"not a bool: {raw!r}")
            return raw == "1"
    except ValueError as e:
        raise DataCorruptionError(f"field '{spec.name}': {e}") from e
    return raw


def encode_field(spec: FieldSpec, value: Any, ts: int) -> Any:
    if spec.is_complex:
        return encode(value, ts)
    return encode_scalar(value)


def decode_field(spec: FieldSpec, raw: str) -> Any:
    if spec.is_complex:
        return decode(raw)
    return decode_scalar(spec, raw)
