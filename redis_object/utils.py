from __future__ import annotations
import json
import re
import time
from typing import Any, Optional

_WS_CHAR = re.compile(r"\s")
_WS_RUN = re.compile(r"[\s\r\n]+")
_GLOB_SPECIAL = re.compile(r"([?\[\]\\])")

# Placeholder index value for empty / missing values
EMPTY_INDEX_VALUE = "__"


def now_ts() -> int:
    """Unix timestamp in whole seconds."""
    return int(time.time())


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def keyname(prefix: Optional[str], *parts: Any) -> str:
    """
    Build a flat namespaced key: parts are lowercased, whitespace becomes "_",
    None parts and an empty prefix are dropped, segments are joined with ":".

    keyname("app", "Users", 3, "_")  -> "app:users:3:_"
    keyname("", "Users", "_id")      -> "users:_id"
    """
    segs = [prefix or None, *parts]
    return ":".join(_WS_CHAR.sub("_", str(p).lower()) for p in segs if p is not None)


def normalize_index_value(value: Any) -> str:
    """Index key suffix for a value. Case is kept, whitespace runs collapse to "_"."""
    if value is None:
        return EMPTY_INDEX_VALUE
    s = str(value)
    if s == "":
        return EMPTY_INDEX_VALUE
    return _WS_RUN.sub("_", s)


def escape_glob(value: str, keep_star: bool = True) -> str:
    """Escape glob metacharacters for KEYS patterns. '*' stays a wildcard unless keep_star is False."""
    out = _GLOB_SPECIAL.sub(r"\\\1", value)
    if not keep_star:
        out = out.replace("*", "\\*")
    return out
