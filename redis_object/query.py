from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Pattern, Set, Tuple, Union


@dataclass(frozen=True)
class Equals:
    value: Any


@dataclass(frozen=True)
class Prefix:
    value: str


@dataclass(frozen=True)
class Regex:
    pattern: Pattern[str]

    def __init__(self, pattern: Union[str, Pattern[str]]) -> None:
        object.__setattr__(self, "pattern", re.compile(pattern) if isinstance(pattern, str) else pattern)


@dataclass(frozen=True)
class Predicate:
    fn: Callable[[Any], Any]


Clause = Union[Equals, Prefix, Regex, Predicate]
RecordTest = Callable[[Any], bool]


def _as_text(v: Any) -> str:
    if isinstance(v, bool):
        return "1" if v else "0"
    return str(v)


def compile_clause(value: Any, indexed: bool) -> Clause:
    """
    Map a raw filter value onto a clause:
      - already a clause -> as is
      - compiled regex -> Regex
      - callable -> Predicate (called with the attribute value)
      - string ending with '*' on a non-indexed field -> Prefix
      - anything else -> Equals
    Indexed fields keep '*' inside Equals; it acts as a key-pattern wildcard.
    """
    if isinstance(value, (Equals, Prefix, Regex, Predicate)):
        return value
    if isinstance(value, re.Pattern):
        return Regex(value)
    if callable(value):
        return Predicate(value)
    if not indexed and isinstance(value, str) and len(value) > 1 and value.endswith("*"):
        return Prefix(value[:-1])
    return Equals(value)


def clause_test(attrib: str, clause: Clause) -> RecordTest:
    """Post-fetch test of one clause against a record."""
    if isinstance(clause, Predicate):
        fn = clause.fn
        return lambda rec: bool(fn(rec.get(attrib)))
    if isinstance(clause, Regex):
        rx = clause.pattern
        return lambda rec: rec.get(attrib) is not None and rx.search(_as_text(rec.get(attrib))) is not None
    if isinstance(clause, Prefix):
        pre = clause.value
        return lambda rec: rec.get(attrib) is not None and _as_text(rec.get(attrib)).startswith(pre)
    want = None if clause.value is None else _as_text(clause.value)
    return lambda rec: (None if rec.get(attrib) is None else _as_text(rec.get(attrib))) == want


def id_test(ids: Set[int]) -> RecordTest:
    return lambda rec: rec.id in ids


def split_filter(
    flt: Mapping[str, Any], indexed: Set[str]
) -> Tuple[Dict[str, Clause], Dict[str, Clause]]:
    """Split a mapping filter into (index-resolvable clauses, post-fetch clauses)."""
    by_index: Dict[str, Clause] = {}
    post: Dict[str, Clause] = {}
    for attrib, raw in flt.items():
        is_idx = attrib in indexed
        clause = compile_clause(raw, is_idx)
        if is_idx and isinstance(clause, (Equals, Prefix)):
            by_index[attrib] = clause
        else:
            post[attrib] = clause
    return by_index, post
