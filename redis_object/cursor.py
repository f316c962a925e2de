from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

if TYPE_CHECKING:
    from .database import Database, Record


class SearchResult:
    """
    Lazy cursor over the records matching a search.

    This is a dynamic filter, not a fixed set: records are fetched one by one
    as the cursor advances, so writes made while iterating (or between
    reset() and the next pass) show up in the result. Not safe to share
    between threads.
    """

    def __init__(self, db: "Database", table: str, flt: Any, or_search: bool = False) -> None:
        self._db = db
        self.table = table
        self._search = (flt, or_search)
        self.position = -1
        self._plan()

    def _plan(self) -> None:
        flt, or_search = self._search
        self._tests, self._subset = self._db._plan_search(self.table, flt, or_search)
        self._and_search = not or_search

    def _passes(self, rec: "Record") -> bool:
        if not self._tests:
            return True
        if self._and_search:
            return all(t(rec) for t in self._tests)
        return any(t(rec) for t in self._tests)

    def next(self) -> Optional["Record"]:
        """Next matching record or None once exhausted."""
        while True:
            self.position += 1
            if self._subset is not None:
                if self.position >= len(self._subset):
                    return None
                rec_id = self._subset[self.position]
            else:
                # ids start at 1; the counter is re-read so new records are seen
                if self.position >= self._db.current_id(self.table):
                    return None
                rec_id = self.position + 1
            rec = self._db.find(self.table, rec_id)
            if rec is None:
                continue
            if self._passes(rec):
                return rec

    def __iter__(self) -> Iterator["Record"]:
        while True:
            rec = self.next()
            if rec is None:
                return
            yield rec

    def all(self) -> List["Record"]:
        return list(self)

    def reset(self) -> SearchResult:
        """Re-run the search and rewind. The new pass may see a different set."""
        self._plan()
        self.position = -1
        return self

    def update_all(self, fields: Dict[str, Any]) -> int:
        """
        Update every remaining match with `fields` (empty fields still rewrite
        each record). reset() before iterating again.
        """
        prog = self._db._progress
        prog.start("update", self.table)
        n = 0
        for rec in self:
            self._db.update(rec, fields)
            n += 1
        prog.done("update", f"{n} records")
        return n

    def remove_all(self) -> int:
        prog = self._db._progress
        prog.start("delete", self.table)
        n = 0
        for rec in self:
            self._db.remove(rec)
            n += 1
        prog.done("delete", f"{n} records")
        return n
