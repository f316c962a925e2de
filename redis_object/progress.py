from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Emits {"phase": str, "pct": int, "msg": str} events to an optional
    callback. Phases are "<op>.start" / "<op>.done".
    """

    def __init__(self, on_progress: Optional[ProgressCallback] = None) -> None:
        self._cb = on_progress

    def emit(self, phase: str, pct: int = 0, msg: str = "") -> None:
        logger.debug("progress %s %d%% %s", phase, pct, msg)
        if self._cb is None:
            return
        self._cb({"phase": phase, "pct": int(pct), "msg": msg})

    def start(self, op: str, msg: str = "") -> None:
        self.emit(f"{op}.start", 0, msg)

    def done(self, op: str, msg: str = "") -> None:
        self.emit(f"{op}.done", 100, msg)
