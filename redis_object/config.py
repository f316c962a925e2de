"""
Connection settings. Everything can come from the environment:

    REDIS_OBJECT_SERVER    host:port (default 127.0.0.1:6379)
    REDIS_OBJECT_DB        database number (default 0)
    REDIS_OBJECT_PASSWORD  password, unset by default
    REDIS_OBJECT_PREFIX    key prefix, empty by default
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoreConfig:
    server: str = "127.0.0.1:6379"
    db: int = 0
    password: Optional[str] = None
    prefix: str = ""

    @classmethod
    def from_env(cls) -> StoreConfig:
        return cls(
            server=os.getenv("REDIS_OBJECT_SERVER", "127.0.0.1:6379"),
            db=int(os.getenv("REDIS_OBJECT_DB", "0")),
            password=os.getenv("REDIS_OBJECT_PASSWORD") or None,
            prefix=os.getenv("REDIS_OBJECT_PREFIX", ""),
        )
