from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import redis

from .errors import StoreError
from .globmatch import compile_glob

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Primitives the mapper relies on. Each call is atomic for a single key;
    nothing spanning several keys is.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def incr(self, key: str, amount: int = 1) -> int:
        raise NotImplementedError

    def delete(self, *keys: str) -> int:
        raise NotImplementedError

    def keys(self, pattern: str) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        pass


class MemoryStore(KeyValueStore):
    """
    In-process store with Redis string semantics: values are kept as str,
    KEYS understands the Redis glob syntax.
    """

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._data: Dict[str, str] = {}
        self._closed = False
        for k, v in (initial or {}).items():
            self.set(k, v)

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("store is closed")

    @staticmethod
    def _to_str(value: Any) -> str:
        if isinstance(value, bool):
            raise StoreError("bool is not a valid store value; encode it first")
        if isinstance(value, bytes):
            return value.decode("utf-8")
        if isinstance(value, (str, int, float)):
            return str(value)
        raise StoreError(f"invalid store value type: {type(value).__name__}")

    def get(self, key: str) -> Optional[str]:
        self._check_open()
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._check_open()
        self._data[key] = self._to_str(value)

    def incr(self, key: str, amount: int = 1) -> int:
        self._check_open()
        cur = self._data.get(key, "0")
        try:
            n = int(cur) + int(amount)
        except ValueError:
            raise StoreError(f"value at '{key}' is not an integer") from None
        self._data[key] = str(n)
        return n

    def delete(self, *keys: str) -> int:
        self._check_open()
        n = 0
        for k in keys:
            if self._data.pop(k, None) is not None:
                n += 1
        return n

    def keys(self, pattern: str) -> List[str]:
        self._check_open()
        rx = compile_glob(pattern)
        return [k for k in list(self._data) if rx.match(k)]

    def close(self) -> None:
        self._closed = True

    def __len__(self) -> int:
        return len(self._data)


class RedisStore(KeyValueStore):
    """
    Thin adapter over a redis-py client. Client exceptions are not wrapped.
    """

    def __init__(
        self,
        server: str = "127.0.0.1:6379",
        *,
        db: int = 0,
        password: str | None = None,
        client: Any = None,
    ) -> None:
        self.server = server
        if client is None:
            host, _, port = server.rpartition(":")
            if not host:
                host, port = port, "6379"
            client = redis.Redis(
                host=host,
                port=int(port),
                db=db,
                password=password,
                decode_responses=True,
            )
            logger.debug("connecting to redis at %s db=%s", server, db)
        self._redis = client

    def get(self, key: str) -> Optional[str]:
        return self._redis.get(key)

    def set(self, key: str, value: Any) -> None:
        self._redis.set(key, value)

    def incr(self, key: str, amount: int = 1) -> int:
        return int(self._redis.incr(key, amount))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._redis.delete(*keys))

    def keys(self, pattern: str) -> List[str]:
        return list(self._redis.keys(pattern))

    def close(self) -> None:
        self._redis.close()
