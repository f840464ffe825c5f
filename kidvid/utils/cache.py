from __future__ import annotations
import hashlib
import json
import os
import threading
import time
from collections import OrderedDict
from pathlib import Path
from typing import Protocol, Optional, Tuple

import redis

from kidvid.utils.logging_setup import configure_logging_from_env
from kidvid.utils.validation import slug

logger = configure_logging_from_env(__name__)


class Cache(Protocol):
    def get_json(self, key: str) -> Optional[dict]: ...
    def set_json(self, key: str, value: dict, ttl: int) -> None: ...


class MemoryCache(Cache):
    """Bounded LRU map with a TTL per entry.

    Values are kept as JSON text so nothing handed out aliases the stored
    entry.
    """

    def __init__(self, max_entries: int = 512):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max = max_entries
        self._data: "OrderedDict[str, Tuple[str, float, int]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get_json(self, key: str) -> Optional[dict]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            raw, written_at, ttl = entry
            if time.time() - written_at >= ttl:
                del self._data[key]
                logger.debug("cache_expired key=%s", key)
                return None
            self._data.move_to_end(key)
        return json.loads(raw)

    def set_json(self, key: str, value: dict, ttl: int) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data.pop(key, None)
            while len(self._data) >= self._max:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("cache_evicted key=%s", evicted)
            self._data[key] = (raw, time.time(), ttl)


class FileCache(Cache):
    """One JSON file per key; freshness comes from the recorded write time."""

    def __init__(self, directory: str, max_entries: int = 512):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._max = max_entries

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:10]
        return self._dir / f"{slug(key)}-{digest}.json"

    def get_json(self, key: str) -> Optional[dict]:
        p = self._path(key)
        try:
            with open(p, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except FileNotFoundError:
            return None
        except Exception as e:
            logger.error("cache_read_fail key=%s err=%s", key, e, exc_info=True)
            return None
        if not isinstance(entry, dict):
            logger.error("cache_read_fail key=%s err=not an object", key)
            return None
        if time.time() - entry.get("written_at", 0) >= entry.get("ttl", 0):
            try:
                p.unlink()
            except FileNotFoundError:
                pass
            return None
        return entry.get("payload")

    def set_json(self, key: str, value: dict, ttl: int) -> None:
        p = self._path(key)
        tmp = p.parent / f"{p.name}.{os.getpid()}.{threading.get_ident()}.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump({"key": key, "written_at": time.time(), "ttl": ttl, "payload": value}, f)
            os.replace(tmp, p)
            self._prune()
        except Exception as e:
            logger.error("cache_store_fail key=%s err=%s", key, e, exc_info=True)

    def _prune(self) -> None:
        files = sorted(self._dir.glob("*.json"), key=lambda f: f.stat().st_mtime)
        for f in files[:max(0, len(files) - self._max)]:
            try:
                f.unlink()
                logger.debug("cache_evicted file=%s", f.name)
            except FileNotFoundError:
                pass


class RedisCache(Cache):
    def __init__(self, host: str, port: int, db: int):
        self._client = redis.StrictRedis(host=host, port=port, db=db, decode_responses=True)

    def get_json(self, key: str) -> Optional[dict]:
        try:
            raw = self._client.get(key)
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.error("cache_read_fail key=%s err=%s", key, e, exc_info=True)
            return None

    def set_json(self, key: str, value: dict, ttl: int) -> None:
        try:
            self._client.setex(key, ttl, json.dumps(value))
        except Exception as e:
            logger.error("cache_store_fail key=%s err=%s", key, e, exc_info=True)


def build_cache(backend: str, *, max_entries: int, directory: str,
                redis_host: str, redis_port: int, redis_db: int) -> Cache:
    if backend == "redis":
        return RedisCache(redis_host, redis_port, redis_db)
    if backend == "file":
        return FileCache(directory, max_entries)
    return MemoryCache(max_entries)
