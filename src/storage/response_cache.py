"""
Response Cache Module.

On-disk cache for individual API responses. Each entry is one pretty-printed
JSON file named after a hash of the request identity (HTTP method, endpoint
template and full parameter mapping). Entry age is taken from the file
modification time and compared with a per-call time-to-live in days.
"""

import hashlib
import json
import os
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from config import logger
from exceptions import ForcedCacheMissError

SECONDS_PER_DAY = 24 * 60 * 60

# Returned by ResponseCache.get on a miss; a cached body may itself be None
MISS = object()


class ResponseCache:
    """
    Content-addressed store of decoded response bodies.

    Entries are never merged: a stale entry is overwritten by the next
    successful live response for the same key. Concurrent writers of the
    same key are last-write-wins.
    """

    def __init__(self, cache_dir: str, clock: Callable[[], float] = time.time):
        """Initialize the cache directory.

        Args:
            cache_dir (str): Directory holding cache entries, created if missing.
            clock (Callable[[], float]): Source of the current epoch time.
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    @staticmethod
    def key(method: str, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Derive the cache key of a request.

        The parameter mapping is serialized with sorted keys, so insertion order
        does not affect the key while any differing value (including ``page``) does.

        Args:
            method (str): HTTP method.
            endpoint (str): Endpoint template, e.g. ``/orgs/{org}/repos``.
            params (Optional[Mapping[str, Any]]): Full request parameters.

        Returns:
            str: Hex digest identifying the request.
        """
        identity = json.dumps(
            [method.upper(), endpoint, dict(params or {})],
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        return hashlib.sha256(identity.encode("utf-8")).hexdigest()

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str, ttl_days: float, force: bool = False) -> Any:
        """Look up a cached response body.

        Args:
            key (str): Cache key from :meth:`key`.
            ttl_days (float): Maximum entry age, inclusive.
            force (bool): Serve any existing entry regardless of age, and raise
                instead of reporting a miss.

        Returns:
            Any: The cached body, which may be None, or MISS on a miss.

        Raises:
            ForcedCacheMissError: If ``force`` is set and no usable entry exists.
        """
        path = self.path_for(key)
        if not path.exists():
            return self._miss(key, force)

        if not force:
            age = self._clock() - path.stat().st_mtime
            if age > ttl_days * SECONDS_PER_DAY:
                logger.debug({"message": "Cache entry expired", "key": key})
                return MISS

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(
                {
                    "message": "Corrupted cache entry ignored",
                    "file": str(path),
                    "error": str(e),
                }
            )
            return self._miss(key, force)

    def put(self, key: str, value: Any) -> None:
        """Write a response body to the cache, replacing any previous entry.

        Args:
            key (str): Cache key from :meth:`key`.
            value (Any): Decoded JSON response body.
        """
        path = self.path_for(key)
        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(value, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def _miss(self, key: str, force: bool) -> Any:
        if force:
            raise ForcedCacheMissError(
                "Cache miss in forced mode", details={"key": key}
            )
        return MISS
