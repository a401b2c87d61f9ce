"""In-memory TTL cache for JamboJet GET responses."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from typing import Any

from jambojet.models.envelope import ResponseEnvelope

logger = logging.getLogger(__name__)


class ResponseCache:
    """In-memory TTL cache of success envelopes for GET requests.

    Keys are ``{prefix}{sha256(url + payload)}``. Entries are never
    invalidated by mutating calls; they simply age out after ``ttl`` seconds.
    """

    def __init__(self, ttl: int = 3600, enabled: bool = True, prefix: str = "jambojet_") -> None:
        self._ttl = ttl
        self._enabled = enabled
        self._prefix = prefix
        self._store: dict[str, tuple[float, ResponseEnvelope]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @staticmethod
    def is_cacheable_request(method: str) -> bool:
        return method.upper() == "GET"

    def make_key(self, url: str, payload: Any = None) -> str:
        """Generate a deterministic cache key."""
        payload_str = json.dumps(payload, sort_keys=True, default=str) if payload else ""
        digest = hashlib.sha256(f"{url}|{payload_str}".encode()).hexdigest()
        return f"{self._prefix}{digest}"

    def get(self, key: str) -> ResponseEnvelope | None:
        """Retrieve a cached envelope if it exists and has not expired."""
        if not self._enabled:
            return None

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            timestamp, envelope = entry
            if time.time() - timestamp > self._ttl:
                logger.debug(f"Cache entry expired: {key}")
                del self._store[key]
                return None

        return envelope.model_copy(deep=True)

    def put(self, key: str, envelope: ResponseEnvelope) -> None:
        if not self._enabled:
            return

        with self._lock:
            self._store[key] = (time.time(), envelope.model_copy(deep=True))

    def clear(self) -> int:
        """Drop every entry; returns how many were removed."""
        with self._lock:
            count = len(self._store)
            self._store.clear()
        return count

    @property
    def size(self) -> int:
        """Number of entries currently in the cache."""
        with self._lock:
            return len(self._store)
