from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict

from ats_scoring.schemas.scoring import ScoreOutput, ScoreRequest


def request_cache_key(request: ScoreRequest) -> str:
    """SHA-256 of the request content. The timestamp is not part of the key."""
    payload = request.model_dump(mode="json", exclude={"timestamp"})
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ScoreCache:
    """In-memory LRU of scoring results with a per-entry TTL."""

    def __init__(self, max_entries: int = 1000, ttl_minutes: int = 60) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than 0")
        if ttl_minutes <= 0:
            raise ValueError("ttl_minutes must be greater than 0")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_minutes * 60
        self._entries: OrderedDict[str, tuple[float, ScoreOutput]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, request: ScoreRequest) -> ScoreOutput | None:
        key = request_cache_key(request)
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            expires_at, output = entry
            if expires_at <= now:
                del self._entries[key]
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return output.model_copy(deep=True)

    def set(self, request: ScoreRequest, output: ScoreOutput) -> None:
        key = request_cache_key(request)
        expires_at = time.monotonic() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (expires_at, output.model_copy(deep=True))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def stats(self) -> dict[str, float]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._entries),
                "hit_rate": self._hits / total if total else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
