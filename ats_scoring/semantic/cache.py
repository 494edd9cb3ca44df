from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict

from ats_scoring.semantic.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)


def content_key(text: str) -> str:
    return hashlib.sha256((text or "").encode("utf-8")).hexdigest()


class CachedEmbeddingProvider(EmbeddingProvider):
    """LRU content-hash cache around another provider.

    Safe for concurrent callers. Two callers racing on the same new text may
    both compute it; the last write wins.
    """

    def __init__(self, provider: EmbeddingProvider, max_entries: int = 2048) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than 0")
        self.provider = provider
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def embed(self, texts: list[str]) -> list[list[float]]:
        keys = [content_key(text) for text in texts]
        vectors: dict[str, list[float]] = {}
        pending: dict[str, str] = {}

        with self._lock:
            for key, text in zip(keys, texts):
                cached = self._entries.get(key)
                if cached is not None:
                    self._entries.move_to_end(key)
                    vectors[key] = cached
                    self._hits += 1
                elif key not in pending:
                    pending[key] = text
                    self._misses += 1

        if pending:
            logger.debug("embedding_cache_miss count=%d", len(pending))
            computed = self.provider.embed(list(pending.values()))
            if len(computed) != len(pending):
                raise RuntimeError(
                    f"Embedding provider returned {len(computed)} vectors for {len(pending)} texts"
                )
            with self._lock:
                for key, vector in zip(pending.keys(), computed):
                    vectors[key] = vector
                    self._entries[key] = vector
                    self._entries.move_to_end(key)
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

        return [vectors[key] for key in keys]

    def warmup(self) -> None:
        warm = getattr(self.provider, "warmup", None)
        if callable(warm):
            warm()

    def stats(self) -> dict[str, float]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hit_rate": self._hits / total if total else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
