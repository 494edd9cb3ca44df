from __future__ import annotations

import hashlib
import logging
import os
import re
import threading
from functools import lru_cache
from typing import Protocol

import numpy as np
from openai import OpenAI

from ats_scoring.core.config import settings

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"[a-z0-9\+#]+")


class EmbeddingProviderError(RuntimeError):
    pass


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return vector embeddings for input texts."""


class SimpleEmbeddingProvider(EmbeddingProvider):
    """Deterministic hashed bag-of-words vectors. No model download, no network."""

    def __init__(self, dimension: int = 256) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be greater than 0")
        self.dimension = dimension

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_single(text) for text in texts]

    def _embed_single(self, text: str) -> list[float]:
        vector = np.zeros(self.dimension, dtype=np.float64)
        for token in _TOKEN_PATTERN.findall((text or "").lower()):
            digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
            vector[int(digest[:8], 16) % self.dimension] += 1.0
        norm = float(np.linalg.norm(vector))
        if norm <= 0:
            return vector.tolist()
        return (vector / norm).tolist()


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    _model_cache: dict[str, object] = {}
    _model_lock = threading.Lock()

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        self.model_name = model_name

    @classmethod
    def _get_model(cls, model_name: str):
        with cls._model_lock:
            if model_name not in cls._model_cache:
                logger.info("embedding_model_load model=%s", model_name)
                try:
                    from sentence_transformers import SentenceTransformer

                    cls._model_cache[model_name] = SentenceTransformer(model_name)
                except (ImportError, OSError) as exc:
                    raise EmbeddingProviderError(f"Could not load embedding model '{model_name}': {exc}") from exc
            return cls._model_cache[model_name]

    def warmup(self) -> None:
        self._get_model(self.model_name)

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        model = self._get_model(self.model_name)
        vectors = model.encode(
            texts,
            normalize_embeddings=True,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return np.asarray(vectors, dtype=np.float64).tolist()


class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_s: float = 20.0,
        max_retries: int = 2,
    ) -> None:
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise EmbeddingProviderError("OPENAI_API_KEY is missing")
        self.model = model
        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        # The API rejects empty strings.
        payload = [text if text.strip() else " " for text in texts]
        try:
            response = self._client.embeddings.create(model=self.model, input=payload)
        except Exception as exc:
            raise EmbeddingProviderError(f"OpenAI embedding request failed: {exc}") from exc
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if len(left) != len(right) or not left:
        return 0.0
    left_vec = np.asarray(left, dtype=np.float64)
    right_vec = np.asarray(right, dtype=np.float64)
    left_norm = float(np.linalg.norm(left_vec))
    right_norm = float(np.linalg.norm(right_vec))
    if left_norm <= 0 or right_norm <= 0:
        return 0.0
    return float(np.dot(left_vec, right_vec) / (left_norm * right_norm))


def build_embedding_provider(name: str, model: str | None = None) -> EmbeddingProvider:
    key = (name or "simple").strip().lower()
    if key == "simple":
        return SimpleEmbeddingProvider()
    if key == "sentence_transformers":
        return SentenceTransformerEmbeddingProvider(model or "all-MiniLM-L6-v2")
    if key == "openai":
        return OpenAIEmbeddingProvider(model or "text-embedding-3-small")
    raise EmbeddingProviderError(f"Unknown embedding provider '{name}'")


@lru_cache(maxsize=1)
def get_embedding_provider() -> EmbeddingProvider:
    """Configured provider wrapped in the shared content-hash cache."""
    from ats_scoring.semantic.cache import CachedEmbeddingProvider

    provider = build_embedding_provider(settings.embedding_provider, settings.embedding_model)
    return CachedEmbeddingProvider(provider, max_entries=settings.embedding_cache_max_entries)
