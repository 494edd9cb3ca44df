import os
import sys
import unittest
from pathlib import Path
from unittest import mock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_scoring.semantic.cache import CachedEmbeddingProvider, content_key
from ats_scoring.semantic.embeddings import (
    EmbeddingProviderError,
    OpenAIEmbeddingProvider,
    SimpleEmbeddingProvider,
    build_embedding_provider,
    cosine_similarity,
)


class CountingProvider:
    def __init__(self):
        self.calls = []

    def embed(self, texts):
        self.calls.append(list(texts))
        return [[float(len(text)), 1.0] for text in texts]


class SimpleEmbeddingTests(unittest.TestCase):
    def test_vectors_are_deterministic_and_normalized(self):
        provider = SimpleEmbeddingProvider(dimension=64)
        first, second, empty = provider.embed(["python docker", "python docker", ""])
        self.assertEqual(first, second)
        self.assertEqual(len(first), 64)
        self.assertAlmostEqual(sum(value * value for value in first), 1.0)
        self.assertEqual(set(empty), {0.0})

    def test_similarity_tracks_overlap(self):
        provider = SimpleEmbeddingProvider()
        base, close, far = provider.embed(
            ["python backend services", "python backend apis", "watercolor painting classes"]
        )
        self.assertAlmostEqual(cosine_similarity(base, base), 1.0)
        self.assertGreater(cosine_similarity(base, close), cosine_similarity(base, far))
        self.assertEqual(cosine_similarity([1.0, 0.0], [1.0]), 0.0)
        self.assertEqual(cosine_similarity([0.0, 0.0], [1.0, 0.0]), 0.0)

    def test_factory(self):
        self.assertIsInstance(build_embedding_provider("simple"), SimpleEmbeddingProvider)
        with self.assertRaises(EmbeddingProviderError):
            build_embedding_provider("word2vec")

    def test_openai_provider_requires_key(self):
        with mock.patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
            with self.assertRaises(EmbeddingProviderError):
                OpenAIEmbeddingProvider()


class EmbeddingCacheTests(unittest.TestCase):
    def test_repeated_texts_hit_the_cache(self):
        inner = CountingProvider()
        cached = CachedEmbeddingProvider(inner, max_entries=10)
        vectors = cached.embed(["alpha", "beta", "alpha"])
        self.assertEqual(vectors[0], vectors[2])
        self.assertEqual(inner.calls, [["alpha", "beta"]])

        cached.embed(["alpha"])
        self.assertEqual(len(inner.calls), 1)
        stats = cached.stats()
        self.assertEqual((stats["hits"], stats["misses"], stats["size"]), (1, 2, 2))

    def test_least_recently_used_entry_is_evicted(self):
        inner = CountingProvider()
        cached = CachedEmbeddingProvider(inner, max_entries=2)
        cached.embed(["a", "b"])
        cached.embed(["a"])
        cached.embed(["c"])
        cached.embed(["a"])
        self.assertEqual(inner.calls, [["a", "b"], ["c"]])
        cached.embed(["b"])
        self.assertEqual(inner.calls[-1], ["b"])

    def test_provider_returning_wrong_count_raises(self):
        class Broken:
            def embed(self, texts):
                return []

        with self.assertRaises(RuntimeError):
            CachedEmbeddingProvider(Broken()).embed(["x"])

    def test_clear_and_keys(self):
        cached = CachedEmbeddingProvider(CountingProvider())
        cached.embed(["x"])
        cached.clear()
        self.assertEqual(cached.stats()["size"], 0)
        self.assertEqual(content_key("x"), content_key("x"))
        self.assertNotEqual(content_key("x"), content_key("y"))


if __name__ == "__main__":
    unittest.main()
