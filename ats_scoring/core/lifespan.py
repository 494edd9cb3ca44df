from contextlib import asynccontextmanager
import asyncio
import logging

from ats_scoring.semantic.embeddings import EmbeddingProviderError, get_embedding_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    provider = get_embedding_provider()
    warmup = getattr(provider, "warmup", None)
    if callable(warmup):
        try:
            await asyncio.to_thread(warmup)
            logger.info("embedding_provider_warm provider=%s", type(provider).__name__)
        except EmbeddingProviderError as exc:
            logger.warning("embedding_provider_warmup_failed: %s", exc)
    yield
