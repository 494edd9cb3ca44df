from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from ats_scoring.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit(limit: str | None = None):
    """Route decorator applying the configured limit, or a no-op when limiting is off."""
    if settings.rate_limit_enabled:
        return limiter.limit(limit or settings.rate_limit)

    def passthrough(func):
        return func

    return passthrough
