from __future__ import annotations

import hmac

from fastapi import HTTPException, status

from ats_scoring.core.config import settings


def check_api_key(x_api_key: str | None) -> None:
    if not settings.api_key:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please provide a valid API key to use the scoring API.",
        )


def check_payload_size(content_length: str | None) -> None:
    if not content_length:
        return
    try:
        size = int(content_length)
    except ValueError:
        return
    if size > settings.max_payload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Payload too large. Maximum size is {settings.max_payload_bytes // 1024}KB.",
        )
