from fastapi import APIRouter, Header, Request

from ats_scoring.core.config import settings
from ats_scoring.core.rate_limit import rate_limit
from ats_scoring.core.security import check_api_key, check_payload_size
from ats_scoring.schemas.scoring import ScoreOutput, ScoreRequest
from ats_scoring.services.performance_monitor import performance_monitor
from ats_scoring.services.score_cache import ScoreCache
from ats_scoring.services.scoring_service import score_resume

router = APIRouter()

score_cache = (
    ScoreCache(max_entries=settings.score_cache_max_entries, ttl_minutes=settings.score_cache_ttl_minutes)
    if settings.score_cache_enabled
    else None
)


@router.post(
    "/ats/score",
    response_model=ScoreOutput,
    summary="Score Resume",
    description="Score an original and an optimized resume against a job description.",
)
@rate_limit()
async def ats_score(
    request: Request,
    payload: ScoreRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)
    check_payload_size(request.headers.get("content-length"))
    return await score_resume(payload, cache=score_cache)


@router.get("/ats/performance", summary="Scoring Performance")
def ats_performance(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)
    stats = performance_monitor.stats("score_resume")
    return {
        "score_resume": stats.as_dict() if stats is not None else None,
        "target_ms": performance_monitor.target_ms,
        "meets_target": performance_monitor.meets_target("score_resume"),
        "cache": score_cache.stats() if score_cache is not None else None,
    }
