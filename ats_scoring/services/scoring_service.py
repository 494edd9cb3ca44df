from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from ats_scoring.analyzers import ANALYZER_REGISTRY, AnalyzerInput, BaseAnalyzer, create_analyzers, failed_result
from ats_scoring.core.config import settings
from ats_scoring.extractors.format_analyzer import FormatAnalyzer, StructuredFormatAnalyzer
from ats_scoring.extractors.jd_extractor import HeuristicJobExtractor, JobRequirementExtractor
from ats_scoring.extractors.resume_text import estimate_parsing_quality, resume_to_text
from ats_scoring.schemas.format import FormatReport
from ats_scoring.schemas.job import ExtractionCompleteness, JobRequirement
from ats_scoring.schemas.resume import StructuredResume
from ats_scoring.schemas.scoring import (
    SUBSCORE_KEYS,
    AnalyzerResult,
    ScoreOutput,
    ScoreRequest,
    ScoringMetadata,
    SubScoreKey,
    SubScores,
)
from ats_scoring.scoring.aggregator import AggregateResult, aggregate
from ats_scoring.scoring.confidence import estimate_confidence
from ats_scoring.scoring.normalizer import enforce_min_improvement, normalize_score
from ats_scoring.scoring.penalties import PenaltyResult, apply_penalties
from ats_scoring.semantic.embeddings import EmbeddingProvider, get_embedding_provider
from ats_scoring.services.performance_monitor import PerformanceMonitor, performance_monitor
from ats_scoring.services.score_cache import ScoreCache
from ats_scoring.suggestions.generator import generate_suggestions

logger = logging.getLogger(__name__)


class ScoringTimeoutError(TimeoutError):
    pass


@dataclass(frozen=True)
class PreparedInput:
    job: JobRequirement
    completeness: ExtractionCompleteness
    original: AnalyzerInput
    optimized: AnalyzerInput
    has_format_report: bool


@dataclass(frozen=True)
class VariantScore:
    results: dict[SubScoreKey, AnalyzerResult]
    aggregate: AggregateResult
    penalties: PenaltyResult
    normalized: int


def _resume_text(text: str, structured: StructuredResume | None) -> str:
    if text.strip() or structured is None:
        return text
    return resume_to_text(structured)


def _format_report(
    request: ScoreRequest,
    format_analyzer: FormatAnalyzer,
) -> FormatReport | None:
    """Caller's report first, then one derived from the structured resume."""
    if request.format_report is not None:
        return request.format_report
    structured = request.resume_optimized_structured or request.resume_original_structured
    if structured is None:
        return None
    return format_analyzer.analyze(structured, request.template_hint, request.template_metadata)


def prepare_input(
    request: ScoreRequest,
    extractor: JobRequirementExtractor,
    format_analyzer: FormatAnalyzer,
) -> PreparedInput:
    job = request.job_requirement or extractor.extract(request.job_text)
    format_report = _format_report(request, format_analyzer)
    timestamp = request.timestamp or datetime.now(timezone.utc)

    def variant(text: str, structured: StructuredResume | None) -> AnalyzerInput:
        return AnalyzerInput(
            resume_text=_resume_text(text, structured),
            job_text=request.job_text,
            job=job,
            resume_structured=structured,
            format_report=format_report,
            timestamp=timestamp,
        )

    return PreparedInput(
        job=job,
        completeness=extractor.is_complete(job),
        original=variant(request.resume_original_text, request.resume_original_structured),
        optimized=variant(request.resume_optimized_text, request.resume_optimized_structured),
        has_format_report=format_report is not None,
    )


async def _run_one(analyzer: BaseAnalyzer, analyzer_input: AnalyzerInput) -> AnalyzerResult:
    try:
        return await analyzer.analyze(analyzer_input)
    except Exception as exc:
        logger.warning("ats_analyzer_failed analyzer=%s error=%s", analyzer.name, exc)
        return failed_result(analyzer.name, str(exc) or type(exc).__name__)


async def run_analyzers(
    analyzers: list[BaseAnalyzer],
    analyzer_input: AnalyzerInput,
) -> dict[SubScoreKey, AnalyzerResult]:
    """Run every analyzer concurrently. One analyzer failing never affects the others."""
    outcomes = await asyncio.gather(*(_run_one(analyzer, analyzer_input) for analyzer in analyzers))
    results: dict[SubScoreKey, AnalyzerResult] = {
        analyzer.name: outcome for analyzer, outcome in zip(analyzers, outcomes) if analyzer.name in ANALYZER_REGISTRY
    }
    for key in SUBSCORE_KEYS:
        if key not in results:
            results[key] = failed_result(key, "analyzer not run")
    return results


async def score_variant(analyzers: list[BaseAnalyzer], analyzer_input: AnalyzerInput) -> VariantScore:
    results = await run_analyzers(analyzers, analyzer_input)
    combined = aggregate(results)
    penalized = apply_penalties(combined.score, combined.subscores, combined.failed)
    return VariantScore(
        results=results,
        aggregate=combined,
        penalties=penalized,
        normalized=normalize_score(penalized.score),
    )


def _warnings(
    original: VariantScore,
    optimized: VariantScore,
    completeness: ExtractionCompleteness,
) -> list[str]:
    warnings: list[str] = []
    failed = list(dict.fromkeys([*original.aggregate.failed, *optimized.aggregate.failed]))
    if failed:
        warnings.append(f"Some analyzers failed: {', '.join(failed)}")
    if not completeness.is_complete:
        warnings.append(f"Incomplete JD extraction: missing {', '.join(completeness.missing_fields)}")
    for key in SUBSCORE_KEYS:
        for warning in optimized.results[key].warnings:
            if warning not in warnings:
                warnings.append(warning)
    return warnings


async def _score(
    request: ScoreRequest,
    analyzers: list[BaseAnalyzer],
    extractor: JobRequirementExtractor,
    format_analyzer: FormatAnalyzer,
    started: float,
) -> ScoreOutput:
    prepared = prepare_input(request, extractor, format_analyzer)
    original, optimized = await asyncio.gather(
        score_variant(analyzers, prepared.original),
        score_variant(analyzers, prepared.optimized),
    )
    improvement = enforce_min_improvement(original.normalized, optimized.normalized)

    confidence = estimate_confidence(
        optimized.results,
        jd_completeness=prepared.completeness.completeness,
        resume_parsing_quality=estimate_parsing_quality(
            prepared.optimized.resume_text, prepared.optimized.resume_structured
        ),
        has_format_report=prepared.has_format_report,
    )
    suggestions = generate_suggestions(optimized.aggregate.subscores, optimized.results, prepared.job)

    metadata = ScoringMetadata(
        scored_at=datetime.now(timezone.utc),
        processing_time_ms=int((time.perf_counter() - started) * 1000),
        warnings=_warnings(original, optimized, prepared.completeness),
        analyzers_used=[key for key in SUBSCORE_KEYS if key not in optimized.aggregate.failed],
        failed_analyzers=list(optimized.aggregate.failed),
        raw_score_original=original.penalties.score,
        raw_score_optimized=optimized.penalties.score,
        normalized_score_original=original.normalized,
        normalized_score_optimized=optimized.normalized,
        natural_delta=improvement.natural_delta,
        improvement_corrected=improvement.corrected,
        penalties_original=original.penalties.applied,
        penalties_optimized=optimized.penalties.applied,
        confidence_factors=confidence.factors,
    )
    logger.info(
        "ats_score_completed original=%d optimized=%d natural_delta=%d corrected=%s confidence=%.2f "
        "failed=%s duration_ms=%d",
        improvement.original,
        improvement.optimized,
        improvement.natural_delta,
        improvement.corrected,
        confidence.confidence,
        ",".join(optimized.aggregate.failed) or "-",
        metadata.processing_time_ms,
    )
    return ScoreOutput(
        ats_score_original=improvement.original,
        ats_score_optimized=improvement.optimized,
        subscores=optimized.aggregate.subscores,
        subscores_original=original.aggregate.subscores,
        suggestions=suggestions,
        confidence=confidence.confidence,
        metadata=metadata,
    )


def fallback_output(message: str, started: float | None = None) -> ScoreOutput:
    """All-zero output returned when the pipeline as a whole cannot produce a score."""
    elapsed = int((time.perf_counter() - started) * 1000) if started is not None else 0
    return ScoreOutput(
        ats_score_original=0,
        ats_score_optimized=0,
        subscores=SubScores(),
        subscores_original=SubScores(),
        suggestions=[],
        confidence=0.0,
        metadata=ScoringMetadata(
            scored_at=datetime.now(timezone.utc),
            processing_time_ms=elapsed,
            warnings=[f"Fatal error: {message}"],
            analyzers_used=[],
        ),
    )


async def score_resume(
    request: ScoreRequest,
    *,
    embedding_provider: EmbeddingProvider | None = None,
    extractor: JobRequirementExtractor | None = None,
    format_analyzer: FormatAnalyzer | None = None,
    analyzers: list[BaseAnalyzer] | None = None,
    cache: ScoreCache | None = None,
    timeout_s: float | None = None,
    monitor: PerformanceMonitor | None = None,
) -> ScoreOutput:
    """Score the original and optimized resume against one job.

    Never raises for scoring problems: analyzer failures degrade the affected
    dimension, and anything that breaks the pipeline as a whole (including
    the timeout) produces ``fallback_output``.
    """
    if cache is not None:
        cached = cache.get(request)
        if cached is not None:
            cached.metadata.cache_hit = True
            logger.info("ats_score_cache_hit")
            return cached

    if monitor is None:
        monitor = performance_monitor
    started = time.perf_counter()
    timeout = timeout_s if timeout_s is not None else settings.scoring_timeout_s
    try:
        if analyzers is None:
            analyzers = create_analyzers(embedding_provider or get_embedding_provider())
        pipeline = _score(
            request,
            analyzers,
            extractor or HeuristicJobExtractor(),
            format_analyzer or StructuredFormatAnalyzer(),
            started,
        )
        try:
            output = await asyncio.wait_for(pipeline, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ScoringTimeoutError(f"Scoring timed out after {timeout:g}s") from exc
    except Exception as exc:
        logger.exception("ats_score_fallback error=%s", exc)
        message = str(exc) or type(exc).__name__
        output = fallback_output(message, started)
        monitor.record(
            "score_resume", output.metadata.processing_time_ms, success=False, metadata={"error": message}
        )
        return output

    monitor.record("score_resume", output.metadata.processing_time_ms)
    if cache is not None:
        cache.set(request, output)
    return output


def score_resume_sync(request: ScoreRequest, **kwargs) -> ScoreOutput:
    return asyncio.run(score_resume(request, **kwargs))


async def rescore_optimization(
    resume_original: StructuredResume,
    resume_optimized: StructuredResume,
    job_text: str,
    job_requirement: JobRequirement | None = None,
    **kwargs,
) -> ScoreOutput:
    """Re-score a stored optimization from its structured resumes."""
    format_analyzer: FormatAnalyzer = kwargs.pop("format_analyzer", None) or StructuredFormatAnalyzer()
    request = ScoreRequest(
        resume_original_text=resume_to_text(resume_original),
        resume_optimized_text=resume_to_text(resume_optimized),
        resume_original_structured=resume_original,
        resume_optimized_structured=resume_optimized,
        job_text=job_text,
        job_requirement=job_requirement,
        format_report=format_analyzer.analyze(resume_optimized),
    )
    return await score_resume(request, format_analyzer=format_analyzer, **kwargs)
