from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from ats_scoring.core.config.scoring import get_scoring_float
from ats_scoring.normalize.text import clamp
from ats_scoring.schemas.scoring import AnalyzerResult, ConfidenceFactor, ConfidenceLevel, SubScoreKey


@dataclass(frozen=True)
class ConfidenceResult:
    confidence: float
    factors: list[ConfidenceFactor] = field(default_factory=list)


def estimate_confidence(
    analyzer_results: Mapping[SubScoreKey, AnalyzerResult],
    jd_completeness: float,
    resume_parsing_quality: float,
    has_format_report: bool,
) -> ConfidenceResult:
    confidence = 1.0
    factors: list[ConfidenceFactor] = []

    results = list(analyzer_results.values())
    average = sum(result.confidence for result in results) / len(results) if results else 0.0
    min_average = get_scoring_float("confidence.min_analyzer_confidence", 0.5)
    if average < min_average:
        impact = -(min_average - average) * get_scoring_float("confidence.low_analyzer_confidence_factor", 0.5)
        confidence += impact
        factors.append(ConfidenceFactor(factor="Low analyzer confidence", impact=round(impact, 4)))

    if jd_completeness < get_scoring_float("confidence.jd_completeness_floor", 0.8):
        impact = -get_scoring_float("confidence.jd_extraction_penalty", 0.2)
        confidence += impact
        factors.append(ConfidenceFactor(factor="Incomplete job description extraction", impact=impact))

    if resume_parsing_quality < get_scoring_float("confidence.resume_parsing_floor", 0.8):
        impact = -get_scoring_float("confidence.resume_parsing_penalty", 0.15)
        confidence += impact
        factors.append(ConfidenceFactor(factor="Limited resume structure", impact=impact))

    if not has_format_report:
        impact = -get_scoring_float("confidence.format_report_penalty", 0.1)
        confidence += impact
        factors.append(ConfidenceFactor(factor="No format analysis available", impact=impact))

    if results:
        variance = float(np.var([result.score for result in results]))
        if variance / 100 < get_scoring_float("confidence.agreement_variance_ceiling", 0.2):
            impact = get_scoring_float("confidence.agreement_boost", 0.1)
            confidence += impact
            factors.append(ConfidenceFactor(factor="Analyzers agree", impact=impact))

    return ConfidenceResult(confidence=round(clamp(confidence, 0.0, 1.0), 4), factors=factors)


def confidence_level(confidence: float) -> ConfidenceLevel:
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.5:
        return "medium"
    return "low"


def explain_confidence(result: ConfidenceResult) -> str:
    level = confidence_level(result.confidence)
    if not result.factors:
        return f"Confidence is {level} ({result.confidence:.0%})."
    reasons = "; ".join(f"{factor.factor} ({factor.impact:+.2f})" for factor in result.factors)
    return f"Confidence is {level} ({result.confidence:.0%}): {reasons}."
