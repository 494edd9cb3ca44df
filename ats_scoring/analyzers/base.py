from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ats_scoring.schemas.format import FormatReport
from ats_scoring.schemas.job import JobRequirement
from ats_scoring.schemas.resume import StructuredResume
from ats_scoring.schemas.scoring import AnalyzerResult, SubScoreKey
from ats_scoring.scoring.weights import get_weight


@dataclass(frozen=True)
class AnalyzerInput:
    resume_text: str
    job_text: str
    job: JobRequirement
    resume_structured: StructuredResume | None = None
    format_report: FormatReport | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BaseAnalyzer(ABC):
    """One scoring dimension. Implementations must not share mutable state."""

    name: SubScoreKey

    def __init__(self) -> None:
        self.weight = get_weight(self.name)

    @abstractmethod
    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        raise NotImplementedError

    def result(
        self,
        score: float,
        evidence: dict[str, Any],
        confidence: float,
        warnings: list[str] | None = None,
    ) -> AnalyzerResult:
        return AnalyzerResult(
            score=score,
            evidence=evidence,
            confidence=confidence,
            warnings=list(warnings or []),
        )


def failed_result(name: str, message: str, partial_score: int = 0) -> AnalyzerResult:
    return AnalyzerResult(
        score=partial_score,
        evidence={"error": message},
        confidence=0.0,
        warnings=[f"{name} analyzer failed: {message}"],
    )
