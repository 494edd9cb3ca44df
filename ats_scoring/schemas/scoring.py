from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from ats_scoring.schemas.format import FormatReport, TemplateMetadata
from ats_scoring.schemas.job import JobRequirement
from ats_scoring.schemas.resume import StructuredResume

SubScoreKey = Literal[
    "keyword_exact",
    "keyword_phrase",
    "semantic_relevance",
    "title_alignment",
    "metrics_presence",
    "section_completeness",
    "format_parseability",
    "recency_fit",
]
SUBSCORE_KEYS: tuple[SubScoreKey, ...] = (
    "keyword_exact",
    "keyword_phrase",
    "semantic_relevance",
    "title_alignment",
    "metrics_presence",
    "section_completeness",
    "format_parseability",
    "recency_fit",
)
SuggestionCategory = Literal["keywords", "content", "structure", "formatting", "metrics"]
ConfidenceLevel = Literal["high", "medium", "low"]


def _clamp_score(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return int(max(0.0, min(100.0, math.floor(number + 0.5))))


def _clamp_unit(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(1.0, number))


class AnalyzerResult(BaseModel):
    score: int = Field(ge=0, le=100)
    evidence: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _round_score(cls, value: Any) -> int:
        return _clamp_score(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _bound_confidence(cls, value: Any) -> float:
        return _clamp_unit(value)

    @property
    def failed(self) -> bool:
        return self.confidence <= 0.0


class SubScores(BaseModel):
    keyword_exact: int = Field(default=0, ge=0, le=100)
    keyword_phrase: int = Field(default=0, ge=0, le=100)
    semantic_relevance: int = Field(default=0, ge=0, le=100)
    title_alignment: int = Field(default=0, ge=0, le=100)
    metrics_presence: int = Field(default=0, ge=0, le=100)
    section_completeness: int = Field(default=0, ge=0, le=100)
    format_parseability: int = Field(default=0, ge=0, le=100)
    recency_fit: int = Field(default=0, ge=0, le=100)

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> "SubScores":
        return cls(**{key: _clamp_score(values.get(key, 0)) for key in SUBSCORE_KEYS})

    def as_dict(self) -> dict[SubScoreKey, int]:
        return {key: getattr(self, key) for key in SUBSCORE_KEYS}


class AddKeywordAction(BaseModel):
    type: Literal["add_keyword"] = "add_keyword"
    keywords: list[str]
    target: Literal["skills", "experience", "summary"] = "skills"
    source: Literal["must_have", "nice_to_have", "keywords"] = "keywords"


class AddPhraseAction(BaseModel):
    type: Literal["add_phrase"] = "add_phrase"
    phrases: list[str]
    target: Literal["experience", "summary"] = "experience"
    source: Literal["responsibilities", "job_text"] = "responsibilities"


class AlignTitleAction(BaseModel):
    type: Literal["align_title"] = "align_title"
    target_title: str
    target_seniority: str = "mid"
    current_title: str | None = None
    placement: Literal["summary", "headline", "latest_role"] = "summary"


class AddMetricAction(BaseModel):
    type: Literal["add_metric"] = "add_metric"
    target_role_index: int = Field(default=0, ge=0)
    target_count: int = Field(default=3, ge=1)
    metric_hint: str = "impact"


SuggestionAction = Annotated[
    Union[AddKeywordAction, AddPhraseAction, AlignTitleAction, AddMetricAction],
    Field(discriminator="type"),
]


class Suggestion(BaseModel):
    id: str
    text: str
    estimated_gain: int = Field(ge=0, le=15)
    targets: list[SubScoreKey] = Field(default_factory=list)
    quick_win: bool = False
    category: SuggestionCategory
    action: SuggestionAction | None = None


class AppliedPenalty(BaseModel):
    id: str
    reason: str
    amount: int = Field(ge=0)


class ConfidenceFactor(BaseModel):
    factor: str
    impact: float


class ScoringMetadata(BaseModel):
    version: int = 2
    scored_at: datetime
    processing_time_ms: int = Field(default=0, ge=0)
    warnings: list[str] = Field(default_factory=list)
    analyzers_used: list[SubScoreKey] = Field(default_factory=list)
    failed_analyzers: list[SubScoreKey] = Field(default_factory=list)
    raw_score_original: int = Field(default=0, ge=0, le=100)
    raw_score_optimized: int = Field(default=0, ge=0, le=100)
    normalized_score_original: int = Field(default=0, ge=0, le=100)
    normalized_score_optimized: int = Field(default=0, ge=0, le=100)
    natural_delta: int = 0
    improvement_corrected: bool = False
    penalties_original: list[AppliedPenalty] = Field(default_factory=list)
    penalties_optimized: list[AppliedPenalty] = Field(default_factory=list)
    confidence_factors: list[ConfidenceFactor] = Field(default_factory=list)
    cache_hit: bool = False


class ScoreOutput(BaseModel):
    ats_score_original: int = Field(ge=0, le=100)
    ats_score_optimized: int = Field(ge=0, le=100)
    subscores: SubScores
    subscores_original: SubScores
    suggestions: list[Suggestion] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: ScoringMetadata


class ScoreRequest(BaseModel):
    resume_original_text: str = Field(default="", max_length=200000)
    resume_optimized_text: str = Field(default="", max_length=200000)
    resume_original_structured: StructuredResume | None = None
    resume_optimized_structured: StructuredResume | None = None
    job_text: str = Field(default="", max_length=100000)
    job_requirement: JobRequirement | None = None
    format_report: FormatReport | None = None
    template_hint: str | None = Field(default=None, max_length=200)
    template_metadata: TemplateMetadata | None = None
    timestamp: datetime | None = None
