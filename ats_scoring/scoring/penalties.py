from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from ats_scoring.core.config.scoring import get_scoring_int
from ats_scoring.normalize.text import clamp
from ats_scoring.schemas.scoring import AppliedPenalty, SubScoreKey, SubScores


@dataclass(frozen=True)
class PenaltyRule:
    id: str
    config_key: str
    inputs: tuple[SubScoreKey, ...]
    default_threshold: int
    default_amount: int
    triggered: Callable[[SubScores, int], bool]
    reason: Callable[[SubScores, int], str]

    @property
    def threshold(self) -> int:
        return get_scoring_int(f"penalties.{self.config_key}.threshold", self.default_threshold)

    @property
    def amount(self) -> int:
        return get_scoring_int(f"penalties.{self.config_key}.amount", self.default_amount)


@dataclass(frozen=True)
class PenaltyResult:
    score: int
    applied: list[AppliedPenalty] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(penalty.amount for penalty in self.applied)


PENALTY_RULES: tuple[PenaltyRule, ...] = (
    PenaltyRule(
        id="no_metrics_penalty",
        config_key="no_metrics",
        inputs=("metrics_presence",),
        default_threshold=10,
        default_amount=5,
        triggered=lambda s, t: s.metrics_presence < t,
        reason=lambda s, t: f"No quantifiable achievements (metrics score {s.metrics_presence} < {t})",
    ),
    PenaltyRule(
        id="title_mismatch_penalty",
        config_key="title_mismatch",
        inputs=("title_alignment",),
        default_threshold=40,
        default_amount=3,
        triggered=lambda s, t: s.title_alignment < t,
        reason=lambda s, t: f"Job title does not align with target role (title score {s.title_alignment} < {t})",
    ),
    PenaltyRule(
        id="format_risk_penalty",
        config_key="format_risk",
        inputs=("format_parseability",),
        default_threshold=50,
        default_amount=10,
        triggered=lambda s, t: s.format_parseability < t,
        reason=lambda s, t: f"High-risk format for ATS parsing (format score {s.format_parseability} < {t})",
    ),
    PenaltyRule(
        id="semantic_keyword_gap_penalty",
        config_key="semantic_keyword_gap",
        inputs=("semantic_relevance", "keyword_exact"),
        default_threshold=30,
        default_amount=5,
        triggered=lambda s, t: s.semantic_relevance - s.keyword_exact > t,
        reason=lambda s, t: (
            "Resume reads relevant but lacks the exact keywords "
            f"(semantic {s.semantic_relevance} vs keyword {s.keyword_exact}, gap > {t})"
        ),
    ),
)


def triggered_penalties(subscores: SubScores, failed: Iterable[SubScoreKey] = ()) -> list[AppliedPenalty]:
    """Penalties that fire for these sub-scores. Rules reading a failed analyzer are skipped."""
    failed_keys = set(failed)
    applied: list[AppliedPenalty] = []
    for rule in PENALTY_RULES:
        if failed_keys.intersection(rule.inputs):
            continue
        threshold = rule.threshold
        if rule.triggered(subscores, threshold):
            applied.append(
                AppliedPenalty(id=rule.id, reason=rule.reason(subscores, threshold), amount=rule.amount)
            )
    return applied


def apply_penalties(
    score: int,
    subscores: SubScores,
    failed: Iterable[SubScoreKey] = (),
) -> PenaltyResult:
    applied = triggered_penalties(subscores, failed)
    penalized = int(clamp(score - sum(penalty.amount for penalty in applied), 0, 100))
    return PenaltyResult(score=penalized, applied=applied)


def check_penalty_risks(subscores: SubScores) -> dict[str, bool]:
    """Preview which penalties would fire, keyed by penalty id."""
    fired = {penalty.id for penalty in triggered_penalties(subscores)}
    return {rule.id: rule.id in fired for rule in PENALTY_RULES}
