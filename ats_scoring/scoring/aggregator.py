from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ats_scoring.normalize.text import clamp, round_half_up
from ats_scoring.schemas.scoring import SUBSCORE_KEYS, AnalyzerResult, SubScoreKey, SubScores
from ats_scoring.scoring.weights import adjusted_weights


@dataclass(frozen=True)
class AggregateResult:
    score: int
    subscores: SubScores
    weights: dict[SubScoreKey, float]
    failed: tuple[SubScoreKey, ...]


def aggregate(results: Mapping[SubScoreKey, AnalyzerResult]) -> AggregateResult:
    """Weighted composite. Failed analyzers score 0 and their weight is redistributed."""
    failed = tuple(key for key in SUBSCORE_KEYS if key not in results or results[key].failed)
    weights = adjusted_weights(failed)
    values = {key: 0 if key in failed else results[key].score for key in SUBSCORE_KEYS}
    total = sum(values[key] * weights[key] for key in SUBSCORE_KEYS)
    return AggregateResult(
        score=int(clamp(round_half_up(total), 0, 100)),
        subscores=SubScores.from_mapping(values),
        weights=weights,
        failed=failed,
    )


def _composite(values: Mapping[SubScoreKey, int]) -> int:
    return aggregate({key: AnalyzerResult(score=score, confidence=1.0) for key, score in values.items()}).score


@dataclass(frozen=True)
class Improvement:
    delta: int
    improvements: list[tuple[SubScoreKey, int]]


def calculate_improvement(original: SubScores, optimized: SubScores) -> Improvement:
    """Weighted composite delta plus the per-dimension changes, largest gain first."""
    before = original.as_dict()
    after = optimized.as_dict()
    changes = [(key, after[key] - before[key]) for key in SUBSCORE_KEYS if after[key] != before[key]]
    changes.sort(key=lambda item: item[1], reverse=True)
    delta = _composite(after) - _composite(before)
    return Improvement(delta=delta, improvements=changes)
