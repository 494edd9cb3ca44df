from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from ats_scoring.schemas.scoring import SUBSCORE_KEYS, SubScoreKey

WEIGHT_TOLERANCE = 1e-4

SUBSCORE_WEIGHTS: Mapping[SubScoreKey, float] = MappingProxyType(
    {
        "keyword_exact": 0.22,
        "keyword_phrase": 0.12,
        "semantic_relevance": 0.16,
        "title_alignment": 0.10,
        "metrics_presence": 0.10,
        "section_completeness": 0.08,
        "format_parseability": 0.14,
        "recency_fit": 0.08,
    }
)


def get_weight(key: SubScoreKey) -> float:
    return SUBSCORE_WEIGHTS[key]


def validate_weights(weights: Mapping[str, float] = SUBSCORE_WEIGHTS) -> None:
    if set(weights) != set(SUBSCORE_KEYS):
        missing = sorted(set(SUBSCORE_KEYS) - set(weights))
        extra = sorted(set(weights) - set(SUBSCORE_KEYS))
        raise ValueError(f"Weight table mismatch: missing={missing} extra={extra}")
    if any(value < 0 for value in weights.values()):
        raise ValueError("Weights must be non-negative.")
    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(f"Weights must sum to 1.0, got {total:.6f}")


def adjusted_weights(failed: Iterable[SubScoreKey]) -> dict[SubScoreKey, float]:
    """Zero out failed analyzers and rescale the rest so they sum to 1.0.

    When every analyzer failed all weights are zero.
    """
    failed_keys = set(failed)
    remaining = sum(weight for key, weight in SUBSCORE_WEIGHTS.items() if key not in failed_keys)
    if remaining <= 0:
        return {key: 0.0 for key in SUBSCORE_KEYS}
    return {
        key: 0.0 if key in failed_keys else SUBSCORE_WEIGHTS[key] / remaining
        for key in SUBSCORE_KEYS
    }


validate_weights()
