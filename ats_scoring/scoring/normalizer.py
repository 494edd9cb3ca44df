from __future__ import annotations

from dataclasses import dataclass

from ats_scoring.core.config.scoring import get_scoring_int, get_scoring_value
from ats_scoring.normalize.text import clamp, round_half_up

Band = tuple[float, float, float, float]

DEFAULT_BANDS: tuple[Band, ...] = (
    (0, 40, 40, 60),
    (40, 60, 60, 75),
    (60, 80, 75, 88),
    (80, 100, 88, 95),
)


@dataclass(frozen=True)
class ImprovementResult:
    original: int
    optimized: int
    natural_delta: int
    corrected: bool


def score_bands() -> tuple[Band, ...]:
    raw = get_scoring_value("normalizer.bands", None)
    if not raw:
        return DEFAULT_BANDS
    bands = tuple(tuple(float(value) for value in band) for band in raw)
    _validate_bands(bands)  # type: ignore[arg-type]
    return bands  # type: ignore[return-value]


def _validate_bands(bands: tuple[Band, ...]) -> None:
    previous_raw_high = None
    previous_norm_high = None
    for band in bands:
        if len(band) != 4:
            raise ValueError(f"Normalizer band must have 4 values, got {band}")
        raw_low, raw_high, norm_low, norm_high = band
        if raw_high <= raw_low or norm_high < norm_low:
            raise ValueError(f"Normalizer band is not increasing: {band}")
        if previous_raw_high is not None and raw_low != previous_raw_high:
            raise ValueError(f"Normalizer bands must be contiguous at {band}")
        if previous_norm_high is not None and norm_low < previous_norm_high:
            raise ValueError(f"Normalizer bands must be monotonic at {band}")
        previous_raw_high, previous_norm_high = raw_high, norm_high


def score_floor() -> int:
    return int(score_bands()[0][2])


def score_ceiling() -> int:
    return int(score_bands()[-1][3])


def min_improvement() -> int:
    return get_scoring_int("normalizer.min_improvement", 5)


def normalize_score(raw: float) -> int:
    """Piecewise-linear remap of a 0-100 composite into the display range."""
    bands = score_bands()
    value = clamp(raw, bands[0][0], bands[-1][1])
    for raw_low, raw_high, norm_low, norm_high in bands:
        if value <= raw_high:
            ratio = (value - raw_low) / (raw_high - raw_low)
            return round_half_up(norm_low + ratio * (norm_high - norm_low))
    return int(bands[-1][3])


def enforce_min_improvement(original: int, optimized: int) -> ImprovementResult:
    """Guarantee optimized >= original + min_improvement without leaving [floor, ceiling].

    The original score is limited to ceiling - min_improvement so the
    guarantee is always satisfiable.
    """
    gap = min_improvement()
    ceiling = score_ceiling()
    natural_delta = optimized - original
    bounded_original = min(original, ceiling - gap)
    bounded_optimized = min(optimized, ceiling)
    corrected = bounded_original != original
    if bounded_optimized - bounded_original < gap:
        bounded_optimized = min(bounded_original + gap, ceiling)
        corrected = True
    return ImprovementResult(
        original=bounded_original,
        optimized=bounded_optimized,
        natural_delta=natural_delta,
        corrected=corrected,
    )
