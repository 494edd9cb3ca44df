from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

from ats_scoring.normalize.text import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LatencyMeasurement:
    operation: str
    duration_ms: int
    recorded_at: datetime
    success: bool
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LatencyStats:
    count: int
    min: int
    max: int
    avg: int
    p50: int
    p95: int
    p99: int

    def as_dict(self) -> dict[str, int]:
        return {
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "p50": self.p50,
            "p95": self.p95,
            "p99": self.p99,
        }


def percentile(sorted_values: list[int], p: float) -> int:
    """Nearest-rank percentile of an ascending list."""
    if not sorted_values:
        return 0
    index = math.ceil(p / 100 * len(sorted_values)) - 1
    return sorted_values[max(0, min(index, len(sorted_values) - 1))]


class PerformanceMonitor:
    """Bounded in-memory history of scoring latencies."""

    def __init__(self, max_measurements: int = 1000, target_ms: int = 2000) -> None:
        if max_measurements <= 0:
            raise ValueError("max_measurements must be greater than 0")
        if target_ms <= 0:
            raise ValueError("target_ms must be greater than 0")
        self.max_measurements = max_measurements
        self.target_ms = target_ms
        self._measurements: deque[LatencyMeasurement] = deque(maxlen=max_measurements)
        self._lock = threading.Lock()

    def record(
        self,
        operation: str,
        duration_ms: int,
        success: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> LatencyMeasurement:
        measurement = LatencyMeasurement(
            operation=operation,
            duration_ms=max(0, int(duration_ms)),
            recorded_at=datetime.now(timezone.utc),
            success=success,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._measurements.append(measurement)
        if measurement.duration_ms > self.target_ms:
            logger.warning(
                "ats_slow_operation operation=%s duration_ms=%d target_ms=%d",
                operation,
                measurement.duration_ms,
                self.target_ms,
            )
        return measurement

    @contextmanager
    def track(self, operation: str, metadata: dict[str, Any] | None = None) -> Iterator[None]:
        started = time.perf_counter()
        success = False
        error: str | None = None
        try:
            yield
            success = True
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            raise
        finally:
            details = dict(metadata or {})
            if error is not None:
                details["error"] = error
            self.record(operation, int((time.perf_counter() - started) * 1000), success, details)

    def _durations(self, operation: str | None) -> list[int]:
        with self._lock:
            return sorted(
                item.duration_ms
                for item in self._measurements
                if operation is None or item.operation == operation
            )

    def stats(self, operation: str | None = None) -> LatencyStats | None:
        durations = self._durations(operation)
        if not durations:
            return None
        return LatencyStats(
            count=len(durations),
            min=durations[0],
            max=durations[-1],
            avg=round_half_up(sum(durations) / len(durations)),
            p50=percentile(durations, 50),
            p95=percentile(durations, 95),
            p99=percentile(durations, 99),
        )

    def meets_target(self, operation: str | None = None) -> bool:
        stats = self.stats(operation)
        return stats is not None and stats.p95 < self.target_ms

    def recent(self, count: int = 10) -> list[LatencyMeasurement]:
        with self._lock:
            items = list(self._measurements)
        return items[-count:] if count > 0 else []

    def clear(self) -> None:
        with self._lock:
            self._measurements.clear()


performance_monitor = PerformanceMonitor()
