"""Timing of tree operations, collected per operation name."""

import time
import functools
import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

REPORT_WIDTH = 92


@dataclass
class MethodMetrics:
    """Timings of one tracked operation, split by accepted and rejected calls."""
    call_count: int = 0
    rejected: int = 0
    total_time: float = 0.0
    min_time: float = float('inf')
    max_time: float = 0.0
    times: List[float] = field(default_factory=list)

    def add_measurement(self, elapsed: float, ok: bool = True) -> None:
        self.call_count += 1
        if not ok:
            self.rejected += 1
        self.total_time += elapsed
        if elapsed < self.min_time:
            self.min_time = elapsed
        if elapsed > self.max_time:
            self.max_time = elapsed
        self.times.append(elapsed)

    @property
    def avg_time(self) -> float:
        if not self.call_count:
            return 0
        return self.total_time / self.call_count

    @property
    def median_time(self) -> float:
        return statistics.median(self.times) if self.times else 0

    def as_row(self, name: str) -> str:
        return (f"{name:<32} {self.call_count:>8} {self.rejected:>8} "
                f"{self.total_time:>12.6f} {self.avg_time:>12.6f} "
                f"{self.median_time:>12.6f}")

    def __str__(self) -> str:
        if not self.call_count:
            return "no calls"
        return (f"{self.call_count} calls ({self.rejected} rejected), "
                f"{self.total_time:.6f}s total, {self.avg_time:.6f}s avg, "
                f"{self.median_time:.6f}s median, range "
                f"[{self.min_time:.6f}s, {self.max_time:.6f}s]")


class PerformanceTracker:
    """
    Process-wide collector of operation timings.

    Off until enable() is called. While off, a tracked operation costs one
    flag check on top of its own work.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> 'PerformanceTracker':
        if cls._instance is None:
            cls._instance = PerformanceTracker()
        return cls._instance

    def __init__(self):
        self.metrics: Dict[str, MethodMetrics] = defaultdict(MethodMetrics)
        self.enabled = False

    def add_measurement(self, operation: str, elapsed: float, ok: bool = True) -> None:
        if self.enabled:
            self.metrics[operation].add_measurement(elapsed, ok)

    def reset(self) -> None:
        self.metrics.clear()

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def report(self, sort_by: str = 'total_time') -> str:
        """
        Render the collected timings as a table, one row per operation,
        sorted descending by the MethodMetrics attribute `sort_by`.
        """
        if not self.metrics:
            return "No performance data collected."

        rows = sorted(self.metrics.items(),
                      key=lambda item: getattr(item[1], sort_by),
                      reverse=True)
        lines = [
            "Performance Metrics:",
            "-" * REPORT_WIDTH,
            f"{'Operation':<32} {'Calls':>8} {'Rejected':>8} {'Total (s)':>12} "
            f"{'Avg (s)':>12} {'Median (s)':>12}",
            "-" * REPORT_WIDTH,
        ]
        lines.extend(metrics.as_row(name) for name, metrics in rows)
        return "\n".join(lines)


def track_performance(method: Optional[Callable] = None, *,
                      tag: Optional[str] = None) -> Callable:
    """
    Record how long each call of an operation takes.

    Calls whose result has a false `ok` attribute (a rejected Outcome) are
    counted as rejected. Usable bare or as @track_performance(tag="name");
    without a tag the function's qualified name is used.
    """
    def decorator(func):
        operation = tag or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            tracker = PerformanceTracker.get_instance()
            if not tracker.enabled:
                return func(*args, **kwargs)

            start = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - start
            tracker.add_measurement(operation, elapsed, getattr(result, "ok", True))
            return result
        return wrapper

    if method is None:
        return decorator
    return decorator(method)
