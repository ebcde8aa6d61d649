# ============================================================================
# src/medivision/utils/metrics.py
# ============================================================================
"""
Counters and timers for diagnosability.

Reference-not-found events, dropped candidates, extraction failures and
translation fallbacks are all tolerated at runtime; they are counted here so
they remain visible.
"""

import time
from typing import Dict, List, Optional, Any
from collections import defaultdict
from contextlib import contextmanager
import statistics


class MetricsCollector:
    """Collect and aggregate metrics."""

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._timers: Dict[str, List[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1) -> None:
        """
        Increment counter.

        Args:
            name: Counter name
            value: Increment amount
        """
        self._counters[name] += value

    def record_time(self, name: str, duration: float) -> None:
        """
        Record operation duration.

        Args:
            name: Operation name
            duration: Duration in seconds
        """
        self._timers[name].append(duration)

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def get_timer_stats(self, name: str) -> Optional[Dict[str, float]]:
        """
        Get timer statistics.

        Returns:
            Dict with count, min, max, mean, median
        """
        values = self._timers.get(name, [])
        if not values:
            return None

        return {
            'count': len(values),
            'min': min(values),
            'max': max(values),
            'mean': statistics.mean(values),
            'median': statistics.median(values),
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        """Get all metrics."""
        return {
            'counters': dict(self._counters),
            'timers': {
                name: self.get_timer_stats(name)
                for name in self._timers.keys()
            }
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._counters.clear()
        self._timers.clear()


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Get the process-global metrics collector."""
    return _metrics


def increment(name: str, value: int = 1) -> None:
    _metrics.increment(name, value)


def record_time(name: str, duration: float) -> None:
    _metrics.record_time(name, duration)


@contextmanager
def time_operation(name: str):
    """Time a block and record it under ``name``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        _metrics.record_time(name, time.perf_counter() - start)
