"""Request latency tracking for the timeline API."""

import logging
import statistics
import time
from collections import deque
from contextlib import contextmanager
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Stage for requests that matched no route
UNMATCHED_ROUTE = "<unmatched>"


class LatencyTracker:
    """Tracks latency per stage with rolling statistics."""

    def __init__(self, window_size: int = 100, slow_ms: float = 500.0):
        self.window_size = window_size
        self.slow_ms = slow_ms
        self._metrics: dict[str, deque[float]] = {}
        self._last_report: float = time.monotonic()
        self._report_interval = 60.0  # Log summary every 60s

    def record(self, stage: str, duration_ms: float, **metadata) -> None:
        """Record a timing measurement."""
        if stage not in self._metrics:
            self._metrics[stage] = deque(maxlen=self.window_size)
        self._metrics[stage].append(duration_ms)

        if duration_ms > self.slow_ms:
            meta_str = f" {metadata}" if metadata else ""
            logger.warning(f"SLOW: {stage} took {duration_ms:.1f}ms{meta_str}")
        else:
            logger.debug(f"{stage} took {duration_ms:.1f}ms")

        now = time.monotonic()
        if now - self._last_report > self._report_interval:
            self._log_summary()
            self._last_report = now

    def get_stats(self, stage: str) -> dict:
        """Get statistics for a stage."""
        if stage not in self._metrics or not self._metrics[stage]:
            return {}
        data = list(self._metrics[stage])
        return {
            "count": len(data),
            "mean_ms": round(statistics.mean(data), 2),
            "median_ms": round(statistics.median(data), 2),
            "p95_ms": round(sorted(data)[int(len(data) * 0.95)] if len(data) >= 20 else max(data), 2),
            "max_ms": round(max(data), 2),
            "min_ms": round(min(data), 2),
        }

    def get_all_stats(self) -> dict:
        """Get statistics for all tracked stages."""
        return {stage: self.get_stats(stage) for stage in self._metrics}

    def _log_summary(self):
        for stage, data in self._metrics.items():
            if data:
                stats = self.get_stats(stage)
                logger.info(
                    f"TIMING [{stage}]: mean={stats['mean_ms']:.1f}ms, "
                    f"p95={stats['p95_ms']:.1f}ms, n={stats['count']}"
                )


# Global tracker instance
_tracker: Optional[LatencyTracker] = None


def get_tracker() -> LatencyTracker:
    """Get or create the global latency tracker."""
    global _tracker
    if _tracker is None:
        _tracker = LatencyTracker()
    return _tracker


def configure_tracker(window_size: int, slow_ms: float) -> LatencyTracker:
    """Replace the global tracker with one using the given settings."""
    global _tracker
    _tracker = LatencyTracker(window_size=window_size, slow_ms=slow_ms)
    return _tracker


@contextmanager
def timed_sync(stage: str, **metadata):
    """Context manager for timing synchronous operations."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        get_tracker().record(stage, duration_ms, **metadata)


async def timing_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """HTTP middleware recording each request under "METHOD /route/{template}"."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    # Unmatched paths and methods share one key so client input cannot add stages
    route = request.scope.get("route")
    if route is not None and request.method in getattr(route, "methods", ()):
        stage = f"{request.method} {route.path}"
    else:
        stage = UNMATCHED_ROUTE
    get_tracker().record(stage, duration_ms, status=response.status_code)
    return response
