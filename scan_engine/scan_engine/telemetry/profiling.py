"""Lightweight profiling for the detection hot path.

``@profile_operation(name)`` times a function with ``perf_counter_ns``,
records the duration in the thread-safe :class:`ProfileCollector` singleton
and logs it at DEBUG level.

Usage::

    from scan_engine.telemetry.profiling import profile_operation

    @profile_operation("detection.view_of")
    def view_of(node):
        ...
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ProfileResult:
    """Immutable record of a single profiled call."""

    operation: str
    duration_ms: float


class ProfileCollector:
    """Thread-safe store of the most recent results per operation.

    Parameters
    ----------
    max_results:
        Maximum number of results to retain per operation name.
    """

    _instance: ProfileCollector | None = None
    _lock_cls = threading.Lock()

    def __init__(self, max_results: int = 500) -> None:
        self._max_results = max_results
        self._data: dict[str, deque[ProfileResult]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        """Return the module-level singleton, creating it if needed."""
        if cls._instance is None:
            with cls._lock_cls:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        with cls._lock_cls:
            cls._instance = None

    def record(self, result: ProfileResult) -> None:
        with self._lock:
            bucket = self._data.setdefault(result.operation, deque(maxlen=self._max_results))
            bucket.append(result)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Return ``count``/``mean_ms``/``max_ms`` for *operation*, or ``None``."""
        with self._lock:
            results = self._data.get(operation)
            if not results:
                return None
            durations = [r.duration_ms for r in results]

        return {
            "operation": operation,
            "count": len(durations),
            "mean_ms": round(sum(durations) / len(durations), 3),
            "max_ms": round(max(durations), 3),
        }

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator recording the wall-clock duration of each call under *name*."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            try:
                return func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                ProfileCollector.get_instance().record(
                    ProfileResult(operation=name, duration_ms=round(duration_ms, 3))
                )
                logger.debug("PROFILE %s: %.3f ms", name, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator
