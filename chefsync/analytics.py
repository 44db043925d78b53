"""Event, error and timing sink.

Everything goes to the ``chefsync.analytics`` logger; route that logger to
whatever collector the deployment uses.
"""

import logging
import time
from typing import Any, Optional

logger = logging.getLogger("chefsync.analytics")


def track_event(event_name: str, **params: Any) -> None:
    """Record a named product event."""
    logger.info("[Analytics] %s %s", event_name, params)


def log_error(error: BaseException, context: Optional[str] = None) -> None:
    """Record a handled error with its traceback."""
    prefix = f"{context}: " if context else ""
    logger.error("[Error Log] %s%s", prefix, error, exc_info=error)


def measure_performance(label: str, start_time: float, **params: Any) -> float:
    """Record elapsed time since ``start_time`` (a ``time.perf_counter()`` value).

    Returns the duration in milliseconds.
    """
    duration = (time.perf_counter() - start_time) * 1000
    logger.info("[Performance] %s: %.2fms", label, duration)
    track_event("performance_metric", label=label, duration=round(duration, 2), **params)
    return duration
