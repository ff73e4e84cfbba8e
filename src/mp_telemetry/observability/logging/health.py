"""Observability – per-sink health state.

``AVAILABLE -> DEGRADED`` on any export failure.  ``DEGRADED -> AVAILABLE``
only through :meth:`SinkHealth.reset`, or, when a probe interval is set,
after one successful probe export once the interval has elapsed.  Only a
single probe is in flight at a time and a failed probe re-arms the timer.
"""
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


def _describe(error: BaseException | str | None) -> str | None:
    if error is None:
        return None
    return getattr(error, "message", None) or str(error) or type(error).__name__


class SinkState(str, Enum):
    AVAILABLE = "AVAILABLE"
    DEGRADED = "DEGRADED"


class SinkHealth:
    """Thread-safe availability flag for one log sink."""

    def __init__(
        self,
        name: str,
        probe_interval_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._probe_interval = probe_interval_seconds
        self._clock = clock
        self._state = SinkState.AVAILABLE
        self._degraded_at: float | None = None
        self._probing = False
        self._failure_count = 0
        self._last_error: str | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def is_available(self) -> bool:
        return self._state is SinkState.AVAILABLE

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def should_attempt(self) -> bool:
        with self._lock:
            if self._state is SinkState.AVAILABLE:
                return True
            if self._probe_interval is None or self._probing or self._degraded_at is None:
                return False
            if self._clock() - self._degraded_at < self._probe_interval:
                return False
            self._probing = True
            logger.info("log_sink.probe name=%s", self.name)
            return True

    def mark_success(self) -> None:
        with self._lock:
            if self._probing:
                self._probing = False
                self._state = SinkState.AVAILABLE
                self._degraded_at = None
                logger.info("log_sink.recovered name=%s", self.name)

    def mark_degraded(self, error: BaseException | str | None = None) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_error = _describe(error)
            if self._state is SinkState.AVAILABLE:
                logger.warning("log_sink.degraded name=%s error=%s", self.name, self._last_error)
            self._state = SinkState.DEGRADED
            self._degraded_at = self._clock()
            self._probing = False

    def reset(self) -> None:
        with self._lock:
            if self._state is SinkState.DEGRADED:
                logger.info("log_sink.reset name=%s", self.name)
            self._state = SinkState.AVAILABLE
            self._degraded_at = None
            self._probing = False


__all__ = ["SinkHealth", "SinkState"]
