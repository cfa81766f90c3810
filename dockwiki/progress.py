"""Stage/percentage/ETA events pushed to a progress observer."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

from .logging import get_logger

ProgressSink = Callable[[Dict[str, Any]], None]


class ProgressReporter:
    """Emits monotonically non-decreasing progress events to an optional sink.

    Reports are serialised under a lock so concurrent callers cannot deliver
    percentages out of order. A missing or failing sink drops events silently.
    """

    def __init__(
        self,
        sink: ProgressSink | None = None,
        *,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._sink = sink
        self._clock = clock or time.monotonic
        self._started_at = self._clock()
        self._last_progress = 0.0
        self._lock = threading.Lock()
        self.logger = get_logger("progress")

    @property
    def last_progress(self) -> float:
        return self._last_progress

    def report(self, stage: str, progress: float, eta: Optional[float] = None) -> Dict[str, Any]:
        with self._lock:
            value = max(self._last_progress, min(100.0, max(0.0, float(progress))))
            self._last_progress = value
            event: Dict[str, Any] = {"stage": stage, "progress": round(value, 2)}
            estimate = eta if eta is not None else self._estimate_eta(value)
            if estimate is not None:
                event["eta"] = round(estimate, 1)
            self._emit(event)
        return event

    def error(self, message: str) -> Dict[str, Any]:
        event = {"stage": "error", "error": message}
        with self._lock:
            self._emit(event)
        return event

    def window(self, start: float, end: float) -> Callable[[str, int, int], None]:
        """Return a callback mapping ``done/total`` into the ``start..end`` band."""
        span = end - start

        def _report(stage: str, done: int, total: int) -> None:
            fraction = done / total if total else 1.0
            self.report(stage, start + span * fraction)

        return _report

    def _estimate_eta(self, progress: float) -> Optional[float]:
        if progress <= 0.0 or progress >= 100.0:
            return None
        elapsed = self._clock() - self._started_at
        return elapsed * (100.0 - progress) / progress

    def _emit(self, event: Dict[str, Any]) -> None:
        if self._sink is None:
            return
        try:
            self._sink(event)
        except Exception as exc:
            self.logger.debug("Dropped progress event %s: %s", event.get("stage"), exc)
        else:
            self.logger.debug("Progress update sent: %s %s", event.get("stage"), event.get("progress"))


__all__ = ["ProgressReporter", "ProgressSink"]
