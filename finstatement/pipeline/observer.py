"""
Stage observers.

Observers receive stage transitions as a side channel. They see stage names,
timings and errors but never the data flowing between stages, and they cannot
change the outcome of a run.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol, runtime_checkable

from ..infrastructure.logger import get_logger, log_operation

logger = get_logger("finstatement.pipeline.observer")


@runtime_checkable
class PipelineObserver(Protocol):
    """Receives stage transition events."""

    def stage_started(self, stage: str, **attributes: Any) -> None: ...

    def stage_completed(self, stage: str, duration_ms: float, **attributes: Any) -> None: ...

    def stage_failed(self, stage: str, duration_ms: float, error: BaseException) -> None: ...


class LoggingObserver:
    """Emit one structured log record per stage outcome."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or get_logger("finstatement.pipeline.stages")

    def stage_started(self, stage: str, **attributes: Any) -> None:
        self.log.debug(f"Stage started: {stage}")

    def stage_completed(self, stage: str, duration_ms: float, **attributes: Any) -> None:
        log_operation(self.log, f"pipeline.{stage}", True, duration_ms=round(duration_ms, 2), **attributes)

    def stage_failed(self, stage: str, duration_ms: float, error: BaseException) -> None:
        log_operation(
            self.log,
            f"pipeline.{stage}",
            False,
            duration_ms=round(duration_ms, 2),
            error_type=type(error).__name__,
            error=str(error),
        )


class ObserverGroup:
    """Fan events out to several observers, isolating their failures."""

    def __init__(self, observers: Iterable[PipelineObserver] = ()):
        self.observers = list(observers)

    def _notify(self, method: str, *args: Any, **kwargs: Any) -> None:
        for observer in self.observers:
            try:
                getattr(observer, method)(*args, **kwargs)
            except Exception as e:
                logger.warning(f"Observer {type(observer).__name__}.{method} raised: {e}")

    def stage_started(self, stage: str, **attributes: Any) -> None:
        self._notify("stage_started", stage, **attributes)

    def stage_completed(self, stage: str, duration_ms: float, **attributes: Any) -> None:
        self._notify("stage_completed", stage, duration_ms, **attributes)

    def stage_failed(self, stage: str, duration_ms: float, error: BaseException) -> None:
        self._notify("stage_failed", stage, duration_ms, error)
