"""Progress reporting for generation runs.

A passive sink the orchestrator feeds after every transition. Observers
(CLI progress bars, UI views) subscribe and unsubscribe freely; a late
subscriber immediately receives the latest snapshot, so a reopened view
does not lose an in-flight run's progress.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """Current stage and percent of a run."""

    run_id: str
    stage_name: str | None
    percent: int


@dataclass(frozen=True)
class RunFinished:
    """Terminal event: artifact summary on success, reason on failure."""

    run_id: str
    succeeded: bool
    state: str
    artifact_summary: dict[str, Any] | None = field(default=None)
    reason: str | None = None


Event = ProgressEvent | RunFinished
Observer = Callable[[Event], None]


class ProgressReporter:
    """Fan-out of progress events to any number of observers.

    Only the latest snapshot is kept. Observer exceptions are logged and
    never propagate into the run.
    """

    def __init__(self) -> None:
        self._observers: list[Observer] = []
        self._latest: Event | None = None

    @property
    def latest(self) -> Event | None:
        return self._latest

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer.

        Args:
            observer: Called with every event

        Returns:
            A function that unsubscribes the observer
        """
        self._observers.append(observer)
        if self._latest is not None:
            self._notify(observer, self._latest)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def update(self, run_id: str, stage_name: str | None, percent: int) -> ProgressEvent:
        event = ProgressEvent(run_id=run_id, stage_name=stage_name, percent=percent)
        self._publish(event)
        return event

    def finish(self, event: RunFinished) -> None:
        self._publish(event)

    def _publish(self, event: Event) -> None:
        self._latest = event
        for observer in list(self._observers):
            self._notify(observer, event)

    @staticmethod
    def _notify(observer: Observer, event: Event) -> None:
        try:
            observer(event)
        except Exception:
            logger.exception("Progress observer %r failed", observer)
