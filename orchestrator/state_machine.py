"""State machine implementation for pipeline orchestration."""

import logging
from dataclasses import dataclass
from datetime import datetime

from schemas.pipeline_state import (
    STAGE_ORDER,
    STAGE_STATES,
    STAGE_WEIGHTS,
    PipelineRun,
    RunState,
    Stage,
)

from .errors import OrchestratorFault

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Defines a valid state transition."""

    from_state: RunState
    to_state: RunState


def _linear_transitions() -> list[Transition]:
    chain = [RunState.IDLE, *(STAGE_STATES[s] for s in STAGE_ORDER), RunState.COMPLETE]
    return [Transition(a, b) for a, b in zip(chain, chain[1:])]


class StateMachine:
    """State machine for a single pipeline run.

    Manages:
    - Valid state transitions (fixed linear order, no skips)
    - Progress accounting from stage weights
    - Terminal states (complete, failed, cancelled, discarded)
    """

    TRANSITIONS: list[Transition] = _linear_transitions()

    def __init__(self, run: PipelineRun) -> None:
        """Initialize state machine.

        Args:
            run: The run whose state this machine drives
        """
        self.run = run

        self._transition_map: dict[RunState, RunState] = {
            t.from_state: t.to_state for t in self.TRANSITIONS
        }

    @property
    def state(self) -> RunState:
        return self.run.state

    def can_transition(self, to_state: RunState) -> bool:
        """Check if transition to target state is valid.

        Args:
            to_state: Target state

        Returns:
            True if transition is valid
        """
        return self._transition_map.get(self.run.state) == to_state

    def transition(self, to_state: RunState) -> None:
        """Move to the next state.

        Args:
            to_state: Target state

        Raises:
            OrchestratorFault: If the transition is not adjacent
        """
        if not self.can_transition(to_state):
            raise OrchestratorFault(
                f"Invalid transition {self.run.state.value} -> {to_state.value}"
            )

        self.run.state = to_state
        if to_state == RunState.COMPLETE:
            self.run.current_stage_index = len(STAGE_ORDER)
            self.run.progress_percent = 100
            self.run.completed_at = datetime.now()
        else:
            self.run.current_stage_index += 1

        logger.debug("Run %s -> %s", self.run.run_id, to_state.value)

    def enter_stage(self, stage: Stage) -> None:
        """Transition into the state that runs ``stage``.

        Raises:
            OrchestratorFault: If ``stage`` is not the next stage in order
        """
        self.transition(STAGE_STATES[stage])
        if self.run.current_stage != stage:
            raise OrchestratorFault(
                f"Stage index {self.run.current_stage_index} does not match {stage.value}"
            )

    def complete_stage(self, stage: Stage) -> int:
        """Credit the stage's weight to progress.

        Progress stays below 100 until the run completes.

        Returns:
            The new progress percent
        """
        if self.run.current_stage != stage:
            raise OrchestratorFault(
                f"Cannot complete {stage.value} while in {self.run.state.value}"
            )
        done = sum(STAGE_WEIGHTS[s] for s in STAGE_ORDER[: self.run.current_stage_index + 1])
        self.run.progress_percent = max(self.run.progress_percent, min(done, 99))
        return self.run.progress_percent

    def complete(self) -> None:
        self.transition(RunState.COMPLETE)

    def fail(self, error: Exception) -> None:
        """Mark the run as failed.

        Args:
            error: The fault that ended the run
        """
        if self.run.state.is_terminal:
            return
        self.run.state = RunState.FAILED
        self.run.error = str(error)
        self.run.error_kind = type(error).__name__
        self.run.completed_at = datetime.now()

    def cancel(self, reason: str = "Cancelled by user") -> None:
        if self.run.state.is_terminal:
            return
        self.run.state = RunState.CANCELLED
        self.run.error = reason
        self.run.completed_at = datetime.now()

    def discard(self) -> None:
        if self.run.state.is_terminal:
            return
        self.run.state = RunState.DISCARDED
        self.run.completed_at = datetime.now()
