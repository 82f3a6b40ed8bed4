"""Error taxonomy for the generation pipeline."""

from llm_backend.base import GenerationError


class PipelineError(Exception):
    """Base class for pipeline errors."""


class PreconditionError(PipelineError):
    """Generation was requested while the consent gate is closed.

    Raised before a run exists, so nothing is created or persisted.
    """

    def __init__(self, reason: str, blocking: list[str] | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.blocking = blocking or []


class StageDegraded(PipelineError):
    """A stage's generation call failed or returned a non-conforming shape.

    Only ever recorded on the StageResult; never escapes the stage runner.
    """

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason


class OrchestratorFault(PipelineError):
    """Internal consistency violation. Fatal to the current run."""


class StaleRunDiscarded(PipelineError):
    """The run was superseded by a newer one and its results were dropped."""

    def __init__(self, run_id: str, token: int, current_token: int) -> None:
        super().__init__(
            f"Run {run_id} (token {token}) superseded by token {current_token}"
        )
        self.run_id = run_id
        self.token = token
        self.current_token = current_token


class RunCancelled(PipelineError):
    """The user cancelled the run; it stopped at a stage boundary."""


class ConsentError(PipelineError):
    """Toggle or consent batch referenced an unknown item."""

    def __init__(self, message: str, unknown_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.unknown_ids = unknown_ids or []


__all__ = [
    "ConsentError",
    "GenerationError",
    "OrchestratorFault",
    "PipelineError",
    "PreconditionError",
    "RunCancelled",
    "StageDegraded",
    "StaleRunDiscarded",
]
