"""Orchestrator module for CTO Studio.

State machine-based pipeline orchestration with:
- Consent gate over the Founder-Cofounder Agreement
- Explicit stage transitions in a fixed order
- Bounded retries with deterministic fallbacks
- Run tokens so superseded runs are discarded
"""

from .consent import ConsentGate
from .errors import (
    ConsentError,
    GenerationError,
    OrchestratorFault,
    PipelineError,
    PreconditionError,
    RunCancelled,
    StageDegraded,
    StaleRunDiscarded,
)
from .progress import ProgressEvent, ProgressReporter, RunFinished
from .runner import PipelineOrchestrator
from .stage_runner import OutcomeKind, StageOutcome, StageRunner
from .state_machine import StateMachine, Transition
from .studio import StudioSession

__all__ = [
    "ConsentError",
    "ConsentGate",
    "GenerationError",
    "OrchestratorFault",
    "OutcomeKind",
    "PipelineError",
    "PipelineOrchestrator",
    "PreconditionError",
    "ProgressEvent",
    "ProgressReporter",
    "RunCancelled",
    "RunFinished",
    "StageDegraded",
    "StageOutcome",
    "StageRunner",
    "StaleRunDiscarded",
    "StateMachine",
    "StudioSession",
    "Transition",
]
