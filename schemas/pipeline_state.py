"""Pipeline state schema.

State machine representation for a single generation run.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .project import ProjectData
from .stage_outputs import (
    AppArchitecture,
    ComponentLibrary,
    CorePages,
    ModuleIntegrations,
    ProjectAnalysis,
)


class RunState(str, Enum):
    """Pipeline run states, in execution order."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    DESIGNING_ARCHITECTURE = "designing_architecture"
    BUILDING_COMPONENTS = "building_components"
    BUILDING_PAGES = "building_pages"
    INTEGRATING_MODULES = "integrating_modules"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Stopped at a stage boundary by the user
    DISCARDED = "discarded"  # Superseded by a newer run

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {RunState.COMPLETE, RunState.FAILED, RunState.CANCELLED, RunState.DISCARDED}
)


class Stage(str, Enum):
    """Pipeline stages. Each produces one named slot of the context."""

    ANALYSIS = "analysis"
    ARCHITECTURE = "architecture"
    COMPONENTS = "components"
    PAGES = "pages"
    INTEGRATIONS = "integrations"
    ASSEMBLY = "assembly"


# Fixed linear order; no branching or skipping
STAGE_ORDER: tuple[Stage, ...] = (
    Stage.ANALYSIS,
    Stage.ARCHITECTURE,
    Stage.COMPONENTS,
    Stage.PAGES,
    Stage.INTEGRATIONS,
    Stage.ASSEMBLY,
)

STAGE_STATES: dict[Stage, RunState] = {
    Stage.ANALYSIS: RunState.ANALYZING,
    Stage.ARCHITECTURE: RunState.DESIGNING_ARCHITECTURE,
    Stage.COMPONENTS: RunState.BUILDING_COMPONENTS,
    Stage.PAGES: RunState.BUILDING_PAGES,
    Stage.INTEGRATIONS: RunState.INTEGRATING_MODULES,
    Stage.ASSEMBLY: RunState.ASSEMBLING,
}

# Progress allocation per stage; sums to 100. Assembly aggregates every
# prior output, so it carries the largest share.
STAGE_WEIGHTS: dict[Stage, int] = {
    Stage.ANALYSIS: 15,
    Stage.ARCHITECTURE: 15,
    Stage.COMPONENTS: 20,
    Stage.PAGES: 15,
    Stage.INTEGRATIONS: 10,
    Stage.ASSEMBLY: 25,
}

STAGE_LABELS: dict[Stage, str] = {
    Stage.ANALYSIS: "Analyzing complete project context",
    Stage.ARCHITECTURE: "Designing application architecture",
    Stage.COMPONENTS: "Creating component library",
    Stage.PAGES: "Building application pages",
    Stage.INTEGRATIONS: "Integrating selected modules",
    Stage.ASSEMBLY: "Assembling complete application",
}


class StageResult(BaseModel):
    """Finalized result of a single stage execution. Immutable."""

    model_config = ConfigDict(frozen=True)

    stage_name: Stage = Field(..., description="Stage name")
    output: dict[str, Any] = Field(..., description="Validated stage output")
    succeeded: bool = Field(..., description="External call produced a conforming output")
    used_fallback: bool = Field(False, description="Deterministic fallback was substituted")
    attempts: int = Field(0, description="Number of generation calls made")
    error: str | None = Field(None, description="Why the stage degraded, if it did")
    started_at: datetime = Field(..., description="When stage started")
    completed_at: datetime = Field(..., description="When stage completed")

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


class PipelineContext(BaseModel):
    """Accumulated outputs handed from stage to stage.

    Every slot is write-once. ``with_slot`` returns a new context so a
    stage can never alter what an earlier stage produced.
    """

    model_config = ConfigDict(frozen=True)

    project: ProjectData = Field(default_factory=ProjectData)
    agreement: dict[str, Any] = Field(
        default_factory=dict,
        description="Agreement snapshot the run was admitted with",
    )
    analysis: ProjectAnalysis | None = None
    architecture: AppArchitecture | None = None
    components: ComponentLibrary | None = None
    pages: CorePages | None = None
    integrations: ModuleIntegrations | None = None

    def get_slot(self, stage: Stage) -> BaseModel | None:
        return getattr(self, stage.value, None)

    def with_slot(self, stage: Stage, value: BaseModel) -> "PipelineContext":
        """Return a copy with one more slot filled.

        Raises:
            ValueError: If the slot is unknown or already filled
        """
        if stage == Stage.ASSEMBLY or stage.value not in type(self).model_fields:
            raise ValueError(f"Stage {stage.value} has no context slot")
        if self.get_slot(stage) is not None:
            raise ValueError(f"Context slot {stage.value} is already filled")
        return self.model_copy(update={stage.value: value})

    def filled_slots(self) -> list[str]:
        return [s.value for s in STAGE_ORDER if s != Stage.ASSEMBLY and self.get_slot(s) is not None]


class PipelineRun(BaseModel):
    """One generation attempt. Replaced, never resumed, on retry."""

    run_id: str = Field(..., description="Unique run identifier")
    token: int = Field(..., description="Generation counter value that owns this run")
    state: RunState = Field(RunState.IDLE, description="Current state")
    current_stage_index: int = Field(-1, description="Index into STAGE_ORDER, -1 before start")
    progress_percent: int = Field(0, ge=0, le=100)
    stage_results: list[StageResult] = Field(default_factory=list)
    final_artifact: dict[str, Any] | None = Field(None, description="GenerationArtifact dump")
    error: str | None = Field(None, description="Human-readable failure reason")
    error_kind: str | None = Field(None, description="Error class name for failed runs")

    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def current_stage(self) -> Stage | None:
        if 0 <= self.current_stage_index < len(STAGE_ORDER):
            return STAGE_ORDER[self.current_stage_index]
        return None

    def degraded_stages(self) -> list[str]:
        return [r.stage_name.value for r in self.stage_results if r.used_fallback]

    def summary(self) -> dict[str, Any]:
        """Compact summary persisted for the UI."""
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "progress_percent": self.progress_percent,
            "stages": {
                r.stage_name.value: "fallback" if r.used_fallback else "ok"
                for r in self.stage_results
            },
            "error": self.error,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
