"""Schemas module for structured pipeline I/O.

Provides Pydantic models for:
- Upstream project data
- Founder-Cofounder Agreements
- Stage outputs (analysis, architecture, components, pages, integrations, assembly)
- Pipeline runs and context
- Generation artifacts
"""

from .agreement import (
    Agreement,
    AgreementEvaluation,
    ChecklistItem,
    OptionalItem,
    RiskLevel,
    RiskyChoice,
)
from .artifact import GenerationArtifact, StageSummary
from .pipeline_state import (
    STAGE_LABELS,
    STAGE_ORDER,
    STAGE_STATES,
    STAGE_WEIGHTS,
    PipelineContext,
    PipelineRun,
    RunState,
    Stage,
    StageResult,
)
from .project import (
    Complexity,
    Feature,
    Module,
    Priority,
    ProjectData,
    Requirement,
    TechStack,
    UserFlow,
)
from .stage_outputs import (
    AppArchitecture,
    AssembledApplication,
    ComponentLibrary,
    ComponentSpec,
    CorePages,
    DeploymentConfig,
    FolderStructure,
    GeneratedFile,
    IntegrationSpec,
    ModuleIntegrations,
    PageSpec,
    ProjectAnalysis,
    Route,
    StateManagement,
)

__all__ = [
    # Agreement
    "Agreement",
    "AgreementEvaluation",
    "ChecklistItem",
    "OptionalItem",
    "RiskLevel",
    "RiskyChoice",
    # Artifact
    "GenerationArtifact",
    "StageSummary",
    # Pipeline state
    "STAGE_LABELS",
    "STAGE_ORDER",
    "STAGE_STATES",
    "STAGE_WEIGHTS",
    "PipelineContext",
    "PipelineRun",
    "RunState",
    "Stage",
    "StageResult",
    # Project
    "Complexity",
    "Feature",
    "Module",
    "Priority",
    "ProjectData",
    "Requirement",
    "TechStack",
    "UserFlow",
    # Stage outputs
    "AppArchitecture",
    "AssembledApplication",
    "ComponentLibrary",
    "ComponentSpec",
    "CorePages",
    "DeploymentConfig",
    "FolderStructure",
    "GeneratedFile",
    "IntegrationSpec",
    "ModuleIntegrations",
    "PageSpec",
    "ProjectAnalysis",
    "Route",
    "StateManagement",
]
