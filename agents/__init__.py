"""Agents module for CTO Studio.

Provides the agreement evaluator, project context helpers, and one
specialized agent per generation stage:
- AnalysisAgent: Turn the project definition into a technical specification
- ArchitectureAgent: Folder structure, routing and state management
- ComponentAgent: Reusable UI, layout and feature components
- PagesAgent: One page component per route
- IntegrationAgent: Integration code for selected modules
- AssemblyAgent: Final application assembly
"""

from .agreement_agent import AgreementEvaluator
from .analysis_agent import AnalysisAgent
from .architecture_agent import ArchitectureAgent
from .assembly_agent import AssemblyAgent
from .base import LLMProtocol, StageAgent
from .component_agent import ComponentAgent
from .context_agent import ProjectContext, build_project_context, calculate_readiness_score
from .integration_agent import IntegrationAgent
from .pages_agent import PagesAgent

from schemas.pipeline_state import Stage

STAGE_AGENTS: dict[Stage, type[StageAgent]] = {
    Stage.ANALYSIS: AnalysisAgent,
    Stage.ARCHITECTURE: ArchitectureAgent,
    Stage.COMPONENTS: ComponentAgent,
    Stage.PAGES: PagesAgent,
    Stage.INTEGRATIONS: IntegrationAgent,
    Stage.ASSEMBLY: AssemblyAgent,
}


def build_stage_agents(llm: LLMProtocol, **generation_kwargs) -> dict[Stage, StageAgent]:
    """Instantiate one agent per stage sharing a backend."""
    return {
        stage: cls(llm, generation_kwargs=generation_kwargs)
        for stage, cls in STAGE_AGENTS.items()
    }


__all__ = [
    "AgreementEvaluator",
    "AnalysisAgent",
    "ArchitectureAgent",
    "AssemblyAgent",
    "ComponentAgent",
    "IntegrationAgent",
    "LLMProtocol",
    "PagesAgent",
    "ProjectContext",
    "STAGE_AGENTS",
    "StageAgent",
    "build_project_context",
    "build_stage_agents",
    "calculate_readiness_score",
]
