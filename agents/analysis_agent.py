"""Analysis Agent: turns the project definition into a technical specification."""

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import (
    DataModelSpec,
    FeatureAnalysis,
    FlowAnalysis,
    ProjectAnalysis,
)

from .base import StageAgent
from .context_agent import build_project_context
from .prompts import CODE_PRINCIPLES


SYSTEM_PROMPT = """You are the CTO agent, an autonomous technical co-founder generating production-ready code.

Create a comprehensive technical specification that will guide the generation of a fully functional frontend application. The analysis must be thorough enough to generate an application that:
1. Implements ALL agreed-upon features completely
2. Handles ALL specified user flows end-to-end
3. Meets ALL technical requirements and constraints
4. Includes proper error handling, loading states, and edge cases
5. Is immediately deployable and scalable
""" + CODE_PRINCIPLES


class AnalysisAgent(StageAgent):
    """Agent for analyzing the complete project context.

    Produces the project type, business objective, flows, features, data
    models and design system every later stage builds on.
    """

    stage = Stage.ANALYSIS
    output_model = ProjectAnalysis

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_prompt(self, context: PipelineContext) -> str:
        project = context.project
        project_context = build_project_context(project)
        stack = project.tech_stack
        modules = "\n".join(
            f"- {m.name}: {m.description}" for m in project.selected_modules
        ) or "- None selected"
        agreement = context.agreement

        return f"""VALIDATED FOUNDER-COFOUNDER AGREEMENT:
Critical Items Completed: {agreement.get("critical_completed", 0)}/{agreement.get("critical_total", 0)}
Acknowledged Risks: {", ".join(agreement.get("acknowledged_risks", [])) or "None"}
Founder Choices: {", ".join(agreement.get("founder_choices", [])) or "None"}

COMPLETE PROJECT CONTEXT:
{project_context.prp}

Selected Tech Stack:
- Frontend: {stack.frontend or "React"}
- Backend: {stack.backend or "Node.js"}
- Database: {stack.database or "PostgreSQL"}
- Hosting: {stack.hosting or "Vercel"}

Selected Modules & Integrations:
{modules}

Context Readiness: {project_context.readiness_score}/10

Produce the technical specification as JSON."""

    def fallback(self, context: PipelineContext) -> ProjectAnalysis:
        project = context.project

        flows = [
            FlowAnalysis(
                flow_name=flow.flow_name,
                description=f"User completes {flow.flow_name.lower()}",
                steps=list(flow.steps),
                success_criteria="User reaches the final step without errors",
            )
            for flow in project.user_flows
        ] or [
            FlowAnalysis(
                flow_name="Main flow",
                description="User signs in and uses the core feature",
                steps=["Open the app", "Use the core feature", "See the result"],
                success_criteria="User sees the result of the core feature",
            )
        ]

        features = [
            FeatureAnalysis(
                name=feature.name,
                description=feature.description,
                priority=feature.priority.value,
                acceptance_criteria=list(feature.acceptance_criteria),
            )
            for feature in project.features
        ] or [
            FeatureAnalysis(
                name="Core experience",
                description=project.business_concept or "Primary product capability",
            )
        ]

        return ProjectAnalysis(
            project_type="web application",
            business_objective=project.business_concept or "Deliver the founder's MVP",
            target_users="",
            core_value_proposition=project.dream_statement,
            primary_user_flows=flows,
            core_features=features,
            data_models=[DataModelSpec(entity_name="User", fields=["id", "email", "created_at"])],
            technical_constraints=[
                r.requirement for r in project.requirements if r.category.lower() != "security"
            ],
            security_requirements=[
                r.requirement for r in project.requirements if r.category.lower() == "security"
            ],
        )
