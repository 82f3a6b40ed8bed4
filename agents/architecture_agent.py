"""Architecture Agent: designs the application structure from the analysis."""

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import (
    AppArchitecture,
    FolderStructure,
    Route,
    StateManagement,
)
from utils.text import pascal_case, slugify

from .agreement_agent import AUTH_KEYWORDS
from .base import StageAgent
from .prompts import ARCHITECTURE_PRINCIPLES


SYSTEM_PROMPT = """You are a senior frontend architect. Design production-ready React application architectures that follow modern best practices.
""" + ARCHITECTURE_PRINCIPLES


class ArchitectureAgent(StageAgent):
    """Agent for designing application architecture.

    Produces:
    - Folder structure and file organization
    - Routing configuration
    - State management approach
    """

    stage = Stage.ARCHITECTURE
    output_model = AppArchitecture

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_prompt(self, context: PipelineContext) -> str:
        return f"""Based on this project analysis, create a complete React application architecture:

{self._dump(context.analysis)}

Generate a comprehensive application structure with:
1. Folder structure and file organization
2. Routing configuration
3. State management approach
4. Component hierarchy
5. Data flow patterns
6. Integration points for selected modules: {", ".join(m.name for m in context.project.selected_modules) or "none"}"""

    def fallback(self, context: PipelineContext) -> AppArchitecture:
        needs_auth = any(k in context.project.searchable_text() for k in AUTH_KEYWORDS)
        features = context.analysis.core_features if context.analysis else []

        routes = [
            Route(path="/", component="LandingPage", description="Public landing page"),
            Route(
                path="/dashboard",
                component="DashboardPage",
                protected=needs_auth,
                description="Signed-in overview",
            ),
        ]
        seen = {r.path for r in routes}
        used = {r.component for r in routes}
        if needs_auth:
            seen.add("/login")
            used.add("LoginPage")
        for feature in features:
            path = f"/{slugify(feature.name)}"
            component = f"{pascal_case(feature.name)}Page"
            if path in seen or component in used:
                continue
            seen.add(path)
            used.add(component)
            routes.append(Route(
                path=path,
                component=component,
                protected=needs_auth,
                description=feature.description,
            ))
        if needs_auth:
            routes.append(Route(path="/login", component="LoginPage", description="Sign in"))

        providers = ["AuthProvider"] if needs_auth else []
        return AppArchitecture(
            folder_structure=FolderStructure(
                components=["ui", "layout", "features"],
                pages=[r.component for r in routes],
                hooks=["useAuth"] if needs_auth else [],
                utils=["api", "format"],
                context=providers,
            ),
            routing_config=routes,
            state_management=StateManagement(
                approach="React Context",
                global_state=["currentUser"] if needs_auth else [],
                context_providers=providers,
            ),
        )
