"""Pages Agent: generates one page component per route."""

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import CorePages, PageSpec

from .base import StageAgent
from .component_agent import render_component
from .prompts import CODE_PRINCIPLES


SYSTEM_PROMPT = """You are a senior React engineer building application pages from an existing component library.
""" + CODE_PRINCIPLES


class PagesAgent(StageAgent):
    """Agent for generating the core application pages."""

    stage = Stage.PAGES
    output_model = CorePages

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_prompt(self, context: PipelineContext) -> str:
        return f"""Generate complete React page components for this application:

Architecture: {self._dump(context.architecture)}
Available Components: {self._dump(context.components)}

Create fully functional page components that:
1. Use the available component library
2. Implement the defined user flows
3. Are responsive and modern
4. Include proper navigation and state management
5. Handle loading states and error conditions

Generate the most important pages first (Dashboard, Landing, Main Feature pages)."""

    def fallback(self, context: PipelineContext) -> CorePages:
        routes = context.architecture.routing_config if context.architecture else []
        pages = [
            PageSpec(
                name=route.component,
                file_path=f"src/pages/{route.component}.jsx",
                route=route.path,
                code="import Layout from '../components/layout/Layout';\n\n"
                + render_component(
                    route.component,
                    f"<Layout><h1>{route.description or route.component}</h1></Layout>",
                ),
                description=route.description,
                dependencies=["Layout"],
            )
            for route in routes
        ]
        if not pages:
            pages = [
                PageSpec(
                    name="LandingPage",
                    file_path="src/pages/LandingPage.jsx",
                    route="/",
                    code=render_component("LandingPage", "<h1>Welcome</h1>"),
                    description="Public landing page",
                )
            ]
        return CorePages(pages=pages)
