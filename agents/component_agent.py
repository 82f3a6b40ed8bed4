"""Component Agent: generates the reusable component library."""

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import ComponentLibrary, ComponentSpec
from utils.text import pascal_case

from .base import StageAgent
from .prompts import CODE_PRINCIPLES, COMPONENT_PRINCIPLES


SYSTEM_PROMPT = """You are a senior React engineer building a component library.
""" + CODE_PRINCIPLES + COMPONENT_PRINCIPLES


def render_component(name: str, body: str, props: list[str] | None = None) -> str:
    """Minimal functional React component source."""
    args = "{ " + ", ".join(props) + " }" if props else ""
    return (
        f"export default function {name}({args}) {{\n"
        f"  return (\n"
        f"    {body}\n"
        f"  );\n"
        f"}}\n"
    )


class ComponentAgent(StageAgent):
    """Agent for generating UI, layout and feature components."""

    stage = Stage.COMPONENTS
    output_model = ComponentLibrary

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_prompt(self, context: PipelineContext) -> str:
        return f"""Generate a complete component library for this React application architecture:

{self._dump(context.architecture)}

Create reusable components that will be used throughout the application. Each component should be:
1. Fully functional React code
2. Responsive and accessible
3. Styled with Tailwind CSS
4. Built with hooks and functional components

Focus on creating the most essential components first."""

    def fallback(self, context: PipelineContext) -> ComponentLibrary:
        ui = [
            ComponentSpec(
                name="Button",
                file_path="src/components/ui/Button.jsx",
                code=render_component(
                    "Button",
                    '<button className="px-4 py-2 rounded bg-blue-600 text-white" '
                    "onClick={onClick}>{children}</button>",
                    ["children", "onClick"],
                ),
                description="Primary action button",
                props=["children", "onClick"],
            ),
            ComponentSpec(
                name="Card",
                file_path="src/components/ui/Card.jsx",
                code=render_component(
                    "Card",
                    '<div className="rounded-lg shadow p-4 bg-white">{children}</div>',
                    ["children"],
                ),
                description="Content container",
                props=["children"],
            ),
        ]
        layout = [
            ComponentSpec(
                name="Layout",
                file_path="src/components/layout/Layout.jsx",
                code=render_component(
                    "Layout",
                    '<main className="min-h-screen max-w-5xl mx-auto p-6">{children}</main>',
                    ["children"],
                ),
                description="Page shell",
                props=["children"],
            ),
        ]

        features = context.analysis.core_features if context.analysis else []
        feature_components = []
        seen: set[str] = set()
        for feature in features:
            name = f"{pascal_case(feature.name)}Panel"
            if name in seen:
                continue
            seen.add(name)
            feature_components.append(ComponentSpec(
                name=name,
                file_path=f"src/components/features/{name}.jsx",
                code=render_component(
                    name,
                    f'<section className="space-y-2"><h2>{feature.name}</h2></section>',
                ),
                description=feature.description,
                related_feature=feature.name,
            ))

        return ComponentLibrary(
            ui_components=ui,
            layout_components=layout,
            feature_components=feature_components,
        )
