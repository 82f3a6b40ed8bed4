"""Integration Agent: wires the selected plug-and-play modules in."""

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import IntegrationSpec, ModuleIntegrations
from utils.text import slugify

from .base import StageAgent
from .prompts import CODE_PRINCIPLES


SYSTEM_PROMPT = """You are a senior engineer integrating third-party services into a React application.
""" + CODE_PRINCIPLES


def env_var_name(module_id: str) -> str:
    return f"VITE_{slugify(module_id).replace('-', '_').upper()}_KEY"


class IntegrationAgent(StageAgent):
    """Agent for generating module integration code.

    Makes no generation call when no modules are selected.
    """

    stage = Stage.INTEGRATIONS
    output_model = ModuleIntegrations

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def needs_generation(self, context: PipelineContext) -> bool:
        return bool(context.project.selected_modules)

    def skipped_output(self, context: PipelineContext) -> ModuleIntegrations:
        return ModuleIntegrations(integrations=[])

    def build_prompt(self, context: PipelineContext) -> str:
        modules = "\n\n".join(
            f"**{m.name}**: {m.description}\n{m.generation_prompt}".rstrip()
            for m in context.project.selected_modules
        )
        return f"""Generate integration code for these selected modules:

{modules}

Application Architecture: {self._dump(context.architecture)}

Create integration code that:
1. Follows the application's architecture patterns
2. Includes proper error handling
3. Includes configuration and setup instructions
4. Integrates with existing components and pages

Each integration should include the necessary components, hooks, and utility functions."""

    def fallback(self, context: PipelineContext) -> ModuleIntegrations:
        integrations = []
        for module in context.project.selected_modules:
            ident = slugify(module.id).replace("-", "_")
            env_var = env_var_name(module.id)
            integrations.append(IntegrationSpec(
                module_name=module.name,
                integration_code=(
                    f"// {module.name}\n"
                    f"export const {ident}Config = {{\n"
                    f"  apiKey: import.meta.env.{env_var},\n"
                    f"}};\n"
                ),
                configuration_steps=[
                    f"Create an account for {module.name}",
                    f"Set {env_var} in .env",
                ],
                description=module.description,
            ))
        return ModuleIntegrations(integrations=integrations)
