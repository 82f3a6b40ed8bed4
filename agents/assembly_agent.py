"""Assembly Agent: assembles every prior stage output into the final application."""

import json

from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import (
    AssembledApplication,
    DeploymentConfig,
    EnvironmentVariable,
    GeneratedFile,
    TestingSetup,
)
from utils.text import slugify

from .base import StageAgent
from .integration_agent import env_var_name
from .prompts import ASSEMBLY_PRINCIPLES, CODE_PRINCIPLES


SYSTEM_PROMPT = """You are the CTO agent delivering on the Founder-Cofounder Agreement. Assemble validated parts into a complete, immediately deployable React application.
""" + CODE_PRINCIPLES + ASSEMBLY_PRINCIPLES

BASE_DEPENDENCIES = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "react-router-dom": "^6.22.0",
}

GITIGNORE = "node_modules/\ndist/\n.env\n"


class AssemblyAgent(StageAgent):
    """Agent for final application assembly.

    Consumes the entire accumulated context plus the agreement snapshot.
    """

    stage = Stage.ASSEMBLY
    output_model = AssembledApplication

    def default_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def build_prompt(self, context: PipelineContext) -> str:
        parts = {
            "context": context.analysis,
            "architecture": context.architecture,
            "components": context.components,
            "pages": context.pages,
            "modules": context.integrations,
        }
        dumped = {
            name: part.model_dump(mode="json") if part is not None else {}
            for name, part in parts.items()
        }
        return f"""FINAL ASSEMBLY

FOUNDER-COFOUNDER AGREEMENT CONTEXT:
{json.dumps(context.agreement, indent=2)}

APPLICATION COMPONENTS TO ASSEMBLE:
{json.dumps(dumped, indent=2)}

Output the complete file structure with ALL necessary files, a package.json with exact dependencies, App.js with routing, deployment configuration for the selected hosting platform, environment setup, a README with setup instructions, and a basic testing setup."""

    def fallback(self, context: PipelineContext) -> AssembledApplication:
        project = context.project
        name = slugify(project.business_concept[:40], default="generated-app")
        routes = context.architecture.routing_config if context.architecture else []
        modules = project.selected_modules

        files: list[GeneratedFile] = []
        seen: set[str] = set()

        def add(path: str, content: str, description: str, file_type: str) -> None:
            if path in seen:
                return
            seen.add(path)
            files.append(GeneratedFile(
                file_path=path,
                content=content,
                description=description,
                file_type=file_type,
            ))

        if context.components:
            for component in context.components.all_components():
                add(component.file_path, component.code, component.description, "component")
        if context.pages:
            for page in context.pages.pages:
                add(page.file_path, page.code, page.description, "page")
        if context.integrations:
            for integration in context.integrations.integrations:
                add(
                    f"src/integrations/{slugify(integration.module_name)}.js",
                    integration.integration_code,
                    integration.description,
                    "integration",
                )

        package_json = json.dumps(
            {
                "name": name,
                "private": True,
                "version": "0.1.0",
                "scripts": {"dev": "vite", "build": "vite build", "test": "vitest"},
                "dependencies": BASE_DEPENDENCIES,
                "devDependencies": {"vite": "^5.0.0", "vitest": "^1.0.0"},
            },
            indent=2,
        )
        components = dict.fromkeys(r.component for r in routes)
        imports = "\n".join(
            f"import {c} from './pages/{c}';" for c in components
        )
        route_elements = "\n".join(
            f'        <Route path="{r.path}" element={{<{r.component} />}} />' for r in routes
        )
        app_js = (
            "import { BrowserRouter, Routes, Route } from 'react-router-dom';\n"
            f"{imports}\n\n"
            "export default function App() {\n"
            "  return (\n"
            "    <BrowserRouter>\n"
            "      <Routes>\n"
            f"{route_elements}\n"
            "      </Routes>\n"
            "    </BrowserRouter>\n"
            "  );\n"
            "}\n"
        )
        env_vars = [
            EnvironmentVariable(
                name=env_var_name(module.id),
                description=f"API key for {module.name}",
            )
            for module in modules
        ]
        env_example = "".join(f"{var.name}=\n" for var in env_vars)
        readme = (
            f"# {name}\n\n{project.business_concept}\n\n"
            "## Setup\n\n```bash\nnpm install\nnpm run dev\n```\n"
        )

        project_structure = {
            "package_json": package_json,
            "app_js": app_js,
            "readme_md": readme,
            "env_example": env_example,
            "gitignore": GITIGNORE,
        }
        add("package.json", package_json, "Project manifest", "config")
        add("src/App.jsx", app_js, "Application root with routing", "component")
        add("README.md", readme, "Setup instructions", "docs")
        add(".env.example", env_example, "Environment variables", "config")
        add(".gitignore", GITIGNORE, "Git ignore rules", "config")

        hosting = (project.tech_stack.hosting or "vercel").lower()
        return AssembledApplication(
            project_structure=project_structure,
            deployment_config=DeploymentConfig(
                platform=hosting,
                build_command="npm run build",
                deployment_steps=[
                    "npm install",
                    "npm run build",
                    f"Deploy the dist/ directory to {hosting}",
                ],
                environment_variables=env_vars,
            ),
            complete_file_structure=files,
            setup_instructions=["npm install", "cp .env.example .env", "npm run dev"],
            testing_setup=TestingSetup(framework="vitest", run_instructions=["npm test"]),
        )
