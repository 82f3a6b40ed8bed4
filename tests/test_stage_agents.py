"""Tests for the stage agents' prompts and deterministic fallbacks."""

import pytest

from agents import (
    STAGE_AGENTS,
    ArchitectureAgent,
    AssemblyAgent,
    ComponentAgent,
    PagesAgent,
)
from agents.integration_agent import env_var_name
from schemas.pipeline_state import STAGE_ORDER, PipelineContext, Stage
from schemas.project import ProjectData
from schemas.stage_outputs import Route

from conftest import FakeLLM


def _filled_context(project):
    """Context with every slot filled from fallbacks, in stage order."""
    context = PipelineContext(project=project, agreement={"is_complete": True})
    for stage in STAGE_ORDER[:-1]:
        agent = STAGE_AGENTS[stage](FakeLLM())
        context = context.with_slot(stage, agent.fallback(context))
    return context


def test_every_stage_has_an_agent():
    assert set(STAGE_AGENTS) == set(STAGE_ORDER)
    for stage, cls in STAGE_AGENTS.items():
        assert cls.stage == stage


@pytest.mark.parametrize("stage", list(STAGE_ORDER))
def test_fallback_is_deterministic_and_valid(project, stage):
    context = _filled_context(project)
    agent = STAGE_AGENTS[stage](FakeLLM())

    first = agent.fallback(context)
    assert first == agent.fallback(context)
    assert agent.validate(first.model_dump(mode="json")) == first


@pytest.mark.parametrize("stage", list(STAGE_ORDER))
def test_fallback_handles_empty_project(stage):
    context = PipelineContext(project=ProjectData(business_concept="x"))
    agent = STAGE_AGENTS[stage](FakeLLM())
    output = agent.fallback(context)
    assert isinstance(agent.validate(output.model_dump(mode="json")), agent.output_model)


@pytest.mark.parametrize("stage", list(STAGE_ORDER))
def test_prompt_is_built_from_context(project, stage):
    prompt = STAGE_AGENTS[stage](FakeLLM()).build_prompt(_filled_context(project))
    assert prompt.strip()


def test_assembly_prompt_includes_agreement(project):
    prompt = AssemblyAgent(FakeLLM()).build_prompt(_filled_context(project))
    assert '"is_complete": true' in prompt


def test_architecture_adds_login_for_auth():
    project = ProjectData(
        business_concept="Team notes",
        features=[{"name": "Accounts", "description": "Sign in with a password"}],
    )
    architecture = ArchitectureAgent(FakeLLM()).fallback(PipelineContext(project=project))

    paths = [r.path for r in architecture.routing_config]
    assert paths[0] == "/"
    assert "/login" in paths
    assert architecture.state_management.context_providers == ["AuthProvider"]


def test_pages_follow_routes(project):
    context = _filled_context(project)
    pages = PagesAgent(FakeLLM()).fallback(context)
    assert [p.route for p in pages.pages] == [r.path for r in context.architecture.routing_config]


def test_component_library_has_feature_panels(project):
    context = _filled_context(project)
    library = ComponentAgent(FakeLLM()).fallback(context)
    names = [c.name for c in library.all_components()]
    assert {"Button", "Card", "Layout"} <= set(names)
    assert "CakeCatalogPanel" in names


def test_assembly_aggregates_files(project):
    application = AssemblyAgent(FakeLLM()).fallback(_filled_context(project))
    paths = [f.file_path for f in application.complete_file_structure]

    assert len(paths) == len(set(paths))
    assert {"package.json", "src/App.jsx", "README.md", ".env.example", ".gitignore"} <= set(paths)
    assert "src/integrations/stripe-payment-gateway.js" in paths
    assert application.deployment_config.platform == "vercel"
    assert [v.name for v in application.deployment_config.environment_variables] == [
        "VITE_STRIPE_PAYMENTS_KEY"
    ]


def test_env_var_name():
    assert env_var_name("stripe-payments") == "VITE_STRIPE_PAYMENTS_KEY"


def test_integration_agent_skips_without_modules():
    agent = STAGE_AGENTS[Stage.INTEGRATIONS](FakeLLM())
    context = PipelineContext(project=ProjectData(business_concept="x"))
    assert agent.needs_generation(context) is False
    assert agent.skipped_output(context).integrations == []


def test_fallback_routes_do_not_collide_with_reserved_pages():
    project = ProjectData(
        business_concept="Bakery storefront",
        features=[
            {"name": "Login", "description": "Sign in with a password"},
            {"name": "Landing", "description": "Marketing splash"},
            {"name": "Orders", "description": "Track orders"},
        ],
    )
    context = PipelineContext(project=project, agreement={"is_complete": True})
    for stage in STAGE_ORDER[:-1]:
        agent = STAGE_AGENTS[stage](FakeLLM())
        context = context.with_slot(stage, agent.fallback(context))

    routes = context.architecture.routing_config
    paths = [r.path for r in routes]
    components = [r.component for r in routes]
    assert len(paths) == len(set(paths))
    assert len(components) == len(set(components))
    assert paths.count("/login") == 1
    assert "/orders" in paths

    login = next(r for r in routes if r.path == "/login")
    assert login.protected is False

    application = AssemblyAgent(FakeLLM()).fallback(context)
    app_js = next(
        f.content for f in application.complete_file_structure if f.file_path == "src/App.jsx"
    )
    imports = [line for line in app_js.splitlines() if line.startswith("import ")]
    assert len(imports) == len(set(imports))


def test_assembly_imports_each_page_once(project):
    context = _filled_context(project)
    architecture = context.architecture.model_copy(
        update={"routing_config": context.architecture.routing_config + [
            Route(path="/home", component="LandingPage", description="Alias")
        ]}
    )
    context = context.model_copy(update={"architecture": architecture})
    application = AssemblyAgent(FakeLLM()).fallback(context)
    app_js = next(
        f.content for f in application.complete_file_structure if f.file_path == "src/App.jsx"
    )
    assert app_js.count("import LandingPage ") == 1
    assert '<Route path="/home" element={<LandingPage />} />' in app_js
