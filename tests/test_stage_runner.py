"""Tests for orchestrator.stage_runner: bounded retry and fallback."""

import pytest

from agents import AnalysisAgent, IntegrationAgent, build_stage_agents
from orchestrator.stage_runner import MAX_ATTEMPTS, OutcomeKind, StageRunner
from schemas.pipeline_state import PipelineContext, Stage
from schemas.stage_outputs import ModuleIntegrations, ProjectAnalysis

from conftest import FakeLLM


def _runner(llm, **kwargs):
    return StageRunner(build_stage_agents(llm), **kwargs)


async def test_first_attempt_succeeds(project, ok_llm):
    outcome = await _runner(ok_llm).run(Stage.ANALYSIS, PipelineContext(project=project))

    assert outcome.kind == OutcomeKind.OK
    assert isinstance(outcome.value, ProjectAnalysis)
    assert outcome.result.succeeded is True
    assert outcome.result.used_fallback is False
    assert outcome.result.attempts == 1
    assert ok_llm.call_count == 1


async def test_retry_then_success(project, ok_llm):
    ok_llm.failures = 1
    outcome = await _runner(ok_llm).run(Stage.ANALYSIS, PipelineContext(project=project))

    assert outcome.kind == OutcomeKind.OK
    assert outcome.result.attempts == 2
    assert ok_llm.call_count == 2


async def test_fallback_after_two_failures(project):
    llm = FakeLLM()
    context = PipelineContext(project=project)
    outcome = await _runner(llm).run(Stage.ANALYSIS, context)

    assert outcome.kind == OutcomeKind.FALLBACK
    assert llm.call_count == MAX_ATTEMPTS
    assert outcome.result.succeeded is False
    assert outcome.result.used_fallback is True
    assert "GenerationError" in outcome.result.error
    assert outcome.value == AnalysisAgent(llm).fallback(context)


async def test_shape_violation_falls_back(project):
    llm = FakeLLM(responses={"ProjectAnalysis": {"unexpected": True}})
    outcome = await _runner(llm).run(Stage.ANALYSIS, PipelineContext(project=project))

    assert outcome.kind == OutcomeKind.FALLBACK
    assert "ValidationError" in outcome.reason
    assert llm.call_count == 2


async def test_timeout_falls_back(project, ok_llm):
    ok_llm.delay = 1.0
    outcome = await _runner(ok_llm, timeout=0.01).run(
        Stage.ANALYSIS, PipelineContext(project=project)
    )

    assert outcome.kind == OutcomeKind.FALLBACK
    assert "TimeoutError" in outcome.reason
    assert ok_llm.call_count == 2


@pytest.mark.parametrize("retries, expected_calls", [(0, 1), (1, 2), (5, 2)])
async def test_call_count_is_bounded(project, retries, expected_calls):
    llm = FakeLLM()
    await _runner(llm, retries=retries).run(Stage.ANALYSIS, PipelineContext(project=project))
    assert llm.call_count == expected_calls


async def test_integrations_skipped_without_modules(project):
    llm = FakeLLM()
    bare = project.model_copy(update={"selected_modules": []})
    outcome = await _runner(llm).run(Stage.INTEGRATIONS, PipelineContext(project=bare))

    assert outcome.kind == OutcomeKind.OK
    assert outcome.value == ModuleIntegrations(integrations=[])
    assert outcome.result.attempts == 0
    assert llm.call_count == 0


async def test_integrations_fallback_per_module(project):
    outcome = await _runner(FakeLLM()).run(Stage.INTEGRATIONS, PipelineContext(project=project))

    assert outcome.kind == OutcomeKind.FALLBACK
    names = [i.module_name for i in outcome.value.integrations]
    assert names == ["Stripe Payment Gateway"]


async def test_context_is_not_modified(project):
    context = PipelineContext(project=project)
    before = context.model_dump()
    await _runner(FakeLLM()).run(Stage.ANALYSIS, context)
    assert context.model_dump() == before


async def test_missing_agent_is_err(project):
    runner = StageRunner({Stage.ANALYSIS: AnalysisAgent(FakeLLM())})
    outcome = await runner.run(Stage.PAGES, PipelineContext(project=project))
    assert outcome.kind == OutcomeKind.ERR
    assert outcome.is_err


async def test_broken_fallback_is_err(project):
    class BrokenAgent(IntegrationAgent):
        def fallback(self, context):
            raise RuntimeError("no fallback")

    runner = StageRunner({Stage.INTEGRATIONS: BrokenAgent(FakeLLM())})
    outcome = await runner.run(Stage.INTEGRATIONS, PipelineContext(project=project))

    assert outcome.kind == OutcomeKind.ERR
    assert "no fallback" in outcome.reason


async def test_generation_kwargs_reach_backend(project, ok_llm):
    agents = build_stage_agents(ok_llm, temperature=0.2, max_tokens=None)
    await StageRunner(agents).run(Stage.ANALYSIS, PipelineContext(project=project))
    assert ok_llm.kwargs == [{"temperature": 0.2}]
