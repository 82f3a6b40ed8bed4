"""Tests for orchestrator.runner: full runs, gating, supersession and cancel."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from local_storage.kv_store import AGREEMENT_KEY, ARTIFACT_KEY, RUN_KEY
from orchestrator import (
    PipelineOrchestrator,
    PreconditionError,
    ProgressEvent,
    ProgressReporter,
    RunFinished,
)
from pipeline.config import Config, LLMConfig, PipelineConfig
from schemas.artifact import GenerationArtifact
from schemas.pipeline_state import STAGE_ORDER, RunState

from conftest import FailingStore, FakeLLM


class BlockingLLM(FakeLLM):
    """Blocks the first call for one schema title until released."""

    def __init__(self, responses, block_title):
        super().__init__(responses=responses)
        self.block_title = block_title
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self._blocked = False

    async def invoke(self, prompt, schema=None, system_prompt=None, **kwargs):
        if (schema or {}).get("title") == self.block_title and not self._blocked:
            self._blocked = True
            self.entered.set()
            await self.release.wait()
        return await super().invoke(prompt, schema=schema, system_prompt=system_prompt, **kwargs)


def _orchestrator(llm, store=None, reporter=None, **kwargs):
    kwargs.setdefault("pacing_delay", 0)
    kwargs.setdefault("stage_timeout", 5.0)
    return PipelineOrchestrator(llm=llm, store=store, reporter=reporter, **kwargs)


def _collect(reporter):
    events = []
    reporter.subscribe(events.append)
    return events


async def test_successful_run(project, open_agreement, ok_llm, store):
    reporter = ProgressReporter()
    events = _collect(reporter)
    run = await _orchestrator(ok_llm, store, reporter).execute(project, open_agreement)

    assert run.state == RunState.COMPLETE
    assert run.progress_percent == 100
    assert [r.stage_name for r in run.stage_results] == list(STAGE_ORDER)
    assert run.degraded_stages() == []

    artifact = GenerationArtifact.model_validate(run.final_artifact)
    assert artifact.run_id == run.run_id
    assert artifact.agreement["is_complete"] is True
    assert store.get(ARTIFACT_KEY)["run_id"] == run.run_id
    assert store.get(RUN_KEY)["state"] == "complete"

    finished = [e for e in events if isinstance(e, RunFinished)]
    assert len(finished) == 1
    assert finished[0].succeeded is True
    assert finished[0].artifact_summary["file_count"] == len(
        artifact.application.complete_file_structure
    )


async def test_every_stage_failing_still_completes(project, open_agreement, store):
    llm = FakeLLM()
    run = await _orchestrator(llm, store).execute(project, open_agreement)

    assert run.state == RunState.COMPLETE
    assert run.degraded_stages() == [s.value for s in STAGE_ORDER]
    assert llm.call_count == 2 * len(STAGE_ORDER)

    app = run.final_artifact["application"]
    paths = [f["file_path"] for f in app["complete_file_structure"]]
    assert "package.json" in paths
    assert "src/App.jsx" in paths
    assert store.get(ARTIFACT_KEY)["degraded_stages"] == [s.value for s in STAGE_ORDER]


async def test_closed_gate_raises_before_anything_happens(project, agreement, store):
    reporter = ProgressReporter()
    llm = FakeLLM()
    orchestrator = _orchestrator(llm, store, reporter)

    with pytest.raises(PreconditionError) as exc:
        await orchestrator.execute(project, agreement)

    assert "Critical item incomplete: core-scope" in exc.value.blocking
    assert orchestrator.current_run is None
    assert store.keys() == []
    assert reporter.latest is None
    assert llm.call_count == 0


async def test_missing_agreement_raises(project, store):
    with pytest.raises(PreconditionError):
        await _orchestrator(FakeLLM(), store).execute(project, None)


async def test_progress_is_monotonic_and_hits_100_only_at_complete(
    project, open_agreement, ok_llm
):
    reporter = ProgressReporter()
    events = _collect(reporter)
    await _orchestrator(ok_llm, reporter=reporter).execute(project, open_agreement)

    percents = [e.percent for e in events if isinstance(e, ProgressEvent)]
    assert percents == sorted(percents)
    assert percents[-1] == 100
    assert all(p < 100 for p in percents[:-1])


async def test_stages_reported_in_order(project, open_agreement, ok_llm):
    reporter = ProgressReporter()
    events = _collect(reporter)
    await _orchestrator(ok_llm, reporter=reporter).execute(project, open_agreement)

    seen = []
    for e in events:
        if isinstance(e, ProgressEvent) and e.stage_name and e.stage_name not in seen:
            seen.append(e.stage_name)
    assert seen == [s.value for s in STAGE_ORDER]


async def test_inputs_are_not_mutated(project, open_agreement, ok_llm):
    project_before = project.model_dump()
    agreement_before = open_agreement.model_dump()
    await _orchestrator(ok_llm).execute(project, open_agreement)

    assert project.model_dump() == project_before
    assert open_agreement.model_dump() == agreement_before


async def test_orchestrator_never_writes_agreement(project, open_agreement, ok_llm, store):
    await _orchestrator(ok_llm, store).execute(project, open_agreement)
    assert AGREEMENT_KEY not in store


async def test_superseded_run_is_discarded(project, open_agreement, ok_llm, store):
    llm = BlockingLLM(ok_llm.responses, block_title="ComponentLibrary")
    reporter = ProgressReporter()
    events = _collect(reporter)
    orchestrator = _orchestrator(llm, store, reporter)

    first = asyncio.create_task(orchestrator.execute(project, open_agreement))
    await asyncio.wait_for(llm.entered.wait(), timeout=2)

    second = await orchestrator.execute(project, open_agreement)
    llm.release.set()
    first_run = await first

    assert second.state == RunState.COMPLETE
    assert first_run.state == RunState.DISCARDED
    assert len(first_run.stage_results) == 2
    assert first_run.final_artifact is None

    finished = [e for e in events if isinstance(e, RunFinished)]
    assert [e.run_id for e in finished] == [second.run_id]
    assert store.get(ARTIFACT_KEY)["run_id"] == second.run_id
    assert store.get(RUN_KEY)["run_id"] == second.run_id


async def test_cancel_stops_at_next_boundary(project, open_agreement, ok_llm, store):
    reporter = ProgressReporter()
    orchestrator = _orchestrator(ok_llm, store, reporter)
    finished = []

    def on_event(event):
        if isinstance(event, ProgressEvent) and event.stage_name == "architecture":
            orchestrator.cancel()
        elif isinstance(event, RunFinished):
            finished.append(event)

    reporter.subscribe(on_event)
    run = await orchestrator.execute(project, open_agreement)

    assert run.state == RunState.CANCELLED
    # The in-flight architecture result is dropped
    assert [r.stage_name.value for r in run.stage_results] == ["analysis"]
    assert ARTIFACT_KEY not in store
    assert store.get(RUN_KEY)["state"] == "cancelled"
    assert len(finished) == 1
    assert finished[0].succeeded is False


async def test_cancel_without_run(ok_llm):
    assert _orchestrator(ok_llm).cancel() is False


async def test_persist_failure_fails_run(project, open_agreement, ok_llm):
    reporter = ProgressReporter()
    events = _collect(reporter)
    run = await _orchestrator(ok_llm, FailingStore(), reporter).execute(project, open_agreement)

    assert run.state == RunState.FAILED
    assert run.error_kind == "OrchestratorFault"
    assert run.progress_percent < 100
    finished = [e for e in events if isinstance(e, RunFinished)]
    assert finished[0].succeeded is False
    assert "pipeline_artifact" in finished[0].reason


async def test_pacing_between_stages_only(project, open_agreement, ok_llm):
    with patch("orchestrator.runner.asyncio.sleep", new=AsyncMock()) as sleep:
        await _orchestrator(ok_llm, pacing_delay=0.5).execute(project, open_agreement)

    assert sleep.await_count == len(STAGE_ORDER) - 1
    sleep.assert_awaited_with(0.5)


async def test_from_config_passes_generation_settings(project, open_agreement, ok_llm):
    config = Config(
        llm=LLMConfig(temperature=0.1, max_tokens=900),
        pipeline=PipelineConfig(pacing_delay=0),
    )
    orchestrator = PipelineOrchestrator.from_config(config, llm=ok_llm)
    run = await orchestrator.execute(project, open_agreement)

    assert run.state == RunState.COMPLETE
    assert all(kw == {"temperature": 0.1, "max_tokens": 900} for kw in ok_llm.kwargs)


def test_requires_llm_or_agents():
    with pytest.raises(ValueError):
        PipelineOrchestrator()
    with pytest.raises(ValueError):
        PipelineOrchestrator(agents={})
