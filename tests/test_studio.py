"""Tests for orchestrator.studio: session workflow over a store."""

import pytest

from local_storage.kv_store import AGREEMENT_KEY, PROJECT_DATA_KEY, RUN_KEY
from orchestrator import PreconditionError, StudioSession
from pipeline.config import Config, PipelineConfig
from schemas.pipeline_state import RunState

from conftest import FakeLLM


@pytest.fixture
def config():
    return Config(pipeline=PipelineConfig(pacing_delay=0, stage_timeout=5.0))


def _session(store, config, llm=None):
    return StudioSession(store=store, llm=llm or FakeLLM(), config=config)


def _agree_to_everything(session):
    for item in session.agreement.critical_items:
        session.toggle_critical(item.id)
    session.grant_all()


def test_no_project_data(store, config):
    session = _session(store, config)
    assert session.load_project() is None
    assert session.evaluate() is None
    assert session.can_proceed is False
    assert AGREEMENT_KEY not in store


def test_malformed_project_data(store, config):
    store.set(PROJECT_DATA_KEY, {"features": "oops"})
    session = _session(store, config)
    assert session.load_project() is None
    assert session.evaluate() is None


def test_evaluate_persists_agreement(store, config, project_data):
    session = _session(store, config)
    session.save_project(project_data)
    agreement = session.evaluate()

    assert agreement is not None
    assert store.get(AGREEMENT_KEY)["critical_items"][0]["id"] == "core-scope"
    assert session.project_context().readiness_score == 10


def test_resume_stored_agreement(store, config, project_data):
    first = _session(store, config)
    first.save_project(project_data)
    first.evaluate()
    first.toggle_critical("core-scope")
    first.grant_consent(["vendor-lock-in"])

    second = _session(store, config)
    resumed = second.evaluate(resume=True)
    assert resumed.critical_items[0].is_complete is True
    assert resumed.risk_acknowledgments == ["vendor-lock-in"]


def test_fresh_evaluation_discards_progress(store, config, project_data):
    session = _session(store, config)
    session.save_project(project_data)
    session.evaluate()
    session.toggle_critical("core-scope")

    fresh = session.evaluate(resume=False)
    assert fresh.critical_items[0].is_complete is False
    assert store.get(AGREEMENT_KEY)["critical_items"][0]["is_complete"] is False


def test_corrupt_stored_agreement_is_reevaluated(store, config, project_data):
    store.set(AGREEMENT_KEY, {"critical_items": "broken"})
    session = _session(store, config)
    session.save_project(project_data)

    agreement = session.evaluate(resume=True)
    assert agreement.critical_items[0].id == "core-scope"


async def test_generate_requires_open_gate(store, config, project_data):
    session = _session(store, config)
    session.save_project(project_data)
    session.evaluate()

    with pytest.raises(PreconditionError) as exc:
        await session.generate()
    assert exc.value.blocking


async def test_generate_without_project(store, config):
    with pytest.raises(PreconditionError):
        await _session(store, config).generate()


async def test_generate_end_to_end(store, config, project_data):
    session = _session(store, config)
    events = []
    session.reporter.subscribe(events.append)
    session.save_project(project_data)
    session.evaluate()
    _agree_to_everything(session)

    run = await session.generate()

    assert run.state == RunState.COMPLETE
    assert session.last_run()["run_id"] == run.run_id
    assert session.last_artifact()["run_id"] == run.run_id
    assert store.get(RUN_KEY)["progress_percent"] == 100
    assert events[-1].succeeded is True


def test_cancel_without_orchestrator(store, config):
    assert _session(store, config).cancel() is False
