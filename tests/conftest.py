"""Shared fixtures: fake generation backend, stores and sample project data."""

import asyncio
import copy
from typing import Any

import pytest

from agents import STAGE_AGENTS, AgreementEvaluator
from llm_backend.base import GenerationError
from local_storage.kv_store import MemoryStore, StoreError
from orchestrator.consent import ConsentGate
from schemas.pipeline_state import PipelineContext
from schemas.project import ProjectData


SAMPLE_PROJECT: dict[str, Any] = {
    "businessConcept": "A marketplace where local bakers sell cakes with online payment",
    "dreamStatement": "Every neighbourhood baker online",
    "features": [
        {
            "name": "Cake catalog",
            "description": "Browse cakes",
            "priority": "high",
            "userStory": "As a buyer I want to browse cakes",
            "acceptanceCriteria": ["Shows photos"],
            "complexity": "simple",
        },
        {
            "name": "Checkout",
            "description": "Pay for an order with Stripe",
            "priority": "critical",
            "acceptanceCriteria": ["Payment confirmed"],
            "complexity": "moderate",
        },
        {
            "name": "Baker reviews",
            "description": "Rate bakers",
            "priority": "low",
            "complexity": "simple",
        },
        {
            "name": "Delivery routing",
            "description": "Plan delivery routes",
            "priority": "medium",
            "complexity": "complex",
        },
    ],
    "userFlows": [
        {"flowName": "Buy a cake", "steps": ["Browse", "Add to cart", "Pay"]},
    ],
    "requirements": [
        {"category": "performance", "requirement": "Pages load in under 2s"},
    ],
    "techStack": {
        "frontend": "React",
        "backend": "Node.js",
        "database": "Firestore",
        "hosting": "Vercel",
    },
    "selectedModules": [
        {
            "id": "stripe-payments",
            "name": "Stripe Payment Gateway",
            "description": "Accept credit cards",
        },
    ],
    "securityReviewSkipped": True,
}


class FakeLLM:
    """Generation backend double.

    Responses are keyed by the requested schema title (the stage's output
    model name). A call for a title with no response raises ``error``, as
    do the first ``failures`` calls.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        failures: int = 0,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.failures = failures
        self.error = error or GenerationError("backend unavailable")
        self.delay = delay
        self.calls: list[str | None] = []
        self.kwargs: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def invoke(
        self,
        prompt: str,
        schema: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> Any:
        title = (schema or {}).get("title")
        self.calls.append(title)
        self.kwargs.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures:
            self.failures -= 1
            raise self.error
        if title not in self.responses:
            raise self.error
        return copy.deepcopy(self.responses[title])


class FailingStore(MemoryStore):
    """Store whose writes always fail."""

    def set(self, key: str, value: Any) -> None:
        raise StoreError(f"disk full while writing {key}")


def stage_responses(project: ProjectData) -> dict[str, Any]:
    """Well-formed responses for every stage, keyed by schema title."""
    context = PipelineContext(project=project)
    responses = {}
    for cls in STAGE_AGENTS.values():
        agent = cls(FakeLLM())
        responses[cls.output_model.__name__] = agent.fallback(context).model_dump(mode="json")
    return responses


@pytest.fixture
def project_data() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_PROJECT)


@pytest.fixture
def project(project_data) -> ProjectData:
    return ProjectData.model_validate(project_data)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def agreement(project):
    """Fresh, unagreed agreement for the sample project."""
    return AgreementEvaluator().evaluate(project).to_agreement()


@pytest.fixture
def open_agreement(agreement):
    """Agreement with every critical item complete and every risk consented."""
    gate = ConsentGate(agreement)
    for item in agreement.critical_items:
        gate.toggle_critical(item.id)
    gate.grant_all()
    return gate.snapshot()


@pytest.fixture
def ok_llm(project) -> FakeLLM:
    return FakeLLM(responses=stage_responses(project))
