"""Studio session: the founder-facing workflow around the pipeline.

Ties project data, the agreement evaluator, the consent gate and the
orchestrator to one key-value store, so a session can be resumed from
disk at any point.
"""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from agents.agreement_agent import AgreementEvaluator
from agents.base import LLMProtocol
from agents.context_agent import ProjectContext, build_project_context
from local_storage.kv_store import (
    AGREEMENT_KEY,
    ARTIFACT_KEY,
    PROJECT_DATA_KEY,
    RUN_KEY,
    KeyValueStore,
)
from pipeline.config import Config, get_config
from schemas.agreement import Agreement, AgreementEvaluation
from schemas.pipeline_state import PipelineRun
from schemas.project import ProjectData

from .consent import ConsentGate
from .errors import PreconditionError
from .progress import ProgressReporter
from .runner import PipelineOrchestrator

logger = logging.getLogger(__name__)


class StudioSession:
    """One founder's CTO Studio workspace."""

    def __init__(
        self,
        store: KeyValueStore,
        llm: LLMProtocol | None = None,
        config: Config | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        """Initialize session.

        Args:
            store: Source of project data and sink for agreement/run state
            llm: Generation backend; created from config on first generate
            config: Configuration (defaults to the global config)
            reporter: Progress sink shared with observers
        """
        self.store = store
        self.config = config or get_config()
        self._llm = llm
        self._reporter = reporter or ProgressReporter()
        self._orchestrator: PipelineOrchestrator | None = None
        self.evaluator = AgreementEvaluator()
        self.gate = ConsentGate(store=store)
        self.evaluation: AgreementEvaluation | None = None

    @property
    def reporter(self) -> ProgressReporter:
        return self._reporter

    @property
    def agreement(self) -> Agreement | None:
        return self.gate.agreement

    @property
    def can_proceed(self) -> bool:
        return self.gate.is_open

    @property
    def orchestrator(self) -> PipelineOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = PipelineOrchestrator.from_config(
                self.config,
                llm=self._get_llm(),
                store=self.store,
                reporter=self._reporter,
            )
        return self._orchestrator

    def _get_llm(self) -> LLMProtocol:
        if self._llm is None:
            from llm_backend import detect_backend, get_backend

            kind = self.config.llm.backend
            if kind == "auto":
                kind = detect_backend()
            self._llm = get_backend(kind, **self.config.llm.backend_kwargs(kind))
            logger.info("Using generation backend %r", self._llm)
        return self._llm

    # Project data

    def save_project(self, data: ProjectData | dict[str, Any]) -> ProjectData:
        """Validate and store upstream project data.

        Raises:
            pydantic.ValidationError: If ``data`` is not valid project data
        """
        project = data if isinstance(data, ProjectData) else ProjectData.model_validate(data)
        self.store.set(PROJECT_DATA_KEY, project.model_dump(mode="json", by_alias=True))
        return project

    def load_project(self) -> ProjectData | None:
        """Read project data from the store; None if absent or malformed."""
        raw = self.store.get(PROJECT_DATA_KEY)
        if raw is None:
            return None
        try:
            return ProjectData.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored project data is malformed: %d error(s)", e.error_count())
            return None

    def project_context(self) -> ProjectContext | None:
        project = self.load_project()
        return build_project_context(project) if project is not None else None

    # Agreement

    def evaluate(self, resume: bool = True) -> Agreement | None:
        """Load the agreement for this session.

        A stored agreement is resumed when ``resume`` is set; otherwise the
        project data is evaluated afresh and the result persisted. Without
        usable project data there is no agreement and the gate stays closed.

        Returns:
            The current agreement, or None
        """
        if resume:
            stored = self._load_stored_agreement()
            if stored is not None:
                self.gate.load(stored, persist=False)
                logger.info("Resumed stored agreement")
                return stored

        self.evaluation = self.evaluator.evaluate(self.store.get(PROJECT_DATA_KEY))
        if not self.evaluation.data_supplied:
            self.gate.load(None, persist=False)
            return None

        agreement = self.evaluation.to_agreement()
        self.gate.load(agreement)
        logger.info(
            "Evaluated agreement: %d critical, %d optional, %d risky",
            len(agreement.critical_items),
            len(agreement.optional_items),
            len(agreement.risky_choices),
        )
        return agreement

    def _load_stored_agreement(self) -> Agreement | None:
        raw = self.store.get(AGREEMENT_KEY)
        if raw is None:
            return None
        try:
            return Agreement.model_validate(raw)
        except ValidationError:
            logger.warning("Stored agreement is malformed; re-evaluating")
            return None

    def toggle_critical(self, item_id: str) -> bool:
        return self.gate.toggle_critical(item_id)

    def toggle_optional(self, item_id: str) -> bool:
        return self.gate.toggle_optional(item_id)

    def grant_consent(self, risk_ids: Iterable[str]) -> Agreement:
        return self.gate.grant_consent(risk_ids)

    def grant_all(self) -> Agreement:
        return self.gate.grant_all()

    # Generation

    async def generate(self) -> PipelineRun:
        """Run the pipeline for the stored project under the current agreement.

        Raises:
            PreconditionError: If there is no project data or the gate is closed
        """
        project = self.load_project()
        if project is None:
            raise PreconditionError("No project data available", ["Supply project data first"])
        if not self.gate.is_open:
            raise PreconditionError(
                "Complete every critical item and acknowledge every risky choice "
                "before generating code.",
                self.gate.blocking_reasons(),
            )
        return await self.orchestrator.execute(project, self.gate.snapshot())

    def cancel(self) -> bool:
        if self._orchestrator is None:
            return False
        return self._orchestrator.cancel()

    def last_artifact(self) -> dict[str, Any] | None:
        return self.store.get(ARTIFACT_KEY)

    def last_run(self) -> dict[str, Any] | None:
        return self.store.get(RUN_KEY)

    async def aclose(self) -> None:
        close = getattr(self._llm, "aclose", None)
        if close is not None:
            await close()
