"""Pipeline orchestrator for agreement-gated application generation."""

import asyncio
import logging
from datetime import datetime

from agents import build_stage_agents
from agents.base import LLMProtocol, StageAgent
from local_storage.kv_store import ARTIFACT_KEY, RUN_KEY, KeyValueStore, StoreError
from pipeline.config import Config
from schemas.agreement import Agreement
from schemas.artifact import GenerationArtifact, StageSummary
from schemas.pipeline_state import (
    STAGE_ORDER,
    PipelineContext,
    PipelineRun,
    Stage,
)
from schemas.project import ProjectData
from schemas.stage_outputs import AssembledApplication

from .consent import ConsentGate
from .errors import (
    OrchestratorFault,
    PreconditionError,
    RunCancelled,
    StaleRunDiscarded,
)
from .progress import ProgressReporter, RunFinished
from .stage_runner import StageRunner
from .state_machine import StateMachine

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Runs the six generation stages in fixed order.

    Uses a state machine to manage run flow with:
    - Consent gate re-validation before anything is created
    - Stage-by-stage execution with fallback on degraded stages
    - Weighted progress reporting
    - Run tokens so only the latest run's results are accepted
    - Cooperative cancellation at stage boundaries
    """

    def __init__(
        self,
        llm: LLMProtocol | None = None,
        store: KeyValueStore | None = None,
        reporter: ProgressReporter | None = None,
        agents: dict[Stage, StageAgent] | None = None,
        pacing_delay: float = 0.75,
        stage_timeout: float | None = 180.0,
        stage_retries: int = 1,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            llm: Generation backend shared by the default stage agents
            store: Where the artifact and run summaries are written
            reporter: Progress sink for observers
            agents: Override the stage agents (one per stage)
            pacing_delay: Seconds to wait between stages; 0 disables
            stage_timeout: Per-call timeout for generation
            stage_retries: Extra attempts per stage before fallback
        """
        if agents is None:
            if llm is None:
                raise ValueError("Either llm or agents must be provided")
            agents = build_stage_agents(llm)

        missing = [s.value for s in STAGE_ORDER if s not in agents]
        if missing:
            raise ValueError(f"No agent for stage(s): {', '.join(missing)}")

        self.store = store
        self.reporter = reporter or ProgressReporter()
        self.pacing_delay = max(0.0, pacing_delay)
        self.stage_runner = StageRunner(agents, timeout=stage_timeout, retries=stage_retries)

        self._token = 0
        self._cancelled_token: int | None = None
        self._current_run: PipelineRun | None = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        llm: LLMProtocol,
        store: KeyValueStore | None = None,
        reporter: ProgressReporter | None = None,
    ) -> "PipelineOrchestrator":
        agents = build_stage_agents(
            llm,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
        )
        return cls(
            store=store,
            reporter=reporter,
            agents=agents,
            pacing_delay=config.pipeline.pacing_delay,
            stage_timeout=config.pipeline.stage_timeout,
            stage_retries=config.pipeline.stage_retries,
        )

    @property
    def current_run(self) -> PipelineRun | None:
        return self._current_run

    @property
    def is_running(self) -> bool:
        return self._current_run is not None and not self._current_run.state.is_terminal

    def cancel(self) -> bool:
        """Ask the current run to stop at its next stage boundary.

        An in-flight generation call is allowed to finish; its result is
        dropped.

        Returns:
            True if there was a run to cancel
        """
        if not self.is_running:
            return False
        self._cancelled_token = self._token
        logger.info("Cancellation requested for run %s", self._current_run.run_id)
        return True

    async def execute(self, project: ProjectData, agreement: Agreement | None) -> PipelineRun:
        """Run every stage and assemble the final artifact.

        Starting a new execution supersedes any run still in flight; the
        older run is discarded at its next boundary.

        Args:
            project: Upstream project data
            agreement: The founder's agreement (read-only here)

        Returns:
            The finished PipelineRun (COMPLETE, FAILED, CANCELLED or DISCARDED)

        Raises:
            PreconditionError: If the consent gate is closed. Nothing is
                created or persisted in that case.
        """
        if not ConsentGate.can_proceed(agreement):
            blocking = ConsentGate(agreement).blocking_reasons()
            raise PreconditionError(
                "Complete every critical item and acknowledge every risky choice "
                "before generating code.",
                blocking,
            )

        self._token += 1
        token = self._token
        run = PipelineRun(
            run_id=f"{datetime.now():%Y%m%d-%H%M%S}-{token}",
            token=token,
        )
        self._current_run = run
        machine = StateMachine(run)

        context = PipelineContext(
            project=project.model_copy(deep=True),
            agreement=agreement.snapshot(),
        )
        agreement_copy = agreement.model_copy(deep=True)

        logger.info("PIPELINE: Starting run %s (token %d)", run.run_id, token)

        try:
            application = await self._run_stages(run, machine, context)
            self._check_boundary(run)

            artifact = self._build_artifact(run, application, agreement_copy)
            run.final_artifact = artifact.model_dump(mode="json")
            self._persist(ARTIFACT_KEY, artifact.summary())

            machine.complete()
            self.reporter.update(run.run_id, None, run.progress_percent)
            self.reporter.finish(RunFinished(
                run_id=run.run_id,
                succeeded=True,
                state=run.state.value,
                artifact_summary=artifact.summary(),
            ))
            self._persist_run_summary(run)

            degraded = run.degraded_stages()
            logger.info(
                "PIPELINE: Run %s complete%s",
                run.run_id,
                f" (degraded: {', '.join(degraded)})" if degraded else "",
            )

        except StaleRunDiscarded as e:
            machine.discard()
            logger.info("PIPELINE: %s", e)

        except RunCancelled as e:
            machine.cancel(str(e))
            logger.info("PIPELINE: Run %s cancelled", run.run_id)
            self.reporter.finish(RunFinished(
                run_id=run.run_id,
                succeeded=False,
                state=run.state.value,
                reason=str(e),
            ))
            self._persist_run_summary(run)

        except asyncio.CancelledError:
            machine.cancel("Task cancelled")
            raise

        except Exception as e:
            fault = e if isinstance(e, OrchestratorFault) else OrchestratorFault(
                f"Unexpected {type(e).__name__}: {e}"
            )
            machine.fail(fault)
            logger.error("PIPELINE: Run %s failed: %s", run.run_id, fault, exc_info=e)
            if token == self._token:
                self.reporter.finish(RunFinished(
                    run_id=run.run_id,
                    succeeded=False,
                    state=run.state.value,
                    reason=str(fault),
                ))
                self._persist_run_summary(run)

        return run

    async def _run_stages(
        self,
        run: PipelineRun,
        machine: StateMachine,
        context: PipelineContext,
    ) -> AssembledApplication:
        application: AssembledApplication | None = None

        for index, stage in enumerate(STAGE_ORDER):
            self._check_boundary(run)
            machine.enter_stage(stage)
            self.reporter.update(run.run_id, stage.value, run.progress_percent)
            logger.info("PIPELINE: Starting stage %s", stage.value)

            outcome = await self.stage_runner.run(stage, context)

            # The result of a superseded or cancelled run is dropped here
            self._check_boundary(run)
            if outcome.is_err:
                raise OrchestratorFault(f"Stage {stage.value} produced no output: {outcome.reason}")

            run.stage_results.append(outcome.result)
            if stage == Stage.ASSEMBLY:
                application = outcome.value
            else:
                try:
                    context = context.with_slot(stage, outcome.value)
                except ValueError as e:
                    raise OrchestratorFault(str(e)) from e

            machine.complete_stage(stage)
            self.reporter.update(run.run_id, stage.value, run.progress_percent)

            if self.pacing_delay and index < len(STAGE_ORDER) - 1:
                await asyncio.sleep(self.pacing_delay)

        if application is None:
            raise OrchestratorFault("Assembly stage did not run")
        return application

    def _check_boundary(self, run: PipelineRun) -> None:
        if run.token != self._token:
            raise StaleRunDiscarded(run.run_id, run.token, self._token)
        if self._cancelled_token == run.token:
            raise RunCancelled("Cancelled by user")

    def _build_artifact(
        self,
        run: PipelineRun,
        application: AssembledApplication,
        agreement: Agreement,
    ) -> GenerationArtifact:
        return GenerationArtifact(
            run_id=run.run_id,
            application=application,
            stages=[
                StageSummary(
                    name=r.stage_name.value,
                    succeeded=r.succeeded,
                    used_fallback=r.used_fallback,
                    attempts=r.attempts,
                )
                for r in run.stage_results
            ],
            agreement=agreement.snapshot(),
        )

    def _persist(self, key: str, value: dict) -> None:
        if self.store is None:
            return
        try:
            self.store.set(key, value)
        except StoreError as e:
            raise OrchestratorFault(f"Could not persist {key}: {e}") from e

    def _persist_run_summary(self, run: PipelineRun) -> None:
        if self.store is None:
            return
        try:
            self.store.set(RUN_KEY, run.summary())
        except StoreError:
            logger.exception("Could not persist summary of run %s", run.run_id)
