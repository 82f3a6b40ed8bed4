"""Single-stage execution with bounded retry and deterministic fallback."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from agents.base import StageAgent
from schemas.pipeline_state import PipelineContext, Stage, StageResult

from .errors import StageDegraded

logger = logging.getLogger(__name__)

# A stage never makes more than this many generation calls
MAX_ATTEMPTS = 2


class OutcomeKind(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"
    ERR = "err"


@dataclass(frozen=True)
class StageOutcome:
    """Result of one stage: ``OK(value) | FALLBACK(value) | ERR(reason)``.

    OK and FALLBACK carry the validated output and its finalized
    StageResult. ERR means not even the fallback could be built.
    """

    kind: OutcomeKind
    value: BaseModel | None = None
    result: StageResult | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: BaseModel, result: StageResult) -> "StageOutcome":
        return cls(OutcomeKind.OK, value=value, result=result)

    @classmethod
    def fallback(cls, value: BaseModel, result: StageResult) -> "StageOutcome":
        return cls(OutcomeKind.FALLBACK, value=value, result=result, reason=result.error)

    @classmethod
    def err(cls, reason: str) -> "StageOutcome":
        return cls(OutcomeKind.ERR, reason=reason)

    @property
    def is_err(self) -> bool:
        return self.kind == OutcomeKind.ERR


class StageRunner:
    """Runs one stage agent against the context built so far.

    Failure of the generation call (exception, timeout, malformed JSON,
    shape violation) is retried once, then the agent's deterministic
    fallback is substituted.
    """

    def __init__(
        self,
        agents: dict[Stage, StageAgent],
        timeout: float | None = 120.0,
        retries: int = 1,
    ) -> None:
        """Initialize the runner.

        Args:
            agents: One agent per stage
            timeout: Per-call timeout in seconds (None disables)
            retries: Extra attempts after the first, capped so a stage makes
                at most two calls
        """
        self.agents = agents
        self.timeout = timeout
        self.max_attempts = max(1, min(MAX_ATTEMPTS, 1 + retries))

    async def run(self, stage: Stage, context: PipelineContext) -> StageOutcome:
        """Execute one stage.

        Args:
            stage: Stage to run
            context: Accumulated context; never modified

        Returns:
            StageOutcome. Never raises for generation failures.
        """
        agent = self.agents.get(stage)
        if agent is None:
            return StageOutcome.err(f"No agent registered for stage {stage.value}")

        started_at = datetime.now()
        start_time = agent._log_run_start(context)

        if not agent.needs_generation(context):
            try:
                value = agent.validate(agent.skipped_output(context))
            except Exception as e:
                logger.exception("Stage %s could not build its skipped output", stage.value)
                return StageOutcome.err(f"{stage.value} skipped output failed: {e}")
            logger.info("Stage %s needs no generation call", stage.value)
            result = self._result(stage, value, started_at, succeeded=True, attempts=0)
            agent._log_run_end(start_time, used_fallback=False, attempts=0)
            return StageOutcome.ok(value, result)

        degraded: StageDegraded | None = None
        attempts = 0
        while attempts < self.max_attempts:
            attempts += 1
            try:
                value = await self._attempt(agent, context)
            except Exception as e:
                degraded = StageDegraded(stage.value, f"{type(e).__name__}: {e}")
                logger.warning(
                    "Stage %s attempt %d/%d failed: %s",
                    stage.value,
                    attempts,
                    self.max_attempts,
                    degraded.reason,
                )
                continue

            result = self._result(stage, value, started_at, succeeded=True, attempts=attempts)
            agent._log_run_end(start_time, used_fallback=False, attempts=attempts)
            return StageOutcome.ok(value, result)

        try:
            value = agent.validate(agent.fallback(context))
        except Exception as e:
            logger.exception("Stage %s could not build its fallback", stage.value)
            return StageOutcome.err(f"{stage.value} fallback failed: {e}")

        result = self._result(
            stage,
            value,
            started_at,
            succeeded=False,
            attempts=attempts,
            used_fallback=True,
            error=degraded.reason if degraded else None,
        )
        agent._log_run_end(start_time, used_fallback=True, attempts=attempts)
        return StageOutcome.fallback(value, result)

    async def _attempt(self, agent: StageAgent, context: PipelineContext) -> BaseModel:
        if self.timeout:
            return await asyncio.wait_for(agent.generate(context), timeout=self.timeout)
        return await agent.generate(context)

    @staticmethod
    def _result(
        stage: Stage,
        value: BaseModel,
        started_at: datetime,
        succeeded: bool,
        attempts: int,
        used_fallback: bool = False,
        error: str | None = None,
    ) -> StageResult:
        return StageResult(
            stage_name=stage,
            output=value.model_dump(mode="json"),
            succeeded=succeeded,
            used_fallback=used_fallback,
            attempts=attempts,
            error=error,
            started_at=started_at,
            completed_at=datetime.now(),
        )
