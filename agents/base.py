"""Base agent class for all generation stage agents."""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel

from schemas.pipeline_state import PipelineContext, Stage


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for generation backends.

    Any client implementing this protocol can be used with agents.
    """

    async def invoke(
        self,
        prompt: str,
        schema: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Run one generation call.

        Args:
            prompt: User prompt
            schema: Optional JSON schema for a structured response
            system_prompt: Optional system prompt

        Returns:
            Parsed structured value, or text when no schema is given.
        """
        ...


class StageAgent(ABC):
    """Abstract base class for generation stage agents.

    Each agent follows the pattern:
    - A stage and a declared output model
    - System prompt (defines role and behavior)
    - A prompt built purely from the pipeline context
    - A deterministic fallback with the same output shape

    Example:
        class MyAgent(StageAgent):
            stage = Stage.PAGES
            output_model = CorePages

            def build_prompt(self, context: PipelineContext) -> str:
                return "Generate pages"

            def fallback(self, context: PipelineContext) -> CorePages:
                return CorePages(pages=[])

        agent = MyAgent(llm=my_llm)
        output = await agent.generate(context)
    """

    stage: ClassVar[Stage]
    output_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        llm: LLMProtocol,
        name: str | None = None,
        system_prompt: str | None = None,
        logger: logging.Logger | None = None,
        generation_kwargs: dict[str, Any] | None = None,
    ) -> None:
        """Initialize agent.

        Args:
            llm: Generation backend (must implement LLMProtocol)
            name: Agent identifier (defaults to class name)
            system_prompt: Override default system prompt
            logger: Optional logger instance
            generation_kwargs: Passed to every backend call (temperature, max_tokens)
        """
        self.llm = llm
        self.generation_kwargs = {k: v for k, v in (generation_kwargs or {}).items() if v is not None}
        self.name = name or self.__class__.__name__
        self.system_prompt = system_prompt or self.default_system_prompt()
        self.logger = logger or logging.getLogger(f"agent.{self.name}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(stage={self.stage.value!r})"

    @abstractmethod
    def default_system_prompt(self) -> str:
        """Return the default system prompt for this agent."""
        ...

    @abstractmethod
    def build_prompt(self, context: PipelineContext) -> str:
        """Build the stage request from the context built so far.

        Args:
            context: Accumulated pipeline context

        Returns:
            Prompt string.
        """
        ...

    @abstractmethod
    def fallback(self, context: PipelineContext) -> BaseModel:
        """Minimal well-formed output used when generation fails.

        Must be deterministic for a given context and must not call the
        backend.
        """
        ...

    def output_schema(self) -> dict[str, Any]:
        return self.output_model.model_json_schema()

    def needs_generation(self, context: PipelineContext) -> bool:
        """Whether this stage calls the backend at all for ``context``."""
        return True

    def skipped_output(self, context: PipelineContext) -> BaseModel:
        """Output used when ``needs_generation`` is False."""
        return self.fallback(context)

    async def generate(self, context: PipelineContext, **kwargs: Any) -> BaseModel:
        """Make one generation call and validate the response.

        Raises:
            pydantic.ValidationError: If the response violates the output shape
            GenerationError: If the backend fails or returns non-JSON content
        """
        prompt = self.build_prompt(context)
        self.logger.debug("Invoking backend for %s (%d chars)", self.stage.value, len(prompt))
        raw = await self.llm.invoke(
            prompt,
            schema=self.output_schema(),
            system_prompt=self.system_prompt,
            **{**self.generation_kwargs, **kwargs},
        )
        return self.validate(raw)

    def validate(self, raw: Any) -> BaseModel:
        """Coerce a raw response into the stage's output model."""
        return self.output_model.model_validate(raw)

    @staticmethod
    def _dump(model: BaseModel | None) -> str:
        if model is None:
            return "{}"
        return json.dumps(model.model_dump(mode="json"), indent=2)

    def _log_run_start(self, context: PipelineContext) -> float:
        """Log run start and return start time."""
        self.logger.info(
            "Starting %s (filled slots: %s)",
            self.name,
            context.filled_slots(),
        )
        return time.time()

    def _log_run_end(self, start_time: float, used_fallback: bool, attempts: int) -> None:
        """Log run completion."""
        duration = time.time() - start_time
        if used_fallback:
            self.logger.warning(
                "Completed %s with fallback in %.2fs after %d attempt(s)",
                self.name,
                duration,
                attempts,
            )
        else:
            self.logger.info(
                "Completed %s in %.2fs (attempts: %d)",
                self.name,
                duration,
                attempts,
            )
