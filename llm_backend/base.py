"""Abstract base class for LLM backends."""

import json
from abc import ABC, abstractmethod
from typing import Any

from utils.json_repair import parse_llm_json


JSON_INSTRUCTION = (
    "Respond ONLY with a valid JSON object matching this JSON schema. "
    "No markdown fences, no commentary.\n\nSchema:\n{schema}"
)


class GenerationError(RuntimeError):
    """The generation call failed or returned unusable content."""


class LLMBackend(ABC):
    """Abstract interface for LLM providers.

    All LLM backends must implement this interface to ensure
    consistent behavior across different providers. ``invoke`` is the
    single I/O boundary the pipeline depends on.
    """

    model: str = ""

    @abstractmethod
    async def achat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
                     Roles: "system", "user", "assistant"
            model: Optional model override (uses default if not specified)
            temperature: Sampling temperature (0.0-2.0)
            max_tokens: Maximum tokens in response
            **kwargs: Provider-specific parameters

        Returns:
            The assistant's response content as a string.

        Raises:
            ConnectionError: If unable to connect to the backend
            TimeoutError: If the request times out
            GenerationError: If the backend returns an error
        """
        ...

    async def invoke(
        self,
        prompt: str,
        schema: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Run a single generation call.

        Args:
            prompt: User prompt
            schema: Optional JSON schema the response should follow
            system_prompt: Optional system prompt
            **kwargs: Passed through to ``achat``

        Returns:
            Parsed JSON value when a schema is given, raw text otherwise.

        Raises:
            GenerationError: If the response cannot be parsed as JSON
        """
        system = system_prompt or ""
        if schema is not None:
            instruction = JSON_INSTRUCTION.format(schema=json.dumps(schema))
            system = f"{system}\n\n{instruction}" if system else instruction

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        text = await self.achat(messages, **kwargs)
        if schema is None:
            return text

        result = parse_llm_json(text, default=None)
        if result is None:
            raise GenerationError(f"{self!r} returned non-JSON content ({len(text)} chars)")
        return result

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
