"""OpenAI backend implementation for GPT models."""

import os
from typing import Any

from openai import APIConnectionError, APIError, APITimeoutError, AsyncOpenAI

from .base import GenerationError, LLMBackend


class OpenAIBackend(LLMBackend):
    """OpenAI backend for GPT model inference.

    Requires OPENAI_API_KEY environment variable.
    See: https://platform.openai.com/docs/api-reference
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 120,
        **kwargs: Any,
    ) -> None:
        """Initialize OpenAI backend.

        Args:
            model: Default model to use (gpt-4o, gpt-4o-mini, etc.)
            api_key: API key (defaults to OPENAI_API_KEY env var)
            base_url: Optional base URL override (for Azure or proxies)
            timeout: Request timeout in seconds
        """
        self.model = model
        self.timeout = timeout

        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self._api_key:
            raise ValueError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        client_kwargs: dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": timeout,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = AsyncOpenAI(**client_kwargs)

    async def achat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Send a chat completion request to OpenAI.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model override (uses instance default if not specified)
            temperature: Sampling temperature (0.0-2.0)
            max_tokens: Maximum tokens in response
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            The assistant's response content.
        """
        request_kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }

        if max_tokens is not None:
            request_kwargs["max_tokens"] = max_tokens

        for key in ["top_p", "presence_penalty", "frequency_penalty", "stop"]:
            if key in kwargs:
                request_kwargs[key] = kwargs[key]

        try:
            response = await self._client.chat.completions.create(**request_kwargs)
        except APITimeoutError as e:
            raise TimeoutError(f"OpenAI request timed out: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Failed to connect to OpenAI API: {e}") from e
        except APIError as e:
            raise GenerationError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise GenerationError("OpenAI returned empty response")

        content = response.choices[0].message.content
        if content is None:
            raise GenerationError("OpenAI returned null content")

        return content

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def has_api_key() -> bool:
        """Check if OpenAI API key is configured."""
        return bool(os.environ.get("OPENAI_API_KEY"))

    def __repr__(self) -> str:
        return f"OpenAIBackend(model={self.model!r})"
