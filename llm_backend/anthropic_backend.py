"""Anthropic backend implementation for Claude models."""

import os
from typing import Any

from anthropic import APIConnectionError, APIError, APITimeoutError, AsyncAnthropic

from .base import GenerationError, LLMBackend


class AnthropicBackend(LLMBackend):
    """Anthropic backend for Claude model inference.

    Requires ANTHROPIC_API_KEY environment variable.
    See: https://docs.anthropic.com/en/api/getting-started
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        timeout: int = 120,
        max_tokens: int = 8192,
        **kwargs: Any,
    ) -> None:
        """Initialize Anthropic backend.

        Args:
            model: Default model to use
            api_key: API key (defaults to ANTHROPIC_API_KEY env var)
            timeout: Request timeout in seconds
            max_tokens: Default max tokens for responses
        """
        self.model = model
        self.timeout = timeout
        self.default_max_tokens = max_tokens

        # Get API key from param or environment
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError(
                "Anthropic API key not found. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self._client = AsyncAnthropic(api_key=self._api_key, timeout=timeout)

    async def achat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Send a chat completion request to Anthropic.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model override (uses instance default if not specified)
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens in response
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            The assistant's response content.
        """
        # Anthropic requires system message to be separate
        system_message = None
        chat_messages = []

        for msg in messages:
            if msg["role"] == "system":
                if system_message:
                    system_message += "\n\n" + msg["content"]
                else:
                    system_message = msg["content"]
            else:
                chat_messages.append({"role": msg["role"], "content": msg["content"]})

        if chat_messages and chat_messages[0]["role"] != "user":
            chat_messages.insert(0, {"role": "user", "content": "Please assist me."})

        request_kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": chat_messages,
            "max_tokens": max_tokens or self.default_max_tokens,
            "temperature": temperature,
        }

        if system_message:
            request_kwargs["system"] = system_message

        for key in ["top_p", "top_k", "stop_sequences"]:
            if key in kwargs:
                request_kwargs[key] = kwargs[key]

        try:
            response = await self._client.messages.create(**request_kwargs)
        except APITimeoutError as e:
            raise TimeoutError(f"Anthropic request timed out: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Failed to connect to Anthropic API: {e}") from e
        except APIError as e:
            raise GenerationError(f"Anthropic API error: {e}") from e

        text_content = [block.text for block in response.content if hasattr(block, "text")]
        if not text_content:
            raise GenerationError("Anthropic returned no text content")

        return "\n".join(text_content)

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def has_api_key() -> bool:
        """Check if Anthropic API key is configured."""
        return bool(os.environ.get("ANTHROPIC_API_KEY"))

    def __repr__(self) -> str:
        return f"AnthropicBackend(model={self.model!r})"
