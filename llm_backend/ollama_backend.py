"""Ollama backend implementation for local LLM inference."""

from typing import Any

import httpx

from .base import GenerationError, LLMBackend


class OllamaBackend(LLMBackend):
    """Ollama backend for local LLM execution.

    Connects to a local Ollama server for inference.
    See: https://ollama.ai/
    """

    def __init__(
        self,
        model: str = "llama3.1:8b",
        base_url: str = "http://localhost:11434",
        timeout: int = 600,
        **kwargs: Any,
    ) -> None:
        """Initialize Ollama backend.

        Args:
            model: Default model to use for requests
            base_url: Ollama server URL
            timeout: Request timeout in seconds
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def achat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Send a chat completion request to Ollama.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            model: Model override (uses instance default if not specified)
            temperature: Sampling temperature
            max_tokens: Maximum tokens (mapped to num_predict in Ollama)
            **kwargs: Additional Ollama-specific options

        Returns:
            The assistant's response content.
        """
        payload: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
            },
        }

        if max_tokens is not None:
            payload["options"]["num_predict"] = max_tokens

        payload["options"].update(kwargs.get("options", {}))

        try:
            response = await self._client.post("/api/chat", json=payload)
            response.raise_for_status()
        except httpx.ConnectError as e:
            raise ConnectionError(
                f"Failed to connect to Ollama at {self.base_url}. "
                "Is Ollama running? Try: ollama serve"
            ) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Ollama request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise GenerationError(f"Ollama returned an error: {e}") from e

        data = response.json()

        # Ollama returns {"message": {"role": "assistant", "content": "..."}}
        if "message" not in data or "content" not in data["message"]:
            raise GenerationError(f"Unexpected Ollama response format: {data}")

        return data["message"]["content"]

    async def aclose(self) -> None:
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"OllamaBackend(model={self.model!r}, base_url={self.base_url!r})"
