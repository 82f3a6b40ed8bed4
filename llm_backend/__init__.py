"""LLM Backend abstraction layer.

Provides a unified interface for different LLM providers.
Supports auto-detection based on available API keys.

Priority order for "auto" mode:
1. Anthropic (if ANTHROPIC_API_KEY set)
2. OpenAI (if OPENAI_API_KEY set)
3. Ollama (local fallback)
"""

import logging
import os

from .base import GenerationError, LLMBackend
from .ollama_backend import OllamaBackend

logger = logging.getLogger(__name__)

__all__ = [
    "GenerationError",
    "LLMBackend",
    "OllamaBackend",
    "get_backend",
    "detect_backend",
]


def _get_openai_backend():
    """Lazy import OpenAI backend."""
    from .openai_backend import OpenAIBackend
    return OpenAIBackend


def _get_anthropic_backend():
    """Lazy import Anthropic backend."""
    from .anthropic_backend import AnthropicBackend
    return AnthropicBackend


def detect_backend() -> str:
    """Auto-detect the best available backend based on API keys.

    Returns:
        Backend name: "anthropic", "openai", or "ollama"
    """
    if os.environ.get("ANTHROPIC_API_KEY"):
        logger.info("Auto-detected: Anthropic API key found")
        return "anthropic"

    if os.environ.get("OPENAI_API_KEY"):
        logger.info("Auto-detected: OpenAI API key found")
        return "openai"

    logger.info("Auto-detected: No API keys found, using Ollama (local)")
    return "ollama"


def get_backend(kind: str, **kwargs) -> LLMBackend:
    """Factory function to get an LLM backend instance.

    Args:
        kind: Backend type ("auto", "ollama", "openai", "anthropic")
              "auto" will detect based on available API keys
        **kwargs: Backend-specific configuration. ``None`` values are dropped
              so backend defaults apply.

    Returns:
        LLMBackend instance

    Raises:
        ValueError: If backend type is unknown or its API key is missing
    """
    if kind == "auto":
        kind = detect_backend()
        logger.info("Auto-selected backend: %s", kind)

    kwargs = {k: v for k, v in kwargs.items() if v is not None}

    if kind == "ollama":
        return OllamaBackend(**kwargs)
    elif kind == "openai":
        cls = _get_openai_backend()
        return cls(**kwargs)
    elif kind == "anthropic":
        kwargs.pop("base_url", None)
        cls = _get_anthropic_backend()
        return cls(**kwargs)
    else:
        available = "auto, ollama, openai, anthropic"
        raise ValueError(f"Unknown LLM backend: {kind}. Available: {available}")
