"""Configuration management for CTO Studio.

Loads configuration from:
1. config.toml (defaults)
2. Environment variables (overrides)
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class LLMConfig:
    """LLM backend configuration."""

    backend: str = "auto"  # "auto", "ollama", "openai", "anthropic"
    model: str | None = None  # None = backend default
    base_url: str | None = None  # OpenAI-compatible endpoint override
    ollama_base_url: str | None = None
    timeout: int = 120
    temperature: float = 0.7
    max_tokens: int | None = None

    def backend_kwargs(self, kind: str) -> dict[str, Any]:
        """Keyword arguments for ``llm_backend.get_backend``.

        Args:
            kind: Resolved backend name. Each backend only receives the
                  endpoint configured for it.
        """
        kwargs: dict[str, Any] = {"model": self.model, "timeout": self.timeout}
        if kind == "ollama":
            kwargs["base_url"] = self.ollama_base_url or self.base_url
        elif kind == "openai":
            kwargs["base_url"] = self.base_url
        return kwargs


@dataclass
class PipelineConfig:
    """Pipeline execution configuration."""

    state_dir: str = ".cto-studio"
    log_level: str = "INFO"
    pacing_delay: float = 0.75  # Seconds between stages; 0 disables
    stage_timeout: float = 180.0  # Per generation call
    stage_retries: int = 1  # Extra attempts before fallback (capped at 1)


@dataclass
class Config:
    """Main configuration container."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        llm_data = data.get("llm", {})
        pipeline_data = data.get("pipeline", {})

        return cls(
            llm=LLMConfig(**llm_data),
            pipeline=PipelineConfig(**pipeline_data),
        )


def find_config_file() -> Path | None:
    """Find config.toml in current or parent directories.

    Returns:
        Path to config.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / "config.toml"
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        Config object with merged settings.
    """
    # Start with defaults
    config_data: dict[str, Any] = {}

    # Load from file if available
    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    # Apply environment variable overrides
    env_overrides = {
        "llm": {
            "backend": os.getenv("LLM_BACKEND"),
            "model": os.getenv("LLM_MODEL"),
            "ollama_base_url": os.getenv("OLLAMA_BASE_URL"),
            "timeout": _int_or_none(os.getenv("LLM_TIMEOUT")),
        },
        "pipeline": {
            "state_dir": os.getenv("CTO_STATE_DIR"),
            "log_level": os.getenv("LOG_LEVEL"),
            "pacing_delay": _float_or_none(os.getenv("CTO_PACING_DELAY")),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_or_none(value: str | None) -> float | None:
    """Convert string to float, or return None."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
