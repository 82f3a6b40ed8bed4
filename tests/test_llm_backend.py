"""Tests for llm_backend: shared invoke() and backend selection."""

import pytest

from llm_backend import GenerationError, OllamaBackend, detect_backend, get_backend
from llm_backend.base import LLMBackend


class ScriptedBackend(LLMBackend):
    model = "scripted"

    def __init__(self, reply):
        self.reply = reply
        self.messages = None
        self.kwargs = None

    async def achat(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.messages = messages
        self.kwargs = {"temperature": temperature, "max_tokens": max_tokens, **kwargs}
        return self.reply


async def test_invoke_parses_json_reply():
    backend = ScriptedBackend('```json\n{"pages": []}\n```')
    result = await backend.invoke("Build pages", schema={"title": "CorePages"}, system_prompt="Be terse")

    assert result == {"pages": []}
    system = backend.messages[0]
    assert system["role"] == "system"
    assert system["content"].startswith("Be terse")
    assert '"title": "CorePages"' in system["content"]
    assert backend.messages[1] == {"role": "user", "content": "Build pages"}


async def test_invoke_without_schema_returns_text():
    backend = ScriptedBackend("plain text")
    assert await backend.invoke("hi") == "plain text"
    assert backend.messages == [{"role": "user", "content": "hi"}]


async def test_invoke_rejects_non_json():
    backend = ScriptedBackend("Sorry, I can't do that.")
    with pytest.raises(GenerationError):
        await backend.invoke("Build pages", schema={"title": "CorePages"})


async def test_invoke_passes_generation_kwargs():
    backend = ScriptedBackend("{}")
    await backend.invoke("x", schema={}, temperature=0.1, max_tokens=50)
    assert backend.kwargs == {"temperature": 0.1, "max_tokens": 50}


def test_detect_backend(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert detect_backend() == "ollama"

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert detect_backend() == "openai"

    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    assert detect_backend() == "anthropic"


def test_get_backend_ollama_drops_none_kwargs():
    backend = get_backend("ollama", model=None, base_url=None, timeout=30)
    assert isinstance(backend, OllamaBackend)
    assert backend.model == "llama3.1:8b"


def test_get_backend_unknown():
    with pytest.raises(ValueError):
        get_backend("mystery")
