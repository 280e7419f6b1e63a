from __future__ import annotations

from unittest.mock import patch

import pytest

from app.chat.contracts import ChatMessage, Role
from app.chat.llm import ChatFallback
from app.chat.prompts import ENS_SYSTEM_PROMPT, ens_fallback
from app.config import get_settings


def _fallback():
    return ChatFallback(settings=get_settings(), system_prompt=ENS_SYSTEM_PROMPT, canned=ens_fallback)


def test_disabled_returns_canned_reply():
    fallback = _fallback()
    assert fallback.enabled is False
    reply = fallback.reply("hello", history=[])
    assert reply.fallback is True
    assert reply.text == ens_fallback("hello")


@pytest.fixture
def llm_env(monkeypatch):
    monkeypatch.setenv("LLM_ENABLED", "true")
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.use_llm
def test_provider_failure_degrades(llm_env):
    with patch("llm.client.LLMClient._call_openai", side_effect=RuntimeError("rate limited")):
        reply = _fallback().reply("tell me a joke", history=[])
    assert reply.fallback is True
    assert reply.text == ens_fallback("tell me a joke")


@pytest.mark.use_llm
def test_recent_history_is_sent(llm_env, monkeypatch):
    monkeypatch.setenv("LLM_HISTORY_TURNS", "2")
    get_settings.cache_clear()
    history = [ChatMessage(role=Role.USER, content=str(i)) for i in range(5)]
    history.append(ChatMessage(role=Role.ASSISTANT, content="last"))

    with patch("llm.client.LLMClient._call_openai", return_value="ENS is a naming system.") as call:
        reply = _fallback().reply("what is ens", history=history, user_address="0xabc")

    assert reply.fallback is False
    assert reply.text == "ENS is a naming system."
    prompt = call.call_args.kwargs["prompt"]
    assert prompt["system"] == ENS_SYSTEM_PROMPT
    assert prompt["history"] == [
        {"role": "user", "content": "4"},
        {"role": "assistant", "content": "last"},
    ]
    assert "User address: 0xabc" in prompt["user"]
