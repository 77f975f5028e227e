"""Tests for settings loading."""

from daylight.config import LLMSettings, Settings


def test_llm_provider_is_read_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openrouter")

    assert LLMSettings().provider == "openrouter"


def test_provider_lives_only_on_the_llm_group():
    assert not hasattr(Settings, "llm_provider")
