"""Tests for settings parsing."""

from hedger.config import DEFAULT_GROQ_MODELS, Settings


def test_defaults(monkeypatch):
    for name in ("GROQ_API_KEY", "GROK_API_KEY", "GROQ_MODELS", "HTTP_TIMEOUT", "DEBUG"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.groq_api_key == ""
    assert settings.groq_models == DEFAULT_GROQ_MODELS
    assert settings.groq_base_url == "https://api.groq.com/openai/v1"
    assert settings.http_timeout == 30.0
    assert settings.debug is False


def test_grok_key_fallback(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.setenv("GROK_API_KEY", "legacy-key")
    assert Settings().groq_api_key == "legacy-key"


def test_model_list_and_malformed_numbers(monkeypatch):
    monkeypatch.setenv("GROQ_MODELS", " model-x , ,model-y ")
    monkeypatch.setenv("HTTP_TIMEOUT", "soon")
    monkeypatch.setenv("POLYMARKET_EVENT_LIMIT", "25")
    monkeypatch.setenv("DEBUG", "yes")

    settings = Settings()

    assert settings.groq_models == ["model-x", "model-y"]
    assert settings.http_timeout == 30.0
    assert settings.polymarket_event_limit == 25
    assert settings.debug is True


def test_snaptrade_configured(monkeypatch):
    monkeypatch.setenv("SNAPTRADE_CLIENT_ID", "id")
    monkeypatch.delenv("SNAPTRADE_CONSUMER_KEY", raising=False)
    assert Settings().snaptrade_configured is False
