import pytest

from textaudit.core.config import Settings

_KEY_VARS = ("GROQ_API_KEY", "API_KEY", "GEMINI_API_KEY")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _KEY_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize("env_var", _KEY_VARS)
def test_settings_reads_api_key_from_any_supported_variable(monkeypatch, env_var):
    monkeypatch.setenv(env_var, " gsk_from_env ")

    settings = Settings()

    assert settings.groq_api_key == "gsk_from_env"
    assert settings.has_api_key


def test_groq_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("API_KEY", "generic")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_specific")

    assert Settings().groq_api_key == "gsk_specific"


def test_placeholder_key_is_not_usable(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk_PLACEHOLDER")
    assert not Settings().has_api_key


def test_engine_defaults():
    settings = Settings()

    assert settings.engine_max_attempts == 3
    assert settings.engine_backoff_base_seconds == 0.5
    assert settings.engine_min_text_chars == 10
    assert settings.audit_min_text_chars == 100
    assert settings.groq_model == "llama-3.3-70b-versatile"


def test_settings_bounds_engine_values(monkeypatch):
    monkeypatch.setenv("ENGINE_MAX_ATTEMPTS", "0")
    monkeypatch.setenv("ENGINE_BACKOFF_BASE_SECONDS", "-2")

    settings = Settings()

    assert settings.engine_max_attempts == 1
    assert settings.engine_backoff_base_seconds == 0.0


@pytest.mark.parametrize(("raw", "expected"), [("debug", "DEBUG"), (" warning ", "WARNING"), ("loud", "INFO")])
def test_settings_normalizes_log_level(monkeypatch, raw, expected):
    monkeypatch.setenv("LOG_LEVEL", raw)
    assert Settings().log_level == expected


def test_settings_strips_trailing_slash_from_base_url(monkeypatch):
    monkeypatch.setenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1/")
    assert Settings().groq_base_url == "https://api.groq.com/openai/v1"


@pytest.mark.parametrize(
    ("raw_origins", "expected"),
    [
        ("https://audit.example.com/", ["https://audit.example.com"]),
        ("audit.example.com", ["https://audit.example.com"]),
        (
            "https://audit.example.com, http://localhost:3000/",
            ["https://audit.example.com", "http://localhost:3000"],
        ),
        (
            '["https://audit.example.com/","http://localhost:3000"]',
            ["https://audit.example.com", "http://localhost:3000"],
        ),
    ],
)
def test_settings_normalizes_cors_origins(monkeypatch, raw_origins, expected):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", raw_origins)

    assert Settings().cors_origins == expected
