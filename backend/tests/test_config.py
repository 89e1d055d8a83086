import backend.app.config as config_module
from backend.app.config import DEFAULT_TIMEOUT_SECONDS, Settings, load_settings


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)
    monkeypatch.setenv("YOUTUBE_API_KEY", "  from-env  ")
    monkeypatch.setenv("YOUTUBE_TIMEOUT_SECONDS", "4.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.youtube_api_key == "from-env"
    assert settings.youtube_timeout_seconds == 4.5
    assert settings.log_level == "DEBUG"


def test_load_settings_defaults(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)
    monkeypatch.setenv("YOUTUBE_API_KEY", "   ")
    monkeypatch.setenv("YOUTUBE_TIMEOUT_SECONDS", "soon")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    settings = load_settings()

    assert settings.youtube_api_key is None
    assert settings.youtube_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert settings.log_level == "INFO"


def test_explicit_values_override_environment(monkeypatch):
    monkeypatch.setenv("YOUTUBE_API_KEY", "from-env")
    monkeypatch.setenv("YOUTUBE_TIMEOUT_SECONDS", "-1")

    settings = Settings(youtube_api_key=None)

    assert settings.youtube_api_key is None
    assert settings.youtube_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
