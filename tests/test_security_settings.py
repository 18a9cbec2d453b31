import pytest

from session_monitor.config.settings import Settings


def _set_required_env(monkeypatch) -> None:
    monkeypatch.setenv("API_TOKEN", "test-api")
    monkeypatch.setenv("METRICS_TOKEN", "test-metrics")


def test_production_requires_security_settings(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    for key in ["API_TOKEN", "METRICS_TOKEN"]:
        monkeypatch.delenv(key, raising=False)

    with pytest.raises(ValueError) as excinfo:
        Settings(_env_file=None)

    message = str(excinfo.value)
    assert "API_TOKEN" in message
    assert "METRICS_TOKEN" in message


def test_production_allows_with_required_settings(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    _set_required_env(monkeypatch)

    settings = Settings(_env_file=None)
    assert settings.app_env == "production"


def test_history_defaults(monkeypatch):
    monkeypatch.delenv("HISTORY_MAX_SNAPSHOTS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.history_max_snapshots == 10000
    assert settings.history_query_default_count == 100
    assert settings.history_query_max_count == 10000
    assert settings.deployment_window_default_minutes == 5
    assert settings.deployment_window_default_lookback_hours == 24


def test_history_capacity_from_env(monkeypatch):
    monkeypatch.setenv("HISTORY_MAX_SNAPSHOTS", "250")

    settings = Settings(_env_file=None)

    assert settings.history_max_snapshots == 250


def test_history_capacity_must_be_positive(monkeypatch):
    monkeypatch.setenv("HISTORY_MAX_SNAPSHOTS", "0")

    with pytest.raises(ValueError):
        Settings(_env_file=None)
