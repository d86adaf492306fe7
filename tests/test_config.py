from __future__ import annotations

from trackgate.config import NETWORK_TIMEOUT, load_settings


def test_defaults():
    settings = load_settings()

    assert settings.network_timeout == NETWORK_TIMEOUT
    assert settings.enable_analytics is True
    assert settings.redis_url is None
    assert settings.prometheus_port is None
    assert settings.workers == 2


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("TRACKGATE_QUEUE_SIZE", "lots")
    monkeypatch.setenv("TRACKGATE_DRAIN_TIMEOUT", "soon")
    monkeypatch.setenv("TRACKGATE_PROMETHEUS_PORT", "metrics")
    monkeypatch.setenv("TRACKGATE_WORKERS", "0")

    settings = load_settings()

    assert settings.queue_size == 1000
    assert settings.drain_timeout == 5.0
    assert settings.prometheus_port is None
    assert settings.workers == 1


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TRACKGATE_TRACKING_KEY", "UA-ENV-1")
    monkeypatch.setenv("TRACKGATE_NETWORK_TIMEOUT", "30")
    monkeypatch.setenv("TRACKGATE_ENABLE_ANALYTICS", "off")
    monkeypatch.setenv("TRACKGATE_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.tracking_key == "UA-ENV-1"
    assert settings.network_timeout == 30
    assert settings.enable_analytics is False
    assert settings.log_level == "DEBUG"


def test_non_positive_queue_size_is_clamped(monkeypatch):
    monkeypatch.setenv("TRACKGATE_QUEUE_SIZE", "-5")

    assert load_settings().queue_size == 1

    load_settings.cache_clear()
    monkeypatch.setenv("TRACKGATE_QUEUE_SIZE", "0")

    assert load_settings().queue_size == 1
