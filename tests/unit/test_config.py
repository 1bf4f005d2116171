"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from tidings.config import DEFAULT_TOPIC, TidingsConfig

_ENV_VARS = (
    "TIDINGS_TOPIC",
    "TIDINGS_DATABASE_URL",
    "TIDINGS_BROKER_URL",
    "TIDINGS_HOST",
    "TIDINGS_PORT",
    "TIDINGS_LOG_LEVEL",
    "TIDINGS_STORE_TIMEOUT_SECONDS",
    "TIDINGS_MAX_RETRIES",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every TIDINGS_* variable for the duration of a test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_when_environment_is_empty(clean_env: pytest.MonkeyPatch) -> None:
    """Unset variables produce the documented defaults."""
    config = TidingsConfig.from_env()

    assert config == TidingsConfig(), "expected default configuration"
    assert config.topic_name == DEFAULT_TOPIC, "expected default topic"
    assert config.port == 3000, "expected default port"
    assert config.store_timeout_seconds == pytest.approx(10.0), (
        "expected 10 second store timeout"
    )


def test_reads_every_variable(clean_env: pytest.MonkeyPatch) -> None:
    """Each TIDINGS_* variable maps onto its field."""
    clean_env.setenv("TIDINGS_TOPIC", "activity")
    clean_env.setenv("TIDINGS_DATABASE_URL", "postgresql+asyncpg://db/tidings")
    clean_env.setenv("TIDINGS_BROKER_URL", "redis://broker:6379/1")
    clean_env.setenv("TIDINGS_HOST", "127.0.0.1")
    clean_env.setenv("TIDINGS_PORT", "8080")
    clean_env.setenv("TIDINGS_LOG_LEVEL", "debug")
    clean_env.setenv("TIDINGS_STORE_TIMEOUT_SECONDS", "2.5")
    clean_env.setenv("TIDINGS_MAX_RETRIES", "0")

    config = TidingsConfig.from_env()

    assert config == TidingsConfig(
        topic_name="activity",
        database_url="postgresql+asyncpg://db/tidings",
        broker_url="redis://broker:6379/1",
        host="127.0.0.1",
        port=8080,
        log_level="debug",
        store_timeout_seconds=2.5,
        max_retries=0,
    ), "expected every variable to be honoured"


def test_blank_values_fall_back_to_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Whitespace-only values are treated as unset."""
    clean_env.setenv("TIDINGS_TOPIC", "   ")
    clean_env.setenv("TIDINGS_PORT", "")

    config = TidingsConfig.from_env()

    assert config.topic_name == DEFAULT_TOPIC, "expected default topic"
    assert config.port == 3000, "expected default port"


@pytest.mark.parametrize(
    ("env_var", "value"),
    [
        ("TIDINGS_PORT", "http"),
        ("TIDINGS_PORT", "0"),
        ("TIDINGS_PORT", "70000"),
        ("TIDINGS_STORE_TIMEOUT_SECONDS", "soon"),
        ("TIDINGS_STORE_TIMEOUT_SECONDS", "0"),
        ("TIDINGS_MAX_RETRIES", "-1"),
        ("TIDINGS_MAX_RETRIES", "many"),
    ],
)
def test_invalid_values_name_the_variable(
    clean_env: pytest.MonkeyPatch, env_var: str, value: str
) -> None:
    """Unparseable or out-of-range numbers raise ValueError naming the variable."""
    clean_env.setenv(env_var, value)

    with pytest.raises(ValueError, match=env_var):
        TidingsConfig.from_env()
