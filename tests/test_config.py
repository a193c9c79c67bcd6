from __future__ import annotations

import pytest

from morphlens.config import Settings

_ENV_VARS = (
    "MECAB_DICTIONARY_PATH",
    "MECAB_USER_DICTIONARY_PATH",
    "MECAB_RC_PATH",
    "KEYWORD_MAX_RESULTS",
    "OBSERVABILITY_METRICS_ENABLED",
    "OBSERVABILITY_NAMESPACE",
    "OBSERVABILITY_PROMETHEUS_ENABLED",
    "MORPHLENS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings.from_env()

    assert settings.dictionary_path == "/usr/local/lib/mecab/dic/mecab-ko-dic"
    assert settings.user_dictionary_path is None
    assert settings.keyword_max_results == 3
    assert settings.observability_metrics_enabled is True
    assert settings.observability_prometheus_enabled is False
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MECAB_DICTIONARY_PATH", "/opt/mecab-ko-dic")
    monkeypatch.setenv("MECAB_USER_DICTIONARY_PATH", "/opt/user.dic")
    monkeypatch.setenv("KEYWORD_MAX_RESULTS", "7")
    monkeypatch.setenv("OBSERVABILITY_METRICS_ENABLED", "off")
    monkeypatch.setenv("MORPHLENS_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.dictionary_path == "/opt/mecab-ko-dic"
    assert settings.user_dictionary_path == "/opt/user.dic"
    assert settings.keyword_max_results == 7
    assert settings.observability_metrics_enabled is False
    assert settings.log_level == "DEBUG"


def test_negative_keyword_limit_is_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KEYWORD_MAX_RESULTS", "-2")
    assert Settings.from_env().keyword_max_results == 0


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("KEYWORD_MAX_RESULTS", "many", "must be an integer"),
        ("OBSERVABILITY_PROMETHEUS_ENABLED", "maybe", "must be a boolean"),
    ],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        Settings.from_env()


def test_build_metrics_recorder_follows_settings() -> None:
    recorder = Settings(observability_metrics_enabled=False, observability_namespace="ns").build_metrics_recorder()
    assert recorder.enabled is False
    assert recorder.prometheus_enabled is False
