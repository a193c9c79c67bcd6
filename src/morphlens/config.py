"""Configuration helpers for morphlens."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

try:  # pragma: no cover - optional dependency loaded at runtime
    from dotenv import load_dotenv
except Exception:  # pragma: no cover
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()

if TYPE_CHECKING:
    from .observability import MetricsRecorder
    from .tagger import MecabTagger

_DEFAULT_DICTIONARY_PATH: Final[str] = "/usr/local/lib/mecab/dic/mecab-ko-dic"
_DEFAULT_KEYWORD_MAX_RESULTS: Final[int] = 3
_DEFAULT_NAMESPACE: Final[str] = "morphlens"
_DEFAULT_LOG_LEVEL: Final[str] = "INFO"


def _env_optional_bool(name: str) -> bool | None:
    """Read an optional boolean environment variable."""

    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Environment variable {name} must be a boolean value (true/false).")


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = _env_optional_bool(name)
    return default if value is None else value


def _env_optional_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


@dataclass(slots=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    dictionary_path: str = _DEFAULT_DICTIONARY_PATH
    user_dictionary_path: str | None = None
    rcfile_path: str | None = None
    keyword_max_results: int = _DEFAULT_KEYWORD_MAX_RESULTS
    observability_metrics_enabled: bool = True
    observability_namespace: str = _DEFAULT_NAMESPACE
    observability_prometheus_enabled: bool = False
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings by reading environment variables."""

        keyword_max_results = _env_optional_int("KEYWORD_MAX_RESULTS")
        if keyword_max_results is None:
            keyword_max_results = _DEFAULT_KEYWORD_MAX_RESULTS

        return cls(
            dictionary_path=_env_optional_str("MECAB_DICTIONARY_PATH") or _DEFAULT_DICTIONARY_PATH,
            user_dictionary_path=_env_optional_str("MECAB_USER_DICTIONARY_PATH"),
            rcfile_path=_env_optional_str("MECAB_RC_PATH"),
            keyword_max_results=max(0, keyword_max_results),
            observability_metrics_enabled=_env_bool("OBSERVABILITY_METRICS_ENABLED", True),
            observability_namespace=os.getenv("OBSERVABILITY_NAMESPACE", _DEFAULT_NAMESPACE),
            observability_prometheus_enabled=_env_bool("OBSERVABILITY_PROMETHEUS_ENABLED", False),
            log_level=(os.getenv("MORPHLENS_LOG_LEVEL") or _DEFAULT_LOG_LEVEL).strip().upper(),
        )

    def build_metrics_recorder(self) -> "MetricsRecorder":
        """Instantiate the configured metrics recorder."""

        from .observability import MetricsRecorder

        return MetricsRecorder(
            enabled=self.observability_metrics_enabled,
            namespace=self.observability_namespace,
            prometheus_enabled=self.observability_prometheus_enabled,
        )

    def build_tagger(self) -> "MecabTagger":
        """Create a MeCab tagger for the configured dictionary."""

        from .tagger import MecabTagger

        return MecabTagger(
            self.dictionary_path,
            user_dictionary_path=self.user_dictionary_path,
            rcfile_path=self.rcfile_path,
        )
