"""Metric helpers that log analyzer activity and can export to Prometheus."""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

try:  # pragma: no cover - optional dependency
    from prometheus_client import (
        CONTENT_TYPE_LATEST,
        CollectorRegistry,
        Counter as PromCounter,
        Histogram as PromHistogram,
        generate_latest,
    )

    _PROMETHEUS_AVAILABLE = True
except Exception:  # pragma: no cover - dependency missing
    CollectorRegistry = None  # type: ignore[assignment]
    PromCounter = None  # type: ignore[assignment]
    PromHistogram = None  # type: ignore[assignment]
    generate_latest = None  # type: ignore[assignment]
    CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"
    _PROMETHEUS_AVAILABLE = False


_PROM_NAME_RE = re.compile(r"[^a-zA-Z0-9_]")

_MetricKey = Tuple[str, Tuple[str, ...]]


class MetricsRecorder:
    """Record counters and timings as log lines, optionally in Prometheus too."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        namespace: str = "morphlens",
        logger: logging.Logger | None = None,
        prometheus_enabled: bool = False,
        registry: "CollectorRegistry | None" = None,
    ) -> None:
        self._enabled = enabled
        self._namespace = namespace.strip() or "morphlens"
        self._logger = logger or logging.getLogger("morphlens.metrics")
        self._prometheus_enabled = bool(prometheus_enabled and _PROMETHEUS_AVAILABLE)
        if registry is None and self._prometheus_enabled:
            registry = CollectorRegistry()
        self._registry = registry if self._prometheus_enabled else None
        self._counters: Dict[_MetricKey, Any] = {}
        self._histograms: Dict[_MetricKey, Any] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def prometheus_enabled(self) -> bool:
        return self._registry is not None

    @property
    def prometheus_content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def render_prometheus(self) -> bytes:
        if self._registry is None:
            raise RuntimeError("Prometheus export is disabled")
        return generate_latest(self._registry)

    def increment(self, metric: str, *, value: int = 1, **tags: Any) -> None:
        if not self._enabled:
            return
        tags = _drop_empty(tags)
        self._log(metric, {"value": int(value)}, tags)
        if self._registry is not None:
            counter = self._instrument(self._counters, PromCounter, metric, tags, "count")
            counter.labels(**_label_values(tags)).inc(max(int(value), 0))

    def record_timing(self, metric: str, duration_seconds: float, **tags: Any) -> None:
        if not self._enabled:
            return
        tags = _drop_empty(tags)
        duration = max(duration_seconds, 0.0)
        self._log(metric, {"duration_ms": round(duration * 1000.0, 4)}, tags)
        if self._registry is not None:
            histogram = self._instrument(self._histograms, PromHistogram, metric, tags, "duration")
            histogram.labels(**_label_values(tags)).observe(duration)

    @contextmanager
    def track_timing(self, metric: str, **tags: Any) -> Iterator[None]:
        """Time the wrapped block and record it even when it raises."""

        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_timing(metric, time.perf_counter() - start, **tags)

    def _log(self, metric: str, fields: Dict[str, Any], tags: Dict[str, Any]) -> None:
        pairs = sorted(fields.items()) + sorted(tags.items())
        message = f"{self._namespace}.{metric}"
        if pairs:
            message += " " + " ".join(f"{key}={_stringify(value)}" for key, value in pairs)
        self._logger.info(message)

    def _instrument(self, cache, factory, metric: str, tags: Dict[str, Any], kind: str):
        label_names = tuple(_sanitize(name) or "label" for name in sorted(tags))
        key = (metric, label_names)
        instrument = cache.get(key)
        if instrument is None:
            name = f"{_sanitize(self._namespace)}_{_sanitize(metric)}".strip("_")
            instrument = factory(
                name,
                f"{metric} {kind}",
                labelnames=list(label_names),
                registry=self._registry,
            )
            cache[key] = instrument
        return instrument


def _drop_empty(tags: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in tags.items() if value is not None}


def _label_values(tags: Dict[str, Any]) -> Dict[str, str]:
    return {_sanitize(key) or "label": _stringify(value) for key, value in tags.items()}


def _sanitize(name: str) -> str:
    return _PROM_NAME_RE.sub("_", name)


def _stringify(value: Any) -> str:
    if isinstance(value, float):
        return f"{int(value)}" if value.is_integer() else f"{value:.4f}"
    return str(value)
