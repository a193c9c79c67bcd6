"""FastAPI application exposing the morphlens analyzer over HTTP."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from .analyzer import MorphAnalyzer
from .config import Settings
from .observability import MetricsRecorder
from .tagger import TaggerError

logger = logging.getLogger(__name__)


_LOGGING_CONFIGURED = False


def _ensure_logging(level: str = "INFO") -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    package_logger = logging.getLogger("morphlens")
    uvicorn_logger = logging.getLogger("uvicorn.error")

    handlers = list(uvicorn_logger.handlers)
    if handlers:
        package_logger.handlers = []
        for handler in handlers:
            package_logger.addHandler(handler)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        package_logger.addHandler(handler)

    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    package_logger.propagate = False
    _LOGGING_CONFIGURED = True


class ApplicationState:
    """Container for runtime dependencies used by the FastAPI app."""

    def __init__(
        self,
        *,
        settings: Settings,
        analyzer: MorphAnalyzer,
        metrics: MetricsRecorder | None,
    ) -> None:
        self.settings = settings
        self.analyzer = analyzer
        self.metrics = metrics


async def _read_payload(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


def _require_text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    return value


def _parse_limit(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise HTTPException(status_code=400, detail="n must be an integer")
    if raw < 0:
        raise HTTPException(status_code=400, detail="n must be zero or positive")
    return raw


def _parse_noun_map(payload: Dict[str, Any], key: str) -> Dict[str, int]:
    raw = payload.get(key)
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail=f"{key} must be an object")
    noun_map: Dict[str, int] = {}
    for noun, count in raw.items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise HTTPException(status_code=400, detail=f"{key} counts must be non-negative integers")
        noun_map[str(noun)] = count
    return noun_map


def _tagger_failure(exc: TaggerError) -> HTTPException:
    logger.warning("api.tagger.error error=%s", exc)
    return HTTPException(status_code=502, detail=str(exc))


def create_app(
    *,
    settings: Settings | None = None,
    analyzer: MorphAnalyzer | None = None,
    metrics: MetricsRecorder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or Settings.from_env()
    _ensure_logging(settings.log_level)

    metrics = metrics or settings.build_metrics_recorder()
    analyzer = analyzer or MorphAnalyzer.from_settings(settings, metrics=metrics)
    logger.info(
        "app.start dictionary=%s keyword_max_results=%s",
        settings.dictionary_path,
        settings.keyword_max_results,
    )

    app = FastAPI()
    app.state.services = ApplicationState(settings=settings, analyzer=analyzer, metrics=metrics)

    @app.on_event("shutdown")
    async def _close_tagger() -> None:
        analyzer.close()

    def get_state(request: Request) -> ApplicationState:
        return request.app.state.services

    def get_analyzer(request: Request) -> MorphAnalyzer:
        return get_state(request).analyzer

    def get_metrics(request: Request) -> MetricsRecorder | None:
        return get_state(request).metrics

    @app.get("/health", response_class=JSONResponse)
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.post("/nouns", response_class=JSONResponse)
    async def extract_nouns(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        text = _require_text(await _read_payload(request), "text")
        try:
            nouns = await analyzer.extract_nouns(text)
        except TaggerError as exc:
            raise _tagger_failure(exc) from exc
        return JSONResponse({"nouns": nouns})

    @app.post("/keywords", response_class=JSONResponse)
    async def extract_keywords(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        payload = await _read_payload(request)
        text = _require_text(payload, "text")
        limit = _parse_limit(payload.get("n"))
        try:
            keywords = await analyzer.extract_keywords(text, n=limit)
        except TaggerError as exc:
            raise _tagger_failure(exc) from exc
        return JSONResponse({"keywords": keywords})

    @app.post("/nouns/map", response_class=JSONResponse)
    async def extract_noun_map(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        text = _require_text(await _read_payload(request), "text")
        try:
            noun_map = await analyzer.extract_noun_map(text)
        except TaggerError as exc:
            raise _tagger_failure(exc) from exc
        return JSONResponse({"nounMap": noun_map})

    @app.post("/nouns/counts", response_class=JSONResponse)
    async def extract_noun_counts(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        text = _require_text(await _read_payload(request), "text")
        try:
            counts = await analyzer.extract_sorted_noun_counts(text)
        except TaggerError as exc:
            raise _tagger_failure(exc) from exc
        return JSONResponse({"counts": [item.to_dict() for item in counts]})

    @app.post("/similarity", response_class=JSONResponse)
    async def similarity_by_text(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        payload = await _read_payload(request)
        text_a = _require_text(payload, "textA")
        text_b = _require_text(payload, "textB")
        try:
            score = await analyzer.get_dice_coefficient_by_string(text_a, text_b)
        except TaggerError as exc:
            raise _tagger_failure(exc) from exc
        return JSONResponse({"score": score})

    @app.post("/similarity/maps", response_class=JSONResponse)
    async def similarity_by_maps(
        request: Request,
        analyzer: MorphAnalyzer = Depends(get_analyzer),
    ) -> JSONResponse:
        payload = await _read_payload(request)
        noun_map_a = _parse_noun_map(payload, "nounMapA")
        noun_map_b = _parse_noun_map(payload, "nounMapB")
        score = analyzer.get_dice_coefficient_by_noun_map(noun_map_a, noun_map_b)
        return JSONResponse({"score": score})

    @app.get("/metrics")
    async def metrics_endpoint(metrics: MetricsRecorder | None = Depends(get_metrics)) -> Response:
        if metrics is None or not metrics.prometheus_enabled:
            raise HTTPException(status_code=404, detail="Metrics export disabled")
        return Response(content=metrics.render_prometheus(), media_type=metrics.prometheus_content_type)

    return app
