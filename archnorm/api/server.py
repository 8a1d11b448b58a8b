from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from archnorm import __version__
from archnorm.api.middleware import AccessLogMiddleware, RequestIdMiddleware
from archnorm.api.models import ApiError, HealthOut, NormalizeOut
from archnorm.core.errors import (
    LanguageResolutionError,
    NormalizationError,
    ShapeViolation,
    ValueViolation,
    XmlLoadError,
)
from archnorm.core.model import Record, Set, Tree
from archnorm.core.normalization import normalize_record
from archnorm.core.options import NormalizationOptions
from archnorm.io.xml_loader import load_xml
from archnorm.utils.json_safe import to_jsonable

log = logging.getLogger("archnorm.api")

_ERROR_KINDS = (
    (ShapeViolation, "shape_violation"),
    (ValueViolation, "value_violation"),
    (LanguageResolutionError, "language_not_found"),
    (XmlLoadError, "invalid_xml"),
)


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    - max_body_bytes caps JSON bodies and XML uploads alike.
    - options are the server-side defaults; requests may override languages
      and the rich-text flag.
    """

    max_body_bytes: int = 25 * 1024 * 1024
    options: NormalizationOptions = field(default_factory=NormalizationOptions)


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable (malformed -> default)."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def _error_kind(exc: NormalizationError) -> str:
    for cls, kind in _ERROR_KINDS:
        if isinstance(exc, cls):
            return kind
    return "normalization_error"


def _split_csv(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    parts = [x.strip() for x in raw.split(",") if x.strip()]
    return parts or None


def _item_categories(record: Record) -> List[str]:
    item = record.item
    if isinstance(item, Set):
        return [c.value for c in item.item_categories]
    if isinstance(item, Tree) and item.item_category is not None:
        return [item.item_category.value]
    return []


def create_app(config: Optional[ServiceConfig] = None) -> FastAPI:
    """Create the FastAPI app."""

    cfg = config or ServiceConfig(
        max_body_bytes=_env_int("ARCHNORM_MAX_BODY_BYTES", 25 * 1024 * 1024),
        options=NormalizationOptions.from_env(),
    )

    # Logging: safe defaults (no request bodies), can be configured by host app.
    log.setLevel(os.environ.get("ARCHNORM_LOG_LEVEL", "INFO").upper())

    app = FastAPI(title="archnorm API", version=__version__)
    app.state.cfg = cfg

    # Request correlation + basic access logs.
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(AccessLogMiddleware)

    @app.exception_handler(NormalizationError)
    async def normalization_error_handler(request: Request, exc: NormalizationError) -> JSONResponse:
        kind = _error_kind(exc)
        log.info(
            "normalization_rejected",
            extra={"request_id": getattr(request.state, "request_id", None), "error": kind},
        )
        return JSONResponse(status_code=422, content=ApiError(error=kind, detail=str(exc)).model_dump())

    def _options(languages: Optional[str], rich_text: Optional[bool]) -> NormalizationOptions:
        opts = cfg.options
        if languages:
            opts = opts.with_languages(languages)
        if rich_text is not None:
            opts = opts.rich(rich_text)
        return opts

    def _normalize(
        raw: Any,
        *,
        category: Optional[str],
        item_category: Optional[str],
        languages: Optional[str],
        rich_text: Optional[bool],
    ) -> NormalizeOut:
        opts = _options(languages, rich_text)
        record = normalize_record(
            raw,
            category=category or None,
            item_category=_split_csv(item_category),
            options=opts,
        )
        return NormalizeOut(
            category=record.category.value,
            item_categories=_item_categories(record),
            languages=list(opts.languages),
            record=to_jsonable(record),
        )

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        return HealthOut(
            version=__version__,
            languages=list(cfg.options.languages),
            rich_text=cfg.options.is_rich_text,
            max_body_bytes=cfg.max_body_bytes,
        )

    @app.post("/normalize", response_model=NormalizeOut)
    async def normalize_endpoint(
        request: Request,
        category: Optional[str] = Query(default=None),
        item_category: Optional[str] = Query(default=None, description="Comma separated child categories"),
        languages: Optional[str] = Query(default=None, description="Comma separated ISO 639-3 codes"),
        rich_text: Optional[bool] = Query(default=None),
    ) -> NormalizeOut:
        """Normalize a raw record posted as JSON.

        The body is capped at max_body_bytes; oversized bodies get 413 before
        any parsing happens.
        """

        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > cfg.max_body_bytes:
            raise HTTPException(status_code=413, detail="body_too_large")

        body = await request.body()
        if len(body) > cfg.max_body_bytes:
            raise HTTPException(status_code=413, detail="body_too_large")

        try:
            raw = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid_json") from None

        return await run_in_threadpool(
            _normalize,
            raw,
            category=category,
            item_category=item_category,
            languages=languages,
            rich_text=rich_text,
        )

    def _read_upload(upload: UploadFile) -> bytes:
        """Read an UploadFile into memory in chunks, enforcing the size cap."""

        chunks: List[bytes] = []
        total = 0
        while True:
            chunk = upload.file.read(1024 * 1024)
            if not chunk:
                break
            total += len(chunk)
            if total > cfg.max_body_bytes:
                raise HTTPException(status_code=413, detail="upload_too_large")
            chunks.append(chunk)
        return b"".join(chunks)

    @app.post("/normalize/xml", response_model=NormalizeOut)
    def normalize_xml_endpoint(
        file: UploadFile = File(...),
        category: Optional[str] = Query(default=None),
        item_category: Optional[str] = Query(default=None),
        languages: Optional[str] = Query(default=None),
        rich_text: Optional[bool] = Query(default=None),
    ) -> NormalizeOut:
        """Normalize an uploaded XML document (parsed with defusedxml)."""

        raw = load_xml(_read_upload(file))
        return _normalize(
            raw,
            category=category,
            item_category=item_category,
            languages=languages,
            rich_text=rich_text,
        )

    return app


def app_from_env() -> FastAPI:
    """Factory used by Uvicorn entrypoints.

    Reads:
    - ARCHNORM_MAX_BODY_BYTES
    - ARCHNORM_LANGUAGES / ARCHNORM_RICH_TEXT / ARCHNORM_ITEM_URL_TEMPLATE
    - ARCHNORM_LOG_LEVEL
    """

    return create_app()


# Default ASGI app (importable as archnorm.api.server:app)
app = app_from_env()
