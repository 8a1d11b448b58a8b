from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("archnorm.api")

# Client ids become log fields; only plain tokens are echoed back.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]+$")

NORMALIZE_PREFIX = "/normalize"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (``X-Request-ID``) for log correlation.

    A client id is reused when it is a short token of letters, digits and
    ``.``, ``_``, ``:`` or ``-``; anything else is replaced by a fresh hex id.
    """

    def __init__(self, app, *, header_name: str = "X-Request-ID", max_len: int = 64):
        super().__init__(app)
        self._header_name = header_name
        self._max_len = max_len

    def _accept(self, rid: Optional[str]) -> bool:
        return bool(rid) and len(rid) <= self._max_len and _REQUEST_ID_RE.match(rid) is not None

    async def dispatch(self, request: Request, call_next: Callable):
        rid = request.headers.get(self._header_name)
        if not self._accept(rid):
            rid = uuid4().hex
        request.state.request_id = rid
        response: Response = await call_next(request)
        response.headers[self._header_name] = rid
        return response


def normalization_fields(request: Request) -> Dict[str, Any]:
    """Log fields describing what a normalize call asked for.

    Only query parameters and the declared body size are read; the record
    itself never reaches the log.
    """

    params = request.query_params
    declared = request.headers.get("content-length")
    return {
        "input": "xml" if request.url.path.endswith("/xml") else "json",
        "category": params.get("category"),
        "item_category": params.get("item_category"),
        "languages": params.get("languages"),
        "rich_text": params.get("rich_text"),
        "declared_bytes": int(declared) if declared and declared.isdigit() else None,
    }


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One ``normalize_request`` line per normalize call (INFO).

    Other routes (health, docs) log ``api_request`` at DEBUG.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            extra: Dict[str, Any] = {
                "request_id": getattr(request.state, "request_id", None),
                "method": request.method,
                "path": request.url.path,
                "status_code": getattr(response, "status_code", None),
                "duration_ms": int((time.monotonic() - start) * 1000),
            }
            if request.url.path.startswith(NORMALIZE_PREFIX):
                extra.update(normalization_fields(request))
                log.info("normalize_request", extra=extra)
            else:
                log.debug("api_request", extra=extra)
