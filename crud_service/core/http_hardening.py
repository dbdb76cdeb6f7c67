from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.datastructures import Headers

from crud_service.core.logging import request_id_context

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")
_LOG = logging.getLogger("crud_service.http")

# JSON API only; no document-level policies.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def resolve_request_id(headers: Headers) -> str:
    """Caller's X-Request-ID when it is a safe token, else a fresh one."""
    candidate = (headers.get(REQUEST_ID_HEADER) or "").strip()
    if _VALID_REQUEST_ID.fullmatch(candidate):
        return candidate
    return uuid4().hex


def install_http_hardening(app: FastAPI) -> None:
    @app.middleware("http")
    async def _resource_request_middleware(request: Request, call_next):
        request_id = resolve_request_id(request.headers)
        request.state.request_id = request_id
        started_at = perf_counter()

        with request_id_context(request_id):
            response = await call_next(request)
            elapsed_ms = (perf_counter() - started_at) * 1000.0
            _LOG.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        # Listings change with every write.
        response.headers["Cache-Control"] = "no-store"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
