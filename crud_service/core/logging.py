"""Logging setup.

Every line written through the root handlers carries the id of the HTTP
request being served, so controller lines (``cidades created id=7``) can be
matched with the access line the middleware writes for the same request.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_request_id: ContextVar[Optional[str]] = ContextVar("crud_service_request_id", default=None)


def current_request_id() -> Optional[str]:
    return _request_id.get()


@contextmanager
def request_id_context(request_id: Optional[str]) -> Iterator[None]:
    token = _request_id.set(request_id)
    try:
        yield
    finally:
        _request_id.reset(token)


class RequestIdFormatter(logging.Formatter):
    """Appends ``| request_id=...`` while a request is being served."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        request_id = _request_id.get()
        if request_id:
            return f"{base} | request_id={request_id}"
        return base


def configure_logging(level: str = "INFO") -> None:
    resolved = logging.getLevelName(str(level or "INFO").strip().upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler.formatter, RequestIdFormatter):
            handler.setFormatter(RequestIdFormatter(LOG_FORMAT))
    logging.getLogger("crud_service").setLevel(resolved)
