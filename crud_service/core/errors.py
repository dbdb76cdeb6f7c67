"""Error envelope shared by every resource endpoint.

Handlers render ``{"message": ...}`` bodies, the shape the frontend already
expects from delete conflicts. Validation failures keep FastAPI's own 422
body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

_LOG = logging.getLogger("crud_service.errors")

NOT_FOUND_MESSAGE = "Registro não encontrado."
DEPENDENT_RECORDS_MESSAGE = "Existem dependências deste registro."
INTEGRITY_MESSAGE = "Violação de restrição de dados."


class ResourceError(Exception):
    status_code = 400
    default_message = "Requisição inválida."

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadResourceRequestError(ResourceError):
    status_code = 400


class ResourceNotFoundError(ResourceError):
    status_code = 404
    default_message = NOT_FOUND_MESSAGE


class DependentRecordsError(ResourceError):
    # Reported as a server error so existing clients keep their handling.
    status_code = 500
    default_message = DEPENDENT_RECORDS_MESSAGE


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceError)
    async def _resource_error_handler(request: Request, exc: ResourceError):
        _LOG.debug("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse({"message": exc.message}, status_code=exc.status_code)
