"""
Error taxonomy for the Folio API.

Services raise these exceptions; ``install_error_handlers`` renders every
one of them as ``{"error": <code>, "message": <text>}`` with the matching
HTTP status, so routers never build error responses by hand.  Anything
that is not a ``FolioError`` is logged and collapsed into a generic 500.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FolioError(Exception):
    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ValidationError(FolioError):
    status_code = 400
    code = "validation_error"


class ConflictError(FolioError):
    status_code = 400
    code = "conflict"


class AuthError(FolioError):
    status_code = 401
    code = "unauthorized"


class Forbidden(FolioError):
    status_code = 403
    code = "forbidden"


class NotFound(FolioError):
    status_code = 404
    code = "not_found"


class UpstreamError(FolioError):
    """A mail relay, object store or database call failed."""

    status_code = 500
    code = "upstream_error"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def _folio_error_handler(request: Request, exc: FolioError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": ValidationError.code,
            "message": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FolioError, _folio_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
