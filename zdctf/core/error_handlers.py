"""
Error handling utilities and exception handlers for the submission API.
"""

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from zdctf.ctf.errors import RateLimited, SubmissionError

logger = logging.getLogger(__name__)


def get_json_error_response(
    status_code: int, detail: str | None = None
) -> Dict[str, Any]:
    """Create a standardized JSON error response."""
    error_messages = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        429: "Too Many Requests",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }

    message = detail or error_messages.get(status_code, "An error occurred")

    return {"error": {"code": status_code, "message": message, "type": "api_error"}}


async def submission_error_handler(request: Request, exc: SubmissionError):
    """Render pipeline errors in the error envelope"""
    _ = request
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        content={"error": exc.to_dict()},
        status_code=exc.status_code,
        headers=headers,
    )


async def fastapi_http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTP exceptions"""
    starlette_exc = StarletteHTTPException(
        status_code=exc.status_code, detail=exc.detail
    )
    return await http_exception_handler(request, starlette_exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with JSON responses."""
    _ = request
    detail = exc.detail if isinstance(exc.detail, str) else None
    error_data = get_json_error_response(exc.status_code, detail)
    return JSONResponse(
        content=error_data,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 validation error"""
    _ = request
    error_details = []
    for error in exc.errors():
        error_details.append(
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    error_data = {
        "error": {
            "code": 400,
            "message": "Invalid submission",
            "type": "validation_error",
            "details": error_details,
        }
    }
    return JSONResponse(content=error_data, status_code=400)


async def internal_server_error_handler(request: Request, exc: Exception):
    """Unexpected failures become a generic 500; details stay in the logs"""
    logger.error("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(
        content={
            "error": {
                "code": 500,
                "message": "Internal server error",
                "type": "internal_error",
            }
        },
        status_code=500,
    )


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(SubmissionError, submission_error_handler)
    app.add_exception_handler(HTTPException, fastapi_http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, internal_server_error_handler)
