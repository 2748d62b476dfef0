"""
Application-wide exception handlers.

Request IDs are logged server-side and sent back only in the
``X-Request-ID`` header; error bodies never carry internal details.

Browsers (``Accept: text/html``) get the unauthorized and not-found pages
for 401 and 404; other clients get JSON.
"""

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import FormValidationError, NotFoundError, PermissionDeniedError
from core.logging import get_logger

from .rendering import render_not_found, render_unauthorized

logger = get_logger("backend.errors")


def _get_request_id() -> str:
    return structlog.contextvars.get_contextvars().get("request_id", "-")


ERROR_PAGES = {
    status.HTTP_401_UNAUTHORIZED: render_unauthorized,
    status.HTTP_404_NOT_FOUND: render_not_found,
}


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def _page_or_json(request: Request, status_code: int, detail: str, headers=None):
    page = ERROR_PAGES.get(status_code)
    if page is not None and _wants_html(request):
        response = page(request, detail)
        response.headers.update(headers or {})
        return response
    return JSONResponse(
        status_code=status_code,
        content=_response_payload(detail, status_code),
        headers=headers,
    )


def _response_payload(detail: str, status_code: int) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            path=request.url.path,
            request_id=_get_request_id(),
        )
        return _page_or_json(
            request, exc.status_code, str(exc.detail), getattr(exc, "headers", None)
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.info("not_found", entity=exc.entity, entity_id=exc.entity_id, request_id=_get_request_id())
        return _page_or_json(request, status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
        logger.warning(
            "permission_denied",
            operation=exc.operation,
            resource=exc.resource,
            request_id=_get_request_id(),
        )
        return _page_or_json(request, status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    @app.exception_handler(FormValidationError)
    async def form_validation_handler(request: Request, exc: FormValidationError):
        logger.warning("form_validation_error", errors=exc.errors, request_id=_get_request_id())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                **_response_payload("Validation error", status.HTTP_400_BAD_REQUEST),
                "errors": exc.errors,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_response_payload("Internal server error", 500),
        )
