"""
Logging for the issue tracker, built on structlog.

Development gets a plain console renderer, everything else emits one JSON
object per line. Request scoped values (request id, acting user, project)
are carried through contextvars so repository and service code can log
without passing them around.
"""

import logging
import sys
import time
from functools import lru_cache
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Probe endpoints are polled constantly and would drown the access log.
QUIET_PATHS = frozenset({"/health", "/health/ready"})


def _tag_service(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", "issue_tracker")
    return event_dict


def _drop_empty_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in ("user_id", "project"):
        if event_dict.get(key) is None:
            event_dict.pop(key, None)
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _tag_service,
        _drop_empty_context,
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


@lru_cache(maxsize=1)
def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog and the stdlib root logger once per process.

    Both arguments fall back to settings: ``LOG_LEVEL`` and ``LOG_FORMAT``
    (``json`` or ``console``, the latter being the default outside production).
    """
    from .config import get_settings

    settings = get_settings()
    level = (level or settings.log_level).upper()
    if json_output is None:
        json_output = settings.log_format == "json" or settings.is_production

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )
    # SQL echo is controlled by DB_ECHO, not by the app log level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    """Attach values to every log line emitted for the rest of the request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class RequestLoggingMiddleware:
    """
    ASGI middleware writing one access line per request.

    The line is emitted after the response so it carries the final status
    along with the request id bound by the outer middleware.
    """

    def __init__(self, app):
        self.app = app
        self.logger = get_logger("http")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope.get("path") in QUIET_PATHS:
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if status_code >= 500:
                log = self.logger.error
            elif status_code >= 400:
                log = self.logger.warning
            else:
                log = self.logger.info
            log(
                "request_complete",
                method=scope.get("method", ""),
                path=scope.get("path", ""),
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            clear_context()


__all__ = [
    "QUIET_PATHS",
    "bind_context",
    "build_processors",
    "clear_context",
    "configure_logging",
    "get_logger",
    "RequestLoggingMiddleware",
]
