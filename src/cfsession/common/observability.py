"""Logging and request tracing for cfsession."""

from __future__ import annotations

import logging
import re
import sys
from typing import IO, Any, Mapping, Optional

import httpx
import structlog
from structlog.contextvars import bind_contextvars

from .errors import ConfigurationError
from .settings import SessionSettings

_logging_configured = False

TRACE_BODY_LIMIT = 4096
_REDACTED_HEADERS = {"authorization", "cookie", "set-cookie"}
_SECRET_FIELDS = re.compile(
    r"((?:password|access_token|refresh_token|client_secret)=)[^&\s]*"
    r"|(\"(?:password|access_token|refresh_token|client_secret)\"\s*:\s*\")[^\"]*"
)
_PRIVATE = "[PRIVATE DATA HIDDEN]"


def _log_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        normalized = level.strip().upper()
        numeric = logging.getLevelName(normalized)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(service_name: str, level: str | int | None = None) -> None:
    """Configure structlog for JSON structured logging."""

    global _logging_configured
    numeric_level = _log_level(level)
    if not _logging_configured:
        logging.basicConfig(level=numeric_level, format="%(message)s")
        _logging_configured = True
    else:
        logging.getLogger().setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.dict_tracebacks,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    bind_contextvars(service=service_name)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: (_PRIVATE if key.lower() in _REDACTED_HEADERS else value)
        for key, value in headers.items()
    }


def redact_body(text: str) -> str:
    return _SECRET_FIELDS.sub(lambda match: (match.group(1) or match.group(2)) + _PRIVATE, text)


def _truncate(body: bytes) -> str:
    text = redact_body(body.decode("utf-8", errors="replace"))
    if len(text) > TRACE_BODY_LIMIT:
        return text[:TRACE_BODY_LIMIT] + "...[truncated]"
    return text


class TracePrinter:
    """Writes one JSON record per HTTP request and response."""

    def __init__(self, stream: IO[str], *, owns_stream: bool = False) -> None:
        self._stream = stream
        self._owns_stream = owns_stream
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(stream),
            processors=[
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.EventRenamer("message"),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
        )

    @classmethod
    def from_target(cls, target: Optional[str]) -> Optional["TracePrinter"]:
        if target is None:
            return None
        if target == "stdout":
            return cls(sys.stdout)
        try:
            stream = open(target, "a", encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot open trace file {target}: {exc}") from exc
        return cls(stream, owns_stream=True)

    async def on_request(self, request: httpx.Request) -> None:
        try:
            body = request.content
        except httpx.RequestNotRead:
            body = b"[streamed body]"
        self._logger.info(
            "REQUEST",
            method=request.method,
            url=str(request.url),
            headers=redact_headers(request.headers),
            body=_truncate(body),
        )

    async def on_response(self, response: httpx.Response) -> None:
        await response.aread()
        self._logger.info(
            "RESPONSE",
            method=response.request.method,
            url=str(response.request.url),
            status=response.status_code,
            headers=redact_headers(response.headers),
            body=_truncate(response.content),
        )

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()


class SessionLogger:
    """Logger handed to gateways and managers: a bound structlog logger plus an optional tracer."""

    def __init__(self, settings: SessionSettings, **context: Any) -> None:
        self.debug_enabled = settings.debug
        self.log = structlog.get_logger("cfsession").bind(**context)
        self.trace = TracePrinter.from_target(settings.trace_target)

    def bind(self, **context: Any) -> structlog.typing.FilteringBoundLogger:
        return self.log.bind(**context)

    def event_hooks(self) -> dict[str, list]:
        if self.trace is None:
            return {"request": [], "response": []}
        return {"request": [self.trace.on_request], "response": [self.trace.on_response]}

    def close(self) -> None:
        if self.trace is not None:
            self.trace.close()
