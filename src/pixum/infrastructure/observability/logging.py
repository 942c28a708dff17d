"""Logging setup: human-readable or JSON lines, tagged with the request's correlation ID."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, every inbound request gets a correlation ID (from X-Correlation-ID or a
# fresh UUID) that ends up on every log line written while serving it. contextvars are
# per-task in asyncio and copied into child tasks, so the three parallel extension
# probes of one request log with the same ID while other requests keep their own.
# Empty string = no request (startup, shutdown).
_correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "pixum_correlation_id", default=""
)

# HTTP and Redis client libraries log every request at INFO/DEBUG. uvicorn.access
# duplicates RequestLoggingMiddleware.
QUIET_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "hpack",
    "redis",
    "asyncio",
    "uvicorn.access",
)

TEXT_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s"
JSON_FORMAT = "%(message)s"


def get_correlation_id() -> str:
    """Correlation ID of the request being served, "" outside of requests."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context.

    Args:
        correlation_id: ID taken from the caller. None (or "") generates a UUID4.

    Returns:
        The ID now in effect
    """
    value = correlation_id or str(uuid.uuid4())
    _correlation_id.set(value)
    return value


class CorrelationIdFilter(logging.Filter):
    """Stamp every record with the current correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter printing exception chains root cause first, own frames only.

    A failed upstream fetch then reads like this instead of forty lines of httpcore
    internals:

    WARNING │ pixum.api.exception_handlers:80 │ Upstream unreachable at /123/1
    ╰─► ConnectError: All connection attempts failed
    ╰─► ServerUnreachableError: Asset request failed: All connection attempts failed
        File "pixiv_client.py", line 159, in fetch_asset
          raise ServerUnreachableError(f"Asset request failed: {e}") from e
    """

    package_marker = "pixum"

    def _own_frames(self, exc: BaseException) -> list[str]:
        lines: list[str] = []
        for frame in traceback.extract_tb(exc.__traceback__):
            path = frame.filename
            if "site-packages" in path or self.package_marker not in path:
                continue
            lines.append(f'    File "{Path(path).name}", line {frame.lineno}, in {frame.name}')
            if frame.line:
                lines.append(f"      {frame.line.strip()}")
        return lines

    def formatException(self, ei: Any) -> str:
        exc = ei[1]
        chain: list[BaseException] = []
        while exc is not None and exc not in chain:
            chain.append(exc)
            exc = exc.__cause__ or exc.__context__

        lines: list[str] = []
        for link in reversed(chain):
            lines.append(f"╰─► {type(link).__name__}: {link}")
            lines.extend(self._own_frames(link))
        return "\n".join(lines)


class PixumJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """One JSON object per line for log aggregation."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            level=record.levelname,
            logger=record.name,
            source=f"{record.module}:{record.lineno}",
        )
        correlation_id = getattr(record, "correlation_id", "")
        if correlation_id:
            log_record["correlation_id"] = correlation_id
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return PixumJsonFormatter(JSON_FORMAT)
    return CompactExceptionFormatter(fmt=TEXT_FORMAT, datefmt="%H:%M:%S")


# The lifespan calls this at startup. It swaps out whatever handlers the root logger
# had, so calling it again (tests, reloads) never doubles log lines.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "pixum",
) -> None:
    """Route all logging to stdout through one correlation-aware handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines for production, compact text for humans
        app_name: Logged once so aggregated logs show which service started
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(_build_formatter(json_format))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured for %s (level=%s, json=%s)",
        app_name,
        logging.getLevelName(level),
        json_format,
    )
