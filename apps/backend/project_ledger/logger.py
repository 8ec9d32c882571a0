"""Structured logging for the reporting service.

Everything goes through structlog on top of the stdlib ``logging`` tree, so
third-party loggers (uvicorn, sqlalchemy) share the same renderer:

- console output when ``DEBUG`` is on, one JSON object per line otherwise
- request-scoped fields (request id, method, path) carried in contextvars
- ``async_log_timing`` for how long report generation takes
- ``log_exception`` for errors, with type and module attached
"""

import logging
import sys
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor, WrappedLogger

from project_ledger.config import settings

SERVICE_NAME = "project-ledger-reports"


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("env", settings.environment)
    return event_dict


def _build_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        _add_service,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _select_renderer() -> Processor:
    if settings.debug:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(level: int | None = None) -> None:
    """Route structlog and stdlib logging through one stdout handler."""
    shared = _build_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_select_renderer(),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level if level is not None else (logging.DEBUG if settings.debug else logging.INFO))

    # SQL echo is controlled by the engine, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str, method: str, path: str) -> None:
    """Replace the request-scoped logging fields for the current task."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def current_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


# =============================================================================
# Timing
# =============================================================================


@asynccontextmanager
async def async_log_timing(
    operation: str,
    logger: BoundLogger | None = None,
    level: str = "info",
    **context: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Log how long the wrapped block took.

    Usage:
        async with async_log_timing("profit-loss", logger=logger) as timing:
            report = await generate_profit_loss_report(db, filters)
            timing["record_count"] = report.record_count

    Keys added to the yielded dict are logged with the duration. An exception
    leaving the block is re-raised after logging with ``outcome="error"``.
    """
    log = logger or get_logger(__name__)
    fields: dict[str, Any] = {}
    outcome = "ok"
    started = time.perf_counter()

    try:
        yield fields
    except BaseException:
        outcome = "error"
        raise
    finally:
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        getattr(log, level, log.info)(
            f"{operation} finished",
            operation=operation,
            outcome=outcome,
            **context,
            **fields,
        )


# =============================================================================
# Exceptions
# =============================================================================


def log_exception(
    logger: BoundLogger,
    exc: BaseException,
    context: str,
    *,
    level: str = "error",
    include_traceback: bool = True,
    **extra: Any,
) -> None:
    """Log ``exc`` under the ``context`` message with its type and module.

    Usage:
        except SQLAlchemyError as exc:
            log_exception(logger, exc, "Report pre-computation failed", report=job.name)
    """
    fields: dict[str, Any] = {
        "error": str(exc),
        "error_type": type(exc).__name__,
        "error_module": type(exc).__module__,
        **extra,
    }
    if include_traceback:
        fields["exc_info"] = exc

    getattr(logger, level, logger.error)(context, **fields)
