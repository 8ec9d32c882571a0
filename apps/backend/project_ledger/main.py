"""Project Ledger reporting API."""

import time
import traceback
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from project_ledger import __version__
from project_ledger.config import settings
from project_ledger.connections import Connections
from project_ledger.deps import ConnectionsDep
from project_ledger.logger import bind_request_context, configure_logging, current_request_id, get_logger
from project_ledger.routers import cron, reports
from project_ledger.schemas import ReportErrorResponse
from project_ledger.utils import ReportRequestError

configure_logging()
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared database engine and report cache for the process lifetime."""
    app.state.connections = Connections.open(settings)
    logger.info("Application started", version=__version__, environment=settings.environment)
    try:
        yield
    finally:
        await app.state.connections.close()
        logger.info("Application stopped")


app = FastAPI(
    title="Project Ledger Reporting API",
    description="Profit & loss, cash flow, income and expense reports over project transactions",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line with a request id and log one line per request."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    bind_request_context(request_id, request.method, request.url.path)

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        logger.exception(
            "Request failed",
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            error=str(exc),
        )
        raise

    logger.info(
        "Request handled",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def _error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ReportErrorResponse(error=message).model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@app.exception_handler(ReportRequestError)
async def report_request_error_handler(request: Request, exc: ReportRequestError) -> JSONResponse:
    logger.warning("Rejected report request", error=exc.message)
    return _error_envelope(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Unparseable bodies and query strings get the same 400 envelope."""
    errors = exc.errors()
    if errors:
        location = [str(part) for part in errors[0].get("loc", ()) if part not in ("body", "query")]
        message = f"Invalid {'.'.join(location)}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        message = "Invalid request"
    logger.warning("Request validation failed", error=message)
    return _error_envelope(400, str(message))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort JSON 500; details only in debug mode."""
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(exc) if settings.debug else "An internal server error occurred. Please try again later.",
            "trace": traceback.format_exc() if settings.debug else None,
            "request_id": current_request_id(),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
)

app.include_router(reports.router)
app.include_router(cron.router)


@app.get("/health")
async def health_check(connections: ConnectionsDep) -> JSONResponse:
    """Database and cache connectivity; 503 when either is down.

    A cache that is not configured counts as healthy.
    """
    checks: dict[str, bool] = {}

    try:
        async with connections.database.session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Health check: database unreachable", error=str(exc), error_type=type(exc).__name__)
        checks["database"] = False
    else:
        checks["database"] = True

    checks["cache"] = await connections.cache.ping()

    healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
            "cache_configured": connections.cache.configured,
            "version": __version__,
        },
    )
