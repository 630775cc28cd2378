"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from user_api import __version__
from user_api.api import CorrelationIdMiddleware, health_router, users_router
from user_api.config import get_settings
from user_api.exceptions import AccountError, InternalFailureError, UnauthenticatedError
from user_api.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    if settings.storage_backend == "postgres":
        from user_api.database import close_database, init_database, run_migrations

        await init_database()
        await run_migrations()
        logger.info("database_initialized")

    logger.info(
        "application_started",
        storage_backend=settings.storage_backend,
        cors_origin=settings.cors_origin,
        log_level=settings.log_level,
    )

    yield

    if settings.storage_backend == "postgres":
        await close_database()

    logger.info("application_shutdown")


app = FastAPI(
    title="User API",
    description="API for managing users",
    version=__version__,
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return (
        getattr(request.state, "correlation_id", None)
        or request.headers.get("X-Correlation-Id")
        or str(uuid4())
    )


@app.exception_handler(AccountError)
async def account_exception_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Render account errors as JSON with their mapped status code.

    Internal failures are logged with full detail elsewhere; only the
    generic message reaches the client.
    """
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    logger.info(
        "request_rejected",
        correlation_id=correlation_id,
        error=exc.kind,
        status_code=exc.status_code,
        detail=exc.message,
    )

    headers = {"X-Correlation-Id": correlation_id}
    if isinstance(exc, UnauthenticatedError):
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.kind,
            "detail": exc.message,
            "correlation_id": correlation_id,
        },
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with user-friendly messages.

    Returns 400 Bad Request naming the first offending field.
    """
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    # Raw error entries echo the submitted input, which may be a password
    logger.warning(
        "validation_error",
        correlation_id=correlation_id,
        detail=detail,
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "detail": detail,
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with the generic internal error body."""
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    logger.error(
        "unhandled_exception",
        correlation_id=correlation_id,
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )

    internal = InternalFailureError()
    return JSONResponse(
        status_code=internal.status_code,
        content={
            "error": internal.kind,
            "detail": internal.message,
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-Id": correlation_id},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().cors_origin],
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(users_router)


def run() -> None:
    """Serve the application on the configured port."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    run()
