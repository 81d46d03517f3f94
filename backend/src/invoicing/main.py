"""FastAPI application entry point."""
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from invoicing.api.v1 import health, invoices, payments
from invoicing.config import settings
from invoicing.exceptions import InvoicingError
from invoicing.middleware.logging import LoggingMiddleware, setup_logging
from invoicing.middleware.metrics import MetricsMiddleware
from invoicing.schemas.error import REMEDIATION_HINTS, ErrorCode, ErrorDetail

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env)
    yield
    logger.info("application_shutting_down")


app = FastAPI(
    title="GST Invoicing Service",
    description="Tax-compliant invoices, line-item GST computation and payment reconciliation",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

if settings.otel_enabled:
    from invoicing.tracing import setup_tracing

    setup_tracing(app)


def _request_id(request: Request) -> str:
    """Request ID bound by LoggingMiddleware, or a fresh one."""
    return getattr(request.state, "request_id", None) or request.headers.get(
        "x-request-id", f"req_{uuid.uuid4().hex[:12]}"
    )


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


@app.exception_handler(InvoicingError)
async def invoicing_exception_handler(request: Request, exc: InvoicingError) -> JSONResponse:
    """
    Render domain errors (validation, not found, forbidden, conflict).

    Status code and error type come from the exception class.
    """
    request_id = _request_id(request)

    logger.warning(
        "request_rejected",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error=exc.error,
        code=exc.code,
        message=exc.message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            {
                "error": exc.error,
                "message": exc.message,
                "details": [
                    ErrorDetail(
                        code=exc.code,
                        message=exc.message,
                        field=exc.field,
                        value=exc.value,
                    ).model_dump()
                ],
                "remediation": REMEDIATION_HINTS.get(exc.code),
                "request_id": request_id,
                "timestamp": _timestamp(),
            }
        ),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with detailed field-level validation errors.
    """
    request_id = _request_id(request)

    # Map Pydantic error types to our error codes
    code_mapping = {
        "missing": ErrorCode.MISSING_REQUIRED_FIELD,
        "too_short": ErrorCode.MISSING_REQUIRED_FIELD,
        "enum": ErrorCode.INVALID_ENUM_VALUE,
        "uuid_parsing": ErrorCode.INVALID_UUID,
        "date_from_datetime_parsing": ErrorCode.INVALID_DATE,
        "date_parsing": ErrorCode.INVALID_DATE,
        "greater_than": ErrorCode.INVALID_AMOUNT,
        "greater_than_equal": ErrorCode.INVALID_AMOUNT,
        "decimal_parsing": ErrorCode.INVALID_AMOUNT,
        "decimal_max_places": ErrorCode.INVALID_AMOUNT,
        "int_parsing": ErrorCode.INVALID_QUANTITY,
    }

    details = []
    for error in exc.errors():
        details.append(
            ErrorDetail(
                code=code_mapping.get(error["type"], ErrorCode.VALIDATION_ERROR),
                message=error["msg"],
                field=".".join(str(loc) for loc in error["loc"]),
                value=error.get("input"),
            ).model_dump()
        )

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "details": details,
                "remediation": "Check the API documentation for correct request format at /docs",
                "request_id": request_id,
                "timestamp": _timestamp(),
            }
        ),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handle database errors.

    Returns 503 Service Unavailable for database connection issues.
    """
    request_id = _request_id(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    error_message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "DatabaseError",
            "message": "A database error occurred",
            "details": [
                {
                    "code": ErrorCode.DATABASE_ERROR,
                    "message": error_message,
                }
            ],
            "remediation": REMEDIATION_HINTS.get(ErrorCode.DATABASE_ERROR),
            "request_id": request_id,
            "timestamp": _timestamp(),
        },
        headers={"Retry-After": "30"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the full stack trace but returns a safe error message to the client.
    """
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        stack_trace=traceback.format_exc(),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "details": [
                {
                    "code": ErrorCode.INTERNAL_ERROR,
                    "message": str(exc) if settings.debug else "Internal server error",
                }
            ],
            "remediation": "Please contact support with the request ID",
            "request_id": request_id,
            "timestamp": _timestamp(),
        },
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "GST Invoicing Service",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }


app.include_router(health.router, tags=["Health"])
app.include_router(invoices.router, prefix="/v1", tags=["Invoices"])
app.include_router(payments.router, prefix="/v1", tags=["Payments"])
