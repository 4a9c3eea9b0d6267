"""
FHIR Server - Main application entry point.

A FHIR R4 REST server for Condition resources with JSON/XML content
negotiation and OperationOutcome error responses.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from fhir_server import __version__
from fhir_server.audit import AuditEvent, audit_log
from fhir_server.config.logging import configure_logging, get_logger
from fhir_server.config.settings import get_settings
from fhir_server.errors import FHIRServerError, SeedDataError
from fhir_server.middleware.security import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from fhir_server.negotiation import negotiate_error_format
from fhir_server.responses import fhir_response, operation_outcome
from fhir_server.routers import condition_router, health_router, metadata_router
from fhir_server.store import ConditionStore, InMemoryConditionStore, load_seed_file

logger = get_logger(__name__)

# Issue codes for HTTP errors raised by routing itself
HTTP_ISSUE_CODES = {
    404: "not-found",
    405: "not-supported",
}


async def fhir_error_handler(request: Request, exc: FHIRServerError) -> Response:
    """Render a FHIRServerError as an OperationOutcome."""
    logger.warning(
        "FHIR request failed",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        **exc.to_dict(),
    )
    return fhir_response(
        operation_outcome(exc.issues()),
        negotiate_error_format(request),
        status_code=exc.status_code,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render routing errors (unknown path, wrong method) as an OperationOutcome."""
    issue = {
        "severity": "error",
        "code": HTTP_ISSUE_CODES.get(exc.status_code, "processing"),
        "diagnostics": str(exc.detail),
    }
    return fhir_response(
        operation_outcome([issue]),
        negotiate_error_format(request),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    """Render unexpected failures as a 500 OperationOutcome."""
    logger.exception("Unhandled error", method=request.method, path=request.url.path)
    issue = {"severity": "fatal", "code": "exception", "diagnostics": "Internal server error"}
    return fhir_response(
        operation_outcome([issue]), negotiate_error_format(request), status_code=500
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting FHIR Server", host=settings.host, port=settings.port)

    if settings.seed_data_path:
        store: ConditionStore = app.state.condition_store
        records = load_seed_file(settings.seed_data_path, settings.onset_zone)
        try:
            await store.seed(records)
        except ValueError as e:
            raise SeedDataError(settings.seed_data_path, str(e)) from e
        audit_log(
            AuditEvent.SEED_LOAD,
            details={"path": settings.seed_data_path, "count": len(records)},
        )

    yield

    logger.info("Shutting down FHIR Server")


def create_app(store: ConditionStore | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Condition store to serve from. A fresh empty in-memory store
            is used when omitted.
    """
    settings = get_settings()

    app = FastAPI(
        title="FHIR Server",
        description="FHIR R4 REST API for Condition resources",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.condition_store = store if store is not None else InMemoryConditionStore()

    origins = settings.cors_origins.split(",") if settings.cors_origins != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=settings.cors_origins != "*",
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_body_size=settings.max_request_body_size)
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(FHIRServerError, fhir_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(metadata_router, prefix=settings.base_path)
    app.include_router(condition_router, prefix=settings.base_path)

    return app


# Create the application instance
app = create_app()


def run():
    """Run the FHIR Server with uvicorn."""
    settings = get_settings()
    configure_logging(settings)

    uvicorn.run(
        "fhir_server.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
