"""
FastAPI main application for the Library Catalog API.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from api.config import config as api_config
from api.models import ErrorResponse, HealthResponse
from api.routers import ROUTERS
from catalog.database import CatalogDatabase
from catalog.dates import utcnow
from catalog.errors import CatalogError
from utilities.config import config
from utilities.logger import bind_request_context, clear_request_context, setup_logging

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(config.log_level, config.log_format, config.get_log_file_path(), config.debug)
    logger.info("Starting Library Catalog API")

    database = CatalogDatabase(config.mongodb_url, config.mongodb_database)
    try:
        await database.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise
    app.state.database = database

    yield

    # Shutdown
    logger.info("Shutting down Library Catalog API")
    await database.disconnect()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description="""
    A REST API for a library catalog.

    ## Features

    * **Authors, books, book instances, genres**: create, read, update and delete, one at a time or in batches
    * **Filtering**: prefix matches, date ranges and related-entity descriptors in the JSON body of list requests
    * **Projection**: `only` / `omit` field lists
    * **Paging**: `sort`, `skip` and `limit`
    * **Rate Limiting**: 100 requests per hour per client

    ## Rate Limiting

    Rate limit information is included in the X-RateLimit-* response headers.
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)
app.add_middleware(GZipMiddleware, minimum_size=api_config.gzip_minimum_size)

for router in ROUTERS:
    app.include_router(router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration."""
    bind_request_context(request_id=str(uuid.uuid4()), method=request.method, path=request.url.path)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error("Request failed", error=str(e))
        clear_request_context()
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time"] = f"{duration_ms:.3f}ms"
    logger.info("Request handled", status_code=response.status_code, duration_ms=round(duration_ms, 3))
    clear_request_context()
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Set hardening headers on every response."""
    response = await call_next(request)
    if api_config.security_headers_enabled:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


def error_response(code: int, message: str, errors=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(code=code, message=message, errors=errors).model_dump(exclude_none=True),
        headers=headers
    )


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Handle classified catalog errors."""
    if exc.status_code >= 500:
        logger.error("Catalog error", error=exc.message, path=request.url.path)
    else:
        logger.info("Request rejected", error=exc.message, status_code=exc.status_code)
    return error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Validation Error: {location}: {first.get('msg')}"
    logger.info("Request validation failed", error=message)
    return error_response(status.HTTP_400_BAD_REQUEST, message, "Bad Request")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error")


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    database = getattr(request.app.state, "database", None)
    db_status = "unavailable"
    if database is not None:
        health_info = await database.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )
