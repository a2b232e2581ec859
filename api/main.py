"""
Land Registry API - Main Application.

FastAPI application with CORS, request logging and a uniform error body:
`{"success": false, "error": {"code": ..., "message": ...}}`.
"""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import __version__
from api.dependencies import get_settings
from api.logging_config import setup_logging
from domain.errors import (
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    LandRegistryError,
    NotFoundError,
    PermissionDeniedError,
)

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

# Error kind -> HTTP status; anything unlisted is a 500.
_STATUS_CODES = {
    NotFoundError: 404,
    InvalidStateError: 400,
    InvalidInputError: 400,
    ConflictError: 409,
    AuthenticationError: 401,
    PermissionDeniedError: 403,
}

app = FastAPI(
    title="Land Registry API",
    description="REST API for registering land plots and recording land sales",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


@app.exception_handler(LandRegistryError)
def handle_registry_error(request: Request, exc: LandRegistryError):
    status_code = next(
        (code for kind, code in _STATUS_CODES.items() if isinstance(exc, kind)), 500
    )
    if status_code == 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        message = "Internal server error"
    else:
        message = exc.message
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code, content=_error_body(exc.code, message), headers=headers
    )


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500, content=_error_body("INTERNAL_ERROR", "Internal server error")
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "land-registry-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Land Registry API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import auth, lands, transactions  # noqa: E402

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(lands.router, prefix="/api/v1", tags=["Land Plots"])
app.include_router(transactions.router, prefix="/api/v1", tags=["Transactions"])
