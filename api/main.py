"""
FastAPI application entry point.

Configures the API with all routes, middleware, and error handling.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from itpnotify.auth.errors import AuthError
from itpnotify.config import load_config

from .v1.router import router as v1_router
from .deps import get_services, close_services

logger = logging.getLogger(__name__)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

GENERIC_ERROR_MESSAGE = "Ceva nu a mers bine pe server"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info("Starting ITP NOTIFICATION auth API...")

    # Initialize services on startup
    services = get_services()
    logger.info(f"Services initialized ({services.config.app.environment})")

    yield

    # Cleanup on shutdown
    logger.info("Shutting down...")
    await close_services()


app = FastAPI(
    title="ITP NOTIFICATION API",
    description="Account registration, verification and login for ITP expiry notifications",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_config().app.client_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 and exc.detail == "Not Found" else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {
        ".".join(str(part) for part in error.get("loc", ()) if part != "body"): error.get("msg", "")
        for error in exc.errors()
    }
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Datele trimise nu sunt valide", "errors": errors}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)

    content = {"success": False, "message": GENERIC_ERROR_MESSAGE}
    if not load_config().app.is_production:
        content["message"] = str(exc) or GENERIC_ERROR_MESSAGE
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return JSONResponse(status_code=500, content=content)


# Include API routes (the web client calls /api/auth/..., /api/user/...)
app.include_router(v1_router, prefix="/api")


# Root endpoint
@app.get("/", tags=["System"])
async def root():
    """API root endpoint."""
    return {
        "name": "ITP NOTIFICATION API",
        "version": "1.0.0",
        "docs": "/docs"
    }
