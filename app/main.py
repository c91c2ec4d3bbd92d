# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Portfolio API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.dependencies import build_services
from app.exceptions import (
    PortfolioException,
    portfolio_exception_handler,
    validation_exception_handler,
)
from app.routers import editorial, health, portfolio, storage

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: build the process-wide clients and services
    - Shutdown: close the shared HTTP client
    """
    logger.info(f"Starting Portfolio API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    services = build_services(settings)
    app.state.services = services

    missing_storage = services.storage.config.missing_fields()
    if missing_storage:
        logger.warning(f"Object storage not configured, uploads will fail: missing {missing_storage}")
    if not settings.has_openai_key:
        logger.warning("No OpenAI/Azure key configured, translation and image analysis will fail")

    yield

    logger.info("Shutting down Portfolio API")
    await services.aclose()


# Create FastAPI application
app = FastAPI(
    title="Portfolio API",
    description="""
## Photography Portfolio Backend

Serves the public gallery and the admin editor of a bilingual (en/zh)
photography portfolio.

### Image Lifecycle

1. **Request an upload URL** - `POST /api/upload-to-r2`
2. **Upload** - `PUT` the file to the returned URL (straight to R2)
3. **Save the record** - persist the public URL in Supabase
4. **Delete** - `POST /api/delete-from-r2` with the key, or `/by-url` with the stored URL

### Editorial Aids

| Endpoint | Provider |
|----------|----------|
| `/api/geocode` | OpenStreetMap Nominatim |
| `/api/translate` | OpenAI / Azure OpenAI |
| `/api/analyze-image` | OpenAI / Azure OpenAI vision |
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Storage",
            "description": "Presigned uploads and deletes against R2",
        },
        {
            "name": "Portfolio",
            "description": "Gallery data for the public site and editor",
        },
        {
            "name": "Editorial",
            "description": "Geocoding, translation and image analysis",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(PortfolioException)
async def handle_portfolio_exception(request: Request, exc: PortfolioException):
    """Handle custom Portfolio API exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return await portfolio_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api",
    tags=["Health"]
)

# Upload / delete endpoints
app.include_router(
    storage.router,
    prefix="/api",
    tags=["Storage"]
)

# Gallery read endpoints
app.include_router(
    portfolio.router,
    prefix="/api",
    tags=["Portfolio"]
)

# Editorial aid endpoints
app.include_router(
    editorial.router,
    prefix="/api",
    tags=["Editorial"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Portfolio API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }
