"""
FastAPI Application Entry Point
-------------------------------
Main application initialization and configuration.
Registers routers, middleware, exception handlers and lifecycle handlers.
"""

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core import logger_setup  # noqa: F401  configures loguru on import
from app.core.config_manager import settings
from app.core.database_connection import db_manager
from app.core.database_schema import create_schema
from app.core.exceptions import register_exception_handlers
from app.core.startup_diagnostics import (
    display_startup_failure,
    display_service_info,
    verify_database_connectivity,
)
from app.auth import get_token_codec
from app.auth.endpoints import router as auth_router
from app.auth.middleware import AuthorizationPolicyMiddleware, RequestIdentityMiddleware
from app.api import (
    admin_role_endpoints,
    admin_user_endpoints,
    book_endpoints,
    health_endpoints,
    user_endpoints,
    wishlist_endpoints,
)
from app.psql_db_services.roles_service import RolesService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager with graceful error handling."""

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")

    # Refuse to serve without a signing key
    get_token_codec()

    logger.info("Checking database connectivity...")
    await db_manager.initialize()
    database_status = await verify_database_connectivity()

    if database_status.status != "connected":
        logger.error(f"[FAILED] Database: {database_status.error_message}")
        display_startup_failure([database_status])
        logger.error("Application startup failed: database unavailable")
        os._exit(1)  # Exit immediately without traceback

    logger.info("[SUCCESS] Database connected and ready")
    await create_schema(db_manager.engine)
    await RolesService().seed_catalog()

    display_service_info()
    logger.info("[SUCCESS] Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    try:
        await db_manager.close()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Personal library API: book collection, wishlist and Google Books search",
    lifespan=lifespan,
    debug=settings.debug,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    swagger_ui_parameters={"displayRequestDuration": True},
)

register_exception_handlers(app)

# Middleware added last runs first: CORS, then identity, then the route table
app.add_middleware(AuthorizationPolicyMiddleware)
app.add_middleware(RequestIdentityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_endpoints.router)
app.include_router(auth_router)
app.include_router(user_endpoints.router)
app.include_router(admin_user_endpoints.router)
app.include_router(admin_role_endpoints.router)
app.include_router(book_endpoints.router)
app.include_router(wishlist_endpoints.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with basic information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/api/docs",
        "redoc": "/api/redoc",
        "openapi": "/api/openapi.json",
    }
