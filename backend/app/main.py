"""
Foundation API Backend — FastAPI Application Factory
======================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, routers, the admin module, the
       global exception filter and the merged OpenAPI document.
Who:   uvicorn (uvicorn app.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware (outermost first):                           │
    │  CORS → Request ID → Access Log → Admin Audit → Body     │
    │  → Unhandled Exception                                   │
    │                                                          │
    │  Routes:                                                 │
    │  GET /, /health, /metrics │ /products │ /admin/*         │
    │                                                          │
    │  GlobalExceptionFilter: every exception → ErrorResponse  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → production config check → Sentry → admin
              registry/discovery check
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from app import __version__
from app.admin import AdminDiscoveryService, AdminModule
from app.config import settings
from app.cors import OriginMatchingCORSMiddleware, get_cors_options
from app.database import dispose_engine, mask_database_url
from app.filters.global_exception import global_exception_filter
from app.middleware.admin import AdminOperationMiddleware
from app.middleware.exception import UnhandledExceptionMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_body import RequestBodyMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.routes import admin_auth, health, metrics, products
from app.sentry import init_sentry
from app.swagger.openapi_merge import install_openapi, load_openapi_document

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  LOG_LEVEL, or derived from APP_ENV (production WARNING,
            stage INFO, otherwise DEBUG).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("%s %s starting (env=%s)", settings.app_name, __version__, settings.app_env)
    logger.info("Database: %s", mask_database_url(settings.database_url))

    # Production with development defaults is refused outright
    settings.validate_required_for_production()

    init_sentry()

    app.state.admin_module.on_startup(
        AdminDiscoveryService(app),
        fail_on_mismatch=settings.admin_fail_on_discovery_mismatch,
    )

    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("%s shutting down...", settings.app_name)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Foundation API",
        description=(
            "Foundation backend: admin CRUD over registered entities, "
            "a uniform error contract and session-based auth."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: CORS is outermost, the exception catch innermost.
    app.add_middleware(UnhandledExceptionMiddleware)
    app.add_middleware(RequestBodyMiddleware)
    app.add_middleware(AdminOperationMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(OriginMatchingCORSMiddleware, options=get_cors_options(settings.cors_origin))

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(products.router)
    for controller in admin_auth.ADMIN_CONTROLLERS:
        app.include_router(controller.router)

    # Route modules are imported above, so every entity is registered by now
    app.state.admin_module = AdminModule.for_root()

    # ── Errors ────────────────────────────────────────────────────────────
    global_exception_filter.register(app)

    # ── OpenAPI ───────────────────────────────────────────────────────────
    install_openapi(app, [load_openapi_document(settings.auth_openapi_path)])

    return app


app = create_app()
