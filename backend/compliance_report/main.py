from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compliance_report.config import settings

logger = structlog.get_logger()

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting NYC Compliance Report API", env=settings.app_env)
    for warning in settings.validate_production():
        logger.warning("Configuration warning", detail=warning)

    from compliance_report.database import create_all_tables
    import compliance_report.models  # noqa: F401 - register models
    await create_all_tables()

    db_type = "sqlite" if settings.is_sqlite else "supabase/postgresql"
    logger.info("Database ready", backend=db_type)

    yield

    logger.info("Shutting down NYC Compliance Report API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="NYC Compliance Report API",
        description="Building violation lookup and compliance scoring for NYC properties.",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from compliance_report.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check: DB connectivity and configured collaborators."""
        from compliance_report.database import ping

        result = {
            "status": "healthy",
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": await ping(),
            "auth_available": settings.auth_available,
            "open_data_url": settings.nyc_open_data_url,
        }

        if result["database"] != "connected":
            result["status"] = "degraded"

        return result

    return app


app = create_app()
