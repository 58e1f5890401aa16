from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from japan_listings.config import Settings, TranslationSettings, settings
from japan_listings.log_config import configure_logging

logger = structlog.get_logger()

VERSION = "1.0.0"


def create_app(
    app_settings: Settings | None = None,
    translation_settings: TranslationSettings | None = None,
) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        from japan_listings.database import create_all_tables
        from japan_listings.services.pipeline.factory import build_pipeline

        configure_logging(app_settings.log_level, app_settings.log_json)
        logger.info("Starting Japan Listings API", env=app_settings.app_env)

        components = build_pipeline(app_settings, translation_settings or TranslationSettings())
        await create_all_tables(components.engine)
        db_type = "sqlite" if app_settings.is_sqlite else "postgresql"
        logger.info("Database ready", backend=db_type)

        await components.start()
        app.state.pipeline = components.pipeline
        app.state.translation_service = components.translation_service

        yield

        await components.stop()
        logger.info("Shutting down Japan Listings API")

    app = FastAPI(
        title="Japan Listings API",
        description="Scrapes Japanese property portals, translates listings to English and stores them.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from japan_listings.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Liveness plus the pipeline's view of its collaborators."""
        result = {
            "status": "healthy",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        pipeline = getattr(app.state, "pipeline", None)
        if pipeline is not None:
            health = await pipeline.health_status()
            result["status"] = health["status"]
            result["services"] = health["services"]
        return result

    return app


app = create_app()
