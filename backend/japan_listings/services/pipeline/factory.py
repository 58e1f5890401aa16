"""Builds the pipeline and its collaborators from settings."""

from dataclasses import dataclass
from functools import partial

from sqlalchemy.ext.asyncio import AsyncEngine

from japan_listings.config import Settings, TranslationSettings
from japan_listings.database import create_engine, create_session_factory
from japan_listings.repositories.cached_property_repository import CachedPropertyRepository
from japan_listings.repositories.property_repository import PropertyRepository
from japan_listings.scrapers.registry import get_scraper
from japan_listings.services.cache.store import RedisCacheStore
from japan_listings.services.pipeline.orchestrator import DataProcessingPipeline
from japan_listings.services.translation.service import TranslationService


@dataclass
class PipelineComponents:
    pipeline: DataProcessingPipeline
    translation_service: TranslationService
    engine: AsyncEngine

    async def start(self) -> None:
        await self.pipeline.initialize()

    async def stop(self) -> None:
        await self.pipeline.cleanup()
        await self.engine.dispose()


def build_pipeline(settings: Settings, translation_settings: TranslationSettings) -> PipelineComponents:
    """Wire one store, one translation service and one engine into a pipeline."""
    store = RedisCacheStore(translation_settings.redis_url)
    translation_service = TranslationService(translation_settings, store=store)

    engine = create_engine(settings)
    repository = CachedPropertyRepository(
        PropertyRepository(create_session_factory(engine)),
        store,
        ttl=settings.property_cache_ttl,
    )

    scraper_config = {
        "crawl_delay_seconds": settings.scrape_default_delay,
        "max_pages": settings.scrape_max_pages,
    }
    pipeline = DataProcessingPipeline(
        translation_service,
        repository,
        scraper_factory=partial(get_scraper, config=scraper_config),
    )
    return PipelineComponents(pipeline=pipeline, translation_service=translation_service, engine=engine)
