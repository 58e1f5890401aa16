"""
Scrape → translate → store pipeline for one source site.

A run is linear:
1. Scrape the site. A scraper-reported failure ends the run immediately.
2. Translate every scraped listing through the translation service's batch
   path (concurrent within a chunk, paced between chunks).
3. Upsert the translated listings one at a time. A listing that fails to
   store is recorded in the summary and skipped; the rest continue.
4. Release the scraper, even if earlier steps failed.
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from japan_listings.repositories.property_repository import PropertyRepositoryProtocol
from japan_listings.schemas.listing import (
    ListingRecord,
    RunSummary,
    TranslatedListingRecord,
    TranslationStatus,
)
from japan_listings.scrapers.base import Scraper
from japan_listings.scrapers.registry import get_scraper, list_scrapers
from japan_listings.services.pipeline.errors import PipelineError, PipelineErrorType
from japan_listings.services.pipeline.logger import PipelineLogger
from japan_listings.services.translation.service import TranslationService


class DataProcessingPipeline:
    def __init__(
        self,
        translation_service: TranslationService,
        repository: PropertyRepositoryProtocol,
        scraper_factory: Callable[[str], Scraper] = get_scraper,
        logger: PipelineLogger | None = None,
    ):
        self.translation_service = translation_service
        self.repository = repository
        self.scraper_factory = scraper_factory
        self.logger = logger or PipelineLogger()

    async def initialize(self) -> None:
        try:
            await self.translation_service.initialize()
        except Exception as e:
            self.logger.error("Failed to initialize pipeline", error=str(e))
            raise PipelineError(
                "Pipeline initialization failed",
                PipelineErrorType.INITIALIZATION_ERROR,
                e,
            ) from e
        self.logger.info("Data processing pipeline initialized")

    async def process_site(self, site: str, cancel_event: asyncio.Event | None = None) -> RunSummary:
        summary = RunSummary(site=site)
        log = self.logger.for_site(site)

        try:
            scraper = self.scraper_factory(site)
        except Exception as e:
            error = PipelineError.scraping_error(str(e), e)
            log.error("Could not create scraper", error=str(e))
            summary.errors.append(error.report_line())
            return self._finish(summary, log)

        try:
            log.scraping_started()
            listings, scrape_error = await self._scrape(scraper, log)
            if scrape_error is not None:
                summary.errors.append(scrape_error.report_line())
                return self._finish(summary, log)

            translated, translate_error = await self._translate(listings, cancel_event, log)
            if translate_error is not None:
                summary.errors.append(translate_error.report_line())
                return self._finish(summary, log)

            # A cancel seen during translation still stores what was translated
            cancelled_before_storage = cancel_event is not None and cancel_event.is_set()
            for index, record in enumerate(translated):
                cancelled = not cancelled_before_storage and cancel_event is not None and cancel_event.is_set()
                if cancelled or record.translation_status == TranslationStatus.PENDING:
                    self._record_cancellation(summary, len(translated) - index, log)
                    break
                await self._store_listing(record, summary, log)
        finally:
            try:
                await scraper.cleanup()
            except Exception as e:
                log.warning("Failed to cleanup scraper", error=str(e))

        return self._finish(summary, log)

    async def process_sites(self, sites: Iterable[str] | None = None) -> dict[str, RunSummary]:
        """Run the pipeline for several sites, one after another."""
        results: dict[str, RunSummary] = {}
        for site in sites if sites is not None else list_scrapers():
            results[site] = await self.process_site(site)
        return results

    async def _scrape(
        self, scraper: Scraper, log: PipelineLogger
    ) -> tuple[list[ListingRecord], PipelineError | None]:
        try:
            result = await scraper.scrape_properties()
        except Exception as e:
            log.scraping_failed([str(e)])
            return [], PipelineError.scraping_error(str(e) or type(e).__name__, e)

        if not result.success:
            message = ", ".join(result.errors) if result.errors else "Unknown scraping error"
            log.scraping_failed(result.errors)
            return [], PipelineError.scraping_error(message)

        log.scraping_completed(scraped=result.scraped_count, skipped=result.skipped_count)
        return list(result.data), None

    async def _translate(
        self,
        listings: list[ListingRecord],
        cancel_event: asyncio.Event | None,
        log: PipelineLogger,
    ) -> tuple[list[TranslatedListingRecord], PipelineError | None]:
        try:
            translated = await self.translation_service.translate_batch(listings, cancel_event=cancel_event)
        except Exception as e:
            log.error("Batch translation failed", error=str(e), listings=len(listings))
            return [], PipelineError.translation_error(str(e) or type(e).__name__, e)

        for record in translated:
            if record.translation_status == TranslationStatus.FAILED:
                log.translation_failed(record.url, "no field could be translated")
            elif record.translation_status != TranslationStatus.PENDING:
                log.translation_completed(record.url, record.translation_status.value)
        return translated, None

    async def _store_listing(
        self, translated: TranslatedListingRecord, summary: RunSummary, log: PipelineLogger
    ) -> None:
        try:
            created = await self._store(translated)
        except Exception as e:
            error = PipelineError.database_error(str(e), e, {"url": translated.url})
            log.storage_failed(translated.url, str(e))
            summary.errors.append(error.report_line())
            return

        summary.processed_count += 1
        if created:
            summary.created_count += 1
        else:
            summary.updated_count += 1
        if translated.translation_status in (TranslationStatus.COMPLETE, TranslationStatus.PARTIAL):
            summary.translated_count += 1

    def _record_cancellation(self, summary: RunSummary, remaining: int, log: PipelineLogger) -> None:
        summary.cancelled = True
        summary.errors.append(
            PipelineError(f"{remaining} listings not processed", PipelineErrorType.CANCELLED).report_line()
        )
        log.warning("Pipeline run cancelled", remaining=remaining)

    async def _store(self, translated: TranslatedListingRecord) -> bool:
        """Upsert by URL. Returns True when a new record was created."""
        existing = await self.repository.find_by_url(translated.url)
        if existing is not None:
            updated = await self.repository.update(existing.id, translated)
            if updated is not None:
                return False
        await self.repository.create(translated)
        return True

    def _finish(self, summary: RunSummary, log: PipelineLogger) -> RunSummary:
        summary.completed_at = datetime.now(timezone.utc)
        log.pipeline_summary(
            {
                "success": summary.success,
                "processed_count": summary.processed_count,
                "created": summary.created_count,
                "updated": summary.updated_count,
                "errors": len(summary.errors),
            }
        )
        return summary

    async def health_status(self) -> dict[str, Any]:
        services = {"translation": False, "database": False, "scraping": False}

        services["translation"] = await self.translation_service.health_check()

        try:
            count = getattr(self.repository, "count", None)
            if count is not None:
                await count()
            services["database"] = True
        except Exception as e:
            self.logger.error("Database health check failed", error=str(e))

        services["scraping"] = len(list_scrapers()) > 0

        healthy = sum(services.values())
        if healthy == len(services):
            status = "healthy"
        elif healthy >= 2:
            status = "degraded"
        else:
            status = "unhealthy"
        return {"status": status, "services": services}

    async def cleanup(self) -> None:
        try:
            await self.translation_service.cleanup()
            self.logger.info("Pipeline cleanup completed")
        except Exception as e:
            self.logger.error("Pipeline cleanup error", error=str(e))
