"""Translates Japanese listing fields to English with caching and batching."""

import asyncio
from collections.abc import Sequence

import structlog

from japan_listings.config import TranslationSettings
from japan_listings.schemas.listing import (
    ListingRecord,
    TranslatedListingRecord,
    TranslationStatus,
    compute_translation_status,
)
from japan_listings.services.cache.store import CacheStore, RedisCacheStore
from japan_listings.services.translation.cache import CacheStats, TranslationCache
from japan_listings.services.translation.errors import TranslationError
from japan_listings.services.translation.providers import (
    TranslationProvider,
    build_fallback_provider,
    build_primary_provider,
)

logger = structlog.get_logger()

SOURCE_LANG = "ja"
TARGET_LANG = "en"


class TranslationService:
    """
    Per-listing and batch translation of title, location and description.

    Collaborators are injected; anything left out is built from settings.
    One store connection is held per instance and is opened by
    ``initialize()`` and released by ``cleanup()``.
    """

    def __init__(
        self,
        settings: TranslationSettings,
        store: CacheStore | None = None,
        provider: TranslationProvider | None = None,
        fallback: TranslationProvider | None = None,
    ):
        self.settings = settings
        self.store = store or RedisCacheStore(settings.redis_url)
        self.provider = provider or build_primary_provider(settings)
        self.fallback = fallback if fallback is not None else build_fallback_provider(settings)
        self.cache = TranslationCache(
            self.store,
            ttl=settings.cache_ttl,
            max_size=settings.cache_max_size,
            key_prefix=settings.cache_key_prefix,
        )

    async def initialize(self) -> None:
        try:
            await self.store.connect()
        except Exception as e:
            logger.error("Failed to initialize translation service", error=str(e))
            raise TranslationError("Failed to initialize translation service", e) from e
        logger.info("Translation service initialized", **self.settings.summary())

    async def cleanup(self) -> None:
        for provider in (self.provider, self.fallback):
            if provider is None:
                continue
            try:
                await provider.close()
            except Exception as e:
                logger.warning("Error closing translation provider", provider=provider.name, error=str(e))
        try:
            await self.store.close()
            logger.info("Translation service cleaned up")
        except Exception as e:
            logger.error("Error during translation service cleanup", error=str(e))

    async def translate_listing(self, record: ListingRecord) -> TranslatedListingRecord:
        """Translate the text fields of one listing. Never raises."""
        try:
            title_en = await self.translate_text(record.title)
            location_en = await self.translate_text(record.location)
            description_en = await self.translate_text(record.description)
        except Exception as e:
            logger.error("Error translating listing", url=record.url, error=str(e))
            return TranslatedListingRecord.from_listing(
                record, translation_status=TranslationStatus.FAILED
            )

        status = compute_translation_status(record, title_en, location_en, description_en)
        return TranslatedListingRecord.from_listing(
            record,
            title_en=title_en,
            location_en=location_en,
            description_en=description_en,
            translation_status=status,
        )

    async def translate_batch(
        self,
        records: Sequence[ListingRecord],
        cancel_event: asyncio.Event | None = None,
    ) -> list[TranslatedListingRecord]:
        """
        Translate many listings, ``batch_size`` at a time.

        Listings within a chunk run concurrently; chunks run one after another
        with ``batch_delay_ms`` between them. The result has the same length
        and order as ``records``. A listing whose translation raises comes
        back as ``failed`` without affecting its chunk-mates. If
        ``cancel_event`` is set, listings in chunks that have not started are
        returned untouched with status ``pending``.
        """
        results: list[TranslatedListingRecord] = []
        batch_size = self.settings.batch_size
        delay = self.settings.batch_delay_ms / 1000

        for start in range(0, len(records), batch_size):
            chunk = records[start:start + batch_size]

            if cancel_event is not None and cancel_event.is_set():
                remaining = records[start:]
                logger.info("Batch translation cancelled", remaining=len(remaining))
                results.extend(TranslatedListingRecord.from_listing(r) for r in remaining)
                break

            outcomes = await asyncio.gather(
                *(self.translate_listing(r) for r in chunk),
                return_exceptions=True,
            )
            for record, outcome in zip(chunk, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("Failed to translate listing", url=record.url, error=str(outcome))
                    results.append(
                        TranslatedListingRecord.from_listing(
                            record, translation_status=TranslationStatus.FAILED
                        )
                    )
                else:
                    results.append(outcome)

            logger.debug(
                "Translated chunk",
                start=start,
                size=len(chunk),
                total=len(records),
            )

            if start + batch_size < len(records) and delay > 0:
                await asyncio.sleep(delay)

        return results

    async def translate_text(self, text: str | None) -> str | None:
        """Translate a single field: cache, then upstream, then fallback."""
        if not text or not text.strip():
            return None

        cached = await self.cache.get(text)
        if cached:
            return cached

        try:
            translated = await self._call_provider(self.provider, text)
        except Exception as e:
            logger.warning(
                "Translation failed",
                provider=self.provider.name,
                error=str(e),
                rate_limited=isinstance(e, TranslationError) and e.is_rate_limit_error(),
            )
            return await self._fallback_translate(text)

        if translated is None:
            return None
        await self._cache_quietly(text, translated)
        return translated

    async def _call_provider(self, provider: TranslationProvider, text: str) -> str | None:
        translations = await provider.translate(text, SOURCE_LANG, TARGET_LANG)
        translated = translations[0] if translations else None
        if translated and translated.strip():
            return translated
        return None

    async def _fallback_translate(self, text: str) -> str | None:
        if not self.settings.fallback_enabled or self.fallback is None:
            return None
        try:
            translated = await self._call_provider(self.fallback, text)
        except Exception as e:
            logger.warning("Fallback translation failed", provider=self.fallback.name, error=str(e))
            return None
        if translated is not None:
            await self._cache_quietly(text, translated)
        return translated

    async def _cache_quietly(self, text: str, translated: str) -> None:
        try:
            await self.cache.set(text, translated)
        except Exception as e:
            logger.warning("Could not cache translation", error=str(e))

    async def get_cached_translation(self, text: str) -> str | None:
        return await self.cache.get(text)

    async def clear_cache(self) -> None:
        await self.cache.clear()

    async def get_cache_stats(self) -> CacheStats:
        return await self.cache.get_stats()

    def get_hit_rate(self) -> float:
        return self.cache.get_hit_rate()

    async def health_check(self) -> bool:
        try:
            return await self.store.ping()
        except Exception as e:
            logger.warning("Translation cache health check failed", error=str(e))
            return False
