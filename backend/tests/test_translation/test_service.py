"""Tests for the translation service."""

import asyncio

import pytest

from japan_listings.schemas.listing import TranslatedListingRecord, TranslationStatus
from japan_listings.services.translation.errors import TranslationError
from japan_listings.services.translation.service import TranslationService

FULL_TRANSLATIONS = {
    "東京のアパート": "Tokyo Apartment",
    "渋谷区": "Shibuya Ward",
    "素晴らしい物件です": "This is a wonderful property",
}


@pytest.fixture
def provider(provider_factory):
    return provider_factory(FULL_TRANSLATIONS)


@pytest.fixture
def service(translation_settings, store, provider):
    return TranslationService(translation_settings, store=store, provider=provider, fallback=None)


def _apartment(listing_factory):
    return listing_factory(
        title="東京のアパート",
        location="渋谷区",
        description="素晴らしい物件です",
        property_type="apartment",
    )


class TestTranslateListing:
    @pytest.mark.asyncio
    async def test_full_translation(self, service, listing_factory):
        result = await service.translate_listing(_apartment(listing_factory))

        assert result.title_en == "Tokyo Apartment"
        assert result.location_en == "Shibuya Ward"
        assert result.description_en == "This is a wonderful property"
        assert result.translation_status == TranslationStatus.COMPLETE
        assert result.title == "東京のアパート"

    @pytest.mark.asyncio
    async def test_total_failure(self, translation_settings, store, provider_factory, listing_factory):
        failing = provider_factory(error=TranslationError("Translation API error"))
        service = TranslationService(translation_settings, store=store, provider=failing, fallback=None)

        result = await service.translate_listing(_apartment(listing_factory))

        assert result.title_en is None
        assert result.location_en is None
        assert result.description_en is None
        assert result.translation_status == TranslationStatus.FAILED

    @pytest.mark.asyncio
    async def test_partial_translation(self, translation_settings, store, provider_factory, listing_factory):
        provider = provider_factory({"東京のアパート": "Tokyo Apartment"})
        service = TranslationService(translation_settings, store=store, provider=provider, fallback=None)

        result = await service.translate_listing(_apartment(listing_factory))

        assert result.title_en == "Tokyo Apartment"
        assert result.translation_status == TranslationStatus.PARTIAL

    @pytest.mark.asyncio
    async def test_missing_description_still_complete(self, service, listing_factory):
        record = listing_factory(title="東京のアパート", location="渋谷区", description=None)
        result = await service.translate_listing(record)
        assert result.description_en is None
        assert result.translation_status == TranslationStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_results_are_cached(self, service, store, provider, listing_factory):
        await service.translate_listing(_apartment(listing_factory))
        assert await service.get_cached_translation("渋谷区") == "Shibuya Ward"
        assert len(store.data) == 3

    @pytest.mark.asyncio
    async def test_store_fault_still_translates_listing(self, service, store, listing_factory):
        store.fail = True

        result = await service.translate_listing(_apartment(listing_factory))

        assert result.title_en == "Tokyo Apartment"
        assert result.location_en == "Shibuya Ward"
        assert result.description_en == "This is a wonderful property"
        assert result.translation_status == TranslationStatus.COMPLETE


class TestTranslateText:
    @pytest.mark.asyncio
    async def test_blank_text_skips_upstream(self, service, provider):
        assert await service.translate_text("   ") is None
        assert await service.translate_text(None) is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_cache_hit_avoids_upstream(self, service, provider):
        await service.cache.set("渋谷区", "Shibuya (cached)")
        assert await service.translate_text("渋谷区") == "Shibuya (cached)"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_blank_upstream_result_not_cached(self, service, provider, store):
        provider.translations["空"] = "  "
        assert await service.translate_text("空") is None
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_store_fault_still_translates(self, service, store):
        store.fail = True
        assert await service.translate_text("渋谷区") == "Shibuya Ward"


class TestFallback:
    @pytest.mark.asyncio
    async def test_fallback_used_when_enabled(self, settings_factory, store, provider_factory):
        settings = settings_factory(translation_fallback_enabled=True)
        primary = provider_factory(error=TranslationError.rate_limit_error())
        fallback = provider_factory({"渋谷区": "Shibuya"})
        service = TranslationService(settings, store=store, provider=primary, fallback=fallback)

        assert await service.translate_text("渋谷区") == "Shibuya"
        assert primary.calls == ["渋谷区"]
        assert fallback.calls == ["渋谷区"]
        assert await service.get_cached_translation("渋谷区") == "Shibuya"

    @pytest.mark.asyncio
    async def test_fallback_ignored_when_disabled(self, translation_settings, store, provider_factory):
        primary = provider_factory(error=TranslationError("boom"))
        fallback = provider_factory({"渋谷区": "Shibuya"})
        service = TranslationService(translation_settings, store=store, provider=primary, fallback=fallback)

        assert await service.translate_text("渋谷区") is None
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_fallback_failure_gives_none(self, settings_factory, store, provider_factory):
        settings = settings_factory(translation_fallback_enabled=True)
        primary = provider_factory(error=TranslationError("boom"))
        fallback = provider_factory(error=TranslationError.network_error())
        service = TranslationService(settings, store=store, provider=primary, fallback=fallback)

        assert await service.translate_text("渋谷区") is None


class TestTranslateBatch:
    @pytest.mark.asyncio
    async def test_order_preserved_under_out_of_order_completion(
        self, settings_factory, store, provider_factory, listing_factory
    ):
        records = [listing_factory(i, title=f"t{i}", location=f"l{i}", description=None) for i in range(5)]
        translations = {}
        delays = {}
        for i in range(5):
            translations[f"t{i}"] = f"T{i}"
            translations[f"l{i}"] = f"L{i}"
            # Earlier listings finish later
            delays[f"t{i}"] = (5 - i) * 0.01
        provider = provider_factory(translations, delays=delays)
        service = TranslationService(
            settings_factory(translation_batch_size=5), store=store, provider=provider, fallback=None
        )

        results = await service.translate_batch(records)

        assert [r.url for r in results] == [r.url for r in records]
        assert [r.title_en for r in results] == [f"T{i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_failing_listing_is_isolated(self, service, listing_factory, monkeypatch):
        records = [_apartment(listing_factory), listing_factory(2), _apartment(listing_factory)]
        original = service.translate_listing

        async def flaky(record):
            if record.url == records[1].url:
                raise RuntimeError("unexpected")
            return await original(record)

        monkeypatch.setattr(service, "translate_listing", flaky)

        results = await service.translate_batch(records)

        assert len(results) == 3
        assert results[0].translation_status == TranslationStatus.COMPLETE
        assert results[1].translation_status == TranslationStatus.FAILED
        assert results[1].url == records[1].url
        assert results[2].translation_status == TranslationStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_upstream_rejecting_one_listing_is_isolated(self, service, listing_factory):
        records = [
            _apartment(listing_factory),
            listing_factory(2, title="訳せない物件", location="不明な場所", description="未対応の説明"),
            _apartment(listing_factory),
        ]

        results = await service.translate_batch(records)

        assert [r.translation_status for r in results] == [
            TranslationStatus.COMPLETE,
            TranslationStatus.FAILED,
            TranslationStatus.COMPLETE,
        ]
        assert results[1].url == records[1].url
        assert results[1].title_en is None
        assert results[0].title_en == "Tokyo Apartment"

    @pytest.mark.asyncio
    async def test_chunks_run_sequentially_with_delay(
        self, settings_factory, store, provider, listing_factory, monkeypatch
    ):
        service = TranslationService(
            settings_factory(translation_batch_size=2, translation_batch_delay_ms=250),
            store=store,
            provider=provider,
            fallback=None,
        )
        sleeps = []
        real_sleep = asyncio.sleep

        async def fake_sleep(seconds, *args, **kwargs):
            sleeps.append(seconds)
            await real_sleep(0)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)

        records = [_apartment(listing_factory) for _ in range(5)]
        results = await service.translate_batch(records)

        assert len(results) == 5
        # Three chunks, delay only between them
        assert sleeps == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_cancel_leaves_remaining_pending(self, settings_factory, store, provider, listing_factory):
        service = TranslationService(
            settings_factory(translation_batch_size=1), store=store, provider=provider, fallback=None
        )
        cancel = asyncio.Event()
        cancel.set()

        records = [_apartment(listing_factory), listing_factory(2)]
        results = await service.translate_batch(records, cancel_event=cancel)

        assert [r.translation_status for r in results] == [TranslationStatus.PENDING] * 2
        assert all(isinstance(r, TranslatedListingRecord) for r in results)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_batch(self, service):
        assert await service.translate_batch([]) == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_connects_store(self, service, store):
        await service.initialize()
        assert store.connected

    @pytest.mark.asyncio
    async def test_initialize_failure_raises(self, service, store):
        store.fail = True
        with pytest.raises(TranslationError, match="Failed to initialize translation service"):
            await service.initialize()

    @pytest.mark.asyncio
    async def test_cleanup_never_raises(self, service, store, provider):
        store.fail = True
        await service.cleanup()
        assert provider.closed

    @pytest.mark.asyncio
    async def test_health_check(self, service, store):
        assert await service.health_check() is True
        store.fail = True
        assert await service.health_check() is False

    @pytest.mark.asyncio
    async def test_stats_and_clear(self, service):
        await service.translate_text("渋谷区")
        await service.translate_text("渋谷区")
        stats = await service.get_cache_stats()
        assert stats.size == 1
        assert stats.hits == 1
        assert service.get_hit_rate() == 0.5

        await service.clear_cache()
        assert (await service.get_cache_stats()).size == 0
