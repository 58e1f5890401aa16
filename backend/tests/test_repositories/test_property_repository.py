"""Tests for property persistence and the cached repository wrapper."""

import pytest
import pytest_asyncio

from japan_listings.config import Settings
from japan_listings.database import create_all_tables, create_engine, create_session_factory
from japan_listings.repositories.cached_property_repository import CachedPropertyRepository
from japan_listings.repositories.property_repository import PropertyRepository
from japan_listings.schemas.listing import TranslatedListingRecord, TranslationStatus


@pytest_asyncio.fixture
async def repository(tmp_path):
    settings = Settings(_env_file=None, database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    engine = create_engine(settings)
    await create_all_tables(engine)
    yield PropertyRepository(create_session_factory(engine))
    await engine.dispose()


def _translated(listing_factory, **overrides):
    values = {"title_en": "House 1", "location_en": "Shibuya", "translation_status": TranslationStatus.PARTIAL}
    values.update(overrides)
    return TranslatedListingRecord.from_listing(listing_factory(images=("a.jpg",), price=15_000_000), **values)


class TestPropertyRepository:
    @pytest.mark.asyncio
    async def test_create_and_find(self, repository, listing_factory):
        listing = _translated(listing_factory)
        created = await repository.create(listing)

        found = await repository.find_by_url(listing.url)
        assert found is not None
        assert found.id == created.id
        assert found.title_en == "House 1"
        assert found.images == ["a.jpg"]
        assert found.translation_status == "partial"
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_find_missing(self, repository):
        assert await repository.find_by_url("https://suumo.jp/none/") is None

    @pytest.mark.asyncio
    async def test_update(self, repository, listing_factory):
        created = await repository.create(_translated(listing_factory))
        updated = await repository.update(
            created.id,
            _translated(listing_factory, description_en="Near the station", translation_status=TranslationStatus.COMPLETE),
        )
        assert updated.description_en == "Near the station"
        assert updated.translation_status == "complete"
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, repository, listing_factory):
        assert await repository.update(999, _translated(listing_factory)) is None


class FakeRepository:
    def __init__(self):
        self.records = {}
        self.lookups = 0

    async def find_by_url(self, url):
        self.lookups += 1
        return self.records.get(url)

    async def create(self, listing):
        from japan_listings.models.property import PropertyRecord

        record = PropertyRecord(id=len(self.records) + 1, **listing.to_persistence_dict())
        self.records[listing.url] = record
        return record

    async def update(self, property_id, listing):
        record = self.records.get(listing.url)
        if record is None or record.id != property_id:
            return None
        record.title_en = listing.title_en
        return record

    async def count(self):
        return len(self.records)


class TestCachedPropertyRepository:
    @pytest.mark.asyncio
    async def test_find_is_read_through(self, store, listing_factory):
        inner = FakeRepository()
        repo = CachedPropertyRepository(inner, store, ttl=120)
        listing = _translated(listing_factory)
        await inner.create(listing)

        first = await repo.find_by_url(listing.url)
        second = await repo.find_by_url(listing.url)

        assert inner.lookups == 1
        assert first.id == second.id == 1
        assert second.title_en == "House 1"
        assert list(store.ttls.values()) == [120]

    @pytest.mark.asyncio
    async def test_writes_invalidate(self, store, listing_factory):
        inner = FakeRepository()
        repo = CachedPropertyRepository(inner, store)
        listing = _translated(listing_factory)

        created = await repo.create(listing)
        await repo.find_by_url(listing.url)
        await repo.update(created.id, _translated(listing_factory, title_en="Renamed"))

        assert store.data == {}
        found = await repo.find_by_url(listing.url)
        assert found.title_en == "Renamed"

    @pytest.mark.asyncio
    async def test_store_faults_fall_through(self, store, listing_factory):
        inner = FakeRepository()
        repo = CachedPropertyRepository(inner, store)
        store.fail = True

        created = await repo.create(_translated(listing_factory))
        assert (await repo.find_by_url(created.url)).id == created.id
        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_missing_url_not_cached(self, store):
        repo = CachedPropertyRepository(FakeRepository(), store)
        assert await repo.find_by_url("https://suumo.jp/none/") is None
        assert store.data == {}
