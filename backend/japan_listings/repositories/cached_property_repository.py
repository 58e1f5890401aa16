"""Read-through cache in front of the property repository."""

import hashlib
import json

import structlog

from japan_listings.models.property import PropertyRecord
from japan_listings.repositories.property_repository import PropertyRepositoryProtocol
from japan_listings.schemas.listing import TranslatedListingRecord
from japan_listings.services.cache.store import CacheStore

logger = structlog.get_logger()


class CachedPropertyRepository:
    """
    Wraps a repository and serves ``find_by_url`` from the cache store.

    Writes go straight to the wrapped repository and then drop the cached
    entry for that URL. Store faults are logged and otherwise ignored, so the
    wrapper never fails where the repository alone would have succeeded.
    """

    KEY_PREFIX = "property:url:"

    def __init__(self, repository: PropertyRepositoryProtocol, store: CacheStore, ttl: int = 3600):
        self.repository = repository
        self.store = store
        self.ttl = ttl

    def _key(self, url: str) -> str:
        return self.KEY_PREFIX + hashlib.sha256(url.encode("utf-8")).hexdigest()

    async def find_by_url(self, url: str) -> PropertyRecord | None:
        key = self._key(url)
        try:
            cached = await self.store.get(key)
        except Exception as e:
            logger.warning("Property cache get failed", url=url, error=str(e))
            cached = None
        if cached:
            return PropertyRecord.from_dict(json.loads(cached))

        record = await self.repository.find_by_url(url)
        if record is not None:
            await self._store(record)
        return record

    async def create(self, listing: TranslatedListingRecord) -> PropertyRecord:
        record = await self.repository.create(listing)
        await self._invalidate(listing.url)
        return record

    async def update(self, property_id: int, listing: TranslatedListingRecord) -> PropertyRecord | None:
        record = await self.repository.update(property_id, listing)
        if record is not None:
            await self._invalidate(listing.url)
        return record

    async def _store(self, record: PropertyRecord) -> None:
        try:
            await self.store.set_with_expiry(self._key(record.url), self.ttl, json.dumps(record.to_dict()))
        except Exception as e:
            logger.warning("Property cache set failed", url=record.url, error=str(e))

    async def _invalidate(self, url: str) -> None:
        try:
            await self.store.delete(self._key(url))
        except Exception as e:
            logger.warning("Property cache invalidation failed", url=url, error=str(e))

    async def count(self) -> int:
        return await self.repository.count()
