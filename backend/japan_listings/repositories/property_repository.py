"""Persistence of translated listings, upserted by source URL."""

from typing import Protocol

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from japan_listings.models.property import PropertyRecord
from japan_listings.schemas.listing import TranslatedListingRecord

logger = structlog.get_logger()


class PropertyRepositoryProtocol(Protocol):
    async def find_by_url(self, url: str) -> PropertyRecord | None: ...

    async def create(self, listing: TranslatedListingRecord) -> PropertyRecord: ...

    async def update(self, property_id: int, listing: TranslatedListingRecord) -> PropertyRecord | None: ...


class PropertyRepository:
    """
    Each call runs in its own session and commits on success, so one failed
    write never leaves a half-finished transaction for the next listing.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_by_url(self, url: str) -> PropertyRecord | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PropertyRecord).where(PropertyRecord.url == url)
            )
            return result.scalar_one_or_none()

    async def create(self, listing: TranslatedListingRecord) -> PropertyRecord:
        async with self.session_factory() as session:
            record = PropertyRecord(**listing.to_persistence_dict())
            session.add(record)
            await session.commit()
            await session.refresh(record)
            logger.debug("Created property", id=record.id, url=record.url)
            return record

    async def update(self, property_id: int, listing: TranslatedListingRecord) -> PropertyRecord | None:
        async with self.session_factory() as session:
            record = await session.get(PropertyRecord, property_id)
            if record is None:
                return None
            for column, value in listing.to_persistence_dict().items():
                setattr(record, column, value)
            await session.commit()
            await session.refresh(record)
            logger.debug("Updated property", id=record.id, url=record.url)
            return record

    async def count(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(PropertyRecord))
            return result.scalar_one()
