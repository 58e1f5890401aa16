from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from japan_listings.config import Settings

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    metadata = metadata


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine for the configured database."""
    db_url = settings.effective_database_url
    engine_kwargs: dict = {"echo": settings.app_debug}

    if db_url.startswith("sqlite"):
        # SQLite dev mode - no pool size settings
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # PgBouncer (transaction pooling) conflicts with asyncpg's prepared
        # statement cache, so it is disabled.
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 5
        engine_kwargs["connect_args"] = {"statement_cache_size": 0}
        engine_kwargs["pool_pre_ping"] = True

    return create_async_engine(db_url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create the listing tables if they do not exist yet."""
    import japan_listings.models  # noqa: F401 - registers the models

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
