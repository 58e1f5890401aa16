import re
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when required settings are missing or out of range."""

    def __init__(self, problems: list[str], title: str = "Configuration errors"):
        self.problems = problems
        super().__init__(title + ":\n" + "\n".join(f"  - {p}" for p in problems))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Database: PostgreSQL (primary) or SQLite (local dev fallback)
    database_url: str = ""
    use_sqlite: bool = False

    postgres_user: str = "japan_listings"
    postgres_password: str = "japan_listings_dev"
    postgres_db: str = "japan_listings"
    db_host: str = "localhost"
    db_port: int = 5432

    @property
    def effective_database_url(self) -> str:
        """Return the async database URL to use."""
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = "postgresql+asyncpg://" + url[len("postgres://"):]
            elif url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            elif not url.startswith(("postgresql+asyncpg://", "sqlite")):
                url = "postgresql+asyncpg://" + url
            return url
        if self.use_sqlite:
            db_path = Path(__file__).parent.parent / "data" / "japan_listings.db"
            db_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{db_path}"
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.db_host}:{self.db_port}/{self.postgres_db}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

    # CORS allowed origins (comma-separated)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Scraping
    scrape_default_delay: float = 3.0
    scrape_max_pages: int = 5

    # Cached property lookups (seconds)
    property_cache_ttl: int = 3600

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


class TranslationSettings(BaseSettings):
    """Configuration for the translation pipeline.

    Each field is read from the upper-cased environment variable of the same
    name. Values are validated eagerly: all problems are collected and raised
    together as one ``ConfigurationError``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google Cloud Translation
    google_cloud_project_id: str = ""
    google_cloud_key_file: str | None = None
    # API key for the REST fallback provider
    google_translate_api_key: str = ""

    # Redis
    redis_url: str = ""

    # Batch processing
    translation_batch_size: int = 10
    translation_batch_delay_ms: int = 1000
    translation_fallback_enabled: bool = False
    translation_max_text_length: int = 5000

    # Cache
    translation_cache_ttl: int = 86400  # 24 hours
    translation_cache_max_size: int = 10000
    translation_cache_prefix: str = "translation:"

    @model_validator(mode="after")
    def _validate(self) -> "TranslationSettings":
        problems = []
        if not self.google_cloud_project_id:
            problems.append("GOOGLE_CLOUD_PROJECT_ID is required")
        if not self.redis_url:
            problems.append("REDIS_URL is required")
        if self.translation_batch_size <= 0:
            problems.append("TRANSLATION_BATCH_SIZE must be greater than 0")
        if self.translation_batch_delay_ms < 0:
            problems.append("TRANSLATION_BATCH_DELAY_MS must be non-negative")
        if self.translation_cache_ttl <= 0:
            problems.append("TRANSLATION_CACHE_TTL must be greater than 0")
        if self.translation_cache_max_size <= 0:
            problems.append("TRANSLATION_CACHE_MAX_SIZE must be greater than 0")
        if self.translation_max_text_length <= 0:
            problems.append("TRANSLATION_MAX_TEXT_LENGTH must be greater than 0")
        if problems:
            raise ConfigurationError(problems, title="Translation configuration errors")
        return self

    # Short names used throughout the services
    @property
    def batch_size(self) -> int:
        return self.translation_batch_size

    @property
    def batch_delay_ms(self) -> int:
        return self.translation_batch_delay_ms

    @property
    def fallback_enabled(self) -> bool:
        return self.translation_fallback_enabled

    @property
    def cache_ttl(self) -> int:
        return self.translation_cache_ttl

    @property
    def cache_max_size(self) -> int:
        return self.translation_cache_max_size

    @property
    def cache_key_prefix(self) -> str:
        return self.translation_cache_prefix

    def summary(self) -> dict:
        """Configuration snapshot that is safe to log."""
        return {
            "google_cloud_project_id": self.google_cloud_project_id,
            "has_key_file": bool(self.google_cloud_key_file),
            "has_fallback_api_key": bool(self.google_translate_api_key),
            "redis_url": re.sub(r"//.*@", "//***@", self.redis_url),
            "batch_size": self.batch_size,
            "batch_delay_ms": self.batch_delay_ms,
            "fallback_enabled": self.fallback_enabled,
            "cache": {
                "ttl": self.cache_ttl,
                "max_size": self.cache_max_size,
                "key_prefix": self.cache_key_prefix,
            },
        }


settings = Settings()
