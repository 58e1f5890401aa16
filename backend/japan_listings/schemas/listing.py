"""Listing records passed between the scraper, the translator and storage."""

import enum
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone


class PropertyType(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    MANSION = "mansion"
    LAND = "land"
    OTHER = "other"

    @classmethod
    def normalize(cls, raw: str | None) -> "PropertyType":
        """Map a portal label (Japanese or English) onto a property type."""
        if not raw:
            return cls.OTHER
        return _PROPERTY_TYPE_LABELS.get(raw.strip().lower(), cls.OTHER)


_PROPERTY_TYPE_LABELS = {
    "アパート": PropertyType.APARTMENT,
    "apartment": PropertyType.APARTMENT,
    "マンション": PropertyType.MANSION,
    "中古マンション": PropertyType.MANSION,
    "mansion": PropertyType.MANSION,
    "一戸建て": PropertyType.HOUSE,
    "戸建て": PropertyType.HOUSE,
    "一軒家": PropertyType.HOUSE,
    "中古戸建": PropertyType.HOUSE,
    "中古一戸建て": PropertyType.HOUSE,
    "house": PropertyType.HOUSE,
    "detached house": PropertyType.HOUSE,
    "detached_house": PropertyType.HOUSE,
    "土地": PropertyType.LAND,
    "land": PropertyType.LAND,
}


class TranslationStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


TRANSLATABLE_FIELDS = ("title", "location", "description")


@dataclass(frozen=True)
class ListingRecord:
    """One scraped listing, keyed by its source URL."""

    url: str
    title: str
    location: str
    property_type: str
    source_website: str
    description: str | None = None
    price: int | None = None
    size_sqm: float | None = None
    images: tuple[str, ...] = ()
    listing_date: datetime | None = None


@dataclass(frozen=True)
class TranslatedListingRecord(ListingRecord):
    title_en: str | None = None
    location_en: str | None = None
    description_en: str | None = None
    translation_status: TranslationStatus = TranslationStatus.PENDING

    @classmethod
    def from_listing(cls, record: ListingRecord, **overrides) -> "TranslatedListingRecord":
        base = {f.name: getattr(record, f.name) for f in fields(ListingRecord)}
        if isinstance(record, TranslatedListingRecord):
            base.update(
                title_en=record.title_en,
                location_en=record.location_en,
                description_en=record.description_en,
                translation_status=record.translation_status,
            )
        base.update(overrides)
        return cls(**base)

    def with_status(self, status: TranslationStatus) -> "TranslatedListingRecord":
        return replace(self, translation_status=status)

    def to_persistence_dict(self) -> dict:
        """Column values for the properties table."""
        data = asdict(self)
        data["images"] = list(self.images)
        data["translation_status"] = self.translation_status.value
        return data


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def compute_translation_status(
    source: ListingRecord,
    title_en: str | None,
    location_en: str | None,
    description_en: str | None,
) -> TranslationStatus:
    """Derive the overall status from which fields were translated.

    complete: every non-empty source field has a translation (vacuously
    true when no field has text). failed: no non-empty source field was
    translated. partial: anything in between.
    """
    translated = {"title": title_en, "location": location_en, "description": description_en}
    present = [name for name in TRANSLATABLE_FIELDS if _has_text(getattr(source, name))]
    done = [name for name in present if _has_text(translated[name])]

    if len(done) == len(present):
        return TranslationStatus.COMPLETE
    if not done:
        return TranslationStatus.FAILED
    return TranslationStatus.PARTIAL


@dataclass
class ScrapingResult:
    """What a scraper hands back for one run."""

    success: bool
    data: list[ListingRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    scraped_count: int = 0
    skipped_count: int = 0


@dataclass
class RunSummary:
    """Outcome of one pipeline run for a single site."""

    site: str
    processed_count: int = 0
    created_count: int = 0
    updated_count: int = 0
    translated_count: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "site": self.site,
            "success": self.success,
            "processed_count": self.processed_count,
            "created_count": self.created_count,
            "updated_count": self.updated_count,
            "translated_count": self.translated_count,
            "errors": list(self.errors),
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
