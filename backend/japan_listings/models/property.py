from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from japan_listings.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PropertyRecord(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(1000), unique=True, index=True)

    # Source-language text and English translations
    title: Mapped[str] = mapped_column(Text)
    title_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(Text)
    location_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    description_en: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Core attributes
    price: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    size_sqm: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    property_type: Mapped[str] = mapped_column(String(20), default="other", index=True)
    images: Mapped[list] = mapped_column(JSON, default=list)
    listing_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    source_website: Mapped[str] = mapped_column(String(50), index=True)
    translation_status: Mapped[str] = mapped_column(String(20), default="pending", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "title_en": self.title_en,
            "location": self.location,
            "location_en": self.location_en,
            "description": self.description,
            "description_en": self.description_en,
            "price": self.price,
            "size_sqm": float(self.size_sqm) if self.size_sqm is not None else None,
            "property_type": self.property_type,
            "images": list(self.images or []),
            "listing_date": self.listing_date.isoformat() if self.listing_date else None,
            "source_website": self.source_website,
            "translation_status": self.translation_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyRecord":
        """Rebuild a detached record from ``to_dict()`` output."""
        values = dict(data)
        for column in ("listing_date", "created_at", "updated_at"):
            if values.get(column):
                values[column] = datetime.fromisoformat(values[column])
        return cls(**values)
