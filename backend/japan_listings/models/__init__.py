from japan_listings.models.property import PropertyRecord

__all__ = [
    "PropertyRecord",
]
