from japan_listings.services.translation.cache import CacheStats, TranslationCache
from japan_listings.services.translation.errors import TranslationError
from japan_listings.services.translation.service import TranslationService

__all__ = [
    "CacheStats",
    "TranslationCache",
    "TranslationError",
    "TranslationService",
]
