"""Cache of translated strings keyed by a hash of the source text."""

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog

from japan_listings.services.cache.store import CacheStore
from japan_listings.services.translation.errors import TranslationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    size: int

    def to_dict(self) -> dict:
        return {"hits": self.hits, "misses": self.misses, "size": self.size}


class TranslationCache:
    """
    Translation cache on top of a CacheStore.

    Store faults never reach the caller: reads degrade to misses and writes
    to no-ops. Only ``clear()`` reports a failure, since a caller asking to
    wipe the cache needs to know it did not happen.

    The entry cap is approximate. After each write the namespace is listed
    and the first ``count - max_size`` keys in the store's enumeration order
    are dropped, which roughly tracks insertion order but is not an LRU.
    """

    def __init__(self, store: CacheStore, ttl: int, max_size: int, key_prefix: str = "translation:"):
        self.store = store
        self.ttl = ttl
        self.max_size = max_size
        self.key_prefix = key_prefix
        self._hits = 0
        self._misses = 0

    def make_key(self, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{self.key_prefix}{digest}"

    @property
    def _pattern(self) -> str:
        return f"{self.key_prefix}*"

    async def get(self, text: str) -> str | None:
        try:
            value = await self.store.get(self.make_key(text))
        except Exception as e:
            logger.warning("Cache get failed", error=str(e))
            self._misses += 1
            return None

        if value:
            self._hits += 1
            return value
        self._misses += 1
        return None

    async def set(self, text: str, translated: str) -> None:
        try:
            await self.store.set_with_expiry(self.make_key(text), self.ttl, translated)
        except Exception as e:
            logger.warning("Cache set failed", error=str(e))
            return
        await self._enforce_max_size()

    async def has(self, text: str) -> bool:
        try:
            return await self.store.exists(self.make_key(text))
        except Exception as e:
            logger.warning("Cache exists check failed", error=str(e))
            return False

    async def delete(self, text: str) -> None:
        try:
            await self.store.delete(self.make_key(text))
        except Exception as e:
            logger.warning("Cache delete failed", error=str(e))

    async def clear(self) -> None:
        try:
            keys = await self.store.keys_matching(self._pattern)
            if keys:
                await self.store.delete(*keys)
        except Exception as e:
            logger.error("Cache clear failed", error=str(e))
            raise TranslationError.cache_error("Failed to clear translation cache", e) from e

        self._hits = 0
        self._misses = 0
        logger.info("Translation cache cleared", removed=len(keys))

    async def get_multiple(self, texts: Iterable[str]) -> dict[str, str | None]:
        texts = list(texts)
        if not texts:
            return {}

        try:
            values = await self.store.get_multiple([self.make_key(t) for t in texts])
        except Exception as e:
            logger.warning("Cache get_multiple failed", error=str(e), count=len(texts))
            self._misses += len(texts)
            return {t: None for t in texts}

        results: dict[str, str | None] = {}
        for text, value in zip(texts, values):
            if value:
                self._hits += 1
                results[text] = value
            else:
                self._misses += 1
                results[text] = None
        return results

    async def set_multiple(self, translations: Mapping[str, str]) -> None:
        if not translations:
            return
        entries = {self.make_key(text): value for text, value in translations.items()}
        try:
            await self.store.multi_set_with_expiry(entries, self.ttl)
        except Exception as e:
            logger.warning("Cache set_multiple failed", error=str(e), count=len(entries))
            return
        await self._enforce_max_size()

    async def get_stats(self) -> CacheStats:
        try:
            size = len(await self.store.keys_matching(self._pattern))
        except Exception as e:
            logger.warning("Cache stats failed", error=str(e))
            size = 0
        return CacheStats(hits=self._hits, misses=self._misses, size=size)

    def get_hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    async def _enforce_max_size(self) -> None:
        try:
            keys = await self.store.keys_matching(self._pattern)
            overflow = len(keys) - self.max_size
            if overflow > 0:
                await self.store.delete(*keys[:overflow])
                logger.debug("Evicted cache entries", count=overflow)
        except Exception as e:
            logger.warning("Cache size management failed", error=str(e))
