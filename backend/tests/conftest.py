"""Test configuration and fixtures."""

import asyncio
import fnmatch

import pytest

from japan_listings.config import TranslationSettings
from japan_listings.schemas.listing import ListingRecord


class InMemoryCacheStore:
    """CacheStore kept in a dict. Enumerates keys in insertion order.

    Set ``fail = True`` to make every operation raise.
    """

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False
        self.connected = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("store unavailable")

    async def connect(self):
        self._check()
        self.connected = True

    async def close(self):
        self._check()
        self.closed = True

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set_with_expiry(self, key, ttl_seconds, value):
        self._check()
        self.data.pop(key, None)
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def exists(self, key):
        self._check()
        return key in self.data

    async def delete(self, *keys):
        self._check()
        for key in keys:
            self.data.pop(key, None)
            self.ttls.pop(key, None)

    async def keys_matching(self, pattern):
        self._check()
        return [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]

    async def get_multiple(self, keys):
        self._check()
        return [self.data.get(k) for k in keys]

    async def multi_set_with_expiry(self, entries, ttl_seconds):
        self._check()
        for key, value in entries.items():
            await self.set_with_expiry(key, ttl_seconds, value)


class DictProvider:
    """Translation provider answering from a dict; unknown text raises."""

    name = "fake"

    def __init__(self, translations=None, error=None, delays=None):
        self.translations = translations or {}
        self.error = error
        self.delays = delays or {}
        self.calls: list[str] = []
        self.closed = False

    async def translate(self, text, source_lang="ja", target_lang="en"):
        self.calls.append(text)
        if text in self.delays:
            await asyncio.sleep(self.delays[text])
        if self.error is not None:
            raise self.error
        if text not in self.translations:
            raise RuntimeError(f"no translation for {text!r}")
        return [self.translations[text]]

    async def close(self):
        self.closed = True


def make_translation_settings(**overrides) -> TranslationSettings:
    values = {
        "google_cloud_project_id": "test-project",
        "redis_url": "redis://localhost:6379/0",
        "translation_batch_delay_ms": 0,
    }
    values.update(overrides)
    return TranslationSettings(_env_file=None, **values)


def make_listing(n: int = 1, **overrides) -> ListingRecord:
    values = {
        "url": f"https://suumo.jp/chukoikkodate/tokyo/nc_{n:08d}/",
        "title": f"物件{n}",
        "location": "東京都渋谷区",
        "description": "駅近の物件です",
        "property_type": "house",
        "source_website": "suumo",
    }
    values.update(overrides)
    return ListingRecord(**values)


@pytest.fixture
def store():
    return InMemoryCacheStore()


@pytest.fixture
def translation_settings():
    return make_translation_settings()


@pytest.fixture
def listing_factory():
    return make_listing


@pytest.fixture
def settings_factory():
    return make_translation_settings


@pytest.fixture
def provider_factory():
    return DictProvider
