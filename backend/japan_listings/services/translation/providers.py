"""Upstream machine-translation providers (Google Cloud Translation)."""

import asyncio
from typing import Protocol

import httpx
import structlog
from google.api_core import exceptions as google_exceptions
from google.cloud import translate_v2
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from japan_listings.config import TranslationSettings
from japan_listings.services.translation.errors import TranslationError

logger = structlog.get_logger()


class TranslationProvider(Protocol):
    name: str

    async def translate(self, text: str, source_lang: str, target_lang: str) -> list[str]:
        """Translate one string; returns a one-element list."""
        ...

    async def close(self) -> None: ...


def _classify_google_error(exc: Exception) -> TranslationError:
    if isinstance(exc, google_exceptions.TooManyRequests):
        return TranslationError.rate_limit_error(cause=exc)
    if isinstance(exc, google_exceptions.Forbidden) and "quota" in str(exc).lower():
        return TranslationError.rate_limit_error(cause=exc)
    if isinstance(exc, (google_exceptions.Unauthorized, google_exceptions.Forbidden)):
        return TranslationError.auth_error(cause=exc)
    if isinstance(exc, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded)):
        return TranslationError.network_error(cause=exc)
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return TranslationError.network_error(cause=exc)
    return TranslationError(f"Translation request failed: {exc}", exc)


class GoogleCloudTranslateProvider:
    """Google Cloud Translation v2 via the official client library.

    Authenticates with the service-account key file when one is configured,
    otherwise with application default credentials. The project id is sent
    as the quota project. The client library is blocking, so calls run in a
    worker thread.
    """

    name = "google-cloud"

    def __init__(
        self,
        project_id: str,
        key_file: str | None = None,
        client: translate_v2.Client | None = None,
    ):
        self.project_id = project_id
        self.key_file = key_file
        self._client = client

    def _get_client(self) -> translate_v2.Client:
        if self._client is None:
            client_options = {"quota_project_id": self.project_id}
            if self.key_file:
                self._client = translate_v2.Client.from_service_account_json(
                    self.key_file, client_options=client_options
                )
            else:
                self._client = translate_v2.Client(client_options=client_options)
        return self._client

    async def translate(self, text: str, source_lang: str = "ja", target_lang: str = "en") -> list[str]:
        try:
            client = self._get_client()
            result = await asyncio.to_thread(
                client.translate,
                text,
                source_language=source_lang,
                target_language=target_lang,
                format_="text",
            )
        except TranslationError:
            raise
        except Exception as e:
            raise _classify_google_error(e) from e

        if isinstance(result, list):
            return [r["translatedText"] for r in result]
        return [result["translatedText"]]

    async def close(self) -> None:
        self._client = None


class GoogleTranslateRestProvider:
    """Translates via the Google Cloud Translation API v2 REST endpoint.

    Uses API-key auth and a plain ``httpx`` client, so it does not share any
    state with the primary provider. Serves as the fallback path.
    """

    name = "google-rest"
    API_URL = "https://translation.googleapis.com/language/translate/v2"

    def __init__(
        self,
        api_key: str,
        max_text_length: int = 5000,
        timeout: float = 30.0,
        transport_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
    ):
        self.api_key = api_key
        self.max_text_length = max_text_length
        self.transport_attempts = max(1, transport_attempts)
        self.retry_wait_seconds = retry_wait_seconds
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def translate(self, text: str, source_lang: str = "ja", target_lang: str = "en") -> list[str]:
        if not self.api_key:
            raise TranslationError.auth_error("Translation skipped: no API key configured")

        # Google API limit is ~5000 chars per request
        truncated = text[: self.max_text_length]

        try:
            response = await self._post(
                {
                    "q": truncated,
                    "source": source_lang,
                    "target": target_lang,
                    "format": "text",
                }
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise TranslationError.from_http_error(e) from e

        try:
            translations = [t["translatedText"] for t in data["data"]["translations"]]
        except (KeyError, TypeError) as e:
            raise TranslationError.validation_error("Unexpected translation response shape", e) from e

        logger.debug(
            "Translated text",
            provider=self.name,
            source_len=len(truncated),
            target_len=sum(len(t) for t in translations),
        )
        return translations

    async def _post(self, payload: dict) -> httpx.Response:
        """POST to the API, retrying only when no response came back."""
        client = await self._get_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.transport_attempts),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=30),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await client.post(self.API_URL, params={"key": self.api_key}, json=payload)
        raise RuntimeError("unreachable")

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


def build_primary_provider(settings: TranslationSettings) -> GoogleCloudTranslateProvider:
    return GoogleCloudTranslateProvider(
        project_id=settings.google_cloud_project_id,
        key_file=settings.google_cloud_key_file,
    )


def build_fallback_provider(settings: TranslationSettings) -> GoogleTranslateRestProvider | None:
    """REST fallback when enabled and an API key is configured, else None."""
    if not settings.fallback_enabled:
        return None
    if not settings.google_translate_api_key:
        logger.warning("Translation fallback enabled but GOOGLE_TRANSLATE_API_KEY is not set")
        return None
    return GoogleTranslateRestProvider(
        api_key=settings.google_translate_api_key,
        max_text_length=settings.translation_max_text_length,
    )
