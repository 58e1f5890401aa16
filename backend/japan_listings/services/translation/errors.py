"""Error type for the translation layer.

The classification predicates inspect both the code and the message, so
one error can match more than one family (e.g. a "network rate limit"
message). Callers must not rely on the families being exclusive.
"""

import httpx

RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
AUTH_ERROR = "AUTH_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
CACHE_ERROR = "CACHE_ERROR"
VALIDATION_ERROR = "VALIDATION_ERROR"
TRANSLATION_ERROR = "TRANSLATION_ERROR"


class TranslationError(Exception):
    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        code: str = TRANSLATION_ERROR,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def details(self) -> dict:
        return {
            "message": self.message,
            "code": self.code,
            "cause": str(self.cause) if self.cause is not None else None,
        }

    def _message_contains(self, *needles: str) -> bool:
        lowered = self.message.lower()
        return any(n in lowered for n in needles)

    def is_rate_limit_error(self) -> bool:
        return self.code == RATE_LIMIT_ERROR or self._message_contains(
            "rate limit", "quota exceeded"
        )

    def is_auth_error(self) -> bool:
        return self.code == AUTH_ERROR or self._message_contains(
            "authentication", "unauthorized", "invalid credentials"
        )

    def is_network_error(self) -> bool:
        return self.code == NETWORK_ERROR or self._message_contains(
            "network", "connection", "timeout"
        )

    @classmethod
    def rate_limit_error(
        cls, message: str = "Translation rate limit exceeded", cause: BaseException | None = None
    ) -> "TranslationError":
        return cls(message, cause, RATE_LIMIT_ERROR)

    @classmethod
    def auth_error(
        cls,
        message: str = "Translation service authentication failed",
        cause: BaseException | None = None,
    ) -> "TranslationError":
        return cls(message, cause, AUTH_ERROR)

    @classmethod
    def network_error(
        cls, message: str = "Translation service network error", cause: BaseException | None = None
    ) -> "TranslationError":
        return cls(message, cause, NETWORK_ERROR)

    @classmethod
    def cache_error(
        cls, message: str = "Translation cache error", cause: BaseException | None = None
    ) -> "TranslationError":
        return cls(message, cause, CACHE_ERROR)

    @classmethod
    def validation_error(
        cls, message: str = "Translation validation error", cause: BaseException | None = None
    ) -> "TranslationError":
        return cls(message, cause, VALIDATION_ERROR)

    @classmethod
    def from_http_error(cls, exc: Exception) -> "TranslationError":
        """Classify an ``httpx`` failure into one of the error families."""
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            body = exc.response.text[:200]
            if status == 429 or (status == 403 and "quota" in body.lower()):
                return cls.rate_limit_error(f"Translation rate limit exceeded (HTTP {status})", exc)
            if status in (401, 403):
                return cls.auth_error(f"Translation service authentication failed (HTTP {status})", exc)
            return cls(f"Translation request failed (HTTP {status}): {body}", exc)
        if isinstance(exc, httpx.TimeoutException):
            return cls.network_error("Translation request timeout", exc)
        if isinstance(exc, httpx.TransportError):
            return cls.network_error(f"Translation service network error: {exc}", exc)
        return cls(str(exc) or exc.__class__.__name__, exc)
