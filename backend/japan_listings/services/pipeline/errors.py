"""Categorised errors raised and reported by the processing pipeline."""

import enum
from datetime import datetime, timezone
from typing import Any


class PipelineErrorType(str, enum.Enum):
    INITIALIZATION_ERROR = "initialization_error"
    SCRAPING_ERROR = "scraping_error"
    TRANSLATION_ERROR = "translation_error"
    DATABASE_ERROR = "database_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    RATE_LIMIT_ERROR = "rate_limit_error"
    CONFIGURATION_ERROR = "configuration_error"
    TIMEOUT_ERROR = "timeout_error"
    CANCELLED = "cancelled"
    UNKNOWN_ERROR = "unknown_error"


# Prefix used for the operator-facing entries in RunSummary.errors
REPORT_PREFIX = {
    PipelineErrorType.SCRAPING_ERROR: "Scraping failed",
    PipelineErrorType.TRANSLATION_ERROR: "Translation error",
    PipelineErrorType.DATABASE_ERROR: "Database error",
    PipelineErrorType.CANCELLED: "Cancelled",
}

_RETRY_DELAY_SECONDS = {
    PipelineErrorType.RATE_LIMIT_ERROR: 60,
    PipelineErrorType.NETWORK_ERROR: 30,
    PipelineErrorType.TIMEOUT_ERROR: 45,
    PipelineErrorType.DATABASE_ERROR: 15,
}

_USER_MESSAGES = {
    PipelineErrorType.SCRAPING_ERROR: "Failed to scrape property data from website. The site may be temporarily unavailable.",
    PipelineErrorType.TRANSLATION_ERROR: "Failed to translate property information. Translation service may be temporarily unavailable.",
    PipelineErrorType.DATABASE_ERROR: "Failed to save property data. Database connection issue detected.",
    PipelineErrorType.NETWORK_ERROR: "Network connection error occurred. Please check your internet connection.",
    PipelineErrorType.RATE_LIMIT_ERROR: "Service rate limit exceeded. Processing will resume automatically.",
    PipelineErrorType.VALIDATION_ERROR: "Property data validation failed. Invalid or incomplete data detected.",
    PipelineErrorType.TIMEOUT_ERROR: "Operation timed out. The service may be experiencing high load.",
    PipelineErrorType.CONFIGURATION_ERROR: "System configuration error detected. Please contact administrator.",
    PipelineErrorType.CANCELLED: "Processing was cancelled before all listings were handled.",
}


class PipelineError(Exception):
    def __init__(
        self,
        message: str,
        error_type: PipelineErrorType = PipelineErrorType.UNKNOWN_ERROR,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    @property
    def retryable(self) -> bool:
        return self.error_type in _RETRY_DELAY_SECONDS

    def retry_delay(self) -> int:
        """Suggested wait in seconds before retrying, 0 when not retryable."""
        if not self.retryable:
            return 0
        return _RETRY_DELAY_SECONDS[self.error_type]

    def should_alert(self) -> bool:
        return self.error_type in (
            PipelineErrorType.INITIALIZATION_ERROR,
            PipelineErrorType.CONFIGURATION_ERROR,
            PipelineErrorType.DATABASE_ERROR,
        )

    def user_friendly_message(self) -> str:
        return _USER_MESSAGES.get(
            self.error_type, "An unexpected error occurred during processing."
        )

    def report_line(self) -> str:
        """One line for RunSummary.errors, prefixed with the category."""
        prefix = REPORT_PREFIX.get(self.error_type)
        return f"{prefix}: {self.message}" if prefix else self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.error_type.value,
            "timestamp": self.timestamp.isoformat(),
            "retryable": self.retryable,
            "context": self.context,
            "cause": (
                {"name": type(self.cause).__name__, "message": str(self.cause)}
                if self.cause is not None
                else None
            ),
        }

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        error_type: PipelineErrorType = PipelineErrorType.UNKNOWN_ERROR,
        context: dict[str, Any] | None = None,
    ) -> "PipelineError":
        return cls(str(exc) or type(exc).__name__, error_type, exc, context)

    @classmethod
    def scraping_error(cls, message: str, cause: BaseException | None = None, context: dict | None = None):
        return cls(message, PipelineErrorType.SCRAPING_ERROR, cause, context)

    @classmethod
    def translation_error(cls, message: str, cause: BaseException | None = None, context: dict | None = None):
        return cls(message, PipelineErrorType.TRANSLATION_ERROR, cause, context)

    @classmethod
    def database_error(cls, message: str, cause: BaseException | None = None, context: dict | None = None):
        return cls(message, PipelineErrorType.DATABASE_ERROR, cause, context)

    @classmethod
    def network_error(cls, message: str, cause: BaseException | None = None, context: dict | None = None):
        return cls(message, PipelineErrorType.NETWORK_ERROR, cause, context)
