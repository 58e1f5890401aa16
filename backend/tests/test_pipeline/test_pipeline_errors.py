"""Tests for pipeline error categories."""

from japan_listings.services.pipeline.errors import PipelineError, PipelineErrorType


class TestReportLine:
    def test_prefixes(self):
        assert PipelineError.scraping_error("Network error").report_line() == "Scraping failed: Network error"
        assert PipelineError.translation_error("x").report_line() == "Translation error: x"
        assert PipelineError.database_error("x").report_line() == "Database error: x"

    def test_unprefixed_type(self):
        assert PipelineError("odd", PipelineErrorType.VALIDATION_ERROR).report_line() == "odd"


class TestRetryPolicy:
    def test_retryable_types(self):
        assert PipelineError("x", PipelineErrorType.RATE_LIMIT_ERROR).retry_delay() == 60
        assert PipelineError.network_error("x").retry_delay() == 30
        assert PipelineError("x", PipelineErrorType.TIMEOUT_ERROR).retry_delay() == 45
        assert PipelineError.database_error("x").retry_delay() == 15

    def test_not_retryable(self):
        error = PipelineError.scraping_error("x")
        assert not error.retryable
        assert error.retry_delay() == 0

    def test_should_alert(self):
        assert PipelineError.database_error("x").should_alert()
        assert not PipelineError.translation_error("x").should_alert()


class TestSerialization:
    def test_from_exception(self):
        cause = ConnectionError("refused")
        error = PipelineError.from_exception(cause, PipelineErrorType.NETWORK_ERROR, {"site": "suumo"})
        assert error.message == "refused"
        assert error.__cause__ is cause

        data = error.to_dict()
        assert data["type"] == "network_error"
        assert data["retryable"] is True
        assert data["context"] == {"site": "suumo"}
        assert data["cause"] == {"name": "ConnectionError", "message": "refused"}

    def test_user_friendly_message(self):
        assert "translate" in PipelineError.translation_error("x").user_friendly_message()
        assert PipelineError("x").user_friendly_message() == "An unexpected error occurred during processing."
