"""Pipeline-scoped structured logging."""

from typing import Any

import structlog


class PipelineLogger:
    """Binds the site and activity to every event of one pipeline run."""

    def __init__(self, site: str | None = None, logger: Any = None):
        self._logger = (logger or structlog.get_logger()).bind(component="pipeline")
        if site:
            self._logger = self._logger.bind(site=site)

    def for_site(self, site: str) -> "PipelineLogger":
        return PipelineLogger(site=site, logger=self._logger)

    def info(self, event: str, **kw: Any) -> None:
        self._logger.info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._logger.warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._logger.error(event, **kw)

    def debug(self, event: str, **kw: Any) -> None:
        self._logger.debug(event, **kw)

    def scraping_started(self) -> None:
        self._logger.info("Scraping started", activity="scraping")

    def scraping_completed(self, scraped: int, skipped: int) -> None:
        self._logger.info("Scraping completed", activity="scraping", scraped=scraped, skipped=skipped)

    def scraping_failed(self, errors: list[str]) -> None:
        self._logger.error("Scraping failed", activity="scraping", errors=errors)

    def translation_completed(self, url: str, status: str) -> None:
        self._logger.debug("Listing translated", activity="translation", url=url, status=status)

    def translation_failed(self, url: str, error: str) -> None:
        self._logger.warning("Listing translation failed", activity="translation", url=url, error=error)

    def storage_failed(self, url: str, error: str) -> None:
        self._logger.warning("Listing storage failed", activity="storage", url=url, error=error)

    def pipeline_summary(self, summary: dict[str, Any]) -> None:
        self._logger.info("Pipeline run finished", **summary)
