"""
Abstract base class for property portal scrapers.

Provides common functionality:
- Rate limiting (configurable delay between detail page requests)
- Per-listing error capture (a broken detail page keeps the search data)
- Conversion of a run into a ScrapingResult for the pipeline
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from japan_listings.schemas.listing import ListingRecord, ScrapingResult

logger = structlog.get_logger()


class Scraper(Protocol):
    """What the pipeline needs from a scraper."""

    async def scrape_properties(self) -> ScrapingResult: ...

    async def cleanup(self) -> None: ...


@dataclass
class SearchParams:
    """Parameters for a property search."""

    prefecture_code: str = "13"  # Tokyo
    price_max: int = 30_000_000
    max_pages: int = 5


class BaseScraper(ABC):
    """
    Base class for all property portal scrapers.

    Subclasses must implement:
    - search_listings(): Execute search and return listing data from result pages
    - scrape_detail(): Scrape the detail page for a single listing
    """

    source_id: str = ""
    base_url: str = ""
    crawl_delay_seconds: float = 3.0

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        if "crawl_delay_seconds" in self.config:
            self.crawl_delay_seconds = self.config["crawl_delay_seconds"]
        self.params = SearchParams(
            **{k: v for k, v in self.config.items() if k in SearchParams.__dataclass_fields__}
        )

    @abstractmethod
    async def search_listings(self, params: SearchParams) -> list[ListingRecord]:
        """
        Execute search and return listing data from the result pages.
        Should handle pagination internally.
        """
        ...

    @abstractmethod
    async def scrape_detail(self, listing: ListingRecord) -> ListingRecord | None:
        """
        Scrape the detail page for a listing found by search.
        Returns the enriched record, or None if the page yielded nothing.
        """
        ...

    async def scrape_properties(self) -> ScrapingResult:
        """
        Main entry point. Search, then enrich each hit from its detail page.

        A failed search makes the whole result unsuccessful. A failed detail
        page is recorded and the search-level data is kept.
        """
        result = ScrapingResult(success=True)

        try:
            logger.info(
                "Starting scrape",
                source=self.source_id,
                prefecture=self.params.prefecture_code,
                price_max=self.params.price_max,
            )
            search_results = await self.search_listings(self.params)
        except Exception as e:
            logger.error("Scrape failed", source=self.source_id, error=str(e))
            result.success = False
            result.errors.append(f"Search failed: {e}")
            return result

        logger.info("Search complete", source=self.source_id, listings_found=len(search_results))

        seen: set[str] = set()
        for i, listing in enumerate(search_results):
            if listing.url in seen:
                result.skipped_count += 1
                continue
            seen.add(listing.url)

            try:
                detailed = await self.scrape_detail(listing)
                result.data.append(detailed or listing)
            except Exception as e:
                logger.warning(
                    "Failed to scrape detail",
                    source=self.source_id,
                    url=listing.url,
                    error=str(e),
                )
                result.data.append(listing)

            # Rate limiting between detail page requests
            if i < len(search_results) - 1:
                await self._delay()

        result.scraped_count = len(result.data)
        return result

    async def cleanup(self) -> None:
        """Release any resources held for the run."""

    async def _delay(self):
        """Wait for the configured crawl delay."""
        await asyncio.sleep(self.crawl_delay_seconds)
