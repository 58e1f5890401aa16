"""Scraper registry - maps site names to scraper classes."""

from typing import Any

from japan_listings.scrapers.base import BaseScraper


_REGISTRY: dict[str, type[BaseScraper]] = {}


def register_scraper(site: str):
    """Decorator to register a scraper class."""

    def decorator(cls: type[BaseScraper]):
        _REGISTRY[site] = cls
        return cls

    return decorator


def get_scraper(site: str, config: dict[str, Any] | None = None) -> BaseScraper:
    """Instantiate a scraper by site name."""
    # Scraper modules register themselves on import
    import japan_listings.scrapers.suumo  # noqa: F401

    scraper_class = _REGISTRY.get(site)
    if scraper_class is None:
        raise ValueError(f"No scraper registered for site: {site}")
    return scraper_class(config=config)


def list_scrapers() -> list[str]:
    """List all registered site names."""
    import japan_listings.scrapers.suumo  # noqa: F401

    return list(_REGISTRY.keys())
