"""
SUUMO (suumo.jp) scraper for used detached houses (中古戸建).

SUUMO is Japan's largest real estate portal. This scraper:
1. Navigates the 中古戸建 search with price/area filters
2. Paginates through search results
3. Extracts listing data from search result cards
4. Scrapes detail pages for description, images and listing date

Uses Playwright for JS-rendered content. One browser is opened lazily and
reused for every page of the run; cleanup() closes it.
"""

from dataclasses import replace

import structlog
from bs4 import BeautifulSoup, Tag

from japan_listings.schemas.listing import ListingRecord, PropertyType
from japan_listings.scrapers.base import BaseScraper, SearchParams
from japan_listings.scrapers.registry import register_scraper
from japan_listings.utils.japanese_text import (
    normalize_whitespace,
    parse_area_sqm,
    parse_listing_date,
    parse_price_yen,
)

logger = structlog.get_logger()

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# SUUMO area codes (ar parameter) by prefecture
SUUMO_REGION_CODES = {
    "01": "010",
    **{code: "020" for code in ("02", "03", "04", "05", "06", "07")},
    **{code: "030" for code in ("08", "09", "10", "11", "12", "13", "14")},
    **{code: "040" for code in ("15", "16", "17", "18", "19", "20")},
    **{code: "050" for code in ("21", "22", "23")},
    **{code: "060" for code in ("24", "25", "26", "27", "28", "29", "30")},
    **{code: "070" for code in ("31", "32", "33", "34", "35")},
    **{code: "080" for code in ("36", "37", "38", "39")},
    **{code: "090" for code in ("40", "41", "42", "43", "44", "45", "46", "47")},
}

# SUUMO price ceilings (pc parameter, 万円)
PRICE_CODES = [500, 1000, 1500, 2000, 3000, 5000, 7000, 10000]

PRICE_LABELS = ("販売価格", "価格", "物件価格")
LOCATION_LABELS = ("所在地", "住所", "物件所在地")
AREA_LABELS = ("建物面積", "延床面積", "専有面積", "土地面積")
DATE_LABELS = ("情報提供日", "情報公開日", "情報更新日")
DESCRIPTION_LABELS = ("物件の特徴", "備考", "セールスポイント")


def _price_to_suumo_code(price_yen: int) -> int:
    """Convert a yen price ceiling to the nearest SUUMO price code (万円)."""
    man = price_yen // 10_000
    for code in PRICE_CODES:
        if man <= code:
            return code
    return PRICE_CODES[-1]


def _first(details: dict[str, str], labels: tuple[str, ...]) -> str | None:
    for label in labels:
        value = details.get(label)
        if value:
            return value
    return None


@register_scraper("suumo")
class SuumoScraper(BaseScraper):
    """Scraper for SUUMO 中古戸建 (used detached houses)."""

    source_id = "suumo"
    base_url = "https://suumo.jp"
    crawl_delay_seconds = 30.0

    def __init__(self, config=None):
        super().__init__(config)
        self._playwright = None
        self._browser = None
        self._page = None

    def _build_search_url(self, params: SearchParams, page: int = 1) -> str:
        """
        Build SUUMO search URL for used detached houses.

        Key parameters:
          ar  = region code (030=Kanto, 060=Kinki, etc.)
          bs  = property type (021=中古戸建)
          ta  = prefecture code (13=Tokyo, 27=Osaka, etc.)
          pc  = price ceiling (万円)
          po  = sort order (2=price_asc)
          cn  = results per page
        """
        prefecture_code = params.prefecture_code or "13"
        ar = SUUMO_REGION_CODES.get(prefecture_code, "030")
        pc = _price_to_suumo_code(params.price_max)
        return (
            f"{self.base_url}/jj/bukken/ichiran/JJ012FC001/"
            f"?ar={ar}&bs=021&ta={prefecture_code}"
            f"&pc={pc}&cn=50&po=2&page={page}"
        )

    async def _get_page(self):
        if self._page is None:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True)
            context = await self._browser.new_context(user_agent=USER_AGENT, locale="ja-JP")
            self._page = await context.new_page()
        return self._page

    async def _fetch(self, url: str, settle_ms: int = 2000) -> str:
        page = await self._get_page()
        await page.goto(url, wait_until="domcontentloaded", timeout=30000)
        await page.wait_for_timeout(settle_ms)
        return await page.content()

    async def search_listings(self, params: SearchParams) -> list[ListingRecord]:
        """Search SUUMO for properties matching criteria."""
        listings: list[ListingRecord] = []

        for page_num in range(1, params.max_pages + 1):
            url = self._build_search_url(params, page_num)
            logger.info("Scraping SUUMO page", page=page_num, url=url)

            html = await self._fetch(url, settle_ms=3000)
            page_listings = self._parse_search_results(html)
            if not page_listings:
                logger.info("No more results", page=page_num)
                break

            listings.extend(page_listings)
            logger.info("Parsed SUUMO page", page=page_num, count=len(page_listings), total=len(listings))

            if not self._has_next_page(html):
                logger.info("Reached last page", page=page_num)
                break

            await self._delay()

        return listings

    async def scrape_detail(self, listing: ListingRecord) -> ListingRecord | None:
        """Scrape a SUUMO detail page and merge it into the search-level record."""
        html = await self._fetch(listing.url)
        return self._parse_detail_page(html, listing)

    async def cleanup(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._page = self._browser = self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()

    def _has_next_page(self, html: str) -> bool:
        """Check if there are more pages of results."""
        soup = BeautifulSoup(html, "lxml")
        if soup.select_one(".pagination_set-nav a[rel='next']"):
            return True
        # BS4 doesn't support :contains
        return any(a.get_text(strip=True) == "次へ" for a in soup.select("a"))

    def _parse_search_results(self, html: str) -> list[ListingRecord]:
        """Parse SUUMO search results page HTML."""
        soup = BeautifulSoup(html, "lxml")
        cards = soup.select(".property_unit") or soup.select(".cassetteitem")

        listings: list[ListingRecord] = []
        for card in cards:
            try:
                listing = self._parse_card(card)
            except Exception as e:
                logger.warning("Failed to parse card", error=str(e))
                continue
            if listing:
                listings.append(listing)
        return listings

    def _parse_card(self, card: Tag) -> ListingRecord | None:
        """Parse a single property card from search results."""
        link_el = (
            card.select_one("a[href*='/chukoikkodate/']")
            or card.select_one("a[href*='/kodate/']")
            or card.select_one("a[href]")
        )
        if not link_el:
            return None

        href = link_el.get("href", "")
        if isinstance(href, list):
            href = href[0]
        if not href.startswith("http"):
            href = f"{self.base_url}{href}"

        details = self._extract_pairs(card)
        title = self._extract_title(card)
        location = _first(details, LOCATION_LABELS)

        # Must have at least a title or location to be useful
        if not title and not location:
            return None

        return ListingRecord(
            url=href,
            title=title or "",
            location=location or "",
            property_type=PropertyType.normalize("中古戸建").value,
            source_website=self.source_id,
            price=parse_price_yen(_first(details, PRICE_LABELS)),
            size_sqm=parse_area_sqm(_first(details, AREA_LABELS)),
        )

    def _parse_detail_page(self, html: str, listing: ListingRecord) -> ListingRecord:
        """Parse a SUUMO detail page and fill in what search results lacked."""
        soup = BeautifulSoup(html, "lxml")
        details = self._extract_pairs(soup)

        title = None
        heading = soup.select_one("h1") or soup.select_one(".section_h1")
        if heading:
            title = normalize_whitespace(heading.get_text())

        description = _first(details, DESCRIPTION_LABELS)
        if not description:
            body = soup.select_one(".section_h1-body") or soup.select_one("[class*='appeal']")
            if body:
                description = body.get_text(" ", strip=True)

        image_urls: list[str] = []
        for img in soup.select("img[src*='img.suumo'], img[data-src*='img.suumo']"):
            src = img.get("data-src") or img.get("src")
            if src and isinstance(src, str) and src not in image_urls:
                image_urls.append(src)

        return replace(
            listing,
            title=title or listing.title,
            location=_first(details, LOCATION_LABELS) or listing.location,
            description=normalize_whitespace(description) or listing.description,
            price=parse_price_yen(_first(details, PRICE_LABELS)) or listing.price,
            size_sqm=parse_area_sqm(_first(details, AREA_LABELS)) or listing.size_sqm,
            images=tuple(image_urls[:10]) or listing.images,
            listing_date=parse_listing_date(_first(details, DATE_LABELS)) or listing.listing_date,
        )

    def _extract_title(self, card: Tag) -> str | None:
        for selector in ["h2", ".property_unit-title", ".cassetteitem_content-title", "a"]:
            el = card.select_one(selector)
            if el:
                text = normalize_whitespace(el.get_text())
                if len(text) > 3:
                    return text
        return None

    def _extract_pairs(self, root: Tag) -> dict[str, str]:
        """Collect th/td and dt/dd label-value pairs."""
        pairs: dict[str, str] = {}
        for row in root.select("tr"):
            th = row.select_one("th")
            td = row.select_one("td")
            if th and td:
                key, value = th.get_text(strip=True), normalize_whitespace(td.get_text(" "))
                if key and value:
                    pairs.setdefault(key, value)

        for dt in root.select("dt"):
            dd = dt.find_next_sibling("dd")
            if dd:
                key, value = dt.get_text(strip=True), normalize_whitespace(dd.get_text(" "))
                if key and value:
                    pairs.setdefault(key, value)
        return pairs
