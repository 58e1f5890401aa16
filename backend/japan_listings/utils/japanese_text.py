"""Parsing helpers for prices, areas and dates on Japanese listing pages."""

import re
from datetime import datetime, timezone

# Era start years
ERAS = {
    "令和": 2018,  # Reiwa: 2019 = Reiwa 1
    "平成": 1988,  # Heisei: 1989 = Heisei 1
    "昭和": 1925,  # Showa: 1926 = Showa 1
    "大正": 1911,  # Taisho: 1912 = Taisho 1
}

ERA_DATE_PATTERN = re.compile(r"(令和|平成|昭和|大正)(\d+|元)年(?:(\d{1,2})月)?(?:(\d{1,2})日)?")
WESTERN_DATE_PATTERN = re.compile(r"(\d{4})[年/.-](\d{1,2})(?:[月/.-](\d{1,2}))?")


def normalize_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace (including 全角 spaces) into one space."""
    if not text:
        return ""
    return re.sub(r"[\s　]+", " ", text).strip()


def parse_price_yen(text: str | None) -> int | None:
    """
    Parse a Japanese price string to yen.

    Examples:
        "1億5000万円" -> 150_000_000
        "1,480万円" -> 14_800_000
        "980000円" -> 980_000
    """
    if not text:
        return None
    text = text.replace(",", "").replace(" ", "").replace("　", "")

    oku_match = re.search(r"(\d+)億(?:(\d+(?:\.\d+)?)万)?円?", text)
    if oku_match:
        total = int(oku_match.group(1)) * 100_000_000
        if oku_match.group(2):
            total += int(float(oku_match.group(2)) * 10_000)
        return total

    man_match = re.search(r"(\d+(?:\.\d+)?)万円?", text)
    if man_match:
        return int(float(man_match.group(1)) * 10_000)

    yen_match = re.search(r"(\d{4,})円", text)
    if yen_match:
        return int(yen_match.group(1))

    return None


def parse_area_sqm(text: str | None) -> float | None:
    """Parse area text like '100.5m²', '72.3㎡' or '20坪' into square meters."""
    if not text:
        return None
    match = re.search(r"([\d.]+)\s*(?:m²|m2|㎡|平米)", text)
    if match:
        return float(match.group(1))
    tsubo = re.search(r"([\d.]+)\s*坪", text)
    if tsubo:
        # 1 tsubo ≈ 3.306 sqm
        return round(float(tsubo.group(1)) * 3.30579, 2)
    return None


def parse_listing_date(text: str | None) -> datetime | None:
    """
    Parse a listing date in Western or Japanese era notation.

    Examples:
        "2024年3月15日" -> 2024-03-15
        "2024/03/15" -> 2024-03-15
        "令和6年3月" -> 2024-03-01
    """
    if not text:
        return None

    era = ERA_DATE_PATTERN.search(text)
    if era:
        era_year = 1 if era.group(2) == "元" else int(era.group(2))
        year = ERAS[era.group(1)] + era_year
        month = int(era.group(3) or 1)
        day = int(era.group(4) or 1)
    else:
        western = WESTERN_DATE_PATTERN.search(text)
        if not western:
            return None
        year = int(western.group(1))
        month = int(western.group(2))
        day = int(western.group(3) or 1)

    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None
