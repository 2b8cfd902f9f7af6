"""Year range, destination naming and URL building for the yield curve feed."""

from __future__ import annotations

from datetime import date

import httpx

# Data starts at 1990
FIRST_YEAR = 1990

DEFAULT_BASE_URL = "https://home.treasury.gov/resource-center/data-chart-center/interest-rates/pages/xml"
DEFAULT_DATASET = "daily_treasury_yield_curve"


def fetch_range(first_year: int = FIRST_YEAR, *, today: date | None = None) -> range:
    """Years to fetch, ``first_year`` through the current year inclusive.

    The current year is read on every call so a run that spans New Year
    picks up the new year on its next attempt.
    """
    today = today or date.today()
    return range(first_year, today.year + 1)


def destination_name(year: int) -> str:
    return f"yieldcurverates_{year}.xml"


def build_url(
    year: int,
    base_url: str = DEFAULT_BASE_URL,
    dataset: str = DEFAULT_DATASET,
) -> str:
    """Build the download URL for one year."""
    url = httpx.URL(base_url, params={"data": dataset, "field_tdr_date_value": str(year)})
    return str(url)
