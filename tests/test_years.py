"""
Tests for year range, naming and URL building.
"""

from __future__ import annotations

from datetime import date

import httpx

from yieldfetch.core.fetch.years import (
    FIRST_YEAR,
    build_url,
    destination_name,
    fetch_range,
)


def test_range_is_inclusive_of_current_year() -> None:
    years = fetch_range(today=date(2024, 1, 1))

    assert years[0] == FIRST_YEAR == 1990
    assert years[-1] == 2024
    assert len(years) == 35


def test_range_follows_the_date_it_is_given() -> None:
    assert list(fetch_range(2022, today=date(2023, 12, 31))) == [2022, 2023]
    assert list(fetch_range(2022, today=date(2024, 1, 1))) == [2022, 2023, 2024]


def test_range_defaults_to_today() -> None:
    assert fetch_range()[-1] == date.today().year


def test_destination_name() -> None:
    assert destination_name(1995) == "yieldcurverates_1995.xml"


def test_build_url_matches_publisher_format() -> None:
    assert build_url(2001) == (
        "https://home.treasury.gov/resource-center/data-chart-center/interest-rates/pages/xml"
        "?data=daily_treasury_yield_curve&field_tdr_date_value=2001"
    )


def test_build_url_custom_endpoint() -> None:
    url = httpx.URL(build_url(1999, "https://example.test/feed", "real_yield"))

    assert url.host == "example.test"
    assert url.params["data"] == "real_yield"
    assert url.params["field_tdr_date_value"] == "1999"
