"""Fetch utilities - throttling, retries, outcomes, year range."""

from .outcomes import ErrorKind, FatalError, Ok, Outcome, RetryableError, classify
from .retries import RetryConfig, build_retrying
from .throttling import Throttle
from .years import FIRST_YEAR, build_url, destination_name, fetch_range

__all__ = [
    "ErrorKind",
    "FatalError",
    "FIRST_YEAR",
    "Ok",
    "Outcome",
    "RetryConfig",
    "RetryableError",
    "Throttle",
    "build_retrying",
    "build_url",
    "classify",
    "destination_name",
    "fetch_range",
]
