"""
Date helpers for resume employment ranges.

Resume dates are irregular ("Jan 2020", "2020-05", "05/2020", "2019 – Present"),
so parsing degrades gracefully: an unknown month becomes January and only a
string with no four-digit year fails.
"""
import re
from datetime import datetime
from typing import Optional


# Hyphen look-alikes: hyphen, non-breaking hyphen, figure dash, en dash, em dash,
# horizontal bar, minus sign, small em dash, small hyphen-minus, fullwidth hyphen-minus
DASH_PATTERN = re.compile("[\u2010\u2011\u2012\u2013\u2014\u2015\u2212\ufe58\ufe63\uff0d]")
# \s covers non-breaking and thin spaces for str patterns
WHITESPACE_PATTERN = re.compile(r"\s+")
ONGOING_PATTERN = re.compile(r"present|current|now|date", re.IGNORECASE)
TOKEN_SPLIT_PATTERN = re.compile(r"[\s,.\-/]+")
# ASCII only: str.isdigit() also accepts superscripts that int() rejects
YEAR_TOKEN = re.compile(r"[0-9]{4}")
MONTH_NUMBER_TOKEN = re.compile(r"[0-9]{1,2}")

MONTH_ABBREVIATIONS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]


def normalize_date_text(value: Optional[str]) -> Optional[str]:
    """Replace dash variants with "-", collapse whitespace and trim. None stays None."""
    if value is None:
        return None
    text = DASH_PATTERN.sub("-", str(value))
    text = WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()


def is_ongoing(value: Optional[str]) -> bool:
    """True for "Present", "Current", "Now", "Till date" and similar."""
    return bool(value) and ONGOING_PATTERN.search(value) is not None


def _find_month(tokens) -> int:
    for token in tokens:
        if MONTH_NUMBER_TOKEN.fullmatch(token):
            number = int(token)
            if 1 <= number <= 12:
                return number
            continue
        lowered = token.lower()
        for index, abbreviation in enumerate(MONTH_ABBREVIATIONS):
            if lowered.startswith(abbreviation):
                return index + 1
    return 1


def parse_date_point(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Convert a normalized date string into the first day of its month.

    Args:
        value: Normalized date text, e.g. "Mar 2021", "2021-03", "03/2021", "2021"
        now: Reference time used for "present"-style values (default: current time)

    Returns:
        datetime for the first of the month, `now` for ongoing values,
        or None when no four-digit year is present
    """
    if not value:
        return None
    if is_ongoing(value):
        return now or datetime.now()

    tokens = [t for t in TOKEN_SPLIT_PATTERN.split(value) if t]
    year_index = next((i for i, t in enumerate(tokens) if YEAR_TOKEN.fullmatch(t)), None)
    if year_index is None:
        return None

    year = int(tokens[year_index])
    month = _find_month(tokens[:year_index] + tokens[year_index + 1:])
    try:
        return datetime(year, month, 1)
    except ValueError:
        # year 0000 and friends
        return None
