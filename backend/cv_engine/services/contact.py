"""
Regex fallback for contact details.

Used only to fill gaps: whatever the AI parser extracted always wins.
"""
import re
from typing import Optional

from ..schemas.score import ExtractedContact


EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Optional international prefix, then digit groups separated by spaces, dots, dashes or parentheses
PHONE_PATTERN = re.compile(r"(?:\+\d{1,3}[\s.\-]*)?(?:\(\d{1,4}\)[\s.\-]*)?\d{2,4}(?:[\s.\-]*\d{2,4}){1,4}")
PROFILE_PATTERN = re.compile(r"linkedin\.com/in/[A-Za-z0-9_-]+", re.IGNORECASE)

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15  # E.164


def extract_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text or "")
    return match.group(0) if match else None


def _looks_like_date_range(groups) -> bool:
    """Digit groups that are all years, or years with month numbers ("05.2019 - 08.2021")."""
    years = [g for g in groups if len(g) == 4]
    others = [g for g in groups if len(g) != 4]
    if not years or not all(1900 <= int(y) <= 2099 for y in years):
        return False
    return all(len(g) <= 2 and 1 <= int(g) <= 12 for g in others)


def extract_phone(text: str) -> Optional[str]:
    """First digit run that looks like a phone number rather than a year or a date."""
    for match in PHONE_PATTERN.finditer(text or ""):
        candidate = match.group(0).strip()
        groups = re.findall(r"[0-9]+", candidate)
        if _looks_like_date_range(groups):
            continue
        digits = "".join(groups)
        if MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            return candidate
    return None


def extract_profile_url(text: str) -> Optional[str]:
    match = PROFILE_PATTERN.search(text or "")
    return match.group(0) if match else None


def extract_contact(text: str) -> ExtractedContact:
    """Email, phone and professional profile from raw text; None for anything missing."""
    return ExtractedContact(
        email=extract_email(text),
        phone=extract_phone(text),
        profile_url=extract_profile_url(text),
    )
