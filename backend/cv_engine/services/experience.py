"""
Total work experience from structured resume entries.

Overlapping or concurrent roles are merged before summing so that two jobs
held at the same time are not double counted. Entries whose dates cannot be
understood are skipped instead of failing the evaluation.
"""
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from ..schemas.resume import ExperienceItem, Interval
from .dates import is_ongoing, normalize_date_text, parse_date_point

logger = logging.getLogger(__name__)

MS_PER_YEAR = 365.25 * 24 * 60 * 60 * 1000
RANGE_SEPARATOR = re.compile(r"\s+(?:-|to)\s+", re.IGNORECASE)


def split_embedded_range(start: Optional[str], end: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Handle a start field like "2019 - 2021" that carries the whole range."""
    if start and not end:
        parts = RANGE_SEPARATOR.split(start, maxsplit=1)
        if len(parts) == 2:
            return parts[0].strip(), parts[1].strip()
    return start, end


def build_interval(item: ExperienceItem, now: Optional[datetime] = None) -> Optional[Interval]:
    """Turn one experience entry into an interval, or None when it is unusable."""
    now = now or datetime.now()
    start_text, end_text = split_embedded_range(
        normalize_date_text(item.start_date),
        normalize_date_text(item.end_date),
    )

    start = parse_date_point(start_text, now=now)
    if start is None:
        return None

    if (not end_text and item.is_current) or is_ongoing(end_text):
        end = now
    else:
        end = parse_date_point(end_text, now=now)

    if end is None:
        # Open-ended but not current: nothing measurable beyond the start
        end = start
    if end < start:
        return None
    return Interval(start=start, end=end)


def build_intervals(items: List[ExperienceItem], now: Optional[datetime] = None) -> List[Interval]:
    now = now or datetime.now()
    intervals = []
    for item in items:
        interval = build_interval(item, now=now)
        if interval is None:
            logger.debug(f"Skipping experience entry with unusable dates: {item.start_date!r} - {item.end_date!r}")
            continue
        intervals.append(interval)
    return intervals


def merge_intervals(intervals: List[Interval]) -> List[Interval]:
    """Collapse overlapping spans into non-overlapping ones (sorted by start)."""
    if not intervals:
        return []
    ordered = sorted(intervals, key=lambda i: i.start)
    merged = [Interval(start=ordered[0].start, end=ordered[0].end)]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start < last.end:
            last.end = max(last.end, current.end)
        else:
            merged.append(Interval(start=current.start, end=current.end))
    return merged


def calculate_experience_years(items: List[ExperienceItem], now: Optional[datetime] = None) -> float:
    """
    Total non-overlapping years of experience, rounded to one decimal.

    Args:
        items: Structured experience entries from the parse task
        now: Reference time for current roles (default: current time)

    Returns:
        Years as a non-negative float; 0.0 when no entry has usable dates
    """
    merged = merge_intervals(build_intervals(items or [], now=now))
    total_ms = sum((i.end - i.start).total_seconds() * 1000 for i in merged)
    years = total_ms / MS_PER_YEAR
    return round(max(0.0, years), 1)
