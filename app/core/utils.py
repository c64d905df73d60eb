"""
Core Utilities

Shared helpers used across the application.
"""
import re
from datetime import datetime, timezone
from math import ceil


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def slugify(name: str) -> str:
    """
    URL key for a partner, product or post name.

    "Studio Type & Co." -> "studio-type-co"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for count rows."""
    if not count or count < 0:
        return 0
    return ceil(count / page_size)


def page_offset(page: int, page_size: int) -> int:
    """Zero-based row offset for a 1-based page number (pages below 1 clamp to 1)."""
    return (max(page, 1) - 1) * page_size


def add_months(start: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    # Day 1 of the following month minus one day gives the month length
    if month == 12:
        next_month = datetime(year + 1, 1, 1)
    else:
        next_month = datetime(year, month + 1, 1)
    last_day = (next_month - datetime(year, month, 1)).days
    return start.replace(year=year, month=month, day=min(start.day, last_day))
