"""Visible subset of the book list."""
from typing import Iterable, List, Optional

from booktracker.models import BookRecord, STATUS_READING


def visible(records: Iterable[BookRecord], filter_text: str = "") -> List[BookRecord]:
    """Records whose title or genre contains filter_text, case-insensitively."""
    needle = (filter_text or "").lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.title.lower() or needle in r.genre.lower()
    ]


def progress_fraction(record: BookRecord) -> Optional[float]:
    """Reading progress as a fraction, or None when not currently reading."""
    if record.status != STATUS_READING:
        return None
    return record.progress
