"""Calendar projection of reading start and finish dates."""
from typing import Iterable, List

from booktracker.models import BookRecord, CalendarEvent

PLACEHOLDER_COVER = "https://via.placeholder.com/30"


def project_events(records: Iterable[BookRecord]) -> List[CalendarEvent]:
    """Zero, one or two events per record, in record order."""
    events = []
    for record in records:
        cover = record.cover or PLACEHOLDER_COVER
        if record.start_date:
            events.append(CalendarEvent(
                title=f"{record.title} (Started)",
                start=record.start_date,
                cover=cover,
                kind="start",
                book_id=record.id,
            ))
        if record.finish_date:
            events.append(CalendarEvent(
                title=f"{record.title} (Finished)",
                start=record.finish_date,
                cover=cover,
                kind="finish",
                book_id=record.id,
            ))
    return events


def events_in_month(events: Iterable[CalendarEvent], month: str) -> List[CalendarEvent]:
    """Events whose date falls in month ("YYYY-MM"), sorted by date."""
    return sorted((e for e in events if e.start.startswith(month)), key=lambda e: e.start)
