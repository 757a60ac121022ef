"""Tests for the calendar projection."""
from booktracker.events import project_events, events_in_month, PLACEHOLDER_COVER
from conftest import make_book


def test_two_events_for_both_dates():
    """Test start and finish events with the record's cover."""
    book = make_book("Dune", id="d1", cover="http://x/dune.jpg",
                     start_date="2024-01-05", finish_date="2024-02-10")
    
    events = project_events([book])
    
    assert [(e.title, e.start, e.kind) for e in events] == [
        ("Dune (Started)", "2024-01-05", "start"),
        ("Dune (Finished)", "2024-02-10", "finish"),
    ]
    assert all(e.cover == "http://x/dune.jpg" and e.book_id == "d1" for e in events)


def test_missing_dates_emit_nothing():
    """Test records with zero or one date."""
    events = project_events([
        make_book("Undated"),
        make_book("Started", start_date="2024-03-01"),
    ])
    
    assert [e.title for e in events] == ["Started (Started)"]


def test_placeholder_cover():
    """Test the cover fallback."""
    events = project_events([make_book("Dune", finish_date="2024-02-10")])
    
    assert events[0].cover == PLACEHOLDER_COVER


def test_events_in_month_sorted():
    """Test month filtering and date ordering."""
    events = project_events([
        make_book("B", start_date="2024-02-20"),
        make_book("A", start_date="2024-02-03", finish_date="2024-03-01"),
    ])
    
    february = events_in_month(events, "2024-02")
    
    assert [e.title for e in february] == ["A (Started)", "B (Started)"]
