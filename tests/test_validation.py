"""Tests for record validation."""
import pytest

from booktracker.errors import ValidationError
from booktracker.validation import (
    validate, ensure_valid,
    CURRENT_EXCEEDS_TOTAL, START_AFTER_FINISH, SCORE_OUT_OF_RANGE, TITLE_REQUIRED,
)
from conftest import make_book


def test_current_pages_cannot_exceed_total():
    """Test the page-count check."""
    assert validate(make_book(pages=100, current_pages=150, status="reading")) == CURRENT_EXCEEDS_TOTAL
    assert validate(make_book(pages=100, current_pages=50, status="reading")) is None
    assert validate(make_book(pages=100, current_pages=100, status="reading")) is None


def test_start_must_not_follow_finish():
    """Test the date ordering check."""
    assert validate(make_book(start_date="2024-05-10", finish_date="2024-05-01")) == START_AFTER_FINISH
    assert validate(make_book(start_date="2024-05-01", finish_date="2024-05-10")) is None
    assert validate(make_book(start_date="2024-05-01", finish_date="2024-05-01")) is None


def test_single_date_is_fine():
    """Test that one missing date skips the ordering check."""
    assert validate(make_book(start_date="2024-05-10")) is None
    assert validate(make_book(finish_date="2024-05-01")) is None


def test_score_range():
    """Test the score bounds, inclusive at both ends."""
    assert validate(make_book(score=11)) == SCORE_OUT_OF_RANGE
    assert validate(make_book(score=-1)) == SCORE_OUT_OF_RANGE
    assert validate(make_book(score=0)) is None
    assert validate(make_book(score=10)) is None
    assert validate(make_book(score=None)) is None


def test_checks_short_circuit_in_order():
    """Test that the first violation is the one reported."""
    book = make_book(
        pages=10, current_pages=20,
        start_date="2024-05-10", finish_date="2024-05-01",
        score=42,
    )
    assert validate(book) == CURRENT_EXCEEDS_TOTAL
    
    book.current_pages = 5
    assert validate(book) == START_AFTER_FINISH
    
    book.finish_date = None
    assert validate(book) == SCORE_OUT_OF_RANGE


def test_title_required():
    """Test that a blank title is rejected."""
    assert validate(make_book(title="   ")) == TITLE_REQUIRED


def test_ensure_valid_raises_with_reason():
    """Test the raising variant."""
    with pytest.raises(ValidationError) as exc_info:
        ensure_valid(make_book(score=11))
    assert exc_info.value.reason == SCORE_OUT_OF_RANGE
    
    ensure_valid(make_book())
