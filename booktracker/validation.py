"""Record validation applied before every create or update."""
from datetime import date
from typing import Optional

from booktracker.errors import ValidationError
from booktracker.models import BookRecord

CURRENT_EXCEEDS_TOTAL = "current exceeds total"
START_AFTER_FINISH = "start after finish"
SCORE_OUT_OF_RANGE = "score out of range"
TITLE_REQUIRED = "title is required"

MIN_SCORE = 0
MAX_SCORE = 10


def _start_after_finish(start: Optional[str], finish: Optional[str]) -> bool:
    if not start or not finish:
        return False
    try:
        return date.fromisoformat(start) > date.fromisoformat(finish)
    except ValueError:
        # Not ISO dates; ISO text still orders correctly as strings
        return start > finish


def validate(record: BookRecord) -> Optional[str]:
    """
    Check a record, stopping at the first violation.
    
    Args:
        record: Candidate record
        
    Returns:
        None if valid, otherwise the reason string
    """
    if record.current_pages > record.pages:
        return CURRENT_EXCEEDS_TOTAL
    
    if _start_after_finish(record.start_date, record.finish_date):
        return START_AFTER_FINISH
    
    if record.score is not None and not (MIN_SCORE <= record.score <= MAX_SCORE):
        return SCORE_OUT_OF_RANGE
    
    if not record.title.strip():
        return TITLE_REQUIRED
    
    return None


def ensure_valid(record: BookRecord) -> None:
    """Raise ValidationError if the record is invalid."""
    reason = validate(record)
    if reason:
        raise ValidationError(reason)
