"""Entry form: raw user input in, validated record out."""
from dataclasses import dataclass
from typing import Optional

from booktracker.models import (
    BookRecord, MetadataResult, STATUS_NOT_STARTED, STATUS_READING, UNKNOWN_GENRE,
)
from booktracker.repository import BookRepository


def _int_or_zero(text) -> int:
    try:
        return max(int(str(text).strip() or 0), 0)
    except ValueError:
        return 0


def _score(text) -> Optional[float]:
    text = str(text).strip() if text is not None else ""
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass
class BookForm:
    """
    Field values as typed by the user.
    
    target_id is the record being edited, or None when creating.
    """
    title: str = ""
    cover: str = ""
    genre: str = ""
    pages: str = ""
    status: str = STATUS_NOT_STARTED
    start_date: str = ""
    finish_date: str = ""
    format: str = "physical"
    current_pages: str = ""
    score: str = ""
    comments: str = ""
    target_id: Optional[str] = None
    
    @classmethod
    def from_record(cls, record: BookRecord) -> "BookForm":
        """Prefill the form to edit an existing record."""
        return cls(
            title=record.title,
            cover=record.cover,
            genre=record.genre,
            pages=str(record.pages),
            status=record.status,
            start_date=record.start_date or "",
            finish_date=record.finish_date or "",
            format=record.format,
            current_pages=str(record.current_pages),
            score="" if record.score is None else f"{record.score:g}",
            comments=record.comments,
            target_id=record.id,
        )
    
    def apply_metadata(self, result: MetadataResult) -> None:
        """Fill cover, genre and pages from a lookup result."""
        self.cover = result.cover
        self.genre = result.genre
        self.pages = str(result.pages)
    
    def to_record(self) -> BookRecord:
        """Normalize the fields into a record (not yet validated)."""
        return BookRecord(
            title=self.title.strip(),
            cover=self.cover.strip(),
            genre=self.genre.strip() or UNKNOWN_GENRE,
            pages=_int_or_zero(self.pages),
            status=self.status,
            start_date=self.start_date.strip() or None,
            finish_date=self.finish_date.strip() or None,
            format=self.format,
            current_pages=_int_or_zero(self.current_pages) if self.status == STATUS_READING else 0,
            score=_score(self.score),
            comments=self.comments,
        )
    
    def submit(self, repository: BookRepository) -> BookRecord:
        """
        Create or update the record; validation errors propagate.
        
        The edit target is cleared only after a successful commit.
        """
        record = self.to_record()
        if self.target_id is not None:
            saved = repository.update(self.target_id, record)
        else:
            saved = repository.add(record)
        self.target_id = None
        return saved
