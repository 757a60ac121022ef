"""Data models for tracked books."""
import uuid
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

STATUS_NOT_STARTED = "not started"
STATUS_READING = "reading"
STATUS_FINISHED = "finished"
STATUSES = (STATUS_NOT_STARTED, STATUS_READING, STATUS_FINISHED)

UNKNOWN_GENRE = "Unknown"
GENRE_SEPARATOR = ", "


def new_book_id() -> str:
    """Generate a stable opaque identifier for a record."""
    return uuid.uuid4().hex


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _to_text(value: Any, default: str = "") -> str:
    """Coerce a stored field to text; lists are joined like genre tags."""
    if value is None or value == "":
        return default
    if isinstance(value, (list, tuple)):
        return GENRE_SEPARATOR.join(str(v) for v in value if v not in (None, "")) or default
    return str(value)


def _to_date(value: Any) -> Optional[str]:
    return _to_text(value) or None


def _to_score(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class BookRecord:
    """One tracked book.
    
    Serialized with the camelCase keys used by exported data files
    (startDate, finishDate, currentPages).
    """
    title: str
    cover: str = ""
    genre: str = UNKNOWN_GENRE
    pages: int = 0
    status: str = STATUS_NOT_STARTED
    start_date: Optional[str] = None
    finish_date: Optional[str] = None
    format: str = "physical"
    current_pages: int = 0
    score: Optional[float] = None
    comments: str = ""
    id: str = field(default="")
    
    @property
    def genres(self):
        """Individual genre tags, without empty entries."""
        return [g for g in self.genre.split(GENRE_SEPARATOR) if g]
    
    @property
    def progress(self) -> float:
        """Fraction of pages read (0 when page count is unknown)."""
        if self.pages > 0:
            return self.current_pages / self.pages
        return 0.0
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored JSON shape."""
        return {
            "id": self.id,
            "title": self.title,
            "cover": self.cover,
            "genre": self.genre,
            "pages": self.pages,
            "status": self.status,
            "startDate": self.start_date,
            "finishDate": self.finish_date,
            "format": self.format,
            "currentPages": self.current_pages,
            "score": self.score,
            "comments": self.comments,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookRecord":
        """Build a record from stored JSON, filling missing fields with defaults."""
        return cls(
            id=str(data.get("id") or ""),
            title=_to_text(data.get("title")),
            cover=_to_text(data.get("cover")),
            genre=_to_text(data.get("genre"), UNKNOWN_GENRE),
            pages=_to_int(data.get("pages")),
            status=_to_text(data.get("status"), STATUS_NOT_STARTED),
            start_date=_to_date(data.get("startDate")),
            finish_date=_to_date(data.get("finishDate")),
            format=_to_text(data.get("format"), "physical"),
            current_pages=_to_int(data.get("currentPages")),
            score=_to_score(data.get("score")),
            comments=_to_text(data.get("comments")),
        )


@dataclass
class MetadataResult:
    """Normalized metadata returned by a lookup source."""
    cover: str
    genre: str
    pages: int
    
    @classmethod
    def empty(cls) -> "MetadataResult":
        """Sentinel returned when every source fails."""
        return cls(cover="", genre=UNKNOWN_GENRE, pages=0)


@dataclass
class CalendarEvent:
    """A dated point on the reading calendar."""
    title: str
    start: str
    cover: str
    kind: str
    book_id: str = ""
