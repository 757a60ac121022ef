"""Aggregate reading statistics."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from booktracker.models import BookRecord, STATUS_FINISHED, STATUS_READING, UNKNOWN_GENRE

TOP_LIMIT = 10


@dataclass
class ReadingStats:
    total: int = 0
    finished_count: int = 0
    reading_count: int = 0
    average_score: Optional[float] = None
    top_finished: List[BookRecord] = field(default_factory=list)
    genre_tally: Dict[str, int] = field(default_factory=dict)
    format_tally: Dict[str, int] = field(default_factory=dict)
    
    @property
    def average_score_label(self) -> str:
        if self.average_score is None:
            return "N/A"
        return f"{self.average_score:.2f}"


def average_score(records: Iterable[BookRecord]) -> Optional[float]:
    """Mean score over scored records, rounded to 2 places; None if none scored."""
    scores = [r.score for r in records if r.score is not None]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 2)


def top_finished(records: Iterable[BookRecord], limit: int = TOP_LIMIT) -> List[BookRecord]:
    """Finished, scored records by descending score; ties keep list order."""
    scored = [r for r in records if r.status == STATUS_FINISHED and r.score is not None]
    # sorted() is stable
    return sorted(scored, key=lambda r: r.score, reverse=True)[:limit]


def genre_tally(records: Iterable[BookRecord]) -> Dict[str, int]:
    """Count each genre tag; a multi-genre record counts toward each tag."""
    counts: Counter = Counter()
    for record in records:
        for tag in record.genres:
            if tag != UNKNOWN_GENRE:
                counts[tag] += 1
    return dict(counts)


def format_tally(records: Iterable[BookRecord]) -> Dict[str, int]:
    return dict(Counter(r.format for r in records))


def compute_stats(records: Iterable[BookRecord]) -> ReadingStats:
    """Every statistic shown on the stats view."""
    records = list(records)
    return ReadingStats(
        total=len(records),
        finished_count=sum(1 for r in records if r.status == STATUS_FINISHED),
        reading_count=sum(1 for r in records if r.status == STATUS_READING),
        average_score=average_score(records),
        top_finished=top_finished(records),
        genre_tally=genre_tally(records),
        format_tally=format_tally(records),
    )
