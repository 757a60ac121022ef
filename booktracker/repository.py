"""In-memory book list for a session, persisted after every mutation."""
import json
import logging
from dataclasses import replace
from typing import Callable, Iterator, List, Optional

from booktracker.errors import ImportParseError
from booktracker.models import BookRecord, new_book_id
from booktracker.storage import LocalStore
from booktracker.validation import ensure_valid

logger = logging.getLogger(__name__)


class BookRepository:
    """Ordered book records keyed by stable id."""
    
    def __init__(self, store: LocalStore):
        self.store = store
        self._books: List[BookRecord] = []
        self.reload()
    
    def reload(self) -> None:
        """Hydrate from storage, assigning ids to records saved without a unique one."""
        books = self.store.load_books()
        self._books = books
        if _assign_ids(books):
            self.store.save_books(books)
        logger.info(f"Loaded {len(self._books)} books")
    
    def __len__(self) -> int:
        return len(self._books)
    
    def __iter__(self) -> Iterator[BookRecord]:
        return iter(list(self._books))
    
    def list(self) -> List[BookRecord]:
        """Current records in insertion order."""
        return list(self._books)
    
    def at(self, index: int) -> BookRecord:
        return self._books[index]
    
    def index_of(self, book_id: str) -> int:
        for i, book in enumerate(self._books):
            if book.id == book_id:
                return i
        raise KeyError(book_id)
    
    def get(self, book_id: str) -> BookRecord:
        return self._books[self.index_of(book_id)]
    
    def find(self, ref: str) -> BookRecord:
        """
        Resolve a full id or a unique id prefix.
        
        Raises:
            KeyError: No record, or more than one, matches
        """
        matches = [b for b in self._books if b.id == ref]
        if not matches:
            matches = [b for b in self._books if ref and b.id.startswith(ref)]
        if len(matches) != 1:
            raise KeyError(ref)
        return matches[0]
    
    def add(self, record: BookRecord) -> BookRecord:
        """Validate and append a record, then persist."""
        ensure_valid(record)
        if not record.id or any(b.id == record.id for b in self._books):
            record = replace(record, id=new_book_id())
        self._commit(self._books + [record])
        logger.info(f"Added {record.title!r} ({record.id})")
        return record
    
    def update(self, book_id: str, record: BookRecord) -> BookRecord:
        """Validate and replace the record with book_id in place, then persist."""
        ensure_valid(record)
        index = self.index_of(book_id)
        record = replace(record, id=book_id)
        books = list(self._books)
        books[index] = record
        self._commit(books)
        logger.info(f"Updated {record.title!r} ({book_id})")
        return record
    
    def remove(
        self,
        book_id: str,
        confirm: Optional[Callable[[BookRecord], bool]] = None
    ) -> Optional[BookRecord]:
        """
        Remove a record; later records shift down one position.
        
        Args:
            book_id: Id of the record to remove
            confirm: Called with the record; removal is skipped if it returns False
            
        Returns:
            The removed record, or None if not confirmed
        """
        index = self.index_of(book_id)
        book = self._books[index]
        if confirm is not None and not confirm(book):
            return None
        self._commit(self._books[:index] + self._books[index + 1:])
        logger.info(f"Removed {book.title!r} ({book_id})")
        return book
    
    def import_json(self, text: str) -> int:
        """
        Replace every record with the contents of an exported JSON array.
        
        Returns:
            Number of records imported
            
        Raises:
            ImportParseError: Invalid JSON or not an array of objects;
                nothing is changed
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ImportParseError(str(e)) from e
        
        if not isinstance(data, list):
            raise ImportParseError("Expected a JSON array of books")
        
        books = []
        for position, item in enumerate(data):
            if not isinstance(item, dict):
                raise ImportParseError(f"Entry {position} is not an object")
            books.append(BookRecord.from_dict(item))
        
        _assign_ids(books)
        self._commit(books)
        logger.info(f"Imported {len(books)} books")
        return len(books)
    
    def export_json(self) -> str:
        """Pretty-printed JSON of every record."""
        return json.dumps([b.to_dict() for b in self._books], indent=2)
    
    def _commit(self, books: List[BookRecord]) -> None:
        """Persist first; memory only changes once the write succeeded."""
        self.store.save_books(books)
        self._books = books


def _assign_ids(books: List[BookRecord]) -> bool:
    """Give a fresh id to records with a missing or repeated id. Returns True if any changed."""
    seen = set()
    changed = False
    for book in books:
        if not book.id or book.id in seen:
            book.id = new_book_id()
            changed = True
        seen.add(book.id)
    return changed
