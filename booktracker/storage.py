"""Persistence adapter over a single-device key/value store."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Any

from booktracker.models import BookRecord

logger = logging.getLogger(__name__)

BOOKS_KEY = "bookTrackerData"
THEME_KEY = "theme"


class FileStorage:
    """Key/value store keeping one file per key inside a directory."""
    
    def __init__(self, directory: Path):
        self.directory = Path(directory)
    
    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"
    
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string for a key, or None if never set."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")
    
    def set_item(self, key: str, value: str) -> None:
        """Overwrite a key atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    
    def close(self):
        """Nothing to release for files."""
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class LocalStore:
    """Reads and writes the book list and theme flag through a backend."""
    
    def __init__(self, backend: Any, books_key: str = BOOKS_KEY, theme_key: str = THEME_KEY):
        self.backend = backend
        self.books_key = books_key
        self.theme_key = theme_key
    
    def load_books(self) -> List[BookRecord]:
        """
        Load the saved book list.
        
        Returns:
            Stored records, or an empty list if nothing is stored or the
            stored blob cannot be read
        """
        try:
            raw = self.backend.get_item(self.books_key)
        except Exception as e:
            logger.warning(f"Failed to read stored books: {e}")
            return []
        
        if not raw:
            return []
        
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored books are not valid JSON, starting empty: {e}")
            return []
        
        if not isinstance(data, list):
            logger.warning("Stored books are not a list, starting empty")
            return []
        
        records = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning(f"Skipping malformed stored record: {item!r}")
                continue
            records.append(BookRecord.from_dict(item))
        return records
    
    def save_books(self, records: List[BookRecord]) -> None:
        """Overwrite the stored book list."""
        payload = json.dumps([r.to_dict() for r in records])
        self.backend.set_item(self.books_key, payload)
        logger.info(f"Saved {len(records)} books")
    
    def load_theme(self) -> Optional[str]:
        """Stored theme flag ("dark" or ""), or None if never chosen."""
        try:
            return self.backend.get_item(self.theme_key)
        except Exception as e:
            logger.warning(f"Failed to read theme: {e}")
            return None
    
    def save_theme(self, theme: str) -> None:
        self.backend.set_item(self.theme_key, theme)


def open_backend(config):
    """Create the storage backend selected by configuration."""
    if config.BACKEND == "postgres":
        from booktracker.database import Database
        db = Database(config.DATABASE_URL)
        db.init_schema()
        return db
    
    if config.BACKEND != "file":
        raise ValueError(f"Unknown storage backend: {config.BACKEND}")
    
    return FileStorage(config.DATA_DIR)
