"""Shared fixtures."""
import pytest

from booktracker.models import BookRecord
from booktracker.repository import BookRepository
from booktracker.storage import FileStorage, LocalStore


@pytest.fixture
def backend(tmp_path):
    return FileStorage(tmp_path / "data")


@pytest.fixture
def store(backend):
    return LocalStore(backend)


@pytest.fixture
def repo(store):
    return BookRepository(store)


def make_book(title="Dune", **kwargs) -> BookRecord:
    """Build a valid record with sensible defaults."""
    fields = dict(genre="Science Fiction", pages=412, format="physical")
    fields.update(kwargs)
    return BookRecord(title=title, **fields)
