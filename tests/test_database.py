"""Tests for the PostgreSQL backend against a fake connection pool."""
import argparse

import psycopg2.pool
import pytest

import tracker

from booktracker.database import Database
from booktracker.storage import LocalStore
from conftest import make_book


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0
        self._row = None
    
    def execute(self, sql, params=None):
        sql = " ".join(sql.split())
        self.conn.executed.append((sql, params))
        if sql.startswith("INSERT INTO kv_store"):
            self.conn.items[params[0]] = params[1]
        elif sql.startswith("SELECT value FROM kv_store"):
            value = self.conn.items.get(params[0])
            self._row = (value,) if value is not None else None
        elif sql.startswith("SELECT response_data"):
            self._row = None
        elif sql == "SELECT COUNT(*) FROM kv_store":
            self._row = (len(self.conn.items),)
        elif sql.startswith("SELECT COUNT(*) FROM api_cache WHERE expires_at >"):
            self._row = (self.conn.live_cache,)
        elif sql.startswith("SELECT COUNT(*) FROM api_cache WHERE expires_at <="):
            self._row = (self.conn.expired_cache,)
        elif sql.startswith("DELETE FROM api_cache"):
            self.rowcount = self.conn.expired_cache
            self.conn.expired_cache = 0
    
    def fetchone(self):
        return self._row
    
    def __enter__(self):
        return self
    
    def __exit__(self, *exc):
        return False


class FakeConnection:
    def __init__(self):
        self.items = {}
        self.live_cache = 0
        self.expired_cache = 0
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
    
    def cursor(self):
        return FakeCursor(self)
    
    def commit(self):
        self.commits += 1
    
    def rollback(self):
        self.rollbacks += 1


class FakePool:
    def __init__(self, min_conn, max_conn, dsn):
        self.dsn = dsn
        self.conn = FakeConnection()
        self.closed = False
    
    def getconn(self):
        return self.conn
    
    def putconn(self, conn):
        pass
    
    def closeall(self):
        self.closed = True


@pytest.fixture
def db(monkeypatch):
    monkeypatch.setattr(psycopg2.pool, "SimpleConnectionPool", FakePool)
    return Database("postgresql://u:p@localhost:5432/booktracker")


def test_init_schema_creates_tables(db):
    """Test that both tables are created."""
    db.init_schema()
    
    statements = [sql for sql, _ in db.connection_pool.conn.executed]
    assert any("CREATE TABLE IF NOT EXISTS kv_store" in s for s in statements)
    assert any("CREATE TABLE IF NOT EXISTS api_cache" in s for s in statements)


def test_items_round_trip_through_local_store(db):
    """Test the book list persisted through the database backend."""
    store = LocalStore(db)
    books = [make_book("Dune", id="a1"), make_book("Emma", id="b2", score=7)]
    
    store.save_books(books)
    
    assert store.load_books() == books
    assert store.load_theme() is None
    assert db.connection_pool.conn.commits == 1


def test_cache_miss(db):
    """Test a cache lookup with no stored response."""
    assert db.cache_get("metadata:google:dune") is None


def test_close_releases_pool(db):
    """Test the context manager closes the pool."""
    with db:
        pass
    
    assert db.connection_pool.closed


def test_get_stats(db):
    """Test the item and cache counts."""
    conn = db.connection_pool.conn
    conn.items = {"bookTrackerData": "[]", "theme": "dark"}
    conn.live_cache = 3
    conn.expired_cache = 2
    
    assert db.get_stats() == {
        "stored_items": 2,
        "cached_responses": 3,
        "expired_cache_entries": 2,
    }


def test_cleanup_expired_cache(db):
    """Test removing expired responses."""
    db.connection_pool.conn.expired_cache = 4
    
    assert db.cleanup_expired_cache() == 4
    assert db.get_stats()["expired_cache_entries"] == 0


def test_cache_command_reports_and_cleans(db, capsys):
    """Test the cache subcommand against the database backend."""
    conn = db.connection_pool.conn
    conn.live_cache = 5
    conn.expired_cache = 1
    
    tracker.cmd_cache(argparse.Namespace(cleanup=True), backend=db)
    
    out = capsys.readouterr().out
    assert "Cached API responses: 5" in out
    assert "Expired cache entries: 1" in out
    assert "Cleaned up 1 expired cache entries" in out
    assert conn.expired_cache == 0
