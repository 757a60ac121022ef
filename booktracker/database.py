"""PostgreSQL key/value storage and lookup response cache."""
import psycopg2
from psycopg2 import pool
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
import json
import logging

logger = logging.getLogger(__name__)


class Database:
    """PostgreSQL database with connection pooling."""
    
    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 5):
        """
        Initialize database connection pool.
        
        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.connection_pool = psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )
        
        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise Exception("Failed to create connection pool")
    
    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # Key/value items (book list, theme)
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key VARCHAR(255) PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                
                # Lookup response cache
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS api_cache (
                        cache_key VARCHAR(512) PRIMARY KEY,
                        response_data JSONB NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        expires_at TIMESTAMP NOT NULL
                    )
                """)
                
                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_cache_expires 
                    ON api_cache (expires_at)
                """)
                
                conn.commit()
                logger.info("Database schema initialized successfully")
        
        finally:
            self.connection_pool.putconn(conn)
    
    def get_item(self, key: str) -> Optional[str]:
        """Get the stored value for a key."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
                row = cur.fetchone()
                return row[0] if row else None
        finally:
            self.connection_pool.putconn(conn)
    
    def set_item(self, key: str, value: str) -> None:
        """
        Insert or overwrite a key.
        
        Args:
            key: Item key
            value: Serialized value
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = CURRENT_TIMESTAMP
                """, (key, value))
                conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)
    
    def cache_get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """
        Get cached API response if not expired.
        
        Args:
            cache_key: Cache key
            
        Returns:
            Cached response or None
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT response_data
                    FROM api_cache
                    WHERE cache_key = %s AND expires_at > CURRENT_TIMESTAMP
                """, (cache_key,))
                
                row = cur.fetchone()
                if row:
                    logger.info(f"Cache hit: {cache_key}")
                    return row[0]  # JSONB is automatically deserialized
                
                logger.info(f"Cache miss: {cache_key}")
                return None
        finally:
            self.connection_pool.putconn(conn)
    
    def cache_set(
        self, 
        cache_key: str, 
        response_data: Dict[str, Any], 
        ttl_seconds: int = 86400
    ) -> bool:
        """
        Cache API response with TTL.
        
        Args:
            cache_key: Cache key
            response_data: Response to cache
            ttl_seconds: Time to live in seconds
            
        Returns:
            True if successful
        """
        conn = self.connection_pool.getconn()
        try:
            expires_at = datetime.now() + timedelta(seconds=ttl_seconds)
            
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO api_cache (cache_key, response_data, expires_at)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (cache_key) DO UPDATE SET
                        response_data = EXCLUDED.response_data,
                        expires_at = EXCLUDED.expires_at,
                        created_at = CURRENT_TIMESTAMP
                """, (cache_key, json.dumps(response_data), expires_at))
                
                conn.commit()
                logger.info(f"Cached response: {cache_key} (TTL: {ttl_seconds}s)")
                return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to cache response: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)
    
    def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM kv_store")
                item_count = cur.fetchone()[0]
                
                cur.execute("SELECT COUNT(*) FROM api_cache WHERE expires_at > CURRENT_TIMESTAMP")
                cache_count = cur.fetchone()[0]
                
                cur.execute("SELECT COUNT(*) FROM api_cache WHERE expires_at <= CURRENT_TIMESTAMP")
                expired_count = cur.fetchone()[0]
                
                return {
                    "stored_items": item_count,
                    "cached_responses": cache_count,
                    "expired_cache_entries": expired_count
                }
        finally:
            self.connection_pool.putconn(conn)
    
    def cleanup_expired_cache(self) -> int:
        """Remove expired cache entries."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    DELETE FROM api_cache 
                    WHERE expires_at <= CURRENT_TIMESTAMP
                """)
                deleted = cur.rowcount
                conn.commit()
                logger.info(f"Cleaned up {deleted} expired cache entries")
                return deleted
        finally:
            self.connection_pool.putconn(conn)
    
    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")
    
    def __enter__(self):
        """Context manager entry."""
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
