"""HTTP clients for the book metadata sources with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any
import logging

from booktracker.models import MetadataResult
from booktracker.parse import parse_google_books, parse_open_library

logger = logging.getLogger(__name__)


class BookSourceClient:
    """Base JSON client with timeouts, retries, and backoff."""
    
    name = "source"
    BASE_URL = ""
    
    def __init__(
        self, 
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0,
        cache_db=None,
        cache_ttl: int = 86400
    ):
        """
        Initialize the client.
        
        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts
            base_backoff: Base delay for exponential backoff
            cache_db: Optional store with cache_get/cache_set
            cache_ttl: Cache TTL in seconds
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self.cache_db = cache_db
        self.cache_ttl = cache_ttl
        
        # Create session for connection pooling
        self.session = requests.Session()
    
    def build_params(self, title: str) -> Dict[str, Any]:
        """Query parameters for a title search."""
        raise NotImplementedError
    
    def parse(self, response_json: Optional[Dict[str, Any]]) -> Optional[MetadataResult]:
        """Normalize a search response."""
        raise NotImplementedError
    
    def search(self, title: str) -> Optional[Dict[str, Any]]:
        """
        Search the source by title.
        
        Args:
            title: Book title
            
        Returns:
            API response JSON or None if all retries failed
        """
        return self._make_request_with_retry(self.BASE_URL, self.build_params(title))
    
    def search_with_cache(self, title: str) -> Optional[Dict[str, Any]]:
        """Search, reusing a cached response when a cache is configured."""
        cache_key = f"metadata:{self.name}:{title.strip().lower()}"
        
        if self.cache_db:
            cached = self.cache_db.cache_get(cache_key)
            if cached:
                return cached
        
        response = self.search(title)
        
        if response and self.cache_db:
            self.cache_db.cache_set(cache_key, response, self.cache_ttl)
        
        return response
    
    def fetch_metadata(self, title: str) -> Optional[MetadataResult]:
        """Look up a title; None when the source fails or has no match."""
        return self.parse(self.search_with_cache(title))
    
    def _make_request_with_retry(
        self, 
        url: str, 
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request with retry logic.
        
        Args:
            url: Request URL
            params: Query parameters
            
        Returns:
            Response JSON or None if all retries exhausted
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"{self.name} attempt {attempt + 1}/{self.max_retries}: {url}")
                
                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )
                
                if response.status_code == 200:
                    return response.json()
                
                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"{self.name} rate limited (429) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue
                
                elif response.status_code >= 500:
                    logger.warning(f"{self.name} server error ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue
                
                elif response.status_code >= 400:
                    # Client error - don't retry
                    logger.error(f"{self.name} client error ({response.status_code}): {response.text}")
                    return None
                
            except requests.exceptions.Timeout:
                logger.warning(f"{self.name} timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue
            
            except requests.exceptions.ConnectionError as e:
                logger.warning(f"{self.name} connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue
            
            except (requests.exceptions.RequestException, ValueError) as e:
                # ValueError covers undecodable JSON bodies
                logger.error(f"{self.name} request failed: {e}")
                return None
        
        logger.error(f"{self.name}: all {self.max_retries} attempts failed")
        return None
    
    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.
        
        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter
        
        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)
    
    def close(self):
        """Close the session."""
        self.session.close()
    
    def __enter__(self):
        """Context manager entry."""
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class GoogleBooksClient(BookSourceClient):
    """Primary source: Google Books volumes search."""
    
    name = "google"
    BASE_URL = "https://www.googleapis.com/books/v1/volumes"
    
    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
    
    def build_params(self, title: str) -> Dict[str, Any]:
        params = {"q": f"intitle:{title}"}
        if self.api_key:
            params["key"] = self.api_key
        return params
    
    def parse(self, response_json):
        return parse_google_books(response_json)


class OpenLibraryClient(BookSourceClient):
    """Fallback source: Open Library search."""
    
    name = "openlibrary"
    BASE_URL = "https://openlibrary.org/search.json"
    
    def build_params(self, title: str) -> Dict[str, Any]:
        return {"title": title}
    
    def parse(self, response_json):
        return parse_open_library(response_json)
