"""Async metadata lookup over httpx."""
import httpx
from typing import Optional, Dict, Any, Callable, List, Tuple
import logging

from booktracker.models import MetadataResult
from booktracker.parse import parse_google_books, parse_open_library

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
OPEN_LIBRARY_URL = "https://openlibrary.org/search.json"

Parser = Callable[[Optional[Dict[str, Any]]], Optional[MetadataResult]]


class AsyncMetadataLookup:
    """Async client trying Google Books, then Open Library."""
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize async lookup.
        
        Args:
            api_key: Optional Google Books API key
            timeout: Request timeout
            client: Preconfigured httpx client (tests pass a mock transport)
        """
        self.api_key = api_key
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)
    
    def _sources(self, title: str) -> List[Tuple[str, str, Dict[str, Any], Parser]]:
        google_params = {"q": f"intitle:{title}"}
        if self.api_key:
            google_params["key"] = self.api_key
        
        return [
            ("google", GOOGLE_BOOKS_URL, google_params, parse_google_books),
            ("openlibrary", OPEN_LIBRARY_URL, {"title": title}, parse_open_library),
        ]
    
    async def _get_json(self, name: str, url: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            logger.info(f"Async request to {name}: {params}")
            response = await self.client.get(url, params=params)
            
            if response.status_code == 200:
                return response.json()
            
            logger.warning(f"Status {response.status_code} from {name}")
            return None
        
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Async request to {name} failed: {e}")
            return None
    
    async def fetch(self, title: str) -> MetadataResult:
        """
        Look up a title, one source at a time.
        
        Args:
            title: Book title
            
        Returns:
            First non-empty source result, or MetadataResult.empty()
        """
        for name, url, params, parse in self._sources(title):
            try:
                result = parse(await self._get_json(name, url, params))
            except Exception as e:
                logger.error(f"Error fetching book info from {name}: {e}")
                continue
            
            if result is not None:
                return result
        
        return MetadataResult.empty()
    
    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
    
    async def __aenter__(self):
        """Async context manager entry."""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
