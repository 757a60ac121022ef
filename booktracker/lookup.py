"""Ordered metadata lookup: the first source with a result wins."""
import logging
from typing import List, Optional, Sequence

from booktracker.client import GoogleBooksClient, OpenLibraryClient
from booktracker.models import MetadataResult

logger = logging.getLogger(__name__)


class MetadataLookup:
    """Tries each source in order and falls back to empty defaults."""
    
    def __init__(self, sources: Sequence):
        self.sources: List = list(sources)
    
    @classmethod
    def from_config(cls, config, cache_db=None) -> "MetadataLookup":
        """Build the standard Google Books -> Open Library chain."""
        options = dict(
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES,
            cache_db=cache_db,
            cache_ttl=config.DEFAULT_CACHE_TTL,
        )
        return cls([
            GoogleBooksClient(api_key=config.GOOGLE_BOOKS_API_KEY, **options),
            OpenLibraryClient(**options),
        ])
    
    def fetch(self, title: str) -> MetadataResult:
        """
        Look up cover, genre and page count for a title.
        
        Args:
            title: Book title
            
        Returns:
            First non-empty source result, or MetadataResult.empty()
        """
        for source in self.sources:
            result: Optional[MetadataResult] = None
            try:
                result = source.fetch_metadata(title)
            except Exception as e:
                logger.error(f"Error fetching book info from {source.name}: {e}")
            
            if result is not None:
                logger.info(f"Metadata for {title!r} found via {source.name}")
                return result
            
            logger.info(f"No metadata for {title!r} from {source.name}")
        
        return MetadataResult.empty()
    
    def close(self):
        for source in self.sources:
            source.close()
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
