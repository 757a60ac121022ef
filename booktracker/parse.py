"""Parse and normalize metadata responses from the lookup sources."""
import logging
from typing import Dict, Any, Optional

from booktracker.models import MetadataResult, UNKNOWN_GENRE, GENRE_SEPARATOR

logger = logging.getLogger(__name__)

OPEN_LIBRARY_COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"
OPEN_LIBRARY_SUBJECT_LIMIT = 3


def _pages(value: Any) -> int:
    """Coerce a page count to a non-negative int, 0 when unusable."""
    try:
        pages = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(pages, 0)


def parse_google_books(response_json: Optional[Dict[str, Any]]) -> Optional[MetadataResult]:
    """
    Normalize the first item of a Google Books volumes response.
    
    Args:
        response_json: Complete API response JSON
        
    Returns:
        MetadataResult, or None if the response has no items
    """
    if not isinstance(response_json, dict):
        return None
    
    items = response_json.get("items") or []
    if not items:
        return None
    
    try:
        volume_info = items[0].get("volumeInfo", {})
        
        image_links = volume_info.get("imageLinks") or {}
        categories = volume_info.get("categories") or []
        
        return MetadataResult(
            cover=image_links.get("thumbnail") or "",
            genre=GENRE_SEPARATOR.join(categories) if categories else UNKNOWN_GENRE,
            pages=_pages(volume_info.get("pageCount"))
        )
    except (AttributeError, TypeError, KeyError, IndexError) as e:
        # Log but don't crash - APIs can be unpredictable
        logger.warning(f"Failed to parse Google Books item: {e}")
        return None


def parse_open_library(response_json: Optional[Dict[str, Any]]) -> Optional[MetadataResult]:
    """
    Normalize the first doc of an Open Library search response.
    
    Args:
        response_json: Complete API response JSON
        
    Returns:
        MetadataResult, or None if the response has no docs
    """
    if not isinstance(response_json, dict):
        return None
    
    docs = response_json.get("docs") or []
    if not docs:
        return None
    
    try:
        doc = docs[0]
        cover_id = doc.get("cover_i")
        subjects = doc.get("subject") or []
        
        return MetadataResult(
            cover=OPEN_LIBRARY_COVER_URL.format(cover_id=cover_id) if cover_id else "",
            genre=GENRE_SEPARATOR.join(subjects[:OPEN_LIBRARY_SUBJECT_LIMIT]) if subjects else UNKNOWN_GENRE,
            pages=_pages(doc.get("number_of_pages_median"))
        )
    except (AttributeError, TypeError, KeyError, IndexError) as e:
        logger.warning(f"Failed to parse Open Library doc: {e}")
        return None
