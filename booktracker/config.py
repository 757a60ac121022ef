"""Configuration management."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""
    
    # Storage
    BACKEND = os.getenv("BOOKTRACKER_BACKEND", "file")
    DATA_DIR = Path(os.getenv("BOOKTRACKER_DATA_DIR", "~/.booktracker")).expanduser()
    BOOKS_KEY = "bookTrackerData"
    THEME_KEY = "theme"
    
    # Database (postgres backend only)
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "booktracker")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    
    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
    
    # API
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
    
    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    DEFAULT_CACHE_TTL = int(os.getenv("DEFAULT_CACHE_TTL", "86400"))
    
    # Presentation
    FORMATS = [f.strip() for f in os.getenv("BOOKTRACKER_FORMATS", "physical,ebook,audiobook").split(",") if f.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
