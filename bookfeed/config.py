import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Google Books (primary source)
    google_books_api_key: Optional[str] = os.getenv("GOOGLE_BOOKS_API_KEY")
    google_books_base_url: str = os.getenv("GOOGLE_BOOKS_BASE_URL", "https://www.googleapis.com/books/v1")
    google_books_timeout: float = float(os.getenv("GOOGLE_BOOKS_TIMEOUT", "30"))

    # Open Library (secondary source, ISBN only)
    open_library_base_url: str = os.getenv("OPEN_LIBRARY_BASE_URL", "https://openlibrary.org")
    open_library_covers_url: str = os.getenv("OPEN_LIBRARY_COVERS_URL", "https://covers.openlibrary.org/b")
    open_library_timeout: float = float(os.getenv("OPEN_LIBRARY_TIMEOUT", "10"))

    # HTTP
    http_retries: int = int(os.getenv("HTTP_RETRIES", "2"))
    http_backoff: float = float(os.getenv("HTTP_BACKOFF", "0.5"))

    # In-memory book cache
    cache_capacity: int = int(os.getenv("CACHE_CAPACITY", "100"))
    cache_ttl_minutes: int = int(os.getenv("CACHE_TTL_MINUTES", "30"))

    # Local shelves
    shelf_file: str = os.getenv("BOOKFEED_SHELF_FILE", "bookfeed_shelves.json")

    # Feed / pagination
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))

    # Application
    app_name: str = os.getenv("APP_NAME", "bookfeed")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")

    @property
    def cache_ttl_millis(self) -> int:
        return self.cache_ttl_minutes * 60 * 1000


settings = Settings()
