"""
Book lookups with an in-memory cache in front of two upstream sources.

Google Books is the primary source (search and ISBN). Open Library is only
consulted for ISBN lookups, since it has no free-text search. Upstream
failures are logged and treated as "no result from this source"; callers
always get a list or an optional book back, never a transport exception.
"""

import logging
from typing import List, Optional

from bookfeed.book import BookRecord
from bookfeed.cache_manager import Clock, ExpiringLRUCache
from bookfeed.config import Settings, settings as default_settings
from bookfeed.services.google_books_service import GoogleBooksService
from bookfeed.services.open_library_service import OpenLibraryService

logger = logging.getLogger(__name__)

SEARCH_KEY_PREFIX = "search:"
ISBN_KEY_PREFIX = "isbn:"


class BookRepository:
    """Cache -> primary source -> secondary source -> cache write."""

    def __init__(
        self,
        primary: GoogleBooksService,
        secondary: OpenLibraryService,
        cache: Optional[ExpiringLRUCache[str, BookRecord]] = None,
    ) -> None:
        self.primary = primary
        self.secondary = secondary
        self.cache: ExpiringLRUCache[str, BookRecord] = cache if cache is not None else ExpiringLRUCache()

    @classmethod
    def create(cls, settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> "BookRepository":
        """Repository wired to the real services and a cache sized from settings."""
        settings = settings or default_settings
        return cls(
            primary=GoogleBooksService(api_key=settings.google_books_api_key),
            secondary=OpenLibraryService(),
            cache=ExpiringLRUCache(
                capacity=settings.cache_capacity,
                ttl_millis=settings.cache_ttl_millis,
                clock=clock,
            ),
        )

    async def search_books(
        self,
        query: str,
        max_results: int = 20,
        offset: int = 0,
        order_by: Optional[str] = None,
    ) -> List[BookRecord]:
        """
        Search for books matching ``query``.

        A cache hit returns only the single record cached for the query, not
        the original page. On a primary hit the first record is cached and the
        full page is returned. Open Library is never used here.
        """
        cache_key = SEARCH_KEY_PREFIX + query
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit: {cache_key!r}")
            return [cached]

        result = await self.primary.search(query, max_results=max_results, offset=offset, order_by=order_by)
        if not result.ok:
            logger.warning(f"Primary search failed for '{query}': {result.error}")
            return []

        books = list(result.value or [])
        if books:
            # Only the first record is cached for a query key
            self.cache.put(cache_key, books[0])
        return books

    async def get_book_by_isbn(self, isbn: str) -> Optional[BookRecord]:
        """
        Fetch a book by ISBN, falling back to Open Library.

        Returns None when neither source knows the ISBN; nothing is cached then.
        """
        cache_key = ISBN_KEY_PREFIX + isbn
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"ISBN cache hit: {cache_key!r}")
            return cached

        primary_result = await self.primary.lookup_by_isbn(isbn)
        if primary_result.ok:
            book = next(iter(primary_result.value or []), None)
            if book is not None:
                self.cache.put(cache_key, book)
                return book
        else:
            logger.warning(f"Primary ISBN lookup failed for {isbn}: {primary_result.error}")

        secondary_result = await self.secondary.lookup_by_isbn(isbn)
        if secondary_result.ok:
            if secondary_result.value is not None:
                self.cache.put(cache_key, secondary_result.value)
                return secondary_result.value
        else:
            logger.warning(f"Fallback ISBN lookup failed for {isbn}: {secondary_result.error}")

        logger.info(f"ISBN {isbn} not found in any source")
        return None

    async def close(self) -> None:
        """Close both source clients."""
        await self.primary.close()
        await self.secondary.close()

    async def __aenter__(self) -> "BookRepository":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
