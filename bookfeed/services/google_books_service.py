import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from bookfeed.book import UNKNOWN_AUTHOR, BookRecord
from bookfeed.config import settings
from bookfeed.services import image_urls
from bookfeed.services.http_client import BookHTTPClient
from bookfeed.services.results import FetchResult

logger = logging.getLogger(__name__)

# Google Books rejects maxResults above 40
MAX_RESULTS_LIMIT = 40


class IndustryIdentifier(BaseModel):
    type: str
    identifier: str


class ImageLinks(BaseModel):
    thumbnail: Optional[str] = None
    small_thumbnail: Optional[str] = Field(default=None, alias="smallThumbnail")
    small: Optional[str] = None
    medium: Optional[str] = None
    large: Optional[str] = None
    extra_large: Optional[str] = Field(default=None, alias="extraLarge")


class VolumeInfo(BaseModel):
    title: str = ""
    authors: Optional[List[str]] = None
    description: Optional[str] = None
    published_date: Optional[str] = Field(default=None, alias="publishedDate")
    page_count: Optional[int] = Field(default=None, alias="pageCount")
    categories: Optional[List[str]] = None
    image_links: Optional[ImageLinks] = Field(default=None, alias="imageLinks")
    industry_identifiers: Optional[List[IndustryIdentifier]] = Field(default=None, alias="industryIdentifiers")


class VolumeItem(BaseModel):
    id: str
    volume_info: VolumeInfo = Field(alias="volumeInfo")


class GoogleBooksResponse(BaseModel):
    """Data structure for a Google Books volumes response"""
    items: Optional[List[VolumeItem]] = None
    total_items: int = Field(default=0, alias="totalItems")


class GoogleBooksAPIError(Exception):
    """Custom exception for Google Books API errors"""
    pass


class RateLimitExceeded(GoogleBooksAPIError):
    """Exception raised when rate limit is exceeded"""
    pass


def _pick_isbn(identifiers: Optional[List[IndustryIdentifier]]) -> Optional[str]:
    """Prefer ISBN-13, fall back to ISBN-10"""
    for wanted in ("ISBN_13", "ISBN_10"):
        for identifier in identifiers or []:
            if identifier.type == wanted:
                return identifier.identifier
    return None


def volume_to_book(item: VolumeItem) -> BookRecord:
    """Map a Google Books volume onto a BookRecord"""
    info = item.volume_info
    links = info.image_links
    original_cover = None
    if links:
        original_cover = links.extra_large or links.large or links.medium or links.thumbnail

    cover_url = image_urls.enhance(original_cover)
    if cover_url:
        cover_url = image_urls.to_https(cover_url)
    if original_cover and cover_url != original_cover:
        logger.debug(f"Enhanced cover URL for '{info.title}': {original_cover} -> {cover_url}")

    return BookRecord(
        id=item.id,
        title=info.title,
        author=(info.authors or [UNKNOWN_AUTHOR])[0],
        cover_url=cover_url,
        description=info.description,
        published_date=info.published_date,
        page_count=info.page_count,
        isbn=_pick_isbn(info.industry_identifiers),
        subjects=list(info.categories or []),
    )


class GoogleBooksService:
    """Primary book source: free-text search and ISBN lookup via Google Books"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[BookHTTPClient] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or settings.google_books_api_key
        self.base_url = (base_url or settings.google_books_base_url).rstrip("/")
        self.timeout = settings.google_books_timeout
        self._http = http_client or BookHTTPClient(
            timeout=self.timeout,
            retries=settings.http_retries,
            backoff=settings.http_backoff,
        )

    async def _make_api_request(self, params: Dict[str, Any]) -> GoogleBooksResponse:
        """Make a volumes request; raises on transport, HTTP or decode errors"""
        url = f"{self.base_url}/volumes"

        # Add API key if available
        if self.api_key:
            params["key"] = self.api_key

        response = await self._http.get_with_retry(url, params=params)

        if response.status_code == 429:
            raise RateLimitExceeded("Google Books rate limit exceeded")
        if not 200 <= response.status_code < 300:
            raise GoogleBooksAPIError(
                f"Google Books API error {response.status_code}: {response.text}"
            )

        try:
            return GoogleBooksResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise GoogleBooksAPIError(f"Malformed Google Books response: {e}") from e

    async def search(
        self,
        query: str,
        max_results: int = 20,
        offset: int = 0,
        order_by: Optional[str] = None,
    ) -> FetchResult[List[BookRecord]]:
        """
        Search for books using a text query

        Args:
            query: Search query, Google Books syntax allowed (intitle:, inauthor:, isbn:, subject:)
            max_results: Page size, clamped to 1..40
            offset: Index of the first result (pagination)
            order_by: "newest" or "relevance"; None uses the API default

        Returns:
            FetchResult with the mapped books, or the failure that prevented the call
        """
        params: Dict[str, Any] = {
            "q": query,
            "maxResults": max(1, min(max_results, MAX_RESULTS_LIMIT)),
            "startIndex": max(0, offset),
        }
        if order_by:
            params["orderBy"] = order_by

        logger.info(f"Google Books search: '{query}' (maxResults={params['maxResults']}, startIndex={params['startIndex']})")

        try:
            response = await self._make_api_request(params)
        except httpx.TimeoutException as e:
            logger.error(f"Google Books request timed out after {self.timeout}s: {e!r}")
            return FetchResult.failure(e)
        except (httpx.HTTPError, GoogleBooksAPIError) as e:
            logger.error(f"Google Books search failed for '{query}': {e}")
            return FetchResult.failure(e)

        books = [volume_to_book(item) for item in response.items or []]
        logger.info(f"Google Books returned {len(books)} of {response.total_items} items for '{query}'")
        return FetchResult.success(books)

    async def lookup_by_isbn(self, isbn: str) -> FetchResult[List[BookRecord]]:
        """ISBN search limited to a single result (0 or 1 element)"""
        return await self.search(f"isbn:{isbn}", max_results=1)

    async def close(self):
        await self._http.close()
