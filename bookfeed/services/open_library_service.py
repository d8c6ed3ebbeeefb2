import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from bookfeed.book import UNKNOWN_AUTHOR, BookRecord
from bookfeed.config import settings
from bookfeed.services.http_client import BookHTTPClient
from bookfeed.services.results import FetchResult

logger = logging.getLogger(__name__)


class NamedRef(BaseModel):
    name: str
    url: Optional[str] = None


class Cover(BaseModel):
    small: Optional[str] = None
    medium: Optional[str] = None
    large: Optional[str] = None


class Identifiers(BaseModel):
    isbn_10: Optional[List[str]] = None
    isbn_13: Optional[List[str]] = None


class OpenLibraryBookData(BaseModel):
    """One entry of an Open Library ``jscmd=data`` response"""
    title: str
    subtitle: Optional[str] = None
    authors: Optional[List[NamedRef]] = None
    publishers: Optional[List[NamedRef]] = None
    publish_date: Optional[str] = None
    number_of_pages: Optional[int] = None
    subjects: Optional[List[NamedRef]] = None
    cover: Optional[Cover] = None
    identifiers: Optional[Identifiers] = None


class OpenLibraryAPIError(Exception):
    """Custom exception for Open Library API errors"""
    pass


def open_library_to_book(data: OpenLibraryBookData, isbn: str) -> BookRecord:
    """Map Open Library data onto a BookRecord; ``isbn`` is the queried ISBN"""
    title = f"{data.title}: {data.subtitle}" if data.subtitle else data.title
    author = data.authors[0].name if data.authors else UNKNOWN_AUTHOR

    cover_url = None
    if data.cover:
        cover_url = data.cover.large or data.cover.medium or data.cover.small

    identifiers = data.identifiers or Identifiers()
    resolved_isbn = (identifiers.isbn_13 or identifiers.isbn_10 or [isbn])[0]

    return BookRecord(
        id=f"OL:{isbn}",
        title=title,
        author=author,
        cover_url=cover_url,
        # The Books API carries no description
        description=None,
        published_date=data.publish_date,
        page_count=data.number_of_pages,
        isbn=resolved_isbn,
        subjects=[subject.name for subject in data.subjects or []],
    )


class OpenLibraryService:
    """Secondary book source: ISBN lookup only, no API key required"""

    def __init__(
        self,
        http_client: Optional[BookHTTPClient] = None,
        base_url: Optional[str] = None,
        covers_url: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.open_library_base_url).rstrip("/")
        self.covers_url = (covers_url or settings.open_library_covers_url).rstrip("/")
        self.timeout = settings.open_library_timeout
        self._http = http_client or BookHTTPClient(
            timeout=self.timeout,
            retries=settings.http_retries,
            backoff=settings.http_backoff,
        )

    async def lookup_by_isbn(self, isbn: str) -> FetchResult[Optional[BookRecord]]:
        """
        Fetch book metadata by ISBN

        Returns:
            success(BookRecord) when found, success(None) when Open Library does not
            know the ISBN, failure(exc) on transport / HTTP / decode errors
        """
        bibkey = f"ISBN:{isbn}"
        params = {"bibkeys": bibkey, "format": "json", "jscmd": "data"}

        try:
            response = await self._http.get_with_retry(f"{self.base_url}/api/books", params=params)
            if not 200 <= response.status_code < 300:
                raise OpenLibraryAPIError(
                    f"Open Library API error {response.status_code}: {response.text}"
                )
            body = response.json()
            if not isinstance(body, dict):
                raise OpenLibraryAPIError(f"Unexpected Open Library response: {body!r}")
            # Unknown ISBNs come back as an empty object
            payload = body.get(bibkey)
            if payload is None:
                logger.info(f"Book not found in Open Library: ISBN {isbn}")
                return FetchResult.success(None)
            data = OpenLibraryBookData.model_validate(payload)
        except (httpx.HTTPError, OpenLibraryAPIError, ValidationError, ValueError) as e:
            logger.error(f"Open Library lookup failed for ISBN {isbn}: {e}")
            return FetchResult.failure(e)

        book = open_library_to_book(data, isbn)
        logger.info(f"Book found via Open Library: {book.title} by {book.author}")
        return FetchResult.success(book)

    def cover_url(self, isbn: str, size: str = "L") -> str:
        """Cover image URL for an ISBN; S, M or L. May 404 when no cover exists."""
        return f"{self.covers_url}/isbn/{isbn}-{size}.jpg"

    async def close(self):
        await self._http.close()
