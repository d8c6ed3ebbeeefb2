import asyncio

import httpx

from bookfeed.services.google_books_service import (
    GoogleBooksAPIError,
    GoogleBooksService,
    RateLimitExceeded,
)
from bookfeed.services.http_client import BookHTTPClient

VOLUME = {
    "id": "cj0lhuzFSloC",
    "volumeInfo": {
        "title": "Effective Java",
        "authors": ["Joshua Bloch", "Someone Else"],
        "description": "Best practices",
        "publishedDate": "2018-01-06",
        "pageCount": 412,
        "categories": ["Computers"],
        "imageLinks": {
            "thumbnail": "http://books.google.com/books/content?id=cj0lhuzFSloC&printsec=frontcover&img=1&zoom=1&edge=curl&source=gbs_api",
        },
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0134685997"},
            {"type": "ISBN_13", "identifier": "9780134685991"},
        ],
    },
}


def make_service(handler, api_key="test-key"):
    client = BookHTTPClient(retries=1, transport=httpx.MockTransport(handler))
    return GoogleBooksService(api_key=api_key, http_client=client, base_url="https://books.test/v1")


def test_search_maps_volumes_and_sends_params():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"totalItems": 1, "items": [VOLUME]})

    service = make_service(handler)
    result = asyncio.run(service.search("java", max_results=100, offset=20, order_by="newest"))

    assert result.ok
    [book] = result.value
    assert book.id == "cj0lhuzFSloC"
    assert book.title == "Effective Java"
    assert book.author == "Joshua Bloch"
    assert book.isbn == "9780134685991"
    assert book.subjects == ["Computers"]
    assert book.page_count == 412
    assert book.cover_url == (
        "https://books.google.com/books/content?id=cj0lhuzFSloC&printsec=frontcover&img=1&zoom=0&source=gbs_api"
    )

    params = seen["url"].params
    assert seen["url"].path == "/v1/volumes"
    assert params["q"] == "java"
    assert params["maxResults"] == "40"
    assert params["startIndex"] == "20"
    assert params["orderBy"] == "newest"
    assert params["key"] == "test-key"


def test_missing_fields_use_defaults():
    volume = {"id": "x1", "volumeInfo": {"title": "Bare", "industryIdentifiers": [{"type": "ISBN_10", "identifier": "0451526538"}]}}

    service = make_service(lambda request: httpx.Response(200, json={"totalItems": 1, "items": [volume]}))
    [book] = asyncio.run(service.search("bare")).value

    assert book.author == "Unknown Author"
    assert book.cover_url is None
    assert book.isbn == "0451526538"
    assert book.subjects == []


def test_cover_prefers_largest_image():
    volume = {
        "id": "x2",
        "volumeInfo": {
            "title": "Covers",
            "imageLinks": {
                "thumbnail": "https://example.com/thumb.jpg",
                "medium": "https://example.com/medium.jpg",
                "large": "http://example.com/large.jpg",
            },
        },
    }
    service = make_service(lambda request: httpx.Response(200, json={"items": [volume]}))
    [book] = asyncio.run(service.search("covers")).value
    assert book.cover_url == "https://example.com/large.jpg"


def test_no_items_is_empty_success():
    service = make_service(lambda request: httpx.Response(200, json={"totalItems": 0}))
    result = asyncio.run(service.search("nothing"))
    assert result.ok
    assert result.value == []


def test_lookup_by_isbn_uses_isbn_query(monkeypatch):
    monkeypatch.setattr("bookfeed.services.google_books_service.settings.google_books_api_key", None)
    seen = {}

    def handler(request):
        seen["params"] = request.url.params
        return httpx.Response(200, json={"totalItems": 1, "items": [VOLUME]})

    service = make_service(handler, api_key=None)
    result = asyncio.run(service.lookup_by_isbn("9780134685991"))

    assert len(result.value) == 1
    assert seen["params"]["q"] == "isbn:9780134685991"
    assert seen["params"]["maxResults"] == "1"
    assert "key" not in seen["params"]


def test_http_error_is_reported_as_failure():
    service = make_service(lambda request: httpx.Response(503, text="unavailable"))
    result = asyncio.run(service.search("java"))
    assert not result.ok
    assert isinstance(result.error, GoogleBooksAPIError)
    assert "503" in str(result.error)


def test_rate_limit_is_reported_as_failure():
    service = make_service(lambda request: httpx.Response(429, text="slow down"))
    result = asyncio.run(service.search("java"))
    assert isinstance(result.error, RateLimitExceeded)


def test_transport_error_is_reported_as_failure():
    def handler(request):
        raise httpx.ConnectError("dns failure", request=request)

    service = make_service(handler)
    result = asyncio.run(service.search("java"))
    assert not result.ok
    assert isinstance(result.error, httpx.ConnectError)


def test_malformed_body_is_reported_as_failure():
    service = make_service(lambda request: httpx.Response(200, text="<html>"))
    result = asyncio.run(service.search("java"))
    assert isinstance(result.error, GoogleBooksAPIError)
