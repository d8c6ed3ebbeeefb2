import asyncio

import httpx
import pytest

from bookfeed.book import BookRecord
from bookfeed.feed import FEED_QUERIES, dedupe_new, smart_query
from bookfeed.services import image_urls
from bookfeed.services.http_client import BookHTTPClient


def test_smart_query_rotates():
    assert smart_query(0) == ("fiction newer:2025", "newest")
    assert smart_query(7) == ("bestseller newer:2025", "relevance")
    assert smart_query(8) == smart_query(0)
    assert len({smart_query(i) for i in range(len(FEED_QUERIES))}) == len(FEED_QUERIES)


def test_dedupe_new_filters_overlapping_pages():
    seen = set()
    page_one = [BookRecord(id="a", title="A"), BookRecord(id="b", title="B")]
    page_two = [BookRecord(id="b", title="B again"), BookRecord(id="c", title="C")]

    assert [b.id for b in dedupe_new(page_one, seen)] == ["a", "b"]
    assert [b.id for b in dedupe_new(page_two, seen)] == ["c"]
    assert seen == {"a", "b", "c"}


@pytest.mark.parametrize(
    "original, expected",
    [
        (
            "http://books.google.com/books/content?id=X&printsec=frontcover&img=1&zoom=5&edge=curl&source=gbs_api",
            "https://books.google.com/books/content?id=X&printsec=frontcover&img=1&zoom=0&source=gbs_api",
        ),
        (
            "https://books.google.com/books/content?edge=curl&id=X&zoom=1",
            "https://books.google.com/books/content?id=X&zoom=0",
        ),
        ("https://covers.openlibrary.org/b/id/14656855-S.jpg", "https://covers.openlibrary.org/b/id/14656855-L.jpg"),
        ("https://covers.openlibrary.org/b/id/14656855-M.jpg", "https://covers.openlibrary.org/b/id/14656855-L.jpg"),
        ("https://covers.openlibrary.org/b/id/14656855-L.jpg", "https://covers.openlibrary.org/b/id/14656855-L.jpg"),
        ("http://example.com/image.jpg", "http://example.com/image.jpg"),
    ],
)
def test_enhance(original, expected):
    assert image_urls.enhance(original) == expected


def test_enhance_none():
    assert image_urls.enhance(None) is None


def test_to_https():
    assert image_urls.to_https("http://x/y") == "https://x/y"
    assert image_urls.to_https("https://x/y") == "https://x/y"


def test_get_with_retry_retries_transport_errors(monkeypatch):
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("flaky", request=request)
        return httpx.Response(200, json={"ok": True})

    async def no_sleep(_):
        return None

    monkeypatch.setattr("bookfeed.services.http_client.asyncio.sleep", no_sleep)
    client = BookHTTPClient(retries=3, transport=httpx.MockTransport(handler))

    response = asyncio.run(client.get_with_retry("https://example.test/"))
    assert response.status_code == 200
    assert len(attempts) == 3


def test_get_with_retry_gives_up(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    async def no_sleep(_):
        return None

    monkeypatch.setattr("bookfeed.services.http_client.asyncio.sleep", no_sleep)
    client = BookHTTPClient(retries=2, transport=httpx.MockTransport(handler))

    with pytest.raises(httpx.ConnectError):
        asyncio.run(client.get_with_retry("https://example.test/"))
