"""
Live checks against Google Books and Open Library.
Skipped unless RUN_INTEGRATION=1 is set.
"""

import asyncio
import os

import pytest

from bookfeed.repository import BookRepository

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("RUN_INTEGRATION"), reason="Calls real APIs. Set RUN_INTEGRATION=1 to enable."),
]


def test_live_search_and_isbn():
    async def run():
        async with BookRepository.create() as repo:
            books = await repo.search_books("intitle:foundation inauthor:asimov", max_results=5)
            book = await repo.get_book_by_isbn("0451526538")
            return books, book

    books, book = asyncio.run(run())
    assert books
    assert all(b.id for b in books)
    assert book is not None
    assert book.title
