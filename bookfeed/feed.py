from typing import Iterable, List, Optional, Set, Tuple

from bookfeed.book import BookRecord

# (query, order_by) pairs cycled through as the feed is reloaded.
# "newer:" keeps results to recent releases across genres.
FEED_QUERIES: List[Tuple[str, Optional[str]]] = [
    ("fiction newer:2025", "newest"),
    ("fantasy newer:2025", "newest"),
    ("mystery newer:2025", "newest"),
    ("romance newer:2025", "newest"),
    ("novel newer:2024", "newest"),
    ("bestseller newer:2024", "newest"),
    ("fiction newer:2025", "relevance"),
    ("bestseller newer:2025", "relevance"),
]


def smart_query(load_count: int = 0) -> Tuple[str, Optional[str]]:
    """Query and sort order for the ``load_count``-th feed load."""
    return FEED_QUERIES[load_count % len(FEED_QUERIES)]


def dedupe_new(books: Iterable[BookRecord], seen_ids: Set[str]) -> List[BookRecord]:
    """Drop books whose id was already shown; records new ids in ``seen_ids``.

    Upstream pages can overlap, so every page is filtered against the ids seen so far.
    """
    fresh: List[BookRecord] = []
    for book in books:
        if book.id in seen_ids:
            continue
        seen_ids.add(book.id)
        fresh.append(book)
    return fresh
