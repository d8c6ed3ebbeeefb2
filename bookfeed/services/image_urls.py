"""Cover image URL quality upgrades for Google Books and Open Library."""

from typing import Optional

GOOGLE_BOOKS_CONTENT = "books.google.com/books/content"
OPEN_LIBRARY_COVERS = "covers.openlibrary.org"


def to_https(url: str) -> str:
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def enhance(original_url: Optional[str]) -> Optional[str]:
    """Rewrite a cover URL to the largest variant the host serves.

    Unknown hosts are returned unchanged.
    """
    if original_url is None:
        return None

    if GOOGLE_BOOKS_CONTENT in original_url:
        return _enhance_google_books_url(original_url)
    if OPEN_LIBRARY_COVERS in original_url:
        return _enhance_open_library_url(original_url)
    return original_url


def _enhance_google_books_url(url: str) -> str:
    # Lower zoom means a bigger image; zoom=0 is the largest
    url = url.replace("zoom=5", "zoom=0").replace("zoom=1", "zoom=0")
    url = url.replace("&edge=curl", "").replace("edge=curl&", "")
    return url.replace("http://", "https://")


def _enhance_open_library_url(url: str) -> str:
    for size in ("-S.jpg", "-M.jpg"):
        if size in url:
            return url.replace(size, "-L.jpg")
    return url
