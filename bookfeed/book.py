from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

UNKNOWN_AUTHOR = "Unknown Author"


@dataclass(frozen=True)
class BookRecord:
    """A book normalized from either upstream source. Identity is ``id``."""

    id: str
    title: str
    author: str = UNKNOWN_AUTHOR
    cover_url: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[str] = None
    page_count: Optional[int] = None
    isbn: Optional[str] = None
    subjects: List[str] = field(default_factory=list)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "cover_url": self.cover_url,
            "description": self.description,
            "published_date": self.published_date,
            "page_count": self.page_count,
            "isbn": self.isbn,
            "subjects": list(self.subjects),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BookRecord":
        return BookRecord(
            id=data["id"],
            title=data["title"],
            author=data.get("author") or UNKNOWN_AUTHOR,
            cover_url=data.get("cover_url"),
            description=data.get("description"),
            published_date=data.get("published_date"),
            page_count=data.get("page_count"),
            isbn=data.get("isbn"),
            subjects=list(data.get("subjects") or []),
        )
