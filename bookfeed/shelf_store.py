"""Local shelf membership store persisted as a JSON blob."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from bookfeed.cache_manager import Clock, system_clock

logger = logging.getLogger(__name__)


class Shelf(str, Enum):
    """Named collections a book can be saved to."""

    TBR = "TBR"              # to be read
    RECOMMEND = "RECOMMEND"  # public recommendations
    READ = "READ"            # finished


@dataclass(frozen=True)
class ShelfMembership:
    item_id: str
    shelf: Shelf
    saved_at_millis: int

    def to_dict(self) -> dict:
        return {"bookId": self.item_id, "shelf": self.shelf.value, "savedAt": self.saved_at_millis}

    @staticmethod
    def from_dict(data: dict) -> "ShelfMembership":
        saved_at = data["savedAt"]
        if not isinstance(saved_at, int) or isinstance(saved_at, bool):
            raise ValueError(f"savedAt must be an integer, got {saved_at!r}")
        return ShelfMembership(
            item_id=str(data["bookId"]),
            shelf=Shelf(data["shelf"]),
            saved_at_millis=saved_at,
        )


class BlobStore(ABC):
    """Durable storage for a single string blob."""

    @abstractmethod
    def save(self, blob: str) -> None:
        ...

    @abstractmethod
    def load(self) -> Optional[str]:
        ...


class InMemoryBlobStore(BlobStore):
    def __init__(self, blob: Optional[str] = None) -> None:
        self.blob = blob

    def save(self, blob: str) -> None:
        self.blob = blob

    def load(self) -> Optional[str]:
        return self.blob


class FileBlobStore(BlobStore):
    """Blob kept in a file; writes go through a temp file and an atomic rename."""

    def __init__(self, path: str) -> None:
        self.path = path

    def save(self, blob: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".shelves-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(blob)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def load(self) -> Optional[str]:
        if not os.path.exists(self.path):
            return None
        with open(self.path, "r", encoding="utf-8") as fh:
            return fh.read()


MembershipKey = Tuple[str, Shelf]


class LocalShelfStore:
    """Per-book shelf memberships, written through to a blob store on every change.

    A book may sit on several shelves at once. Adding a book to a shelf it is
    already on refreshes its saved-at timestamp.
    """

    def __init__(self, storage: BlobStore, clock: Optional[Clock] = None) -> None:
        self.storage = storage
        self._clock: Clock = clock or system_clock
        self._lock = threading.RLock()
        self._memberships: Dict[MembershipKey, ShelfMembership] = {}
        self._load()

    # ------------------------- Mutations ------------------------- #
    def add_to_shelf(self, item_id: str, shelf: Shelf) -> None:
        with self._lock:
            updated = dict(self._memberships)
            updated[(item_id, shelf)] = ShelfMembership(item_id, shelf, self._clock())
            self._commit(updated)

    def remove_from_shelf(self, item_id: str, shelf: Shelf) -> None:
        with self._lock:
            updated = dict(self._memberships)
            updated.pop((item_id, shelf), None)
            # Persisted even when nothing was removed
            self._commit(updated)

    def toggle_shelf(self, item_id: str, shelf: Shelf) -> bool:
        """Flip membership; returns True if the book is now on the shelf."""
        with self._lock:
            if self.is_on_shelf(item_id, shelf):
                self.remove_from_shelf(item_id, shelf)
                return False
            self.add_to_shelf(item_id, shelf)
            return True

    # ------------------------- Queries ------------------------- #
    def is_on_shelf(self, item_id: str, shelf: Shelf) -> bool:
        with self._lock:
            return (item_id, shelf) in self._memberships

    def shelves_for(self, item_id: str) -> Set[Shelf]:
        with self._lock:
            return {shelf for (book_id, shelf) in self._memberships if book_id == item_id}

    def get_shelf(self, shelf: Shelf) -> List[ShelfMembership]:
        """Memberships of one shelf, most recently saved first."""
        with self._lock:
            entries = [m for m in self._memberships.values() if m.shelf == shelf]
        return sorted(entries, key=lambda m: m.saved_at_millis, reverse=True)

    def memberships(self) -> List[ShelfMembership]:
        with self._lock:
            return list(self._memberships.values())

    # ------------------------- Persistence ------------------------- #
    def _load(self) -> None:
        try:
            blob = self.storage.load()
            if blob is None:
                return
            records = json.loads(blob)
            if not isinstance(records, list):
                raise ValueError(f"expected a list of memberships, got {type(records).__name__}")
            loaded = [ShelfMembership.from_dict(record) for record in records]
        except (OSError, ValueError, KeyError, TypeError, RecursionError) as e:
            # Unreadable or corrupt data: start with an empty store
            logger.warning(f"Discarding unreadable shelf data: {e}")
            return
        self._memberships = {(m.item_id, m.shelf): m for m in loaded}

    def _commit(self, updated: Dict[MembershipKey, ShelfMembership]) -> None:
        # Memory only changes once the blob is saved
        blob = json.dumps([m.to_dict() for m in updated.values()])
        self.storage.save(blob)
        self._memberships = updated
