import pytest

from bookfeed.cache_manager import ExpiringLRUCache
from bookfeed.shelf_store import InMemoryBlobStore, LocalShelfStore
from bookfeed.ui_helpers import OUTPUT_MODE_ENV


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ExpiringLRUCache(capacity=3, ttl_millis=1000, clock=clock)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def shelf_store(blob_store, clock):
    return LocalShelfStore(blob_store, clock=clock)


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # CLI output mode is process-global; every test starts from plain
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
