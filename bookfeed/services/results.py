from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one upstream call: a value on success, the exception on failure.

    Adapters return this instead of raising so callers can fall through to the
    next source while still logging what went wrong.
    """

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "FetchResult[T]":
        return cls(error=error)
