"""Tagged success/failure values.

Used where a failure is an expected outcome the caller must branch on rather
than an exception to propagate: oracle response-shape validation, and the two
best-effort phases (page generation, relationship extraction). A phase that
returns Err(...) was skipped because of an error; Ok([]) means it ran and
produced nothing.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err[E]
