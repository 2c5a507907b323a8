"""
Tagged results for domain operations.

Services return Ok(value) or Err(error) for failures they expect (bad
password, rate limit, expired token). Unexpected failures still propagate
as exceptions.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .exceptions import ProgressorError


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Expected failure carrying a typed domain error."""

    error: ProgressorError

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
