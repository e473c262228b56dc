"""
Failure kinds of the polar alignment solver and the Result type returned
across the PolarAlign session boundary.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class PolarAlignError(Exception):
    """Base class for recoverable polar alignment failures."""


class InsufficientSamplesError(PolarAlignError):
    """The session does not hold exactly three samples."""


class TooManySamplesError(PolarAlignError):
    """A session already holds its three samples."""


class DegenerateGeometryError(PolarAlignError):
    """The three samples are too close to collinear to define an axis."""


class RotationSearchError(PolarAlignError):
    """No knob adjustment explains the observed position within tolerance."""


class MappingUnavailableError(PolarAlignError):
    """The pixel <-> sky mapper could not resolve a point."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a fallible session operation: a value or an error."""

    value: Optional[T] = None
    error: Optional[PolarAlignError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Returns the value, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PolarAlignError) -> "Result[T]":
        return cls(error=error)
