"""Progress signal returned by a convergence pass."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Result:
    """
    Outcome of one pass.

    A completed result never means "done forever": the scheduler still
    re-invokes the mover after retry_after to keep converging.
    """
    completed: bool
    retry_after: Optional[float] = None
    error: Optional[Exception] = None

    @classmethod
    def in_progress(cls, error: Optional[Exception] = None) -> 'Result':
        return cls(completed=False, error=error)

    @classmethod
    def complete(cls) -> 'Result':
        return cls(completed=True)

    @classmethod
    def retry_after_delay(cls, seconds: float) -> 'Result':
        """Completed pass that should run again after the given delay."""
        return cls(completed=True, retry_after=seconds)
