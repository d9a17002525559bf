"""Exception types raised by world generation, export and import."""

from typing import Iterable, List, Optional


class WorldGenError(Exception):
    """Base class for world generation failures."""


class ConfigurationError(WorldGenError, ValueError):
    """Generation parameters are outside their valid range."""


class InvariantViolationError(WorldGenError):
    """An unrecoverable structural invariant was broken."""

    def __init__(self, message: str, offending: Optional[Iterable[str]] = None):
        self.offending: List[str] = list(offending or [])
        if self.offending:
            message = f"{message} (offending: {', '.join(self.offending)})"
        super().__init__(message)


class DuplicateAddressError(InvariantViolationError):
    """Two vertices resolve to the same place address."""


class OriginError(InvariantViolationError):
    """The world does not have exactly one correctly addressed origin."""


class DuplicateExitError(InvariantViolationError):
    """A vertex has two exits in the same compass direction."""


class ImportValidationError(InvariantViolationError):
    """A JSONL world file could not be reconstructed into a valid graph."""
