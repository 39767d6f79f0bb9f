"""
Error types raised by the pass predictor.

Every failure is scoped to a single tracked object (or a single sample);
the scheduler turns these into per-object results instead of aborting a run.
"""

from datetime import datetime
from typing import Optional


class PassPredictorError(Exception):
    """Base class for all pass predictor errors."""


class MalformedElementSet(PassPredictorError):
    """Raised when TLE lines cannot be parsed into an orbital state."""

    def __init__(self, object_key: str, reason: str) -> None:
        self.object_key = object_key
        self.reason = reason
        super().__init__(f"Malformed element set for '{object_key}': {reason}")


class PropagationInvalid(PassPredictorError):
    """Raised when a propagated sample has no usable position."""

    def __init__(self, instant: datetime, error_code: int) -> None:
        self.instant = instant
        self.error_code = error_code
        super().__init__(
            f"Propagation produced no valid position at {instant.isoformat()} "
            f"(error code {error_code})"
        )


class ElementRetrievalFailed(PassPredictorError):
    """Raised when element sets cannot be fetched from a remote source."""

    def __init__(self, object_key: str, url: Optional[str], reason: str) -> None:
        self.object_key = object_key
        self.url = url
        self.reason = reason
        super().__init__(
            f"Could not retrieve element set for '{object_key}' from {url}: {reason}"
        )
