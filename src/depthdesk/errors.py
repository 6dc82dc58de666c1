"""Error taxonomy for the market-data layer.

None of these are fatal: feeds keep the last known-good state and order
submissions turn them into a classified outcome.
"""

from __future__ import annotations

from typing import Any


class DepthDeskError(Exception):
    """Base class for all depthdesk errors."""

    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def to_dict(self) -> dict[str, Any]:
        """Structured form for log records."""
        result: dict[str, Any] = {
            "error": self.message,
            "error_type": self.__class__.__name__,
        }
        if self.original_exception is not None:
            result["original_error"] = str(self.original_exception)
            result["original_error_type"] = self.original_exception.__class__.__name__
        return result


class MalformedPayload(DepthDeskError):
    """Inbound message is structurally invalid. Dropped, prior state retained."""


class TransportFailure(DepthDeskError):
    """Poll or push connection error. Prior state retained, feed marked stale."""


class SubmissionRejected(DepthDeskError):
    """The engine declined the order (e.g. insufficient balance)."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message, original_exception)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status is not None:
            result["status"] = self.status
        return result


class SubmissionNetworkError(DepthDeskError):
    """The request never completed; the order's fate is unknown."""
