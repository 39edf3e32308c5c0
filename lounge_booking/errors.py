"""
Error taxonomy shared by the resolver, the submitter and the HTTP layer.

Each error carries the HTTP status it maps to and a user-facing message.
Provider diagnostics ride along in ``details`` so the API can return them
without re-deriving anything.
"""

from typing import Any, Optional


class BookingServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientInputError(BookingServiceError):
    """Missing or invalid request fields."""

    status_code = 400


class ConfigurationError(BookingServiceError):
    """Credential missing or seat capacity undiscoverable."""

    status_code = 500


class UpstreamError(BookingServiceError):
    """The scheduling provider failed or returned a non-success status.

    ``status_code`` mirrors the provider's status; ``cal_error`` keeps the
    raw provider payload for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 502,
        details: Any = None,
        cal_error: Any = None,
    ) -> None:
        super().__init__(message, details=details, status_code=status_code)
        self.cal_error = cal_error

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.cal_error is not None:
            body["calError"] = self.cal_error
        return body


class UnknownError(BookingServiceError):
    """Unexpected failure; the message stays generic."""

    status_code = 500
