from __future__ import annotations

from typing import Any


class TasteFinderError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InputError(TasteFinderError):
    """Missing or malformed client input. No service is contacted."""

    status_code = 400


class ConfigurationError(TasteFinderError):
    """A required provider credential is not configured."""

    status_code = 500


class UpstreamError(TasteFinderError):
    """An external service failed or could not be reached."""

    status_code = 502

    def __init__(
        self,
        message: str,
        details: Any = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, details)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.upstream_status is not None:
            body["upstream_status"] = self.upstream_status
        return body


class CompletionFailedError(UpstreamError):
    """The chat completion provider returned an error or an unusable reply."""


class SearchFailedError(UpstreamError):
    """The business search provider returned a non-success response."""


class InvalidResponseError(UpstreamError):
    """The business search response did not carry a ``businesses`` list."""


class RequestInFlightError(TasteFinderError):
    """The session already has a request outstanding."""

    status_code = 409
