"""
Centralized error types for the application.

Every error carries the HTTP status it maps to and a message that is safe to
show to callers. The raw exception text is only exposed in development mode.
"""

from typing import Any, Dict, Optional


class LearnHubError(Exception):
    """Base class for all application errors."""

    status_code = 500
    public_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)

    def to_payload(self, debug: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.public_message}
        if debug:
            payload["details"] = str(self)
        return payload


class ValidationError(LearnHubError):
    """Bad or missing caller input. The message is shown as-is."""

    status_code = 400

    @property
    def public_message(self) -> str:
        return str(self)


class NotFoundError(LearnHubError):
    """Data does not exist (yet). Routine while polling."""

    status_code = 404

    @property
    def public_message(self) -> str:
        return str(self)


class RateLimitExceeded(LearnHubError):
    """The calling client exceeded its request window."""

    status_code = 429

    @property
    def public_message(self) -> str:
        return str(self)


class ConfigurationError(LearnHubError):
    """A required server secret or setting is missing."""

    status_code = 500
    public_message = "Server configuration error. Contact administrator."


class ParseError(LearnHubError):
    """Model output could not be recovered as JSON."""

    status_code = 500
    public_message = "Failed to process AI response"


class UpstreamError(LearnHubError):
    """An external service answered with an error."""

    status_code = 502
    public_message = "Failed to generate summary. Please try again."


class UpstreamRateLimited(UpstreamError):
    status_code = 429
    public_message = "Gemini API rate limit reached. Please wait and try again."


class UpstreamAuthError(UpstreamError):
    status_code = 500
    public_message = "Server configuration error."


class UpstreamQuotaExceeded(UpstreamError):
    status_code = 503
    public_message = "Service quota exceeded. Please try again later."


class UpstreamUnavailable(UpstreamError):
    """Timeout, connection failure or 5xx from an external service."""

    status_code = 504
    public_message = "Upstream service unavailable. Please try again later."


class WorkflowEngineError(UpstreamError):
    """The n8n webhook answered with a non-success status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"n8n webhook failed with status {status_code}")

    @property
    def public_message(self) -> str:
        return f"n8n webhook failed with status {self.status_code}"
