"""Error taxonomy for the intent relay pipeline.

Every failure is local to one request. ``status_code`` is the HTTP status used
when the error surfaces before a stream has started; ``code`` is the
machine-readable value carried by ``error`` frames.
"""

from typing import Any


class RelayError(Exception):
    """Base class for pipeline errors."""

    status_code: int = 500
    code: str = "RELAY_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Render the error as an HTTP response body."""
        return {"error": self.message}


class ClassificationFailure(RelayError):
    """The backend could not produce a label from the candidate set."""

    status_code = 400
    code = "CLASSIFICATION_FAILED"


class UnknownLabel(ClassificationFailure):
    """A label outside the registered set reached dispatch."""

    code = "UNKNOWN_LABEL"

    def __init__(self, label: str, allowed: list[str] | None = None) -> None:
        detail = f"Unknown intent: {label!r}"
        if allowed:
            detail += f" (expected one of {', '.join(allowed)})"
        super().__init__(detail)
        self.label = label
        self.allowed = list(allowed or [])


class GenerationFailure(RelayError):
    """The backend failed or produced output that does not satisfy the schema."""

    status_code = 500
    code = "GENERATION_FAILED"

    def __init__(
        self,
        message: str,
        text: str | None = None,
        cause: str | None = None,
    ) -> None:
        super().__init__(message)
        self.text = text
        self.cause = cause


class TransportFailure(RelayError):
    """The caller went away or a write to the response failed."""

    code = "TRANSPORT_FAILED"
