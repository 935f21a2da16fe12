"""Custom exceptions.

HTTP exceptions are raised only by the API layer. The store and session layers
raise the domain exceptions below, which the API translates into responses.
"""

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    """Exception raised for bad requests."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class StoreError(Exception):
    """Raised when the durable store cannot complete an operation."""


class SessionError(Exception):
    """Base class for failures of the remote WhatsApp session."""


class WhatsAppAPIError(SessionError):
    """Exception raised when WhatsApp API returns an error."""

    def __init__(self, detail: str):
        super().__init__(f"WhatsApp API error: {detail}")
        self.detail = detail


class SessionClosedError(SessionError):
    """Raised when the session event stream closes underneath a reader."""


class InvalidStateTransition(SessionError):
    """Raised when the session state machine is asked for a forbidden move."""


class EventMappingError(ValueError):
    """Raised when an inbound session event cannot be mapped to a store update."""
