"""Core module for exceptions and telemetry."""

from wahoo.core.exceptions import (
    BadRequestError,
    EventMappingError,
    InvalidStateTransition,
    SessionClosedError,
    SessionError,
    StoreError,
    WhatsAppAPIError,
)
from wahoo.core.telemetry import get_tracer, setup_all_instrumentation, setup_telemetry

__all__ = [
    "BadRequestError",
    "EventMappingError",
    "InvalidStateTransition",
    "SessionClosedError",
    "SessionError",
    "StoreError",
    "WhatsAppAPIError",
    "get_tracer",
    "setup_telemetry",
    "setup_all_instrumentation",
]
