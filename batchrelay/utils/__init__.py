"""Utility functions for batchrelay."""

from batchrelay.utils.exceptions import (
    BatchRelayError,
    BatchSubmittedError,
    DeserializationError,
    EmptyBatchError,
    ErrorCategory,
    MissingParametersError,
    ProtocolError,
    SerializationError,
    TransportError,
    classify_exception,
    sanitize_error_message,
)

__all__ = [
    "BatchRelayError",
    "BatchSubmittedError",
    "DeserializationError",
    "EmptyBatchError",
    "ErrorCategory",
    "MissingParametersError",
    "ProtocolError",
    "SerializationError",
    "TransportError",
    "classify_exception",
    "sanitize_error_message",
]
