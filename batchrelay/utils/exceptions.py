"""
Exception hierarchy and error handling utilities for batchrelay.

Provides:
- Custom exception classes with error codes
- Error categorization (recoverable, retryable, fatal)
- Safe error message formatting (no RPC keys leaked into logs)
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"


class BatchRelayError(Exception):
    """Base exception for all batchrelay errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class EmptyBatchError(BatchRelayError):
    """The batch holds no requests (or no responses remain)."""

    def __init__(self, message: str = "The batch is empty."):
        super().__init__(message, code="EMPTY_BATCH", category=ErrorCategory.VALIDATION)


class BatchSubmittedError(BatchRelayError):
    """Ids were already stamped on this batch."""

    def __init__(self, first_id: int):
        super().__init__(
            f"Batch already submitted with first id {first_id}",
            code="BATCH_ALREADY_SUBMITTED",
            category=ErrorCategory.VALIDATION,
            details={"first_id": first_id},
        )


class SerializationError(BatchRelayError):
    """Params or an outgoing envelope could not be encoded."""

    def __init__(self, message: str, method: str | None = None):
        details = {"method": method} if method else {}
        super().__init__(message, code="SERIALIZATION_ERROR", category=ErrorCategory.VALIDATION, details=details)


class DeserializationError(BatchRelayError):
    """Response text did not match the expected shape; keeps the raw text."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(
            f"Deserialization Error: {message}. Response: {text}",
            code="DESERIALIZATION_ERROR",
            category=ErrorCategory.FATAL,
            details={"reason": message},
        )
        self.reason = message
        self.text = text


class ProtocolError(BatchRelayError):
    """
    JSON-RPC error object reported by the server for one request.

    ``rpc_code``/``rpc_message``/``data`` mirror the wire ``error`` member.
    """

    def __init__(self, rpc_code: int, rpc_message: str, data: Any = None, request_id: int | None = None):
        details: dict[str, Any] = {"rpc_code": rpc_code}
        if data is not None:
            details["data"] = data
        if request_id is not None:
            details["request_id"] = request_id
        super().__init__(
            f"(code: {rpc_code}, message: {rpc_message}, data: {data})",
            code="JSONRPC_ERROR",
            category=ErrorCategory.RECOVERABLE,
            details=details,
        )
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message
        self.data = data
        self.request_id = request_id

    def to_error_object(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.rpc_code, "message": self.rpc_message}
        if self.data is not None:
            out["data"] = self.data
        return out


class TransportError(BatchRelayError):
    """Network-level failure of a round trip."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "TRANSPORT_ERROR",
        status_code: int | None = None,
        retryable: bool = False,
    ):
        category = ErrorCategory.RETRYABLE if retryable else ErrorCategory.FATAL
        if status_code == 429:
            category = ErrorCategory.RATE_LIMIT
        elif code == "TRANSPORT_TIMEOUT":
            category = ErrorCategory.TIMEOUT
        super().__init__(
            message,
            code=code,
            category=category,
            details={"status_code": status_code, "retryable": retryable},
        )
        self.status_code = status_code
        self.retryable = retryable


class MissingParametersError(BatchRelayError):
    """A call handed to the middleware lacked a method."""

    def __init__(self, message: str = "Some parameters were missing", index: int | None = None):
        details = {"index": index} if index is not None else {}
        super().__init__(message, code="MISSING_PARAMETERS", category=ErrorCategory.VALIDATION, details=details)


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"&]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    # Infura/Alchemy style keys embedded in the URL path.
    re.compile(r"(?<=/v[0-9]/)[a-zA-Z0-9_-]{20,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Returns:
        Tuple of (error_code, category, should_retry)
    """
    if isinstance(exc, TransportError):
        return exc.code, exc.category, exc.retryable

    if isinstance(exc, BatchRelayError):
        return exc.code, exc.category, exc.category in (ErrorCategory.RETRYABLE, ErrorCategory.RATE_LIMIT)

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION, False

    if isinstance(exc, (ValueError, TypeError, KeyError)):
        return "INVALID_VALUE", ErrorCategory.VALIDATION, False

    exc_str = str(exc).lower()
    if "rate limit" in exc_str or "429" in exc_str:
        return "RATE_LIMIT", ErrorCategory.RATE_LIMIT, True

    if "timeout" in exc_str or "timed out" in exc_str:
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if "connection" in exc_str or "network" in exc_str:
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    return "INTERNAL_ERROR", ErrorCategory.FATAL, False
