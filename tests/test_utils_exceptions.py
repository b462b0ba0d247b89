"""Tests for batchrelay.utils.exceptions module."""

from __future__ import annotations

import asyncio
import json

import pytest

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


class TestExceptionClasses:
    """Test custom exception classes."""

    def test_base_error_to_dict(self) -> None:
        exc = BatchRelayError("test message", code="TEST_CODE")
        assert exc.to_dict() == {
            "error": "TEST_CODE",
            "message": "test message",
            "category": ErrorCategory.FATAL.value,
            "details": {},
        }
        assert str(exc) == "[TEST_CODE] test message"

    def test_empty_batch(self) -> None:
        exc = EmptyBatchError()
        assert exc.code == "EMPTY_BATCH"
        assert exc.category == ErrorCategory.VALIDATION
        assert str(exc) == "[EMPTY_BATCH] The batch is empty."

    def test_batch_submitted(self) -> None:
        exc = BatchSubmittedError(12)
        assert exc.code == "BATCH_ALREADY_SUBMITTED"
        assert exc.details == {"first_id": 12}

    def test_serialization_error_with_method(self) -> None:
        exc = SerializationError("bad params", method="eth_call")
        assert exc.code == "SERIALIZATION_ERROR"
        assert exc.details == {"method": "eth_call"}
        assert SerializationError("bad").details == {}

    def test_deserialization_error_keeps_text(self) -> None:
        exc = DeserializationError("expected a JSON array of responses", "<html>")
        assert exc.text == "<html>"
        assert exc.reason == "expected a JSON array of responses"
        assert exc.message == "Deserialization Error: expected a JSON array of responses. Response: <html>"

    def test_protocol_error_fields(self) -> None:
        exc = ProtocolError(-32000, "execution reverted", data="0x08c379a0", request_id=3)
        assert exc.rpc_code == -32000
        assert exc.rpc_message == "execution reverted"
        assert exc.data == "0x08c379a0"
        assert exc.request_id == 3
        assert exc.category == ErrorCategory.RECOVERABLE
        assert exc.details == {"rpc_code": -32000, "data": "0x08c379a0", "request_id": 3}
        assert "execution reverted" in str(exc)
        assert ProtocolError(1, "x").to_error_object() == {"code": 1, "message": "x"}

    def test_transport_error_categories(self) -> None:
        assert TransportError("x", retryable=True).category == ErrorCategory.RETRYABLE
        assert TransportError("x").category == ErrorCategory.FATAL
        assert TransportError("x", status_code=429, retryable=True).category == ErrorCategory.RATE_LIMIT
        assert TransportError("x", code="TRANSPORT_TIMEOUT", retryable=True).category == ErrorCategory.TIMEOUT

    def test_missing_parameters(self) -> None:
        exc = MissingParametersError(index=2)
        assert exc.message == "Some parameters were missing"
        assert exc.details == {"index": 2}

    def test_all_errors_share_base(self) -> None:
        for exc in (
            EmptyBatchError(),
            BatchSubmittedError(0),
            SerializationError("x"),
            DeserializationError("x"),
            ProtocolError(1, "x"),
            TransportError("x"),
            MissingParametersError(),
        ):
            assert isinstance(exc, BatchRelayError)


class TestSanitizeErrorMessage:
    def test_redacts_url_path_keys(self) -> None:
        msg = "POST https://mainnet.infura.io/v3/9aa3d95b3bc440fa88ea12eaa4456161 failed"
        out = sanitize_error_message(msg)
        assert "9aa3d95b3bc440fa88ea12eaa4456161" not in out
        assert "https://mainnet.infura.io/v3/[REDACTED]" in out

    def test_redacts_query_keys_and_bearer(self) -> None:
        out = sanitize_error_message("url=https://rpc.x.org/?apikey=abc123&x=1 Authorization: Bearer tok.en")
        assert "abc123" not in out
        assert "tok.en" not in out

    def test_keeps_hex_payloads(self) -> None:
        msg = "result 0x0000000000000000000000000000000000000000000000000000000000000001"
        assert sanitize_error_message(msg) == msg


class TestClassifyException:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (TransportError("x", code="TRANSPORT_NETWORK_ERROR", retryable=True),
             ("TRANSPORT_NETWORK_ERROR", ErrorCategory.RETRYABLE, True)),
            (TransportError("x", code="TRANSPORT_HTTP_ERROR", status_code=400),
             ("TRANSPORT_HTTP_ERROR", ErrorCategory.FATAL, False)),
            (ProtocolError(-32000, "x"), ("JSONRPC_ERROR", ErrorCategory.RECOVERABLE, False)),
            (EmptyBatchError(), ("EMPTY_BATCH", ErrorCategory.VALIDATION, False)),
            (asyncio.TimeoutError(), ("TIMEOUT", ErrorCategory.TIMEOUT, True)),
            (ConnectionResetError(), ("CONNECTION_ERROR", ErrorCategory.RETRYABLE, True)),
            (json.JSONDecodeError("x", "doc", 0), ("JSON_PARSE_ERROR", ErrorCategory.VALIDATION, False)),
            (KeyError("k"), ("INVALID_VALUE", ErrorCategory.VALIDATION, False)),
            (RuntimeError("rate limit hit"), ("RATE_LIMIT", ErrorCategory.RATE_LIMIT, True)),
            (RuntimeError("read timed out"), ("TIMEOUT", ErrorCategory.TIMEOUT, True)),
            (RuntimeError("network unreachable"), ("CONNECTION_ERROR", ErrorCategory.RETRYABLE, True)),
            (RuntimeError("weird"), ("INTERNAL_ERROR", ErrorCategory.FATAL, False)),
        ],
    )
    def test_classification(self, exc, expected) -> None:
        assert classify_exception(exc) == expected
