"""JSON-RPC 2.0 envelope codec.

Requests are framed as ``{"jsonrpc": "2.0", "id", "method", "params"}``.
Responses are classified by the members present: ``id`` + ``result`` is a
success, ``id`` + ``error`` an error, ``method`` without ``id`` a notification.
``result`` and ``params`` stay as :class:`RawValue` until a caller asks for a
concrete type.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, TypeVar, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from batchrelay.utils.exceptions import DeserializationError, ProtocolError, SerializationError

JSONRPC_VERSION = "2.0"
MAX_ID = 2**64 - 1

T = TypeVar("T")


def encode_payload(value: Any) -> str:
    """Compact JSON text, exactly as it goes on the wire."""
    try:
        return json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to encode JSON-RPC payload: {exc}") from exc


def encode_params(params: Any, method: str | None = None) -> Any:
    """
    Convert params into plain JSON values (models, dataclasses, tuples, bytes...).

    The returned value always encodes; NaN and Infinity are rejected here.
    """
    if params is None:
        return []
    try:
        value = to_jsonable_python(params)
        json.dumps(value, allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"Failed to serialize params for {method or 'request'}: {exc}",
            method=method,
        ) from exc
    return value


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


class RawValue:
    """JSON text captured from an envelope, decoded on demand."""

    __slots__ = ("_text",)

    def __init__(self, text: str):
        self._text = text

    @classmethod
    def from_value(cls, value: Any) -> "RawValue":
        return cls(json.dumps(value, separators=(",", ":")))

    def get(self) -> str:
        return self._text

    def loads(self) -> Any:
        return json.loads(self._text)

    def decode(self, type_: type[T] | Any = Any) -> T:
        """
        Decode into ``type_`` (any type pydantic can validate).

        Raises:
            DeserializationError: the JSON does not fit ``type_``.
        """
        try:
            return _adapter(type_).validate_json(self._text)
        except PydanticValidationError as exc:
            raise DeserializationError(str(exc), self._text) from exc

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RawValue):
            return self._text == other._text
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._text)

    def __repr__(self) -> str:
        return f"RawValue({self._text!r})"


class Request(BaseModel):
    """A single JSON-RPC call. ``id`` stays 0 until the batch is submitted."""

    id: int = Field(default=0, ge=0, le=MAX_ID)
    method: StrictStr
    params: Any = None

    @classmethod
    def build(cls, method: Any, params: Any = None, id: int = 0) -> "Request":
        """
        Raises:
            SerializationError: ``method`` is not a string or ``id`` is out of range.
        """
        try:
            return cls(id=id, method=method, params=params)
        except PydanticValidationError as exc:
            raise SerializationError(
                f"Invalid JSON-RPC request {method!r}: {exc.errors()[0]['msg']}",
                method=method if isinstance(method, str) else None,
            ) from exc

    def to_envelope(self) -> dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
            "params": encode_params(self.params, self.method),
        }

    def encode(self) -> str:
        return encode_payload(self.to_envelope())


class ErrorObject(BaseModel):
    """The ``error`` member of an error response."""

    code: StrictInt
    message: StrictStr
    data: Any = None


@dataclass(frozen=True)
class SuccessResponse:
    id: int
    result: RawValue


@dataclass(frozen=True)
class ErrorResponse:
    id: int
    error: ProtocolError


@dataclass(frozen=True)
class Notification:
    method: str
    params: RawValue


Response = Union[SuccessResponse, ErrorResponse, Notification]


def _check_id(value: Any, text: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise DeserializationError(f"invalid id {value!r}", text)
    if value < 0 or value > MAX_ID:
        raise DeserializationError(f"id {value} out of range", text)
    return value


def decode_response(payload: Any, text: str | None = None) -> Response:
    """
    Classify one parsed envelope.

    Args:
        payload: Parsed JSON value of the envelope.
        text: Raw text for diagnostics (re-encoded from ``payload`` if omitted).

    Raises:
        DeserializationError: the envelope is malformed.
    """
    if text is None:
        text = json.dumps(payload, separators=(",", ":"), default=str)
    if not isinstance(payload, dict):
        raise DeserializationError("expected a JSON-RPC object", text)
    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise DeserializationError(f"unsupported jsonrpc version {payload.get('jsonrpc')!r}", text)

    if "id" in payload:
        has_result = "result" in payload
        has_error = "error" in payload
        if has_result and has_error:
            raise DeserializationError("response carries both result and error", text)
        request_id = _check_id(payload["id"], text)
        if has_result:
            return SuccessResponse(id=request_id, result=RawValue.from_value(payload["result"]))
        if has_error:
            try:
                err = ErrorObject.model_validate(payload["error"])
            except PydanticValidationError as exc:
                raise DeserializationError(f"malformed error object: {exc}", text) from exc
            return ErrorResponse(
                id=request_id,
                error=ProtocolError(err.code, err.message, err.data, request_id=request_id),
            )
        raise DeserializationError("response has neither result nor error", text)

    method = payload.get("method")
    if isinstance(method, str):
        return Notification(method=method, params=RawValue.from_value(payload.get("params")))
    raise DeserializationError("missing id", text)


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise DeserializationError(str(exc), text) from exc


def parse_response(text: str) -> Response:
    """Parse a single (non-batched) response body."""
    return decode_response(_loads(text), text)


def parse_batch_response(text: str) -> list[Response]:
    """Parse a batch response body: a JSON array of envelopes."""
    payload = _loads(text)
    if not isinstance(payload, list):
        raise DeserializationError("expected a JSON array of responses", text)
    return [decode_response(item) for item in payload]
