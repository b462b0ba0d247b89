"""Batches of JSON-RPC requests and the responses that come back for them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from batchrelay.jsonrpc import ErrorResponse, RawValue, Request, Response, SuccessResponse
from batchrelay.utils.exceptions import (
    BatchRelayError,
    BatchSubmittedError,
    DeserializationError,
    EmptyBatchError,
)

T = TypeVar("T")


class BatchRequest:
    """
    Ordered JSON-RPC requests sent in one wire exchange.

    Requests carry id 0 until :meth:`set_ids` stamps the final ids at
    submission. Insertion order is the order results are handed back in.
    """

    def __init__(self, capacity: int | None = None):
        # capacity is advisory, kept for callers sizing batches up front
        self.capacity = capacity
        self._requests: list[dict[str, Any]] = []
        self._first_id: int | None = None

    @classmethod
    def with_capacity(cls, capacity: int) -> "BatchRequest":
        return cls(capacity=capacity)

    def __len__(self) -> int:
        return len(self._requests)

    def __bool__(self) -> bool:
        return bool(self._requests)

    def __repr__(self) -> str:
        return f"BatchRequest(len={len(self)}, first_id={self._first_id})"

    def is_empty(self) -> bool:
        return not self._requests

    @property
    def submitted(self) -> bool:
        return self._first_id is not None

    def add_request(self, method: str, params: Any = None) -> "BatchRequest":
        """
        Append a call. Params are serialized now so a bad payload is
        attributed to this call, not to the whole submission.

        Raises:
            SerializationError: ``method`` is not a string, or params
                cannot be encoded as JSON (NaN and Infinity included).
            BatchSubmittedError: the batch already went out.
        """
        if self._first_id is not None:
            raise BatchSubmittedError(self._first_id)
        envelope = Request.build(method, params).to_envelope()
        self._requests.append(envelope)
        return self

    def set_ids(self, first: int) -> None:
        """
        Stamp ids ``first, first + 1, ...`` in insertion order.

        Raises:
            EmptyBatchError: the batch has no requests.
            BatchSubmittedError: ids were already assigned.
        """
        if self._first_id is not None:
            raise BatchSubmittedError(self._first_id)
        requests = self.requests_mut()
        for offset, request in enumerate(requests):
            if "id" not in request:
                raise RuntimeError(f"Malformed JSON-RPC request: {request}, id is missing.")
            request["id"] = first + offset
        self._first_id = first

    def requests(self) -> tuple[dict[str, Any], ...]:
        """
        Raises:
            EmptyBatchError: the batch has no requests.
        """
        if not self._requests:
            raise EmptyBatchError()
        return tuple(self._requests)

    def requests_mut(self) -> list[dict[str, Any]]:
        """
        Raises:
            EmptyBatchError: the batch has no requests.
        """
        if not self._requests:
            raise EmptyBatchError()
        return self._requests

    def ids(self) -> list[int]:
        return [request["id"] for request in self._requests]


@dataclass
class ResponseResult(Generic[T]):
    """One entry handed back from a batch: either a value or an error."""

    id: int
    value: T | None = None
    error: BatchRelayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class BatchResponse:
    """
    Responses to one batch, handed back in ascending id order.

    Entries are kept sorted by descending id and popped from the tail, so the
    n-th extraction matches the n-th request added to the batch whatever
    order the server answered in.
    """

    def __init__(self, responses: Iterable[Response]):
        entries: list[tuple[int, RawValue | BatchRelayError]] = []
        for response in responses:
            if isinstance(response, SuccessResponse):
                entries.append((response.id, response.result))
            elif isinstance(response, ErrorResponse):
                entries.append((response.id, response.error))
            else:
                raise TypeError(f"unexpected {type(response).__name__} in batch response")
        entries.sort(key=lambda entry: entry[0], reverse=True)
        self._responses = entries

    def __len__(self) -> int:
        return len(self._responses)

    def __bool__(self) -> bool:
        return bool(self._responses)

    def __repr__(self) -> str:
        return f"BatchResponse(ids={self.ids()})"

    def is_empty(self) -> bool:
        return not self._responses

    def id(self) -> int:
        """
        Smallest id still held, i.e. the id of the first request of the batch
        as long as nothing was extracted yet.

        Raises:
            EmptyBatchError: no entries remain.
        """
        if not self._responses:
            raise EmptyBatchError()
        return self._responses[-1][0]

    def ids(self) -> list[int]:
        """Remaining ids in retrieval order."""
        return [entry_id for entry_id, _ in reversed(self._responses)]

    def next_response(self, result_type: type[T] | Any = Any) -> ResponseResult[T] | None:
        """
        Pop the entry with the lowest remaining id.

        Returns ``None`` once the batch is exhausted. Server errors and
        payloads that do not decode into ``result_type`` come back as
        ``ResponseResult.error``.
        """
        if not self._responses:
            return None
        entry_id, body = self._responses.pop()
        if isinstance(body, BatchRelayError):
            return ResponseResult(id=entry_id, error=body)
        try:
            value = body.decode(result_type)
        except DeserializationError as exc:
            return ResponseResult(id=entry_id, error=exc)
        return ResponseResult(id=entry_id, value=value)

    def drain(self, result_type: type[T] | Any = Any) -> Iterator[ResponseResult[T]]:
        while (result := self.next_response(result_type)) is not None:
            yield result
