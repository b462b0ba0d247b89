"""
Relay: one JSON-RPC endpoint plus the id counter shared by every call made
through it.

Single calls claim one id; a batch claims ``len(batch)`` ids with a single
fetch-and-add so concurrent submissions never split or overlap a block.
Ids consumed by a failed or cancelled round trip are not reused.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Optional, TypeVar
from urllib.parse import urlparse

from loguru import logger

from batchrelay.batch import BatchRequest, BatchResponse
from batchrelay.jsonrpc import (
    MAX_ID,
    ErrorResponse,
    Notification,
    Request,
    encode_payload,
    parse_batch_response,
    parse_response,
)
from batchrelay.transport import HttpTransport, Transport
from batchrelay.utils.exceptions import (
    BatchSubmittedError,
    DeserializationError,
    EmptyBatchError,
    TransportError,
    sanitize_error_message,
)

if TYPE_CHECKING:
    from batchrelay.config.schema import Config

T = TypeVar("T")


class IdCounter:
    """Monotonic request id source with atomic fetch-and-add."""

    def __init__(self, start: int = 0):
        if start < 0 or start > MAX_ID:
            raise ValueError(f"id counter start out of range: {start}")
        self._next = start
        self._lock = threading.Lock()

    def fetch_add(self, n: int = 1) -> int:
        """Reserve ``n`` consecutive ids and return the first one."""
        if n < 1:
            raise ValueError(f"cannot reserve {n} ids")
        with self._lock:
            first = self._next
            self._next += n
        return first

    def peek(self) -> int:
        with self._lock:
            return self._next


def _validate_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"invalid relay url: {sanitize_error_message(url)}")
    return url


class Relay:
    """JSON-RPC client for a single endpoint, batching-aware."""

    def __init__(
        self,
        url: str,
        transport: Optional[Transport] = None,
        *,
        first_id: int = 0,
    ):
        self.url = url
        self.transport = transport or HttpTransport()
        self._ids = IdCounter(first_id)

    @classmethod
    def from_url(cls, url: str, transport: Optional[Transport] = None) -> "Relay":
        """Build a relay after checking ``url`` is an absolute http(s) URL."""
        return cls(_validate_url(url.strip()), transport)

    @classmethod
    def from_config(cls, config: "Config", endpoint: str | None = None) -> "Relay":
        url = config.resolve_url(endpoint)
        transport = HttpTransport(timeout=config.relay.timeout_s, headers=dict(config.relay.headers))
        return cls(_validate_url(url), transport, first_id=config.relay.first_id)

    def clone(self) -> "Relay":
        """Same endpoint and transport, independent counter starting at 1."""
        return Relay(self.url, self.transport, first_id=1)

    @property
    def next_id(self) -> int:
        return self._ids.peek()

    def __repr__(self) -> str:
        return f"Relay(url={sanitize_error_message(self.url)!r}, next_id={self.next_id})"

    async def __aenter__(self) -> "Relay":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def request(self, method: str, params: Any = None, result_type: type[T] | Any = Any) -> T:
        """
        Send one call and decode its result.

        Raises:
            SerializationError: params cannot be encoded.
            TransportError: the round trip failed.
            ProtocolError: the server answered with a JSON-RPC error.
            DeserializationError: the body is malformed, is a notification,
                answers another id, or the result does not fit ``result_type``.
        """
        # validated before an id is reserved
        request = Request.build(method, params)
        request_id = self._ids.fetch_add(1)
        body = request.model_copy(update={"id": request_id}).encode()
        logger.debug(f"RPC request id={request_id} method={method}")

        text = await self._post(body)
        response = parse_response(text)
        if isinstance(response, Notification):
            raise DeserializationError("unexpected notification over HTTP transport", text)
        if response.id != request_id:
            raise DeserializationError(f"response id {response.id} does not match request id {request_id}", text)
        if isinstance(response, ErrorResponse):
            raise response.error
        return response.result.decode(result_type)

    async def execute_batch(self, batch: BatchRequest) -> BatchResponse:
        """
        Submit ``batch`` in one round trip.

        Raises:
            EmptyBatchError: the batch holds no requests.
            BatchSubmittedError: the batch already went out.
            TransportError: the round trip failed; no partial response.
            DeserializationError: the body is not an array of responses, or
                holds a notification.
        """
        if batch.is_empty():
            raise EmptyBatchError()
        if batch.submitted:
            raise BatchSubmittedError(batch.ids()[0])

        size = len(batch)
        first_id = self._ids.fetch_add(size)
        batch.set_ids(first_id)
        body = encode_payload(list(batch.requests()))
        logger.debug(f"RPC batch size={size} ids={first_id}..{first_id + size - 1}")

        text = await self._post(body)
        responses = parse_batch_response(text)
        for response in responses:
            if isinstance(response, Notification):
                raise DeserializationError("unexpected notification over HTTP transport", text)

        expected = set(range(first_id, first_id + size))
        received = {response.id for response in responses}
        if received != expected:
            logger.warning(
                f"RPC batch ids mismatch: missing={sorted(expected - received)} "
                f"unexpected={sorted(received - expected)}"
            )
        return BatchResponse(responses)

    async def _post(self, body: str) -> str:
        try:
            return await self.transport.post(self.url, body)
        except TransportError as exc:
            logger.warning(f"RPC transport failure [{exc.code}]: {sanitize_error_message(exc.message)}")
            raise
