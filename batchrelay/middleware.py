"""
Batch middleware: layers batched JSON-RPC submission over an existing
provider object.

Anything the middleware does not define is looked up on the inner provider,
so it can stand in wherever the provider was used.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from batchrelay.batch import BatchRequest, BatchResponse, ResponseResult
from batchrelay.relay import Relay
from batchrelay.utils.exceptions import MissingParametersError

T = TypeVar("T")


class BatchMiddleware:
    """
    Example::

        relay = Relay.from_url("https://api.avax.network/ext/bc/C/rpc")
        client = BatchMiddleware(provider, relay)

        batch = BatchRequest.with_capacity(2)
        batch.add_request("eth_getStorageAt", [address1, slot, "latest"])
        batch.add_request("eth_getStorageAt", [address2, slot, "latest"])

        responses = await client.execute_batch(batch)
        while (result := responses.next_response(str)) is not None:
            print(result.unwrap())
    """

    def __init__(self, inner: Any, relay: Relay | str):
        self._inner = inner
        self._relay = Relay.from_url(relay) if isinstance(relay, str) else relay

    @property
    def inner(self) -> Any:
        return self._inner

    @property
    def relay(self) -> Relay:
        """The relay client used by the middleware."""
        return self._relay

    def __getattr__(self, name: str) -> Any:
        # only reached for attributes missing on the middleware itself
        inner = self.__dict__.get("_inner")
        if inner is None:
            raise AttributeError(name)
        return getattr(inner, name)

    async def __aenter__(self) -> "BatchMiddleware":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._relay.aclose()

    async def execute_batch(self, batch: BatchRequest) -> BatchResponse:
        return await self._relay.execute_batch(batch)

    async def request(self, method: str, params: Any = None, result_type: type[T] | Any = Any) -> T:
        return await self._relay.request(method, params, result_type)

    async def call_many(
        self,
        calls: Iterable[tuple[str, Any] | Mapping[str, Any]],
        result_type: type[T] | Any = Any,
    ) -> list[ResponseResult[T]]:
        """
        Submit ``calls`` as one batch and return one result per call, in
        call order. Per-call server errors are carried in the results.

        Raises:
            MissingParametersError: a call has no method.
            EmptyBatchError: ``calls`` is empty.
        """
        response = await self.execute_batch(self.build_batch(calls))
        return list(response.drain(result_type))

    @staticmethod
    def build_batch(calls: Iterable[tuple[str, Any] | Mapping[str, Any]]) -> BatchRequest:
        """
        Raises:
            MissingParametersError: a call has no method.
            SerializationError: a call's params cannot be encoded.
        """
        batch = BatchRequest()
        for index, call in enumerate(calls):
            method, params = _unpack_call(call, index)
            batch.add_request(method, params)
        return batch


def _unpack_call(call: tuple[str, Any] | Mapping[str, Any], index: int) -> tuple[str, Any]:
    if isinstance(call, Mapping):
        method = call.get("method")
        params = call.get("params")
    elif isinstance(call, (tuple, list)) and len(call) in (1, 2):
        method = call[0]
        params = call[1] if len(call) == 2 else None
    else:
        raise MissingParametersError(f"call #{index} must be (method, params) or a mapping", index=index)
    if not isinstance(method, str) or not method.strip():
        raise MissingParametersError(f"call #{index} has no method", index=index)
    return method, params
