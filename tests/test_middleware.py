"""Tests for BatchMiddleware delegation and call_many."""

from __future__ import annotations

import json
from typing import Any

import pytest

from batchrelay.batch import BatchRequest
from batchrelay.middleware import BatchMiddleware
from batchrelay.relay import Relay
from batchrelay.transport import Transport
from batchrelay.utils.exceptions import EmptyBatchError, MissingParametersError, ProtocolError

URL = "http://127.0.0.1:8545"


class _FakeTransport(Transport):
    def __init__(self) -> None:
        self.bodies: list[Any] = []
        self.closed = False

    async def post(self, url: str, json_body: str) -> str:
        body = json.loads(json_body)
        self.bodies.append(body)
        out = []
        # answer in reverse order; "fail" methods get an error object
        for req in reversed(body):
            if req["method"] == "fail":
                out.append({"jsonrpc": "2.0", "id": req["id"], "error": {"code": -32000, "message": "reverted"}})
            else:
                out.append({"jsonrpc": "2.0", "id": req["id"], "result": req["params"]})
        return json.dumps(out)

    async def aclose(self) -> None:
        self.closed = True


class _FakeProvider:
    chain_id = 43114

    def get_block_number(self) -> int:
        return 123


def _middleware() -> tuple[BatchMiddleware, _FakeTransport]:
    transport = _FakeTransport()
    return BatchMiddleware(_FakeProvider(), Relay(URL, transport)), transport


def test_attribute_access_falls_through_to_inner() -> None:
    client, _ = _middleware()
    assert client.chain_id == 43114
    assert client.get_block_number() == 123
    assert isinstance(client.inner, _FakeProvider)
    with pytest.raises(AttributeError):
        client.not_there  # noqa: B018


def test_relay_from_url_string() -> None:
    client = BatchMiddleware(None, "https://api.avax.network/ext/bc/C/rpc")
    assert client.relay.url == "https://api.avax.network/ext/bc/C/rpc"
    with pytest.raises(AttributeError):
        client.anything  # noqa: B018


@pytest.mark.asyncio
async def test_execute_batch_goes_through_relay() -> None:
    client, transport = _middleware()
    batch = BatchRequest().add_request("a", ["x"]).add_request("b", ["y"])
    response = await client.execute_batch(batch)
    assert [r.value for r in response.drain()] == [["x"], ["y"]]
    assert [req["id"] for req in transport.bodies[0]] == [0, 1]


@pytest.mark.asyncio
async def test_call_many_returns_results_in_call_order() -> None:
    client, _ = _middleware()
    results = await client.call_many(
        [
            ("eth_getBalance", ["0x1", "latest"]),
            {"method": "fail", "params": []},
            ("eth_chainId",),
            {"method": "eth_call", "params": [{"to": "0x2"}]},
        ]
    )
    assert [r.id for r in results] == [0, 1, 2, 3]
    assert results[0].value == ["0x1", "latest"]
    assert isinstance(results[1].error, ProtocolError)
    assert results[2].value == []
    assert results[3].value == [{"to": "0x2"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("call", [{"params": []}, ("", []), (None, []), "eth_chainId", ("a", 1, 2)])
async def test_call_many_rejects_calls_without_method(call) -> None:
    client, transport = _middleware()
    with pytest.raises(MissingParametersError) as exc_info:
        await client.call_many([("ok", []), call])
    assert exc_info.value.details == {"index": 1}
    assert transport.bodies == []


@pytest.mark.asyncio
async def test_call_many_with_no_calls_is_empty_batch() -> None:
    client, _ = _middleware()
    with pytest.raises(EmptyBatchError):
        await client.call_many([])


@pytest.mark.asyncio
async def test_request_and_close() -> None:
    transport = _FakeTransport()

    async def single(url: str, json_body: str) -> str:
        body = json.loads(json_body)
        return json.dumps({"jsonrpc": "2.0", "id": body["id"], "result": "0xa86a"})

    transport.post = single  # type: ignore[method-assign]
    async with BatchMiddleware(_FakeProvider(), Relay(URL, transport)) as client:
        assert await client.request("eth_chainId", result_type=str) == "0xa86a"
    assert transport.closed
