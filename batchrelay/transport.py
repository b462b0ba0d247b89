"""
Transports carrying serialized JSON-RPC payloads.

A transport only moves text: it posts a body and returns the response body.
Framing and correlation live above it, in the relay.
"""

from __future__ import annotations

import abc
from typing import Optional

import httpx
from loguru import logger

from batchrelay.utils.exceptions import TransportError, sanitize_error_message

DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class Transport(abc.ABC):
    """Moves one request body to an endpoint and returns the response text."""

    @abc.abstractmethod
    async def post(self, url: str, json_body: str) -> str:
        """POST ``json_body`` to ``url``.

        Raises:
            TransportError: the round trip failed.
        """

    async def aclose(self) -> None:
        """Release connections held by the transport."""
        return None


class HttpTransport(Transport):
    """JSON-RPC over HTTP POST using httpx."""

    def __init__(
        self,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds
            headers: Extra headers sent with every request
            client: Caller-owned client; not closed by :meth:`aclose`
        """
        self.timeout = timeout
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close HTTP client"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def post(self, url: str, json_body: str) -> str:
        client = await self._get_client()
        try:
            resp = await client.post(url, content=json_body.encode("utf-8"), headers=self.headers)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"rpc timeout: POST {sanitize_error_message(url)}",
                code="TRANSPORT_TIMEOUT",
                retryable=True,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                sanitize_error_message(f"rpc network error: POST {url}: {exc}"),
                code="TRANSPORT_NETWORK_ERROR",
                retryable=True,
            ) from exc

        status_code = int(resp.status_code or 0)
        if status_code >= 400:
            text = (resp.text or "").strip()
            logger.warning(f"RPC endpoint answered HTTP {status_code}: {sanitize_error_message(text[:200])}")
            raise TransportError(
                f"rpc http error {status_code}: {text[:200] or 'request failed'}",
                code="TRANSPORT_HTTP_ERROR",
                status_code=status_code,
                retryable=self._is_retryable_status(status_code),
            )
        return resp.text

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return status_code >= 500 or status_code in {408, 409, 425, 429}
