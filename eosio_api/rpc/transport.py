"""
Transport protocol for chain API calls.

Defines the seam where concrete HTTP implementations plug in. The chain
client depends on this protocol, not on httpx directly, so the transport
can be swapped without editing client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

Unlike a plain JSON-RPC transport, the node reports failures with non-2xx
statuses AND a JSON body describing the failure. The transport therefore
never raises on status; it hands both back so the client can build an
``RpcError`` from the body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class RpcResponse:
    """An HTTP response from the node.

    Attributes:
        status_code: HTTP status.
        body: Decoded JSON body. A body that is not JSON is wrapped as
            ``{"message": <text>}``.
    """

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> RpcResponse:
        """Send a JSON request and return the status and parsed body.

        Args:
            url: Full endpoint URL, e.g. ``http://node/v1/chain/get_info``.
            payload: Request body.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, TLS error, etc.). These propagate unchanged.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Lazily imports httpx, which is only needed when actually making
    network calls.
    """

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None) -> None:
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json", **(headers or {})}

    async def post_json(self, url: str, payload: dict[str, Any]) -> RpcResponse:
        """Send the request via httpx."""
        import httpx

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(url, json=payload, headers=self._headers)
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}
            if not isinstance(body, dict):
                body = {"result": body}
            return RpcResponse(status_code=response.status_code, body=body)
