"""
Chain API client — real network implementation of the provider protocols.

One adapter covers three seams the orchestrator depends on:

    - ChainRpc: get_info, get_block, get_block_header_state,
      push_transaction
    - AbiProvider: get_raw_abi
    - AuthorityProvider: get_required_keys

Every call is ``POST <endpoint>/v1/chain/<method>`` with a JSON body.
Uses an injectable transport (JsonRpcTransport) so the HTTP layer can be
swapped for test fakes without changing parsing logic.

No retry loops. No secrets.

Error detection follows nodeos conventions:
    - Failed requests: non-2xx status with
      ``{"code": ..., "message": ..., "error": {"details": [...]}}``
    - Transactions that failed in a 2xx response carry
      ``processed.except`` or ``result.except``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from eosio_api.errors import RpcError
from eosio_api.keys import convert_legacy_public_keys
from eosio_api.providers import AuthorityProviderArgs, BinaryAbi, PushTransactionArgs
from eosio_api.rpc.transport import HttpxTransport, JsonRpcTransport, RpcResponse
from eosio_api.serialize import array_to_hex

logger = logging.getLogger(__name__)


class ChainRpcClient:
    """Chain API client implementing ChainRpc, AbiProvider and AuthorityProvider.

    Args:
        endpoint: Node base URL (e.g. "http://127.0.0.1:8888").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
    """

    def __init__(
        self,
        endpoint: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._transport = transport or HttpxTransport()

    @property
    def endpoint(self) -> str:
        """The node base URL, without a trailing slash."""
        return self._endpoint

    async def fetch(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST ``body`` to ``path`` and return the decoded response.

        Raises:
            RpcError: The node reported a failure.
        """
        logger.debug("POST %s", path)
        response = await self._transport.post_json(self._endpoint + path, body or {})
        return _raise_for_rpc_error(response)

    # -----------------------------------------------------------------
    # ChainRpc
    # -----------------------------------------------------------------

    async def get_info(self) -> dict[str, Any]:
        return await self.fetch("/v1/chain/get_info")

    async def get_block(self, block_num_or_id: int | str) -> dict[str, Any]:
        return await self.fetch("/v1/chain/get_block", {"block_num_or_id": block_num_or_id})

    async def get_block_header_state(self, block_num_or_id: int | str) -> dict[str, Any]:
        return await self.fetch(
            "/v1/chain/get_block_header_state", {"block_num_or_id": block_num_or_id}
        )

    async def push_transaction(self, args: PushTransactionArgs) -> dict[str, Any]:
        """Broadcast a signed transaction.

        Both buffers travel as hex; absent context-free data is sent as an
        empty string.
        """
        return await self.fetch(
            "/v1/chain/push_transaction",
            {
                "signatures": list(args.signatures),
                "compression": args.compression,
                "packed_context_free_data": array_to_hex(args.serialized_context_free_data or b""),
                "packed_trx": array_to_hex(args.serialized_transaction),
            },
        )

    # -----------------------------------------------------------------
    # AbiProvider / AuthorityProvider
    # -----------------------------------------------------------------

    async def get_abi(self, account_name: str) -> dict[str, Any]:
        """The node's JSON rendering of an account's ABI."""
        return await self.fetch("/v1/chain/get_abi", {"account_name": account_name})

    async def get_raw_abi(self, account_name: str) -> BinaryAbi:
        response = await self.fetch("/v1/chain/get_raw_abi", {"account_name": account_name})
        return _parse_raw_abi_response(response, account_name)

    async def get_required_keys(self, args: AuthorityProviderArgs) -> list[str]:
        response = await self.fetch(
            "/v1/chain/get_required_keys",
            {
                "transaction": _json_safe_transaction(args.transaction),
                "available_keys": list(args.available_keys),
            },
        )
        return convert_legacy_public_keys(response.get("required_keys") or [])


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _json_safe_transaction(transaction: dict[str, Any]) -> dict[str, Any]:
    """``transaction`` with its context-free data items as hex strings."""
    items = transaction.get("context_free_data")
    if not items:
        return transaction
    return {**transaction, "context_free_data": [array_to_hex(bytes(item)) for item in items]}


def _raise_for_rpc_error(response: RpcResponse) -> dict[str, Any]:
    """Return the body, or raise ``RpcError`` if it reports a failure.

    Handles:
        - non-2xx statuses (request-level failures)
        - ``processed.except`` (push_transaction failures)
        - ``result.except`` (send_transaction style failures)
    """
    body = response.body
    for key in ("processed", "result"):
        section = body.get(key)
        if isinstance(section, dict) and section.get("except"):
            raise RpcError(body, response.status_code)
    if not response.ok:
        raise RpcError(body, response.status_code)
    return body


def _parse_raw_abi_response(response: dict[str, Any], account_name: str) -> BinaryAbi:
    """Decode the base64 ``abi`` field, tolerating stripped padding."""
    encoded = response.get("abi") or ""
    padded = encoded + "=" * (-len(encoded) % 4)
    return BinaryAbi(
        account_name=response.get("account_name") or account_name,
        abi=base64.b64decode(padded),
    )
