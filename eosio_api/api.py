"""
Transaction orchestrator.

``Api.transact`` turns a transaction with structured action data into a
signed (and optionally broadcast) transaction:

    1. reject exclusive TAPoS strategies and malformed transactions
       (before any network call)
    2. learn the chain id (``get_info``), once per ``Api``
    3. fill missing TAPoS fields from a recent block
    4. fetch the ABI of every contract the transaction touches
    5. serialize context-free actions and actions against those ABIs
    6. serialize the transaction and its context-free data
    7. sign through the signature provider
    8. push, optionally compressed, or hand the buffers back

Design principles:
    - Capabilities are injected, never discovered. Authority and ABI
      providers default to the rpc object, resolved once at construction.
    - Every fetch inside one call fans out with ``asyncio.gather`` and is
      all-or-nothing. Nothing retries.
    - Signing is opaque. Whatever the signature provider returns replaces
      the local buffers verbatim.
    - Caches are per ``Api`` instance and unbounded.
"""

from __future__ import annotations

import asyncio
import logging
import zlib
from typing import Any

from eosio_api.abi_cache import AbiCache, ContractCache
from eosio_api.config import ApiConfig, TransactConfig
from eosio_api.errors import ConfigurationError
from eosio_api.providers import (
    AbiProvider,
    AuthorityProvider,
    AuthorityProviderArgs,
    BinaryAbi,
    CachedAbi,
    ChainRpc,
    PushTransactionArgs,
    SignatureProvider,
    SignatureProviderArgs,
)
from eosio_api.rpc import ChainRpcClient, HttpxTransport
from eosio_api.serialize import (
    ABI_DEF_ABI,
    TRANSACTION_ABI,
    AbiType,
    Contract,
    SerialBuffer,
    create_initial_types,
    deserialize_action,
    get_type,
    get_types_from_abi,
    hex_to_bytes,
    serialize_action,
)
from eosio_api.tapos import TaposGenerator
from eosio_api.validation import validate_transaction

logger = logging.getLogger(__name__)

TAPOS_FIELDS = ("expiration", "ref_block_num", "ref_block_prefix")

TRANSACTION_DEFAULTS: dict[str, Any] = {
    "max_net_usage_words": 0,
    "max_cpu_usage_ms": 0,
    "delay_sec": 0,
    "context_free_actions": [],
    "actions": [],
    "transaction_extensions": [],
}

DEFLATE_LEVEL = 9


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Api:
    """Builds, signs and broadcasts transactions.

    Args:
        rpc: Chain queries and broadcast.
        signature_provider: Signs transactions. Required only when
            transacting with ``sign=True``.
        authority_provider: Picks the keys a transaction needs. Defaults to
            ``rpc``, which must then implement ``get_required_keys``.
        abi_provider: Supplies raw ABIs. Defaults to ``rpc``, which must
            then implement ``get_raw_abi``.
        chain_id: Skip the initial ``get_info`` when known.
        required_keys: Keys to sign with for every call, skipping the
            authority provider. A per-call ``TransactConfig.required_keys``
            wins over this.

    Raises:
        ConfigurationError: A defaulted capability is missing from ``rpc``.
    """

    def __init__(
        self,
        rpc: ChainRpc,
        signature_provider: SignatureProvider | None = None,
        *,
        authority_provider: AuthorityProvider | None = None,
        abi_provider: AbiProvider | None = None,
        chain_id: str | None = None,
        required_keys: list[str] | None = None,
    ) -> None:
        if authority_provider is None:
            if not isinstance(rpc, AuthorityProvider):
                raise ConfigurationError(
                    "rpc does not implement get_required_keys; pass authority_provider"
                )
            authority_provider = rpc
        if abi_provider is None:
            if not isinstance(rpc, AbiProvider):
                raise ConfigurationError("rpc does not implement get_raw_abi; pass abi_provider")
            abi_provider = rpc

        self.rpc = rpc
        self.signature_provider = signature_provider
        self.authority_provider = authority_provider
        self.abi_provider = abi_provider
        self.chain_id = chain_id
        self.required_keys = list(required_keys) if required_keys is not None else None

        self.abi_types = get_types_from_abi(create_initial_types(), ABI_DEF_ABI)
        self.transaction_types = get_types_from_abi(create_initial_types(), TRANSACTION_ABI)
        self.abi_cache = AbiCache(abi_provider, self.abi_types)
        self.contract_cache = ContractCache(self.abi_cache)
        self.tapos = TaposGenerator(rpc)

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        signature_provider: SignatureProvider | None = None,
    ) -> Api:
        """Wire an ``Api`` to a node through ``ChainRpcClient``."""
        rpc = ChainRpcClient(config.endpoint, HttpxTransport(timeout=config.timeout))
        return cls(
            rpc,
            signature_provider,
            chain_id=config.chain_id,
            required_keys=list(config.required_keys) if config.required_keys else None,
        )

    # -----------------------------------------------------------------
    # ABIs and contracts
    # -----------------------------------------------------------------

    def raw_abi_to_json(self, raw_abi: bytes) -> dict[str, Any]:
        return self.abi_cache.raw_abi_to_json(raw_abi)

    def json_to_raw_abi(self, abi: dict[str, Any]) -> bytes:
        return self.abi_cache.json_to_raw_abi(abi)

    async def get_cached_abi(self, account_name: str, reload: bool = False) -> CachedAbi:
        return await self.abi_cache.get_cached_abi(account_name, reload)

    async def get_abi(self, account_name: str, reload: bool = False) -> dict[str, Any]:
        return await self.abi_cache.get_abi(account_name, reload)

    async def get_contract(self, account_name: str, reload: bool = False) -> Contract:
        return await self.contract_cache.get_contract(account_name, reload)

    async def get_transaction_abis(
        self, transaction: dict[str, Any], reload: bool = False
    ) -> list[BinaryAbi]:
        """Raw ABIs for every account with an action in ``transaction``.

        One entry per distinct account, fetched concurrently. Any failure
        fails the whole call.
        """
        actions = (transaction.get("context_free_actions") or []) + (
            transaction.get("actions") or []
        )
        accounts = list(dict.fromkeys(action["account"] for action in actions))
        cached = await asyncio.gather(
            *(self.get_cached_abi(account, reload) for account in accounts)
        )
        return [
            BinaryAbi(account_name=account, abi=entry.raw_abi)
            for account, entry in zip(accounts, cached)
        ]

    async def _contracts_for(self, actions: list[dict[str, Any]]) -> dict[str, Contract]:
        accounts = list(dict.fromkeys(action["account"] for action in actions))
        contracts = await asyncio.gather(*(self.get_contract(account) for account in accounts))
        return dict(zip(accounts, contracts))

    async def serialize_actions(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert each action's ``data`` to hex using its contract's ABI."""
        contracts = await self._contracts_for(actions)
        return [
            serialize_action(
                contracts[action["account"]],
                action["account"],
                action["name"],
                action["authorization"],
                action["data"],
            )
            for action in actions
        ]

    async def deserialize_actions(self, actions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert each action's hex ``data`` back into structured data."""
        contracts = await self._contracts_for(actions)
        return [
            deserialize_action(
                contracts[action["account"]],
                action["account"],
                action["name"],
                action["authorization"],
                action["data"],
            )
            for action in actions
        ]

    # -----------------------------------------------------------------
    # Transaction (de)serialization
    # -----------------------------------------------------------------

    def _transaction_type(self, type_name: str) -> AbiType:
        return get_type(self.transaction_types, type_name)

    def serialize(self, buffer: SerialBuffer, type_name: str, value: Any) -> None:
        """Write ``value`` as the built-in transaction type ``type_name``."""
        self._transaction_type(type_name).serialize(buffer, value)

    def deserialize(self, buffer: SerialBuffer, type_name: str) -> Any:
        """Read a built-in transaction type ``type_name``."""
        return self._transaction_type(type_name).deserialize(buffer)

    def serialize_transaction(self, transaction: dict[str, Any]) -> bytes:
        """Pack a transaction whose action data is already hex."""
        buffer = SerialBuffer()
        self.serialize(buffer, "transaction", {**TRANSACTION_DEFAULTS, **transaction})
        return buffer.as_bytes()

    def deserialize_transaction(self, transaction: bytes) -> dict[str, Any]:
        """Unpack a transaction. Action data stays hex."""
        result: dict[str, Any] = self.deserialize(SerialBuffer(transaction), "transaction")
        return result

    def serialize_context_free_data(self, context_free_data: list[bytes] | None) -> bytes | None:
        """Pack context-free data as a list of length-prefixed byte strings.

        Returns None when there is nothing to pack.
        """
        if not context_free_data:
            return None
        buffer = SerialBuffer()
        buffer.push_varuint32(len(context_free_data))
        for item in context_free_data:
            buffer.push_bytes(item)
        return buffer.as_bytes()

    async def deserialize_transaction_with_actions(
        self, transaction: bytes | str
    ) -> dict[str, Any]:
        """Unpack a transaction (bytes or hex) and decode its actions."""
        if isinstance(transaction, str):
            transaction = hex_to_bytes(transaction)
        deserialized = self.deserialize_transaction(transaction)
        context_free_actions = await self.deserialize_actions(
            deserialized["context_free_actions"]
        )
        actions = await self.deserialize_actions(deserialized["actions"])
        return {
            **deserialized,
            "context_free_actions": context_free_actions,
            "actions": actions,
        }

    def deflate_serialized_array(self, serialized_array: bytes) -> bytes:
        return zlib.compress(serialized_array, DEFLATE_LEVEL)

    def inflate_serialized_array(self, compressed_serialized_array: bytes) -> bytes:
        return zlib.decompress(compressed_serialized_array)

    # -----------------------------------------------------------------
    # Transact
    # -----------------------------------------------------------------

    def has_required_tapos_fields(self, transaction: dict[str, Any]) -> bool:
        """True when expiration and both reference-block fields are set."""
        return bool(
            transaction.get("expiration")
            and _is_int(transaction.get("ref_block_num"))
            and _is_int(transaction.get("ref_block_prefix"))
        )

    async def generate_tapos(
        self,
        info: dict[str, Any] | None,
        transaction: dict[str, Any],
        blocks_behind: int | None,
        use_last_irreversible: bool,
        expire_seconds: int,
    ) -> dict[str, Any]:
        return await self.tapos.generate(
            info, transaction, blocks_behind, use_last_irreversible, expire_seconds
        )

    async def transact(
        self,
        transaction: dict[str, Any],
        config: TransactConfig | None = None,
    ) -> dict[str, Any] | PushTransactionArgs:
        """Create, sign and optionally broadcast a transaction.

        Args:
            transaction: Transaction with structured action data. TAPoS
                fields may be omitted when ``config`` says how to fill them.
            config: Per-call options. Defaults to sign and broadcast.

        Returns:
            The node's receipt when broadcasting; otherwise the
            ``PushTransactionArgs`` that would have been pushed.

        Raises:
            ConfigurationError: Exclusive TAPoS strategies, incomplete TAPoS
                fields, or signing requested without a signature provider.
            AbiFetchError: An ABI could not be fetched.
            RpcError: The node rejected a request.
        """
        if config is None:
            config = TransactConfig()
        blocks_behind = config.blocks_behind
        has_blocks_behind = _is_int(blocks_behind)

        if has_blocks_behind and config.use_last_irreversible:
            raise ConfigurationError("Use either blocks_behind or use_last_irreversible")
        if config.sign and self.signature_provider is None:
            raise ConfigurationError("sign requested but no signature provider configured")
        validate_transaction(transaction)

        info: dict[str, Any] | None = None
        if not self.chain_id:
            info = await self.rpc.get_info()
            self.chain_id = info["chain_id"]

        if any(transaction.get(name) is None for name in TAPOS_FIELDS):
            if (has_blocks_behind or config.use_last_irreversible) and config.expire_seconds:
                transaction = await self.generate_tapos(
                    info,
                    transaction,
                    blocks_behind if has_blocks_behind else None,
                    config.use_last_irreversible,
                    config.expire_seconds,
                )
        if not self.has_required_tapos_fields(transaction):
            raise ConfigurationError("Required configuration or TAPOS fields are not present")

        abis = await self.get_transaction_abis(transaction)
        transaction = {
            **transaction,
            "context_free_actions": await self.serialize_actions(
                transaction.get("context_free_actions") or []
            ),
            "actions": await self.serialize_actions(transaction.get("actions") or []),
        }
        serialized_transaction = self.serialize_transaction(transaction)
        serialized_context_free_data = self.serialize_context_free_data(
            transaction.get("context_free_data")
        )
        push_args = PushTransactionArgs(
            signatures=[],
            serialized_transaction=serialized_transaction,
            serialized_context_free_data=serialized_context_free_data,
        )

        if config.sign:
            assert self.signature_provider is not None
            available_keys = await self.signature_provider.get_available_keys()
            required_keys = config.required_keys
            if required_keys is None:
                required_keys = self.required_keys
            if required_keys is None:
                required_keys = await self.authority_provider.get_required_keys(
                    AuthorityProviderArgs(transaction=transaction, available_keys=available_keys)
                )
            logger.debug(
                "signing with %d of %d available keys", len(required_keys), len(available_keys)
            )
            push_args = await self.signature_provider.sign(
                SignatureProviderArgs(
                    chain_id=self.chain_id,
                    required_keys=list(required_keys),
                    serialized_transaction=serialized_transaction,
                    serialized_context_free_data=serialized_context_free_data,
                    abis=abis,
                )
            )

        if config.broadcast:
            logger.debug("broadcasting transaction (compression=%s)", config.compression)
            if config.compression:
                return await self.push_compressed_signed_transaction(push_args)
            return await self.push_signed_transaction(push_args)
        return push_args

    async def push_signed_transaction(self, args: PushTransactionArgs) -> dict[str, Any]:
        """Broadcast uncompressed buffers."""
        return await self.rpc.push_transaction(
            PushTransactionArgs(
                signatures=list(args.signatures),
                serialized_transaction=args.serialized_transaction,
                serialized_context_free_data=args.serialized_context_free_data,
                compression=0,
            )
        )

    async def push_compressed_signed_transaction(
        self, args: PushTransactionArgs
    ) -> dict[str, Any]:
        """Deflate both buffers and broadcast with ``compression=1``."""
        return await self.rpc.push_transaction(
            PushTransactionArgs(
                signatures=list(args.signatures),
                serialized_transaction=self.deflate_serialized_array(args.serialized_transaction),
                serialized_context_free_data=self.deflate_serialized_array(
                    args.serialized_context_free_data or b""
                ),
                compression=1,
            )
        )
