"""
ABI and contract caches.

``AbiCache`` memoizes each account's ABI in raw and decoded form.
``ContractCache`` memoizes the type registry and action descriptors built
from that ABI. Both are keyed by account name and live as long as their
owner. There is no eviction.

Writes happen only after the entry's own fetch resolves. Two concurrent
reloads of the same account both write; the entry reflects whichever
fetch resolved last.
"""

from __future__ import annotations

import logging
from typing import Any

from eosio_api.errors import (
    AbiFetchError,
    MissingAbiError,
    SerializationError,
    UnsupportedAbiVersionError,
)
from eosio_api.providers import AbiProvider, CachedAbi
from eosio_api.serialize import (
    ABI_DEF_ABI,
    AbiType,
    Contract,
    SerialBuffer,
    create_initial_types,
    get_type,
    get_types_from_abi,
    supported_abi_version,
)

logger = logging.getLogger(__name__)


class AbiCache:
    """Raw and structured ABIs per account.

    Args:
        abi_provider: Where raw ABIs come from.
        abi_types: Registry that knows ``abi_def``. Built from
            ``ABI_DEF_ABI`` when omitted.
    """

    def __init__(
        self,
        abi_provider: AbiProvider,
        abi_types: dict[str, AbiType] | None = None,
    ) -> None:
        self._abi_provider = abi_provider
        self._abi_types = abi_types or get_types_from_abi(create_initial_types(), ABI_DEF_ABI)
        self._cached: dict[str, CachedAbi] = {}

    def __contains__(self, account_name: object) -> bool:
        return account_name in self._cached

    def raw_abi_to_json(self, raw_abi: bytes) -> dict[str, Any]:
        """Decode a binary ABI.

        Raises:
            UnsupportedAbiVersionError: The buffer does not start with an
                ``eosio::abi/1.x`` version string.
        """
        buffer = SerialBuffer(raw_abi)
        version = buffer.get_string()
        if not supported_abi_version(version):
            raise UnsupportedAbiVersionError(version)
        buffer.restart_read()
        abi: dict[str, Any] = self._abi_types["abi_def"].deserialize(buffer)
        return abi

    def json_to_raw_abi(self, abi: dict[str, Any]) -> bytes:
        """Encode a structured ABI into its binary form."""
        buffer = SerialBuffer()
        self._abi_types["abi_def"].serialize(buffer, abi)
        version = buffer.get_string()
        if not supported_abi_version(version):
            raise UnsupportedAbiVersionError(version)
        return buffer.as_bytes()

    async def get_cached_abi(self, account_name: str, reload: bool = False) -> CachedAbi:
        """Return the account's ABI, fetching it on first use or on ``reload``.

        Raises:
            AbiFetchError: The provider failed. Not retried.
            UnsupportedAbiVersionError: The fetched ABI has a version this
                codec does not speak.
            SerializationError: The fetched ABI body is malformed; the
                message names the account.
            MissingAbiError: Nothing cached right after storing (a defect).
        """
        if not reload:
            cached = self._cached.get(account_name)
            if cached is not None:
                logger.debug("abi cache hit for %s", account_name)
                return cached

        logger.debug("fetching abi for %s (reload=%s)", account_name, reload)
        try:
            binary_abi = await self._abi_provider.get_raw_abi(account_name)
        except Exception as exc:
            raise AbiFetchError(account_name, exc) from exc

        raw_abi = bytes(binary_abi.abi)
        try:
            abi = self.raw_abi_to_json(raw_abi)
        except SerializationError as exc:
            raise SerializationError(f"decoding abi for {account_name}: {exc}") from exc
        self._cached[account_name] = CachedAbi(raw_abi=raw_abi, abi=abi)

        stored = self._cached.get(account_name)
        if stored is None:
            raise MissingAbiError(account_name)
        return stored

    async def get_abi(self, account_name: str, reload: bool = False) -> dict[str, Any]:
        """Structured ABI only."""
        return (await self.get_cached_abi(account_name, reload)).abi


class ContractCache:
    """Action descriptors per account, derived from ``AbiCache`` entries."""

    def __init__(self, abi_cache: AbiCache) -> None:
        self._abi_cache = abi_cache
        self._contracts: dict[str, Contract] = {}

    def __contains__(self, account_name: object) -> bool:
        return account_name in self._contracts

    async def get_contract(self, account_name: str, reload: bool = False) -> Contract:
        """Return the account's contract descriptor.

        On ``reload`` the ABI is re-fetched and the registry rebuilt from
        its aliases, structs, variants and actions.
        """
        if not reload:
            contract = self._contracts.get(account_name)
            if contract is not None:
                return contract

        abi = await self._abi_cache.get_abi(account_name, reload)
        types = get_types_from_abi(create_initial_types(), abi)
        actions = {action["name"]: get_type(types, action["type"]) for action in abi["actions"]}

        contract = Contract(types=types, actions=actions)
        self._contracts[account_name] = contract
        logger.debug("built contract for %s with %d actions", account_name, len(actions))
        return contract
