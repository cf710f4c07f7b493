"""
Provider protocols — the boundaries the orchestrator depends on.

Defines interfaces, not implementations. The orchestrator never talks to
the network or to key material directly; it goes through four seams:

    - ``ChainRpc`` — chain queries and broadcast (get_info, get_block,
      get_block_header_state, push_transaction).
    - ``AbiProvider`` — raw ABI bytes per account.
    - ``AuthorityProvider`` — which of the available keys a transaction
      needs.
    - ``SignatureProvider`` — the secrets boundary. Holds keys, reports
      the public half, signs serialized transactions.

Concrete implementations:
    - ``ChainRpcClient`` (rpc/client.py) implements ChainRpc,
      AbiProvider and AuthorityProvider in one adapter.
    - Signature providers are supplied by the caller (hardware wallet,
      remote signer, test fake).

All methods are async. Chain query results stay in the node's JSON shape
(``dict``); the records exchanged between providers are frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class BinaryAbi:
    """Raw ABI as deployed.

    Attributes:
        account_name: Account that deployed the ABI.
        abi: ABI in binary form.
    """

    account_name: str
    abi: bytes


@dataclass(frozen=True)
class CachedAbi:
    """A fetched ABI in both forms.

    Attributes:
        raw_abi: ABI in binary form, exactly as the provider returned it.
        abi: ABI decoded into the ``abi_def`` structure.
    """

    raw_abi: bytes
    abi: dict[str, Any]


@dataclass(frozen=True)
class AuthorityProviderArgs:
    """Arguments to ``AuthorityProvider.get_required_keys``.

    Attributes:
        transaction: Transaction that needs to be signed (actions already
            serialized to hex).
        available_keys: Public keys the signature provider holds.
    """

    transaction: dict[str, Any]
    available_keys: list[str]


@dataclass(frozen=True)
class SignatureProviderArgs:
    """Arguments to ``SignatureProvider.sign``.

    Attributes:
        chain_id: Chain the transaction is for.
        required_keys: Public keys whose private halves must sign.
        serialized_transaction: Transaction to sign.
        serialized_context_free_data: Context-free data to sign, if any.
        abis: ABIs for every contract with actions in the transaction.
    """

    chain_id: str
    required_keys: list[str]
    serialized_transaction: bytes
    serialized_context_free_data: bytes | None
    abis: list[BinaryAbi]


@dataclass(frozen=True)
class PushTransactionArgs:
    """Everything the node needs to accept a transaction.

    Attributes:
        signatures: Signatures in ``SIG_…`` text form.
        serialized_transaction: Packed transaction (deflated when
            ``compression`` is 1).
        serialized_context_free_data: Packed context-free data, or None
            when the transaction carries none.
        compression: 0 for raw buffers, 1 for zlib-deflated buffers.
    """

    signatures: list[str] = field(default_factory=list)
    serialized_transaction: bytes = b""
    serialized_context_free_data: bytes | None = None
    compression: int = 0


# =========================================================================
# Protocols
# =========================================================================


@runtime_checkable
class AbiProvider(Protocol):
    """Supplies ABIs in raw (binary) form."""

    async def get_raw_abi(self, account_name: str) -> BinaryAbi:
        """Retrieve the binary ABI deployed by ``account_name``.

        Raises:
            Exception: Any failure. The ABI cache wraps it with the
                account name.
        """
        ...


@runtime_checkable
class AuthorityProvider(Protocol):
    """Selects the keys needed to satisfy a transaction's authorities."""

    async def get_required_keys(self, args: AuthorityProviderArgs) -> list[str]:
        """Return the subset of ``args.available_keys`` the transaction needs."""
        ...


@runtime_checkable
class SignatureProvider(Protocol):
    """Signs transactions. Key material never leaves the provider."""

    async def get_available_keys(self) -> list[str]:
        """Public keys associated with the private keys this provider holds."""
        ...

    async def sign(self, args: SignatureProviderArgs) -> PushTransactionArgs:
        """Sign a serialized transaction.

        The returned buffers replace the caller's. A provider may
        re-encode the transaction (e.g. a hardware signer normalizing
        representation); the orchestrator does not re-check them.
        """
        ...


@runtime_checkable
class ChainRpc(Protocol):
    """Chain queries and broadcast."""

    async def get_info(self) -> dict[str, Any]:
        """Chain summary: ``chain_id``, ``head_block_num``,
        ``last_irreversible_block_num`` and more."""
        ...

    async def get_block(self, block_num_or_id: int | str) -> dict[str, Any]:
        """A finalized or recent block, with ``id``, ``block_num``, ``timestamp``."""
        ...

    async def get_block_header_state(self, block_num_or_id: int | str) -> dict[str, Any]:
        """Header state for a reversible block.

        May fail when the node does not serve it or the block was pruned.
        """
        ...

    async def push_transaction(self, args: PushTransactionArgs) -> dict[str, Any]:
        """Broadcast a signed transaction and return the node's receipt."""
        ...
