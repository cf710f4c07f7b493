"""
Client-side transaction pipeline for EOSIO / Antelope chains.

Public API:

    Orchestrator:
        - ``Api`` — fill TAPoS, serialize, sign and broadcast transactions.
        - ``TransactConfig`` — per-call options for ``Api.transact``.
        - ``ApiConfig`` — process-level settings, readable from the
          environment.

    Protocols (for dependency injection):
        - ``ChainRpc`` — chain queries and broadcast.
        - ``AbiProvider`` — raw ABIs per account.
        - ``AuthorityProvider`` — required keys for a transaction.
        - ``SignatureProvider`` — secrets boundary (available keys, sign).

    Records:
        - ``BinaryAbi``, ``CachedAbi``, ``AuthorityProviderArgs``,
          ``SignatureProviderArgs``, ``PushTransactionArgs``.

    Signatures and keys:
        - ``Signature`` — 65-byte signature codec and verification.
        - ``EllipticSignature`` — (r, s, recovery_param) triple.
        - ``PublicKey``, ``KeyType``, ``Key`` — key text codec.

    Concrete client:
        - ``ChainRpcClient`` — HTTP implementation of ChainRpc,
          AbiProvider and AuthorityProvider (``eosio_api.rpc``).

    Errors:
        - ``EosioApiError`` and its subclasses.
"""

from eosio_api.abi_cache import AbiCache, ContractCache
from eosio_api.api import Api
from eosio_api.config import ApiConfig, TransactConfig
from eosio_api.errors import (
    AbiFetchError,
    ConfigurationError,
    EosioApiError,
    KeyFormatError,
    MissingAbiError,
    RpcError,
    SerializationError,
    UnsupportedAbiVersionError,
)
from eosio_api.keys import Key, KeyType, PublicKey
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
from eosio_api.rpc import ChainRpcClient, HttpxTransport, JsonRpcTransport, RpcResponse
from eosio_api.signature import EllipticSignature, Signature
from eosio_api.tapos import TaposGenerator

__all__ = [
    # Orchestrator
    "AbiCache",
    "Api",
    "ApiConfig",
    "ContractCache",
    "TaposGenerator",
    "TransactConfig",
    # Protocols
    "AbiProvider",
    "AuthorityProvider",
    "ChainRpc",
    "SignatureProvider",
    # Records
    "AuthorityProviderArgs",
    "BinaryAbi",
    "CachedAbi",
    "PushTransactionArgs",
    "SignatureProviderArgs",
    # Signatures and keys
    "EllipticSignature",
    "Key",
    "KeyType",
    "PublicKey",
    "Signature",
    # Client
    "ChainRpcClient",
    "HttpxTransport",
    "JsonRpcTransport",
    "RpcResponse",
    # Errors
    "AbiFetchError",
    "ConfigurationError",
    "EosioApiError",
    "KeyFormatError",
    "MissingAbiError",
    "RpcError",
    "SerializationError",
    "UnsupportedAbiVersionError",
]

__version__ = "0.1.0"
