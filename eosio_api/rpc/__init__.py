"""
Network adapter for a chain node's HTTP API.

    - ``ChainRpcClient`` — ChainRpc + AbiProvider + AuthorityProvider.
    - ``JsonRpcTransport`` — transport seam; ``HttpxTransport`` is the default.
"""

from eosio_api.rpc.client import ChainRpcClient
from eosio_api.rpc.transport import HttpxTransport, JsonRpcTransport, RpcResponse

__all__ = [
    "ChainRpcClient",
    "HttpxTransport",
    "JsonRpcTransport",
    "RpcResponse",
]
