"""
Action (de)serialization and transaction header helpers.

Actions travel in two shapes. Before serialization ``data`` is structured
(whatever the contract's ABI says the action carries); afterwards it is the
upper-case hex of those bytes. ``account``, ``name`` and ``authorization``
pass through untouched in both directions.
"""

from __future__ import annotations

from typing import Any, Mapping

from eosio_api.errors import SerializationError
from eosio_api.serialize.buffer import (
    SerialBuffer,
    array_to_hex,
    date_to_time_point_sec,
    hex_to_bytes,
    time_point_sec_to_date,
)
from eosio_api.serialize.types import AbiType, Contract

ABI_VERSION_PREFIX = "eosio::abi/1."


def supported_abi_version(version: str) -> bool:
    return version.startswith(ABI_VERSION_PREFIX)


def _action_type(contract: Contract, account: str, name: str) -> AbiType:
    action = contract.actions.get(name)
    if action is None:
        raise SerializationError(f"Unknown action {name} in contract {account}")
    return action


def serialize_action_data(contract: Contract, account: str, name: str, data: Any) -> str:
    buffer = SerialBuffer()
    _action_type(contract, account, name).serialize(buffer, data)
    return array_to_hex(buffer.as_bytes())


def serialize_action(
    contract: Contract,
    account: str,
    name: str,
    authorization: list[dict[str, str]],
    data: Any,
) -> dict[str, Any]:
    return {
        "account": account,
        "name": name,
        "authorization": authorization,
        "data": serialize_action_data(contract, account, name, data),
    }


def deserialize_action_data(contract: Contract, account: str, name: str, data: str | bytes) -> Any:
    raw = data if isinstance(data, (bytes, bytearray)) else hex_to_bytes(data)
    return _action_type(contract, account, name).deserialize(SerialBuffer(raw))


def deserialize_action(
    contract: Contract,
    account: str,
    name: str,
    authorization: list[dict[str, str]],
    data: str | bytes,
) -> dict[str, Any]:
    return {
        "account": account,
        "name": name,
        "authorization": authorization,
        "data": deserialize_action_data(contract, account, name, data),
    }


def transaction_header(ref_block: Mapping[str, Any], expire_seconds: int) -> dict[str, Any]:
    """TAPoS fields and expiration derived from a reference block.

    Accepts both ``get_block`` results (``timestamp`` at the top level) and
    ``get_block_header_state`` results (``header.timestamp``).

    ``ref_block_prefix`` is the little-endian uint32 at bytes 8..12 of the
    block id.
    """
    header = ref_block.get("header")
    timestamp = header["timestamp"] if isinstance(header, Mapping) else ref_block["timestamp"]
    block_id = hex_to_bytes(ref_block["id"])
    if len(block_id) < 12:
        raise SerializationError(f"block id is too short: {ref_block['id']!r}")
    return {
        "expiration": time_point_sec_to_date(date_to_time_point_sec(timestamp) + expire_seconds),
        "ref_block_num": int(ref_block["block_num"]) & 0xFFFF,
        "ref_block_prefix": int.from_bytes(block_id[8:12], "little"),
    }
