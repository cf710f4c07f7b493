"""
Binary codec for the chain wire format.

    - ``SerialBuffer`` — growable cursor with push/get primitives.
    - ``create_initial_types`` / ``get_types_from_abi`` / ``get_type`` —
      ABI type registry.
    - ``serialize_action`` / ``deserialize_action`` — action data to/from hex.
    - ``transaction_header`` — TAPoS fields from a reference block.
    - ``ABI_DEF_ABI`` / ``TRANSACTION_ABI`` — built-in schemas.
"""

from eosio_api.serialize.actions import (
    ABI_VERSION_PREFIX,
    deserialize_action,
    deserialize_action_data,
    serialize_action,
    serialize_action_data,
    supported_abi_version,
    transaction_header,
)
from eosio_api.serialize.buffer import (
    SerialBuffer,
    array_to_hex,
    date_to_time_point_sec,
    hex_to_bytes,
    name_to_uint64,
    time_point_sec_to_date,
    uint64_to_name,
)
from eosio_api.serialize.schemas import ABI_DEF_ABI, TRANSACTION_ABI
from eosio_api.serialize.types import (
    AbiType,
    Contract,
    SerializerState,
    create_initial_types,
    get_type,
    get_types_from_abi,
)

__all__ = [
    "ABI_DEF_ABI",
    "ABI_VERSION_PREFIX",
    "AbiType",
    "Contract",
    "SerialBuffer",
    "SerializerState",
    "TRANSACTION_ABI",
    "array_to_hex",
    "create_initial_types",
    "date_to_time_point_sec",
    "deserialize_action",
    "deserialize_action_data",
    "get_type",
    "get_types_from_abi",
    "hex_to_bytes",
    "name_to_uint64",
    "serialize_action",
    "serialize_action_data",
    "supported_abi_version",
    "time_point_sec_to_date",
    "transaction_header",
    "uint64_to_name",
]
