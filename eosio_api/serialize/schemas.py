"""
Built-in ABIs the pipeline needs before it has fetched anything.

``ABI_DEF_ABI`` describes the binary layout of an ABI itself, so raw ABIs
returned by the node can be decoded. ``TRANSACTION_ABI`` describes the
transaction envelope. Both are fixed by the chain.
"""

from __future__ import annotations

from typing import Any


def _struct(name: str, fields: list[tuple[str, str]], base: str = "") -> dict[str, Any]:
    return {
        "name": name,
        "base": base,
        "fields": [{"name": n, "type": t} for n, t in fields],
    }


ABI_DEF_ABI: dict[str, Any] = {
    "version": "eosio::abi/1.1",
    "structs": [
        _struct("extensions_entry", [("tag", "uint16"), ("value", "bytes")]),
        _struct("type_def", [("new_type_name", "string"), ("type", "string")]),
        _struct("field_def", [("name", "string"), ("type", "string")]),
        _struct(
            "struct_def",
            [("name", "string"), ("base", "string"), ("fields", "field_def[]")],
        ),
        _struct(
            "action_def",
            [("name", "name"), ("type", "string"), ("ricardian_contract", "string")],
        ),
        _struct(
            "table_def",
            [
                ("name", "name"),
                ("index_type", "string"),
                ("key_names", "string[]"),
                ("key_types", "string[]"),
                ("type", "string"),
            ],
        ),
        _struct("clause_pair", [("id", "string"), ("body", "string")]),
        _struct("error_message", [("error_code", "uint64"), ("error_msg", "string")]),
        _struct("variant_def", [("name", "string"), ("types", "string[]")]),
        _struct("action_result", [("name", "name"), ("result_type", "string")]),
        _struct(
            "abi_def",
            [
                ("version", "string"),
                ("types", "type_def[]"),
                ("structs", "struct_def[]"),
                ("actions", "action_def[]"),
                ("tables", "table_def[]"),
                ("ricardian_clauses", "clause_pair[]"),
                ("error_messages", "error_message[]"),
                ("abi_extensions", "extensions_entry[]"),
                ("variants", "variant_def[]$"),
                ("action_results", "action_result[]$"),
            ],
        ),
    ],
}


TRANSACTION_ABI: dict[str, Any] = {
    "version": "eosio::abi/1.0",
    "types": [
        {"new_type_name": "account_name", "type": "name"},
        {"new_type_name": "action_name", "type": "name"},
        {"new_type_name": "permission_name", "type": "name"},
    ],
    "structs": [
        _struct(
            "permission_level",
            [("actor", "account_name"), ("permission", "permission_name")],
        ),
        _struct(
            "action",
            [
                ("account", "account_name"),
                ("name", "action_name"),
                ("authorization", "permission_level[]"),
                ("data", "bytes"),
            ],
        ),
        _struct("extension", [("type", "uint16"), ("data", "bytes")]),
        _struct(
            "transaction_header",
            [
                ("expiration", "time_point_sec"),
                ("ref_block_num", "uint16"),
                ("ref_block_prefix", "uint32"),
                ("max_net_usage_words", "varuint32"),
                ("max_cpu_usage_ms", "uint8"),
                ("delay_sec", "varuint32"),
            ],
        ),
        _struct(
            "transaction",
            [
                ("context_free_actions", "action[]"),
                ("actions", "action[]"),
                ("transaction_extensions", "extension[]"),
            ],
            base="transaction_header",
        ),
    ],
}
