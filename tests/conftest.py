"""Shared fixtures: a minimal eosio.token ABI."""

from __future__ import annotations

import copy
from typing import Any

import pytest

TOKEN_ABI: dict[str, Any] = {
    "version": "eosio::abi/1.1",
    "types": [{"new_type_name": "account_name", "type": "name"}],
    "structs": [
        {
            "name": "transfer",
            "base": "",
            "fields": [
                {"name": "from", "type": "account_name"},
                {"name": "to", "type": "account_name"},
                {"name": "quantity", "type": "asset"},
                {"name": "memo", "type": "string"},
            ],
        },
        {
            "name": "open",
            "base": "",
            "fields": [
                {"name": "owner", "type": "name"},
                {"name": "symbol", "type": "symbol"},
                {"name": "ram_payer", "type": "name"},
            ],
        },
    ],
    "actions": [
        {"name": "transfer", "type": "transfer", "ricardian_contract": ""},
        {"name": "open", "type": "open", "ricardian_contract": ""},
    ],
    "tables": [],
    "ricardian_clauses": [],
    "error_messages": [],
    "abi_extensions": [],
    "variants": [],
}


@pytest.fixture
def token_abi() -> dict[str, Any]:
    return copy.deepcopy(TOKEN_ABI)
