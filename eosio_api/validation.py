from __future__ import annotations

import json
from importlib import resources
from typing import Any, Dict, cast

import jsonschema  # type: ignore[import-untyped]

from eosio_api.errors import SerializationError

_TRANSACTION_SCHEMA: Dict[str, Any] | None = None


def _load_transaction_schema() -> Dict[str, Any]:
    with resources.files("eosio_api").joinpath("schemas/transaction.v1.json").open(
        "r", encoding="utf-8"
    ) as f:
        return cast(Dict[str, Any], json.load(f))


def validate_transaction(transaction: Dict[str, Any]) -> None:
    """Check the shape of a transaction before any network call.

    Action ``data`` and ``context_free_data`` are not inspected.

    Raises:
        SerializationError: If the transaction does not match the schema.
    """
    global _TRANSACTION_SCHEMA
    if _TRANSACTION_SCHEMA is None:
        _TRANSACTION_SCHEMA = _load_transaction_schema()

    try:
        jsonschema.validate(instance=transaction, schema=_TRANSACTION_SCHEMA)
    except jsonschema.ValidationError as exc:
        path = ".".join(str(p) for p in exc.absolute_path) or "transaction"
        raise SerializationError(f"invalid transaction at {path}: {exc.message}") from exc
