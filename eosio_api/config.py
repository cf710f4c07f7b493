"""
Configuration.

Two layers:

    - ``TransactConfig`` — per-call options for ``Api.transact``.
    - ``ApiConfig`` — process-level settings (node endpoint, timeout, chain
      id, TAPoS defaults). ``ApiConfig.from_env()`` reads them from the
      environment; explicit arguments win over the environment.

Environment variables:
    EOSIO_RPC_URL          node endpoint (default http://127.0.0.1:8888)
    EOSIO_RPC_TIMEOUT      request timeout in seconds (default 30)
    EOSIO_CHAIN_ID         chain id; fetched from the node when unset
    EOSIO_REQUIRED_KEYS    comma-separated keys that bypass key resolution
    EOSIO_EXPIRE_SECONDS   default transaction lifetime (default 30)
    EOSIO_BLOCKS_BEHIND    default TAPoS distance from head (default 3)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from eosio_api.errors import ConfigurationError

DEFAULT_RPC_URL = "http://127.0.0.1:8888"
DEFAULT_TIMEOUT = 30.0
DEFAULT_EXPIRE_SECONDS = 30
DEFAULT_BLOCKS_BEHIND = 3


@dataclass(frozen=True)
class TransactConfig:
    """Options for one ``Api.transact`` call.

    Attributes:
        broadcast: Push the transaction to the node. When False the
            signed (or unsigned) buffers are returned instead.
        sign: Collect signatures from the signature provider.
        required_keys: Keys to sign with, skipping authority resolution.
        compression: Deflate both buffers before pushing.
        blocks_behind: Use the block this far behind head for TAPoS.
        use_last_irreversible: Use the last irreversible block for TAPoS.
            Mutually exclusive with ``blocks_behind``.
        expire_seconds: Transaction lifetime, counted from the reference
            block's timestamp. Required for TAPoS generation.
    """

    broadcast: bool = True
    sign: bool = True
    required_keys: list[str] | None = None
    compression: bool = False
    blocks_behind: int | None = None
    use_last_irreversible: bool = False
    expire_seconds: int | None = None


@dataclass(frozen=True)
class ApiConfig:
    """Process-level settings for building an ``Api``."""

    endpoint: str = DEFAULT_RPC_URL
    timeout: float = DEFAULT_TIMEOUT
    chain_id: str | None = None
    required_keys: tuple[str, ...] | None = None
    expire_seconds: int = DEFAULT_EXPIRE_SECONDS
    blocks_behind: int = DEFAULT_BLOCKS_BEHIND

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> ApiConfig:
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``.
            **overrides: Explicit values; these win over the environment.

        Raises:
            ConfigurationError: If a numeric variable does not parse.
        """
        source = os.environ if env is None else env

        required_keys_raw = source.get("EOSIO_REQUIRED_KEYS", "")
        required_keys = tuple(k.strip() for k in required_keys_raw.split(",") if k.strip())

        config = cls(
            endpoint=source.get("EOSIO_RPC_URL", DEFAULT_RPC_URL),
            timeout=_parse_number(source, "EOSIO_RPC_TIMEOUT", float, DEFAULT_TIMEOUT),
            chain_id=source.get("EOSIO_CHAIN_ID") or None,
            required_keys=required_keys or None,
            expire_seconds=_parse_number(
                source, "EOSIO_EXPIRE_SECONDS", int, DEFAULT_EXPIRE_SECONDS
            ),
            blocks_behind=_parse_number(source, "EOSIO_BLOCKS_BEHIND", int, DEFAULT_BLOCKS_BEHIND),
        )
        return replace(config, **overrides) if overrides else config

    def transact_config(self, **overrides: Any) -> TransactConfig:
        """A ``TransactConfig`` that fills TAPoS from these defaults.

        ``use_last_irreversible=True`` in ``overrides`` drops the default
        ``blocks_behind`` so the two strategies never collide.
        """
        values: dict[str, Any] = {
            "blocks_behind": self.blocks_behind,
            "expire_seconds": self.expire_seconds,
        }
        if overrides.get("use_last_irreversible"):
            values["blocks_behind"] = None
        values.update(overrides)
        return TransactConfig(**values)


def _parse_number(source: Mapping[str, str], key: str, kind: type, default: Any) -> Any:
    raw = source.get(key)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc
