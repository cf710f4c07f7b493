"""
TAPoS (transaction as proof of stake) field generation.

A transaction names a recent block (``ref_block_num`` plus
``ref_block_prefix``) and an ``expiration``. The chain rejects it on any
fork that does not contain that block, and after it expires.

Reference block choice:
    - ``use_last_irreversible`` → the last irreversible block.
    - otherwise → ``head_block_num - blocks_behind``.

Lookup:
    - at or below the last irreversible block → ``get_block`` (final,
      canonical).
    - above it → ``get_block_header_state`` first (covers near-head
      blocks), falling back to ``get_block`` if the node cannot serve the
      header state.
"""

from __future__ import annotations

import logging
from typing import Any

from eosio_api.errors import ConfigurationError
from eosio_api.providers import ChainRpc
from eosio_api.serialize import transaction_header

logger = logging.getLogger(__name__)


class TaposGenerator:
    """Fills expiration and reference-block fields from chain state."""

    def __init__(self, rpc: ChainRpc) -> None:
        self._rpc = rpc

    async def generate(
        self,
        info: dict[str, Any] | None,
        transaction: dict[str, Any],
        blocks_behind: int | None,
        use_last_irreversible: bool,
        expire_seconds: int,
    ) -> dict[str, Any]:
        """Return ``transaction`` with TAPoS fields filled in.

        Fields the caller already set (non-None) win over generated ones.

        Args:
            info: Result of ``get_info``; fetched when None.
            transaction: Transaction dict; not modified.
            blocks_behind: Distance from head, when not using the last
                irreversible block.
            use_last_irreversible: Reference the last irreversible block.
            expire_seconds: Lifetime counted from the reference block time.
        """
        if not use_last_irreversible and blocks_behind is None:
            raise ConfigurationError("TAPoS generation needs blocks_behind or use_last_irreversible")

        if info is None:
            info = await self._rpc.get_info()

        last_irreversible = info["last_irreversible_block_num"]
        if use_last_irreversible:
            tapos_block_number = last_irreversible
        else:
            assert blocks_behind is not None
            tapos_block_number = info["head_block_num"] - blocks_behind

        if tapos_block_number <= last_irreversible:
            ref_block = await self._rpc.get_block(tapos_block_number)
        else:
            ref_block = await self.try_get_block_header_state(tapos_block_number)

        logger.debug("tapos reference block %d", tapos_block_number)
        generated = transaction_header(ref_block, expire_seconds)
        explicit = {key: value for key, value in transaction.items() if value is not None}
        return {**generated, **explicit}

    async def try_get_block_header_state(self, tapos_block_number: int) -> dict[str, Any]:
        """Header state for a reversible block, or the block itself."""
        try:
            return await self._rpc.get_block_header_state(tapos_block_number)
        except Exception as exc:
            logger.debug(
                "get_block_header_state(%d) failed, falling back to get_block: %s",
                tapos_block_number,
                exc,
            )
            return await self._rpc.get_block(tapos_block_number)
