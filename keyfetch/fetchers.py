"""Fetch functions built on a chain client, ready to hand to a coordinator."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from .interfaces.chain import ChainClient
from .models import BlockSummary
from .signals import AbortSignal

logger = logging.getLogger(__name__)


def _key_as_params(key: Any) -> list[Any]:
    return [key]


def rpc_fetcher(
    client: ChainClient,
    method: str,
    params: Callable[[Any], list[Any]] | None = None,
) -> Callable[[Any, AbortSignal], Awaitable[Any]]:
    """Fetch function that issues ``method`` with parameters derived from the key.

    Args:
        client: Chain client used for the call.
        method: JSON-RPC method name, e.g. ``chain_getHeader``.
        params: Maps a key to the RPC parameter list. Defaults to ``[key]``.
    """
    to_params = params or _key_as_params

    async def fetch(key: Any, signal: AbortSignal) -> Any:
        signal.raise_if_aborted()
        result = await client.rpc_call(method, to_params(key))
        signal.raise_if_aborted()
        return result

    return fetch


def block_fetcher(
    client: ChainClient,
) -> Callable[[int, AbortSignal], Awaitable[BlockSummary]]:
    """Fetch function mapping a block number to its :class:`BlockSummary`."""

    async def fetch(number: int, signal: AbortSignal) -> BlockSummary:
        block_hash = await client.get_block_hash(number)
        signal.raise_if_aborted()
        if not block_hash:
            raise LookupError(f"Block #{number} not found")

        payload = await client.get_block(block_hash)
        signal.raise_if_aborted()
        if not payload:
            raise LookupError(f"Block {block_hash} not found")

        summary = BlockSummary.from_rpc(number, block_hash, payload)
        logger.debug(
            "Loaded block #%d (%d extrinsics)", summary.number, summary.extrinsic_count
        )
        return summary

    return fetch
