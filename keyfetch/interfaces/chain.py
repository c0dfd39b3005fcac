"""Chain client protocol: blockchain RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for blockchain RPC interactions."""

    async def rpc_call(self, method: str, params: list[Any]) -> Any: ...

    async def get_block_hash(self, number: int) -> str | None: ...

    async def get_block(self, block_hash: str) -> dict[str, Any]: ...
