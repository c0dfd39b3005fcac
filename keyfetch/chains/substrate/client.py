"""Substrate JSON-RPC client with fallback support."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """A node answered the call with a JSON-RPC ``error`` object."""

    def __init__(self, method: str, error: dict[str, Any]) -> None:
        self.method = method
        self.code = error.get("code")
        self.message = error.get("message", "")
        super().__init__(f"{method} failed with RPC error {self.code}: {self.message}")


class SubstrateClient:
    """Substrate node RPC client with automatic endpoint fallback.

    Transport failures move on to the next endpoint. An ``error`` reply is
    raised as :class:`RpcError` without trying the remaining endpoints.
    """

    def __init__(self, config: ChainConfig) -> None:
        if not config.rpc_endpoints:
            raise ValueError("ChainConfig has no rpc_endpoints")
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Call ``method`` on the current endpoint, falling back on transport errors."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                reply = await self._post(rpc_url, payload, ssl_context)
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in reply:
                raise RpcError(method, reply["error"] or {})
            return reply.get("result")

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def _post(
        self, rpc_url: str, payload: dict[str, Any], ssl_context: ssl.SSLContext
    ) -> dict[str, Any]:
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                rpc_url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                reply = await response.json()
        if not isinstance(reply, dict):
            raise ValueError(f"Malformed JSON-RPC reply from {rpc_url}: {reply!r}")
        return reply

    async def get_block_hash(self, number: int) -> str | None:
        """Hash of the canonical block at ``number``, or None if not produced yet."""
        return await self.rpc_call("chain_getBlockHash", [number])

    async def get_block(self, block_hash: str) -> dict[str, Any]:
        """Signed block (header + extrinsics) for ``block_hash``."""
        return await self.rpc_call("chain_getBlock", [block_hash]) or {}

    async def get_header(self, block_hash: str | None = None) -> dict[str, Any]:
        """Header for ``block_hash``, or the best block when omitted."""
        params = [block_hash] if block_hash else []
        return await self.rpc_call("chain_getHeader", params) or {}
