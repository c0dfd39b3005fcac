"""Substrate chain support."""
from .client import RpcError, SubstrateClient

__all__ = ["RpcError", "SubstrateClient"]
