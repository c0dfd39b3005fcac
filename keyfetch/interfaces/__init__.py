"""Protocol interfaces for the keyed fetch coordinator."""
from .chain import ChainClient
from .fetcher import Fetcher
from .observer import Observer

__all__ = ["ChainClient", "Fetcher", "Observer"]
