"""Keyed, debounced, cancellable data-fetch coordination for asyncio."""
from .config import AppConfig, ChainConfig, CoordinatorConfig, load_config
from .coordinator import CoordinatorDisposedError, FetchCoordinator
from .models import (
    AttemptStatus,
    BlockSummary,
    CoordinatorState,
    Failure,
    FetchEvent,
    Loading,
    Success,
)
from .signals import AbortController, AbortSignal, FetchAbortedError
from .state import FetchState, FetchStateStore

__all__ = [
    "AbortController",
    "AbortSignal",
    "AppConfig",
    "AttemptStatus",
    "BlockSummary",
    "ChainConfig",
    "CoordinatorConfig",
    "CoordinatorDisposedError",
    "CoordinatorState",
    "Failure",
    "FetchAbortedError",
    "FetchCoordinator",
    "FetchEvent",
    "FetchState",
    "FetchStateStore",
    "Loading",
    "Success",
    "load_config",
]
