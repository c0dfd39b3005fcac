"""Shared test fixtures and fetch/observer doubles."""
from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from keyfetch.config import AppConfig, ChainConfig, CoordinatorConfig
from keyfetch.models import FetchEvent
from keyfetch.signals import AbortSignal

# Debounce used by coordinator tests; waits below are multiples of it.
DEBOUNCE_MS = 20
DEBOUNCE_S = DEBOUNCE_MS / 1000


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def debounce_s() -> float:
    return DEBOUNCE_S


@pytest.fixture()
def coordinator_config() -> CoordinatorConfig:
    return CoordinatorConfig(debounce_ms=DEBOUNCE_MS)


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(
    coordinator_config: CoordinatorConfig, sample_chain_config: ChainConfig
) -> AppConfig:
    return AppConfig(
        coordinator=coordinator_config,
        chain=sample_chain_config,
        log_level="DEBUG",
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    log_level: debug
    coordinator:
      debounce_ms: 150
      cancel_stale_tasks: true
    chain:
      rpc_endpoints: ["https://rpc.example.com", "https://rpc2.example.com"]
      rpc_timeout: 10
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Coordinator doubles
# ---------------------------------------------------------------------------


class ControlledFetch:
    """Fetch double whose calls settle only when the test says so."""

    def __init__(self) -> None:
        self.calls: list[Any] = []
        self.signals: list[AbortSignal] = []
        self._futures: list[asyncio.Future[Any]] = []
        self._tasks: list[asyncio.Task[Any]] = []

    async def __call__(self, key: Any, signal: AbortSignal) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(key)
        self.signals.append(signal)
        self._futures.append(future)
        task = asyncio.current_task()
        if task is not None:
            self._tasks.append(task)
        return await future

    def resolve(self, index: int, value: Any) -> None:
        self._futures[index].set_result(value)

    def reject(self, index: int, error: BaseException) -> None:
        self._futures[index].set_exception(error)

    def cancel(self, index: int) -> None:
        self._futures[index].cancel()

    def cancelled(self, index: int) -> bool:
        return self._futures[index].cancelled()

    async def drain(self) -> None:
        """Cancel calls still waiting and let their tasks finish."""
        for future in self._futures:
            if not future.done():
                future.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)


class RecordingObserver:
    """Observer that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[FetchEvent] = []

    def __call__(self, event: FetchEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.type for e in self.events]


@pytest_asyncio.fixture()
async def controlled_fetch():
    fetch = ControlledFetch()
    yield fetch
    await fetch.drain()


@pytest.fixture()
def observer() -> RecordingObserver:
    return RecordingObserver()


# ---------------------------------------------------------------------------
# Sample on-chain data
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_block_payload() -> dict:
    return {
        "block": {
            "header": {
                "parentHash": "0xparent",
                "number": "0x2a",
                "stateRoot": "0xstate",
                "extrinsicsRoot": "0xextrinsics",
                "digest": {"logs": ["0x0642414245", "0x05424142"]},
            },
            "extrinsics": ["0x280402000b", "0x1c0409000c", "0x280403000d"],
        },
        "justifications": None,
    }
