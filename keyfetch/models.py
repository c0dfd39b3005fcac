"""Data models: events and snapshots are frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union


class CoordinatorState(str, Enum):
    """Externally visible lifecycle of a coordinator."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    APPLIED = "applied"
    DISPOSED = "disposed"


class AttemptStatus(str, Enum):
    """Lifecycle of a single scheduled fetch."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    DROPPED = "dropped"


# ---------------------------------------------------------------------------
# Observer events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Loading:
    """The debounce fired and the fetch for ``key`` has started."""

    type: ClassVar[str] = "loading"

    key: Any
    seq: int


@dataclass(frozen=True)
class Success:
    """The authoritative fetch for ``key`` returned ``result``."""

    type: ClassVar[str] = "success"

    key: Any
    seq: int
    result: Any


@dataclass(frozen=True)
class Failure:
    """The authoritative fetch for ``key`` raised ``reason``."""

    type: ClassVar[str] = "error"

    key: Any
    seq: int
    reason: BaseException


FetchEvent = Union[Loading, Success, Failure]


# ---------------------------------------------------------------------------
# Chain data
# ---------------------------------------------------------------------------


def _hex_to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value or 0)


@dataclass(frozen=True)
class BlockSummary:
    """Header-level view of a block as returned by ``chain_getBlock``."""

    number: int
    hash: str
    parent_hash: str
    state_root: str
    extrinsics_root: str
    extrinsic_count: int
    log_count: int

    @classmethod
    def from_rpc(
        cls, number: int, block_hash: str, payload: dict[str, Any]
    ) -> "BlockSummary":
        block = payload.get("block", {})
        header = block.get("header", {})
        header_number = header.get("number")
        if header_number is not None and _hex_to_int(header_number) != number:
            raise ValueError(
                f"Block {block_hash} reports number {_hex_to_int(header_number)}, "
                f"expected {number}"
            )
        return cls(
            number=number,
            hash=block_hash,
            parent_hash=header.get("parentHash", ""),
            state_root=header.get("stateRoot", ""),
            extrinsics_root=header.get("extrinsicsRoot", ""),
            extrinsic_count=len(block.get("extrinsics", [])),
            log_count=len(header.get("digest", {}).get("logs", [])),
        )
