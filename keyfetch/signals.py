"""Cooperative abort signalling handed to fetch functions."""
from __future__ import annotations

import asyncio
from typing import Any


class FetchAbortedError(Exception):
    """Raised by a fetch that stops early because its signal was aborted."""

    def __init__(self, reason: Any = None) -> None:
        super().__init__(reason if reason is not None else "fetch aborted")
        self.reason = reason


class AbortSignal:
    """Read-only view of an :class:`AbortController`.

    Fetch functions may poll ``aborted``, call ``raise_if_aborted()`` between
    awaits, or race ``wait()`` against their own I/O. Ignoring the signal is
    allowed; the coordinator drops stale results either way.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Any = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Any:
        return self._reason

    async def wait(self) -> Any:
        """Block until aborted; returns the abort reason."""
        await self._event.wait()
        return self._reason

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise FetchAbortedError(self._reason)

    def _abort(self, reason: Any) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()


class AbortController:
    """Owns an :class:`AbortSignal` and is the only thing that can trip it."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """Abort the signal. Later calls keep the first reason."""
        self.signal._abort(reason)
