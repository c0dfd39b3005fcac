"""Unit tests for abort signalling."""
from __future__ import annotations

import asyncio

import pytest

from keyfetch.signals import AbortController, FetchAbortedError


class TestAbortController:
    def test_starts_clear(self) -> None:
        controller = AbortController()
        assert controller.signal.aborted is False
        assert controller.signal.reason is None
        controller.signal.raise_if_aborted()

    def test_abort_sets_reason(self) -> None:
        controller = AbortController()
        controller.abort("superseded")
        assert controller.signal.aborted is True
        assert controller.signal.reason == "superseded"

    def test_abort_is_idempotent(self) -> None:
        controller = AbortController()
        controller.abort("first")
        controller.abort("second")
        assert controller.signal.reason == "first"

    def test_raise_if_aborted(self) -> None:
        controller = AbortController()
        controller.abort("disposed")
        with pytest.raises(FetchAbortedError) as exc_info:
            controller.signal.raise_if_aborted()
        assert exc_info.value.reason == "disposed"

    @pytest.mark.asyncio
    async def test_wait_returns_reason(self) -> None:
        controller = AbortController()
        waiter = asyncio.create_task(controller.signal.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        controller.abort("superseded")
        assert await asyncio.wait_for(waiter, 1) == "superseded"
