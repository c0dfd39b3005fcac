"""Keyed, debounced, cancellable fetch coordination.

One :class:`FetchCoordinator` owns "the current request" for a key that can
change rapidly (an asset id, an object index, a connection handle). Every
``set_key`` with a new key bumps a sequence counter and schedules a debounced
attempt. An attempt may touch observable state only while it is
authoritative: its sequence number is still the newest, the active key is
still its key, and the coordinator has not been disposed. Those three checks
run when the timer fires and again when the fetch settles, so stale results
are dropped no matter what order the network answers in.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Hashable, TypeVar

from .config import CoordinatorConfig
from .interfaces.fetcher import Fetcher
from .interfaces.observer import Observer
from .models import (
    AttemptStatus,
    CoordinatorState,
    Failure,
    FetchEvent,
    Loading,
    Success,
)
from .signals import AbortController

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")

_UNSET: Any = object()

_STATE_BY_STATUS = {
    AttemptStatus.PENDING: CoordinatorState.DEBOUNCING,
    AttemptStatus.IN_FLIGHT: CoordinatorState.IN_FLIGHT,
    AttemptStatus.RESOLVED: CoordinatorState.APPLIED,
    AttemptStatus.REJECTED: CoordinatorState.APPLIED,
}


class CoordinatorDisposedError(RuntimeError):
    """Raised when a disposed coordinator is asked to schedule more work."""


@dataclass(eq=False)
class _Attempt:
    key: Any
    seq: int
    status: AttemptStatus = AttemptStatus.PENDING
    timer: asyncio.TimerHandle | None = None
    controller: AbortController = field(default_factory=AbortController)
    task: asyncio.Task[None] | None = None


class FetchCoordinator(Generic[K, R]):
    """Run at most one authoritative fetch for the most recently set key."""

    def __init__(
        self,
        fetch: Fetcher,
        observer: Observer | None = None,
        config: CoordinatorConfig | None = None,
    ) -> None:
        self._fetch = fetch
        self._config = config or CoordinatorConfig()
        self._observers: list[Observer] = [observer] if observer is not None else []

        self._active_key: Any = _UNSET
        self._seq = 0
        self._current: _Attempt | None = None
        self._last_applied: Success | Failure | None = None
        self._disposed = False

        # Strong references; the loop only keeps weak ones to running tasks.
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def active_key(self) -> K | None:
        return None if self._active_key is _UNSET else self._active_key

    @property
    def state(self) -> CoordinatorState:
        if self._disposed:
            return CoordinatorState.DISPOSED
        if self._current is None:
            return CoordinatorState.IDLE
        return _STATE_BY_STATUS.get(self._current.status, CoordinatorState.IDLE)

    @property
    def last_applied(self) -> Success | Failure | None:
        return self._last_applied

    @property
    def attempts_started(self) -> int:
        return self._seq

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def set_key(self, key: K) -> None:
        """Make ``key`` the active key and schedule a debounced fetch for it.

        Setting the key that is already active does nothing. Must be called
        from within a running event loop; returns immediately.
        """
        self._ensure_live()
        if self._active_key is not _UNSET and key == self._active_key:
            return
        self._schedule(key)
        self._active_key = key

    def refresh(self) -> None:
        """Schedule a new attempt for the active key without changing it."""
        self._ensure_live()
        if self._active_key is _UNSET:
            logger.debug("refresh() with no active key, nothing to do")
            return
        self._schedule(self._active_key)

    def dispose(self) -> None:
        """Clear pending timers and disown in-flight work. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        if self._current is not None:
            self._retire(self._current, "disposed")
        self._idle.set()
        logger.debug("Coordinator disposed after %d attempt(s)", self._seq)

    async def wait_idle(self) -> None:
        """Wait until the authoritative attempt is applied, or nothing is pending."""
        await self._idle.wait()

    async def __aenter__(self) -> "FetchCoordinator[K, R]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.dispose()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _ensure_live(self) -> None:
        if self._disposed:
            raise CoordinatorDisposedError("FetchCoordinator has been disposed")

    def _schedule(self, key: K) -> None:
        loop = asyncio.get_running_loop()

        if self._current is not None:
            self._retire(self._current, "superseded")

        self._seq += 1
        attempt = _Attempt(key=key, seq=self._seq)
        attempt.timer = loop.call_later(
            self._config.debounce_seconds, self._fire, attempt
        )
        self._current = attempt
        self._idle.clear()
        logger.debug(
            "Scheduled attempt %d for key %r in %d ms",
            attempt.seq, key, self._config.debounce_ms,
        )

    def _retire(self, attempt: _Attempt, reason: str) -> None:
        """Strip ``attempt`` of authority and release what it holds."""
        if attempt.status is AttemptStatus.PENDING:
            if attempt.timer is not None:
                attempt.timer.cancel()
                attempt.timer = None
            attempt.status = AttemptStatus.CANCELLED
            logger.debug("Attempt %d for key %r cancelled (%s)", attempt.seq, attempt.key, reason)
        elif attempt.status is AttemptStatus.IN_FLIGHT:
            attempt.controller.abort(reason)
            if self._config.cancel_stale_tasks and attempt.task is not None:
                attempt.task.cancel()
            logger.debug(
                "Attempt %d for key %r aborted in flight (%s)",
                attempt.seq, attempt.key, reason,
            )

    def _is_authoritative(self, attempt: _Attempt) -> bool:
        return (
            not self._disposed
            and attempt.seq == self._seq
            and self._active_key == attempt.key
        )

    def _fire(self, attempt: _Attempt) -> None:
        attempt.timer = None
        if not self._is_authoritative(attempt):
            attempt.status = AttemptStatus.CANCELLED
            return

        attempt.status = AttemptStatus.IN_FLIGHT
        logger.debug("Attempt %d for key %r fired", attempt.seq, attempt.key)
        self._emit(Loading(key=attempt.key, seq=attempt.seq))

        task = asyncio.get_running_loop().create_task(self._run(attempt))
        attempt.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, attempt: _Attempt) -> None:
        # An observer reacting to Loading may already have moved on.
        if not self._is_authoritative(attempt):
            attempt.status = AttemptStatus.CANCELLED
            return

        try:
            pending = self._fetch(attempt.key, attempt.controller.signal)
            result = await pending if inspect.isawaitable(pending) else pending
        except asyncio.CancelledError as e:
            task = asyncio.current_task()
            if (task is not None and task.cancelling()) or not self._is_authoritative(attempt):
                attempt.status = AttemptStatus.CANCELLED
                if attempt is self._current:
                    self._idle.set()
                raise
            # Something the fetch awaited was cancelled, not this task.
            self._settle(attempt, Failure(key=attempt.key, seq=attempt.seq, reason=e))
        except Exception as e:
            self._settle(attempt, Failure(key=attempt.key, seq=attempt.seq, reason=e))
        else:
            self._settle(attempt, Success(key=attempt.key, seq=attempt.seq, result=result))

    def _settle(self, attempt: _Attempt, event: Success | Failure) -> None:
        if not self._is_authoritative(attempt):
            attempt.status = AttemptStatus.DROPPED
            logger.debug(
                "Dropped stale %s for key %r (attempt %d, current %d)",
                event.type, attempt.key, attempt.seq, self._seq,
            )
            return

        if isinstance(event, Failure):
            attempt.status = AttemptStatus.REJECTED
            logger.warning("Fetch for key %r failed: %s", attempt.key, event.reason)
        else:
            attempt.status = AttemptStatus.RESOLVED

        self._last_applied = event
        self._idle.set()
        self._emit(event)

    # ------------------------------------------------------------------
    # Observer dispatch
    # ------------------------------------------------------------------

    def _emit(self, event: FetchEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                logger.error("Observer failed handling %s event: %s", event.type, e)
