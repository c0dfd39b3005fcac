"""Observer that folds coordinator events into a loading/result/error snapshot."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .models import Failure, FetchEvent, Loading, Success

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchState:
    """What a view needs to render the entity for ``key``."""

    key: Any = None
    loading: bool = False
    result: Any = None
    error: str | None = None


class FetchStateStore:
    """Keep the latest :class:`FetchState` and notify listeners on change.

    Pass an instance as the coordinator's observer. Events only reach it for
    authoritative attempts, so the snapshot never reflects a stale key.
    """

    def __init__(self) -> None:
        self.state = FetchState()
        self._listeners: list[Callable[[FetchState], None]] = []

    def on_change(self, listener: Callable[[FetchState], None]) -> None:
        self._listeners.append(listener)

    def _result_for(self, key: Any) -> Any:
        # A result stays visible while its key is refetched, never under another key.
        return self.state.result if key == self.state.key else None

    def __call__(self, event: FetchEvent) -> None:
        if isinstance(event, Loading):
            new_state = FetchState(
                key=event.key, loading=True, result=self._result_for(event.key)
            )
        elif isinstance(event, Success):
            new_state = FetchState(key=event.key, result=event.result)
        elif isinstance(event, Failure):
            new_state = FetchState(
                key=event.key,
                result=self._result_for(event.key),
                error=str(event.reason) or type(event.reason).__name__,
            )
        else:
            logger.warning("Ignoring unknown event %r", event)
            return

        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)
