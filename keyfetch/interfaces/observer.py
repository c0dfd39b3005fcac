"""Observer protocol: receives coordinator events."""
from typing import Protocol

from ..models import FetchEvent


class Observer(Protocol):
    """Abstract interface for consuming Loading / Success / Failure events."""

    def __call__(self, event: FetchEvent) -> None: ...
