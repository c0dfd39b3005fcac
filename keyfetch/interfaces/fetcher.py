"""Fetcher protocol: the injected per-key data source."""
from typing import Any, Awaitable, Protocol, Union

from ..signals import AbortSignal


class Fetcher(Protocol):
    """Produce the result for ``key``.

    May be a coroutine function or a plain callable. ``signal`` is tripped
    once the call stops being authoritative; honouring it is optional.
    """

    def __call__(self, key: Any, signal: AbortSignal) -> Union[Awaitable[Any], Any]: ...
