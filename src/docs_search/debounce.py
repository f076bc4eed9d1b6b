"""Timer-based coalescing of bursts of calls, for search-as-you-type."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from docs_search.engine import SearchEngine, query
from docs_search.index import IndexLoader, SearchIndex
from docs_search.models import QueryResponse

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.3


class Timer(Protocol):
    """The part of ``threading.Timer`` the debouncer relies on."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[..., Any], Any], Timer]


def _thread_timer(delay: float, function: Callable[..., Any], args: Any) -> Timer:
    timer = threading.Timer(delay, function, args=args)
    timer.daemon = True
    return timer


class Debouncer:
    """Runs a callback only once calls have paused for ``delay`` seconds.

    Each trigger cancels the pending timer, so only the last call in a
    burst reaches the callback.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float = DEFAULT_DELAY,
        timer_factory: TimerFactory = _thread_timer,
    ) -> None:
        """Initialise debouncer.

        Args:
            callback: Function run with the arguments of the last trigger.
            delay: Quiet period in seconds.
            timer_factory: Builds a timer from ``(delay, function, args)``.
        """
        self.callback = callback
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer: Timer | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """Whether a call is scheduled."""
        return self._timer is not None

    def trigger(self, *args: Any) -> None:
        """Schedule the callback, replacing any pending call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = self._timer_factory(self.delay, self._fire, (self._generation, *args))
            self._timer.start()

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, generation: int, *args: Any) -> None:
        # A timer already running when it was replaced or cancelled is stale.
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping superseded call %r", args)
                return
            self._timer = None
        self.callback(*args)


def debounced_search(
    source: SearchIndex | IndexLoader | str | Path,
    on_results: Callable[[str, QueryResponse], Any],
    delay: float = DEFAULT_DELAY,
    engine: SearchEngine | None = None,
    timer_factory: TimerFactory = _thread_timer,
) -> Debouncer:
    """Put a debouncer in front of ``query``.

    Args:
        source: Loaded index, a loader, or a site base to load from.
        on_results: Called with the query text and its response.
        delay: Quiet period in seconds.
        engine: Engine to rank with.
        timer_factory: Builds the debounce timers.

    Returns:
        Debouncer whose ``trigger(query_text)`` feeds the search.
    """
    target: SearchIndex | IndexLoader
    if isinstance(source, (str, Path)):
        target = IndexLoader(source)
        target.load()
    else:
        target = source

    def run(query_text: str) -> None:
        logger.debug("Running debounced query %r", query_text)
        on_results(query_text, query(target, query_text, engine))

    return Debouncer(run, delay=delay, timer_factory=timer_factory)
