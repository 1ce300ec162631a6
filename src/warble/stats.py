"""Dispatch instrumentation.

The dispatcher reports timings and counters to an ``Instrumentation``
sink. Sinks are fire-and-forget: the dispatcher logs and ignores any
exception a sink raises, so a broken sink never fails a request.

``StatsRecorder`` is the default in-memory sink; ``NullStats`` discards
everything.
"""

import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger("warble.stats")


class Instrumentation(Protocol):
    """Anything that can receive dispatch timings and counters."""

    def start(self, name: str, key: str) -> None: ...

    def stop(self, name: str, key: str) -> None: ...

    def increment(self, name: str, amount: int = 1) -> None: ...


@dataclass(frozen=True, slots=True)
class Timing:
    """A completed timer measurement."""

    name: str
    key: str
    elapsed: float


class StatsRecorder:
    """Thread-safe in-memory timers and counters.

    Keeps the most recent ``max_timings`` completed timings so a
    long-running process does not grow without bound.
    """

    __slots__ = ("_counters", "_lock", "_open", "_timings", "max_timings")

    def __init__(self, max_timings: int = 1000) -> None:
        self.max_timings = max_timings
        self._lock = threading.Lock()
        self._open: dict[tuple[str, str], float] = {}
        self._timings: list[Timing] = []
        self._counters: defaultdict[str, int] = defaultdict(int)

    def start(self, name: str, key: str) -> None:
        with self._lock:
            self._open[(name, key)] = time.monotonic()

    def stop(self, name: str, key: str) -> None:
        with self._lock:
            started = self._open.pop((name, key), None)
            if started is None:
                return
            timing = Timing(name=name, key=key, elapsed=time.monotonic() - started)
            self._timings.append(timing)
            if len(self._timings) > self.max_timings:
                del self._timings[: len(self._timings) - self.max_timings]
        logger.debug("%s %s %.2fms", name, key, timing.elapsed * 1000)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    @property
    def timings(self) -> tuple[Timing, ...]:
        with self._lock:
            return tuple(self._timings)

    @property
    def pending(self) -> int:
        """Timers started but not yet stopped."""
        with self._lock:
            return len(self._open)

    def snapshot(self) -> dict[str, int]:
        """Copy of all counters."""
        with self._lock:
            return dict(self._counters)


class NullStats:
    """Instrumentation sink that records nothing."""

    __slots__ = ()

    def start(self, name: str, key: str) -> None:
        pass

    def stop(self, name: str, key: str) -> None:
        pass

    def increment(self, name: str, amount: int = 1) -> None:
        pass
