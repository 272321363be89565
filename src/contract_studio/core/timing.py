import asyncio
import time
from collections.abc import Callable

DEFAULT_INTERVAL = 0.1


class Debouncer:
    """Run *callback* once a burst of ``schedule()`` calls has settled for *delay* seconds.

    Owns a single timer handle; every ``schedule()`` cancels the pending one
    before arming a new one. Must be used from within a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class Throttler:
    """Apply at most one update per *interval*, leading edge first.

    The first call runs immediately. Calls arriving inside the interval are
    coalesced into a single trailing call made with the latest arguments.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[float], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._callback = callback
        self._clock = clock
        self._last_run: float | None = None
        self._latest: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, value: float) -> None:
        self._latest = value
        now = self._clock()
        if self._handle is not None:
            return
        if self._last_run is None or now - self._last_run >= self.interval:
            self._run()
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval - (now - self._last_run), self._trailing)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._latest = None

    def _trailing(self) -> None:
        self._handle = None
        self._run()

    def _run(self) -> None:
        if self._latest is None:
            return
        value, self._latest = self._latest, None
        self._last_run = self._clock()
        self._callback(value)
