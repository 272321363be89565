from contract_studio.core.events import EventEmitter, SessionEvent
from contract_studio.core.timing import DEFAULT_INTERVAL, Throttler

DEFAULT_RATIO = 65.0


class ResizeHelper:
    """Split-pane ratio driven by pointer drags.

    Pointer moves only count between ``start_resize()`` and ``stop_resize()``
    (pointer up or leave). Ratio updates are throttled so a fast drag
    produces at most one applied update per interval.
    """

    def __init__(
        self,
        ratio: float = DEFAULT_RATIO,
        interval: float = DEFAULT_INTERVAL,
        events: EventEmitter | None = None,
    ) -> None:
        self.ratio = ratio
        self.resizing = False
        self.events = events or EventEmitter()
        self._throttled = Throttler(interval, self._apply)

    def start_resize(self) -> None:
        self.resizing = True

    def stop_resize(self) -> None:
        self.resizing = False

    def pointer_move(self, page_x: float, left: float, width: float) -> bool:
        """Record a pointer position; returns whether the event was consumed."""
        if not self.resizing or width <= 0:
            return False
        ratio = 100 * (page_x - left) / width
        self._throttled(min(max(ratio, 0.0), 100.0))
        return True

    def _apply(self, ratio: float) -> None:
        self.ratio = ratio
        self.events.emit(SessionEvent.RATIO_CHANGED, ratio=ratio)
