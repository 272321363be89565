import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SOURCE_CHANGED = "source_changed"
    CONFIG_CHANGED = "config_changed"
    BUILDS_CHANGED = "builds_changed"
    COMPILE_STARTED = "compile_started"
    COMPILE_FINISHED = "compile_finished"
    COMPILE_FAILED = "compile_failed"
    CONTRACT_SELECTED = "contract_selected"
    CONTRACT_LOADED = "contract_loaded"
    CONTRACT_SAVED = "contract_saved"
    SESSION_RESET = "session_reset"
    WORKER_ERROR = "worker_error"
    RATIO_CHANGED = "ratio_changed"


@dataclass(frozen=True)
class StateChange:
    event: SessionEvent
    fields: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[StateChange], None]


class EventEmitter:
    """Publish state changes to any number of anonymous subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: SessionEvent, **fields: Any) -> StateChange:
        change = StateChange(event=event, fields=fields)
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception("Error in subscriber for %s", event.value)
        return change
