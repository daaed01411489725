"""Event bus for import progress and diagnostics.

The pipeline publishes ``import.stage.start`` / ``import.stage.end``
envelopes here. Observers (diagnostics sink, tests, embedding tools) follow
the stages without the pipeline knowing about them.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from depstore.core.logging import get_logger

_logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], None]
AnyEventHandler = Callable[[str, dict[str, Any]], None]


class EventBus:
    """Fail-safe pub/sub keyed by event name.

    A handler that raises is logged at ERROR and skipped; the remaining
    handlers still run and ``publish`` never raises.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._any_handlers: list[AnyEventHandler] = []

    def subscribe(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def subscribe_all(self, handler: AnyEventHandler) -> None:
        """Receive every event as ``handler(event, data)``."""
        self._any_handlers.append(handler)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        payload = data or {}
        for handler in list(self._handlers.get(event, [])):
            self._deliver(event, handler, payload)
        for any_handler in list(self._any_handlers):
            self._deliver(event, any_handler, event, payload)

    def clear(self) -> None:
        self._handlers.clear()
        self._any_handlers.clear()

    @staticmethod
    def _deliver(event: str, handler: Callable[..., None], *args: Any) -> None:
        try:
            handler(*args)
        except Exception as e:
            _logger.error(
                f"event handler failed event={event!r} handler={handler!r} "
                f"error_type={type(e).__name__} error={e}\n{traceback.format_exc()}"
            )


_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide bus used when no explicit bus is passed."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus
