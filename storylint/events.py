"""Synchronous lifecycle event bus used by the orchestrator."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List

from .logging import get_logger

Listener = Callable[[Dict[str, Any]], None]

VALIDATION_START = "validation:start"
FILES_PROCESSED = "files:processed"
METADATA_EXTRACTED = "metadata:extracted"
VALIDATOR_INITIALIZED = "validator:initialized"
VALIDATOR_START = "validator:start"
VALIDATOR_COMPLETE = "validator:complete"
VALIDATION_COMPLETE = "validation:complete"
VALIDATION_ERROR = "validation:error"


class EventBus:
    """Dispatches named events to listeners in subscription order.

    Listener exceptions are not caught; they surface in the emitting call.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self.logger = get_logger("events")

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, payload: Dict[str, Any] | None = None) -> None:
        self.logger.debug("event %s", event)
        data = payload or {}
        for listener in list(self._listeners.get(event, ())):
            listener(data)


__all__ = [
    "EventBus",
    "FILES_PROCESSED",
    "Listener",
    "METADATA_EXTRACTED",
    "VALIDATION_COMPLETE",
    "VALIDATION_ERROR",
    "VALIDATION_START",
    "VALIDATOR_COMPLETE",
    "VALIDATOR_INITIALIZED",
    "VALIDATOR_START",
]
