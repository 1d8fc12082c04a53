"""FLAGCORE FILE PURPOSE
Purpose: feature-check events and the dispatcher contract the engine emits into.
Hot path: yes (one dispatch per is_active call).
Feature flags: FLAGS_DEBUG (LoggingDispatcher output).
Failure mode: listener exceptions propagate to the flag check caller.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Protocol

from pydantic import BaseModel, ConfigDict

from flagcore.config import is_debug
from flagcore.logging import logger


class FeatureCheckEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    feature: str
    scope: Any = None


class CheckingKnownFeature(FeatureCheckEvent):
    pass


class CheckingUnknownFeature(FeatureCheckEvent):
    pass


class EventDispatcher(Protocol):
    def dispatch(self, event: FeatureCheckEvent) -> None: ...


class LoggingDispatcher:
    """Default dispatcher: debug-gated log lines, no listeners."""

    def dispatch(self, event: FeatureCheckEvent) -> None:
        if not is_debug():
            return
        if isinstance(event, CheckingUnknownFeature):
            logger.warning("FEATURE_UNKNOWN feature=%s scope=%r", event.feature, event.scope)
        else:
            logger.info("FEATURE_CHECK feature=%s scope=%r", event.feature, event.scope)


class ListenerDispatcher:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[type[FeatureCheckEvent], list[Callable[[FeatureCheckEvent], Any]]] = {}

    def listen(self, event_type: type[FeatureCheckEvent], callback: Callable[[FeatureCheckEvent], Any]) -> None:
        with self._lock:
            self._listeners.setdefault(event_type, []).append(callback)

    def dispatch(self, event: FeatureCheckEvent) -> None:
        with self._lock:
            targets = [cb for event_type, cbs in self._listeners.items() if isinstance(event, event_type) for cb in cbs]
        # callbacks run outside the lock; listeners may call listen()
        for cb in targets:
            cb(event)
