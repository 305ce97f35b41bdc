"""
Event bus fanning producer results out to observers.

Gesture observers (the gesture logger, frame recorders, UI badges) register
here instead of being called by the pipeline directly, so a producer cycle
never depends on who is listening or how long they take to fail.

Usage:
    bus = EventBus()
    bus.subscribe(Events.GESTURE_CLASSIFIED, on_gesture)
    bus.emit(Events.GESTURE_CLASSIFIED, label=GestureLabel.NONE, is_dragging=False)
"""

import time
import bisect
import logging
import itertools
import threading
from collections import deque
from typing import Callable, Dict, List, NamedTuple

logger = logging.getLogger(__name__)


class Subscription(NamedTuple):
    # Sort key first: higher priority, then registration order
    order: tuple
    callback: Callable


class EventRecord(NamedTuple):
    name: str
    time: float
    fields: tuple
    delivered: int


class EventBus:
    """Synchronous publish/subscribe bus, safe to use from several threads.

    Listeners run on the emitting thread, highest priority first and in
    registration order within a priority. A listener that raises is logged
    and counted; the remaining listeners still run.
    """

    def __init__(self, max_history: int = 100):
        self._subs: Dict[str, List[Subscription]] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()
        self._history = deque(maxlen=max_history)
        self._errors = 0
        self.enabled = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register ``callback(**fields)`` for ``event_name``."""
        sub = Subscription((-priority, next(self._seq)), callback)
        with self._lock:
            bisect.insort(self._subs.setdefault(event_name, []), sub)
        logger.debug("'%s' <- %s (priority %d)",
                     event_name, getattr(callback, "__qualname__", callback), priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        with self._lock:
            subs = self._subs.get(event_name, [])
            self._subs[event_name] = [s for s in subs if s.callback is not callback]

    def emit(self, event_name: str, **fields) -> int:
        """Deliver an event. Returns how many listeners completed without error."""
        if not self.enabled:
            return 0

        with self._lock:
            subs = tuple(self._subs.get(event_name, ()))

        delivered = 0
        for sub in subs:
            try:
                sub.callback(**fields)
            except Exception as e:
                self._errors += 1
                logger.error("Listener %s failed on '%s': %s",
                             getattr(sub.callback, "__qualname__", sub.callback), event_name, e)
            else:
                delivered += 1

        with self._lock:
            self._history.append(EventRecord(event_name, time.time(), tuple(fields), delivered))
        return delivered

    def clear(self, event_name: str = None):
        """Drop every listener, or only those of one event."""
        with self._lock:
            if event_name is None:
                self._subs.clear()
            else:
                self._subs.pop(event_name, None)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._subs.values())

    @property
    def error_count(self) -> int:
        return self._errors

    def get_history(self, last_n: int = 10) -> List[EventRecord]:
        """Most recent emitted events, oldest first."""
        with self._lock:
            return list(self._history)[-last_n:]


class Events:
    """Event names and the fields each one carries."""

    # frame: Frame, before classification
    FRAME_RECEIVED = "frame_received"
    # label: GestureLabel, is_dragging: bool; every cycle, changed or not
    GESTURE_CLASSIFIED = "gesture_classified"
    # state: ControlState, version: int
    CONTROL_PUBLISHED = "control_published"
    # no fields
    CONTROLS_RESET = "controls_reset"
    SOURCE_EXHAUSTED = "source_exhausted"
    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
