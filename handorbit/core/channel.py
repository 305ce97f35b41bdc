"""
Single-slot channel holding the latest ControlState.

Exactly one producer writes, exactly one consumer reads, each on its own
clock. The record is immutable and swapped in whole under a lock together
with a version counter, so a reader can never see fields from two different
producer cycles. There is no queue: an unread write is simply replaced.
"""

import threading
import logging
from typing import Tuple

from handorbit.core.types import ControlState

logger = logging.getLogger(__name__)


class ControlChannel:
    """Latest-value cell for the control state."""

    def __init__(self):
        self._lock = threading.Lock()
        self._state = ControlState.rest()
        self._version = 0

    def publish(self, state: ControlState) -> int:
        """Replace the current record. Returns the new version."""
        if not isinstance(state, ControlState):
            raise TypeError(f"Expected ControlState, got {type(state).__name__}")
        with self._lock:
            self._state = state
            self._version += 1
            return self._version

    def read(self) -> ControlState:
        """Latest completed record (never blocks on the producer beyond the lock)."""
        with self._lock:
            return self._state

    def read_versioned(self) -> Tuple[int, ControlState]:
        """Latest record with the version it was published under."""
        with self._lock:
            return self._version, self._state

    def reset(self) -> int:
        """Publish the rest configuration (session start / content change)."""
        logger.debug("Control channel reset to rest state")
        return self.publish(ControlState.rest())

    @property
    def version(self) -> int:
        with self._lock:
            return self._version
