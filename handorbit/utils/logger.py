"""
Logging setup plus a gesture observer that logs label transitions.

Console output is short (time, level, message) for watching a live session;
the optional file keeps logger names and everything down to DEBUG.
"""

import os
import logging
import logging.handlers
import time
from collections import deque
from functools import wraps

_CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(threadName)-9s %(name)s: %(message)s"
_TIME_FORMAT = "%H:%M:%S"


def _attach(root: logging.Logger, handler: logging.Handler, level: int, fmt: str):
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_TIME_FORMAT))
    root.addHandler(handler)


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Route all loggers to the console and, if given, a rotating file.

    Replaces any handlers already on the root logger, so calling it again
    reconfigures instead of duplicating output.
    """
    console_level = logging.getLevelName(str(level).upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    _attach(root, logging.StreamHandler(), console_level, _CONSOLE_FORMAT)
    root.setLevel(console_level)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=int(max_size_mb * 1024 * 1024), backupCount=backup_count,
        )
        _attach(root, rotating, logging.DEBUG, _FILE_FORMAT)
        root.setLevel(logging.DEBUG)

    return root


class GestureLogger:
    """Gesture observer: records and logs each change of published label.

    Subscribe ``on_gesture`` to ``Events.GESTURE_CLASSIFIED``. It is called
    every cycle but only logs when the (label, dragging) pair changes.
    """

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("gesture_events")
        self._history = deque(maxlen=max_history)
        self._current = None
        self._since = None
        self._cycles = 0

    def on_gesture(self, label, is_dragging, **_):
        self._cycles += 1
        key = (label, bool(is_dragging))
        if key == self._current:
            return

        now = time.time()
        held_ms = (now - self._since) * 1000 if self._since else None
        self._history.append({
            "timestamp": now,
            "gesture": label.value,
            "is_dragging": bool(is_dragging),
        })
        self.logger.info(
            "Gesture: %-24s | Dragging: %-5s | Previous held: %s",
            label.value,
            bool(is_dragging),
            f"{held_ms:.0f}ms" if held_ms is not None else "N/A",
        )
        self._current = key
        self._since = now

    def get_history(self, last_n=None):
        """Recent label transitions, oldest first."""
        history = list(self._history)
        if last_n:
            return history[-last_n:]
        return history

    @property
    def total_transitions(self) -> int:
        return len(self._history)

    @property
    def cycles_observed(self) -> int:
        return self._cycles


def log_timing(func):
    """Log how long each call to ``func`` takes, at DEBUG on its module's logger."""
    func_logger = logging.getLogger(func.__module__)

    @wraps(func)
    def timed(*args, **kwargs):
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            func_logger.debug("%s: %.2f ms", func.__qualname__,
                              (time.perf_counter() - started) * 1000)

    return timed
