"""
Per-loop timing: rolling cycle rate and per-stage latency.

The producer and the render loop each own a monitor; the main thread reads
both for status lines and the shutdown report, so every accessor locks.
"""

import time
import threading
import logging
from collections import defaultdict, deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Rolling statistics over the last ``window_size`` cycles.

    Usage:
        perf = PerformanceMonitor("producer")
        with perf.measure("classification"):
            ...
        perf.tick()
    """

    def __init__(self, name: str = "loop", window_size: int = 100):
        self.name = name
        self._window = window_size
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        with self._lock:
            self._intervals = deque(maxlen=self._window)
            self._stages = defaultdict(lambda: deque(maxlen=self._window))
            self._last_tick = None
            self._cycles = 0
            self._empty = 0
            self._started = time.time()

    @contextmanager
    def measure(self, stage_name: str):
        """Time the enclosed block as ``stage_name`` (recorded even if it raises)."""
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            with self._lock:
                self._stages[stage_name].append(elapsed_ms)

    def tick(self):
        """Mark the end of one completed cycle."""
        now = time.perf_counter()
        with self._lock:
            if self._last_tick is not None:
                self._intervals.append(now - self._last_tick)
            self._last_tick = now
            self._cycles += 1

    def record_empty(self):
        """Count a poll where the source had nothing new."""
        with self._lock:
            self._empty += 1

    @property
    def rate(self) -> float:
        """Cycles per second over the window (0.0 until two intervals exist)."""
        with self._lock:
            if len(self._intervals) < 2:
                return 0.0
            mean = sum(self._intervals) / len(self._intervals)
        return 1.0 / mean if mean > 0 else 0.0

    @property
    def cycle_count(self) -> int:
        with self._lock:
            return self._cycles

    def get_stage_latency(self, stage_name: str) -> float:
        """Mean latency of a stage in ms, 0.0 if it was never measured."""
        with self._lock:
            samples = self._stages.get(stage_name)
            return sum(samples) / len(samples) if samples else 0.0

    def get_report(self) -> dict:
        rate = self.rate
        with self._lock:
            return {
                "name": self.name,
                "rate": round(rate, 1),
                "cycles": self._cycles,
                "empty_cycles": self._empty,
                "uptime_seconds": round(time.time() - self._started, 1),
                "latencies_ms": {
                    stage: round(sum(s) / len(s), 3)
                    for stage, s in self._stages.items() if s
                },
            }

    def print_report(self):
        report = self.get_report()
        logger.info("%s: %d cycles (%d empty) in %.1fs, %.1f/s",
                    report["name"], report["cycles"], report["empty_cycles"],
                    report["uptime_seconds"], report["rate"])
        for stage, latency in sorted(report["latencies_ms"].items()):
            logger.info("    %-16s %8.3f ms", stage, latency)
