"""
The two independently scheduled loops.

    ProducerLoop: pulls frames from a FrameSource as fast as inference
        allows and runs one pipeline cycle per frame.
    RenderLoop: ticks at its own target rate, reads whatever control record
        is newest, and advances the ViewerRig.

They share nothing but the ControlChannel and stop independently.
"""

import time
import logging
import threading
from typing import Callable, Optional

from handorbit.core.channel import ControlChannel
from handorbit.core.events import Events
from handorbit.core.pipeline import Pipeline
from handorbit.control.viewer_rig import ViewerRig
from handorbit.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class ProducerLoop(threading.Thread):
    """Background thread driving the pipeline from a frame source.

    A source that returns None is polled again after ``idle_sleep``. A source
    exposing a true ``exhausted`` attribute (finished replay) ends the loop.
    """

    def __init__(self, source, pipeline: Pipeline, idle_sleep: float = 0.002):
        super().__init__(name="producer", daemon=True)
        self._source = source
        self._pipeline = pipeline
        self._idle_sleep = idle_sleep
        self._stop_event = threading.Event()
        self.error: Optional[BaseException] = None

    def stop(self):
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self):
        perf = self._pipeline.performance
        logger.info("Producer loop started")
        try:
            while not self._stop_event.is_set():
                frame = self._source.read()
                if frame is None:
                    perf.record_empty()
                    if getattr(self._source, "exhausted", False):
                        logger.info("Frame source exhausted")
                        self._pipeline.event_bus.emit(Events.SOURCE_EXHAUSTED)
                        break
                    self._stop_event.wait(self._idle_sleep)
                    continue

                self._pipeline.event_bus.emit(Events.FRAME_RECEIVED, frame=frame)
                self._pipeline.process(frame)
        except Exception as e:
            self.error = e
            logger.exception("Producer loop failed: %s", e)
        finally:
            self._stop_event.set()
            logger.info("Producer loop stopped after %d frames", self._pipeline.frame_count)


class RenderLoop(threading.Thread):
    """Fixed-rate consumer reading the channel and stepping the viewer rig.

    Args:
        channel: channel to read from
        rig: viewer rig to advance
        target_fps: tick rate
        on_tick: optional ``callback(pose, state, version)`` after each tick
    """

    def __init__(self, channel: ControlChannel, rig: ViewerRig, target_fps: float = 60,
                 on_tick: Callable = None, performance_monitor: PerformanceMonitor = None):
        super().__init__(name="render", daemon=True)
        self._channel = channel
        self._rig = rig
        self._period = 1.0 / max(target_fps, 1)
        self._on_tick = on_tick
        self._perf = performance_monitor or PerformanceMonitor("render")
        self._stop_event = threading.Event()
        self._last_version = 0
        self.error: Optional[BaseException] = None

    def stop(self):
        self._stop_event.set()

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def last_version(self) -> int:
        return self._last_version

    def tick(self, elapsed: float):
        """One render step (also usable without starting the thread)."""
        with self._perf.measure("step"):
            version, state = self._channel.read_versioned()
            pose = self._rig.step(state, elapsed)
        self._last_version = version
        if self._on_tick is not None:
            self._on_tick(pose, state, version)
        self._perf.tick()
        return pose

    def run(self):
        logger.info("Render loop started (%.0f Hz)", 1.0 / self._period)
        start = time.perf_counter()
        try:
            while not self._stop_event.is_set():
                tick_start = time.perf_counter()
                self.tick(tick_start - start)
                remaining = self._period - (time.perf_counter() - tick_start)
                if remaining > 0:
                    self._stop_event.wait(remaining)
        except Exception as e:
            self.error = e
            logger.exception("Render loop failed: %s", e)
        finally:
            self._stop_event.set()
            logger.info("Render loop stopped")
