"""
Producer-side pipeline: one call to ``process()`` is one producer cycle.

Architecture:
    Frame -> GestureClassifier -> MotionIntegrator (SignalSmoother inside)
    -> ControlChannel
                  \\-> EventBus (GESTURE_CLASSIFIED) -> gesture observers

Classification and integration are synchronous and never block; the only
waiting in a producer cycle happens in the frame source, outside this class.
"""

import time
import logging

from handorbit.core.types import Frame, ControlState, GestureLabel
from handorbit.core.events import EventBus, Events
from handorbit.core.channel import ControlChannel
from handorbit.recognition.gesture_classifier import GestureClassifier, Classification
from handorbit.recognition.signal_smoother import SignalSmoother
from handorbit.control.motion_integrator import MotionIntegrator
from handorbit.utils.config import validate_control_settings
from handorbit.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class PipelineResult:
    """Result of a single producer cycle."""

    __slots__ = (
        "frame_id", "timestamp", "hand_count",
        "label", "is_dragging", "state", "version",
        "classification",
    )

    def __init__(self):
        self.frame_id = 0
        self.timestamp = 0.0
        self.hand_count = 0
        self.label = GestureLabel.NONE
        self.is_dragging = False
        self.state = ControlState.rest()
        self.version = 0
        self.classification = None

    def __repr__(self):
        return (f"PipelineResult(frame={self.frame_id}, {self.label.value}, "
                f"v{self.version})")


class Pipeline:
    """Composable producer pipeline.

    Observers subscribe to ``Events.GESTURE_CLASSIFIED`` on the event bus and
    receive ``label`` and ``is_dragging`` every cycle, changed or not.
    """

    def __init__(
        self,
        classifier: GestureClassifier,
        integrator: MotionIntegrator,
        channel: ControlChannel = None,
        event_bus: EventBus = None,
        performance_monitor: PerformanceMonitor = None,
    ):
        self._classifier = classifier
        self._integrator = integrator
        self._channel = channel or ControlChannel()
        self._bus = event_bus or EventBus()
        self._perf = performance_monitor or PerformanceMonitor("producer")

        self._frame_count = 0
        self._last_label = GestureLabel.NONE

    @classmethod
    def from_config(cls, config, channel: ControlChannel = None,
                    event_bus: EventBus = None) -> 'Pipeline':
        """Build the classifier/smoother/integrator chain from a Config."""
        validate_control_settings(config.recognition, config.smoothing, config.motion)
        smoother = SignalSmoother(config.smoothing)
        return cls(
            classifier=GestureClassifier(config.recognition),
            integrator=MotionIntegrator(config.motion, smoother),
            channel=channel,
            event_bus=event_bus,
            performance_monitor=PerformanceMonitor(
                "producer", window_size=config.get("performance.metrics_window", 100)
            ),
        )

    def process(self, frame: Frame) -> PipelineResult:
        """Run one producer cycle on a frame and publish the new record."""
        result = PipelineResult()
        result.frame_id = frame.frame_id
        result.timestamp = time.time()
        result.hand_count = frame.hand_count
        self._frame_count += 1

        with self._perf.measure("classification"):
            classification: Classification = self._classifier.classify(frame)

        with self._perf.measure("integration"):
            state = self._integrator.integrate(classification)

        result.version = self._channel.publish(state)
        result.state = state
        result.label = classification.label
        result.is_dragging = classification.is_dragging
        result.classification = classification

        if classification.label != self._last_label:
            logger.debug("Frame %d: %s -> %s", frame.frame_id,
                         self._last_label.value, classification.label.value)
            self._last_label = classification.label

        self._bus.emit(Events.GESTURE_CLASSIFIED,
                       label=classification.label,
                       is_dragging=classification.is_dragging)
        self._bus.emit(Events.CONTROL_PUBLISHED, state=state, version=result.version)

        self._perf.tick()
        return result

    def reset(self):
        """Return everything to rest (session start or new content)."""
        self._classifier.reset()
        self._integrator.reset()
        self._channel.reset()
        self._last_label = GestureLabel.NONE
        self._bus.emit(Events.CONTROLS_RESET)
        logger.info("Controls reset to rest state")

    @property
    def channel(self) -> ControlChannel:
        return self._channel

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def current_label(self) -> GestureLabel:
        return self._last_label
