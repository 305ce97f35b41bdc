"""
Shared domain types for the hand-controlled viewer.

Centralizes enums, observation containers and the control-state record so
that recognition, control and capture modules share one vocabulary without
circular imports.
"""

import time
from enum import Enum
from typing import Optional, Dict, List, NamedTuple, Iterable, Protocol
import numpy as np

NUM_LANDMARKS = 21


# =============================================================================
# Enums
# =============================================================================

class Handedness(Enum):
    """Which hand an observation belongs to."""
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def from_label(cls, label: str) -> Optional['Handedness']:
        """Convert an engine label ("Left"/"Right", any case) to the enum."""
        if not isinstance(label, str):
            return None
        normalized = label.strip().capitalize()
        try:
            return cls(normalized)
        except ValueError:
            return None


class GestureLabel(Enum):
    """Discrete gesture published once per producer cycle."""
    NONE = "none"
    RIGHT_PINCH_DRAG = "right_pinch_drag"
    LEFT_TWO_FINGER_ROTATE = "left_two_finger_rotate"
    ZOOM_IN_PALM = "zoom_in_palm"
    ZOOM_OUT_FIST = "zoom_out_fist"
    DUAL_HAND_CONTACT = "dual_hand_contact"

    @property
    def is_zoom(self) -> bool:
        return self in (GestureLabel.ZOOM_IN_PALM, GestureLabel.ZOOM_OUT_FIST)


# =============================================================================
# Observations
# =============================================================================

class HandObservation:
    """One tracked hand: handedness plus 21 normalized (x, y, z) landmarks."""

    __slots__ = ("handedness", "landmarks", "score")

    def __init__(self, handedness: Handedness, landmarks, score: float = 1.0):
        points = np.asarray(landmarks, dtype=np.float64)
        if points.shape != (NUM_LANDMARKS, 3):
            raise ValueError(
                f"HandObservation needs ({NUM_LANDMARKS}, 3) landmarks, got {points.shape}"
            )
        if not isinstance(handedness, Handedness):
            raise ValueError(f"Unknown handedness: {handedness!r}")
        self.handedness = handedness
        self.landmarks = points
        self.score = float(score)

    def point(self, index: int) -> np.ndarray:
        """2D (x, y) position of a landmark."""
        return self.landmarks[index, :2]

    def __repr__(self):
        return f"HandObservation({self.handedness.value}, score={self.score:.2f})"


class Frame:
    """Zero to two hand observations from one detection cycle.

    At most one observation per handedness.
    """

    __slots__ = ("frame_id", "timestamp", "_hands")

    def __init__(self, hands: Iterable[HandObservation] = (), frame_id: int = 0,
                 timestamp: Optional[float] = None):
        self.frame_id = frame_id
        self.timestamp = time.time() if timestamp is None else timestamp
        self._hands: Dict[Handedness, HandObservation] = {}
        for hand in hands:
            if hand.handedness in self._hands:
                raise ValueError(
                    f"Frame {frame_id} has more than one {hand.handedness.value} hand"
                )
            self._hands[hand.handedness] = hand

    @property
    def left(self) -> Optional[HandObservation]:
        return self._hands.get(Handedness.LEFT)

    @property
    def right(self) -> Optional[HandObservation]:
        return self._hands.get(Handedness.RIGHT)

    @property
    def hands(self) -> List[HandObservation]:
        return list(self._hands.values())

    @property
    def hand_count(self) -> int:
        return len(self._hands)

    def __repr__(self):
        names = ",".join(h.value for h in self._hands)
        return f"Frame(id={self.frame_id}, hands=[{names}])"


class FrameSource(Protocol):
    """Anything that yields one Frame per detection cycle.

    ``read()`` returns None when no new frame is available; that is not an
    error and the producer simply tries again.
    """

    def read(self) -> Optional[Frame]:
        ...


# =============================================================================
# Control State
# =============================================================================

class RotationVelocity(NamedTuple):
    pitch: float = 0.0
    yaw: float = 0.0


class PanPosition(NamedTuple):
    x: float = 0.0
    y: float = 0.0


class ControlState(NamedTuple):
    """The record shared between producer and consumer.

    Immutable: the producer builds a fresh instance every cycle and the
    channel swaps it in whole.
    """
    rotation_velocity: RotationVelocity = RotationVelocity()
    zoom_speed: float = 0.0
    pan_position: PanPosition = PanPosition()
    is_dragging: bool = False

    @classmethod
    def rest(cls) -> 'ControlState':
        """All rates zero, pan at origin, not dragging."""
        return cls()

    def to_dict(self) -> dict:
        return {
            "rotation_velocity": {
                "pitch": self.rotation_velocity.pitch,
                "yaw": self.rotation_velocity.yaw,
            },
            "zoom_speed": self.zoom_speed,
            "pan_position": {"x": self.pan_position.x, "y": self.pan_position.y},
            "is_dragging": self.is_dragging,
        }
