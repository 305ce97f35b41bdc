"""
Turns classifications into the control record.

Owns the smoothing anchors and the rotation history, applies the anchor
reset policy, and maps smoothed positions to rates and the pan target:

    - pan: smoothed pinch anchor, mirrored on x, scaled per axis
    - rotation: frame-to-frame delta of the smoothed two-finger anchor,
      deadzoned, mirrored on x (yaw), scaled by the sensitivity
    - zoom: constant signed rate while a zoom pose is held

Every rate is recomputed from scratch each cycle, so letting go of a gesture
stops its motion on the very next record. The pan target is sticky: it
keeps its last value after release.
"""

import logging
from typing import Optional
import numpy as np

from handorbit.core.types import ControlState, GestureLabel, PanPosition, RotationVelocity
from handorbit.recognition.gesture_classifier import Classification
from handorbit.recognition.signal_smoother import SignalSmoother

logger = logging.getLogger(__name__)


class MotionIntegrator:
    """Stateful mapping from Classification to ControlState.

    Args:
        motion_config: ``motion`` config section
        smoother: SignalSmoother built from the ``smoothing`` section
    """

    def __init__(self, motion_config: dict, smoother: SignalSmoother):
        self._zoom_rate = motion_config["zoom_rate"]
        self._sensitivity = motion_config["rotation_sensitivity"]
        self._deadzone = motion_config["rotation_deadzone"]
        self._pan_scale_x = motion_config["pan_scale_x"]
        self._pan_scale_y = motion_config["pan_scale_y"]

        self._smoother = smoother
        self._rotation_history: Optional[np.ndarray] = None
        self._pan = PanPosition()

    def integrate(self, result: Classification) -> ControlState:
        pan = self._update_pan(result)
        rotation = self._update_rotation(result)
        zoom = self._zoom_for(result.left_gesture)

        return ControlState(
            rotation_velocity=rotation,
            zoom_speed=zoom,
            pan_position=pan,
            is_dragging=result.is_dragging,
        )

    # -------------------------------------------------------------------------
    # Pan
    # -------------------------------------------------------------------------

    def _update_pan(self, result: Classification) -> PanPosition:
        anchor = self._smoother.pinch

        if result.right_gesture is GestureLabel.RIGHT_PINCH_DRAG:
            smoothed = anchor.update(result.pinch_midpoint)
            self._pan = self.map_to_pan(smoothed)
        elif result.right_gesture is GestureLabel.NONE:
            # Rest on the wrist so the next pinch starts from the hand, not
            # from wherever the last drag ended
            anchor.reset(result.right_wrist)
        else:
            anchor.clear()

        return self._pan

    def map_to_pan(self, point: np.ndarray) -> PanPosition:
        """Normalized image point -> output-space pan target.

        x is mirrored because the camera feed is shown mirrored; (0.5, 0.5)
        maps to the origin.
        """
        return PanPosition(
            x=float((0.5 - point[0]) * self._pan_scale_x),
            y=float((0.5 - point[1]) * self._pan_scale_y),
        )

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def _update_rotation(self, result: Classification) -> RotationVelocity:
        anchor = self._smoother.two_finger

        if result.left_gesture is not GestureLabel.LEFT_TWO_FINGER_ROTATE:
            # No stale delta on re-entry
            self._rotation_history = None
            anchor.clear()
            return RotationVelocity()

        smoothed = anchor.update(result.two_finger_midpoint)
        previous = self._rotation_history
        self._rotation_history = smoothed

        if previous is None:
            return RotationVelocity()

        delta = smoothed - previous
        if abs(delta[0]) <= self._deadzone and abs(delta[1]) <= self._deadzone:
            return RotationVelocity()

        return RotationVelocity(
            pitch=float(delta[1] * self._sensitivity),
            yaw=float(-delta[0] * self._sensitivity),
        )

    # -------------------------------------------------------------------------
    # Zoom
    # -------------------------------------------------------------------------

    def _zoom_for(self, gesture: Optional[GestureLabel]) -> float:
        if gesture is GestureLabel.ZOOM_IN_PALM:
            return self._zoom_rate
        if gesture is GestureLabel.ZOOM_OUT_FIST:
            return -self._zoom_rate
        return 0.0

    # -------------------------------------------------------------------------

    def reset(self):
        """Back to rest: anchors cleared, no history, pan at origin."""
        self._smoother.reset()
        self._rotation_history = None
        self._pan = PanPosition()

    @property
    def rotation_history(self) -> Optional[np.ndarray]:
        return None if self._rotation_history is None else self._rotation_history.copy()

    @property
    def smoother(self) -> SignalSmoother:
        return self._smoother
