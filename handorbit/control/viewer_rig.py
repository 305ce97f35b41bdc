"""
Display-side smoothing of the control record.

The renderer ticks faster than the producer and on its own clock, so it
does its own pass over whatever record it last read: lerped rotation
velocity, lerped and clamped scale, and a drag position that chases the pan
target while dragging and drifts back to the rest pose otherwise.
"""

import math
import logging
from typing import NamedTuple

from handorbit.core.types import ControlState

logger = logging.getLogger(__name__)

_VELOCITY_EPSILON = 1e-4


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


class ModelPose(NamedTuple):
    pitch: float
    yaw: float
    scale: float
    x: float
    y: float


class ViewerRig:
    """Pose of the viewed model, advanced once per render tick.

    Built from the ``viewer`` config section.
    """

    def __init__(self, config: dict):
        self._velocity_lerp = config["velocity_lerp"]
        self._scale_lerp = config["scale_lerp"]
        self._min_scale = config["min_scale"]
        self._max_scale = config["max_scale"]
        self._drag_lerp = config["drag_lerp"]
        self._return_lerp = config["return_lerp"]
        self._rest_y = config["rest_y"]
        self._idle_amplitude = config["idle_amplitude"]
        self._idle_frequency = config["idle_frequency"]
        self.reset()

    def reset(self):
        """Rest pose: no rotation, unit scale, centered at the rest height."""
        self.pitch = 0.0
        self.yaw = 0.0
        self.scale = 1.0
        self.x = 0.0
        self.y = self._rest_y
        self._vel_pitch = 0.0
        self._vel_yaw = 0.0

    def step(self, state: ControlState, elapsed: float) -> ModelPose:
        """Advance one render tick.

        Args:
            state: latest control record read from the channel
            elapsed: seconds since the render loop started (drives idle motion)
        """
        target = state.rotation_velocity
        self._vel_pitch = lerp(self._vel_pitch, target.pitch, self._velocity_lerp)
        self._vel_yaw = lerp(self._vel_yaw, target.yaw, self._velocity_lerp)

        if abs(self._vel_pitch) > _VELOCITY_EPSILON or abs(self._vel_yaw) > _VELOCITY_EPSILON:
            self.pitch += self._vel_pitch
            self.yaw += self._vel_yaw

        if state.zoom_speed != 0:
            new_scale = lerp(self.scale, self.scale + state.zoom_speed, self._scale_lerp)
            self.scale = max(self._min_scale, min(self._max_scale, new_scale))

        idle = (target.pitch == 0 and target.yaw == 0 and not state.is_dragging)
        if idle:
            self.yaw += math.sin(elapsed * self._idle_frequency) * self._idle_amplitude

        if state.is_dragging:
            self.x = lerp(self.x, state.pan_position.x, self._drag_lerp)
            self.y = lerp(self.y, self._rest_y + state.pan_position.y, self._drag_lerp)
        else:
            self.x = lerp(self.x, 0.0, self._return_lerp)
            self.y = lerp(self.y, self._rest_y, self._return_lerp)

        return self.pose

    @property
    def pose(self) -> ModelPose:
        return ModelPose(self.pitch, self.yaw, self.scale, self.x, self.y)

    @property
    def smoothed_velocity(self) -> tuple:
        return self._vel_pitch, self._vel_yaw
