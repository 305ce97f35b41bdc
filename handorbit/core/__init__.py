"""Core domain types, event bus, control channel and producer pipeline."""

from handorbit.core.types import (
    Handedness, GestureLabel, HandObservation, Frame,
    RotationVelocity, PanPosition, ControlState,
)
from handorbit.core.channel import ControlChannel

__all__ = [
    "Handedness", "GestureLabel", "HandObservation", "Frame",
    "RotationVelocity", "PanPosition", "ControlState", "ControlChannel",
]
