"""
Exponential smoothing anchors for the continuous gesture quantities.

Two flavours share one update rule ``anchor += (raw - anchor) * factor``:

    - AdaptiveAnchor: factor grows with the size of the jump, clamped to
      [min_factor, max_factor]. Small hand tremor moves the anchor barely at
      all, a deliberate fast move follows almost immediately. Used for the
      right-hand pinch target.
    - FixedAnchor: constant factor. Used for the left-hand two-finger
      midpoint, where motion is slow and deliberate.

An unset anchor snaps to its first sample.
"""

import logging
from typing import Optional
import numpy as np

logger = logging.getLogger(__name__)


class SmoothingAnchor:
    """Base anchor holding an optional 2D point."""

    def __init__(self, name: str):
        self._name = name
        self._value: Optional[np.ndarray] = None

    def factor_for(self, raw: np.ndarray) -> float:
        raise NotImplementedError

    def update(self, raw) -> np.ndarray:
        """Move the anchor toward ``raw`` and return the new position."""
        raw = np.asarray(raw, dtype=np.float64)[:2]
        if self._value is None:
            self._value = raw.copy()
            return self._value.copy()

        factor = self.factor_for(raw)
        self._value = self._value + (raw - self._value) * factor
        return self._value.copy()

    def reset(self, point=None):
        """Re-anchor to ``point``, or clear the anchor when point is None."""
        if point is None:
            self._value = None
        else:
            self._value = np.asarray(point, dtype=np.float64)[:2].copy()

    def clear(self):
        self._value = None

    @property
    def value(self) -> Optional[np.ndarray]:
        return None if self._value is None else self._value.copy()

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def __repr__(self):
        return f"{type(self).__name__}({self._name}, value={self._value})"


class AdaptiveAnchor(SmoothingAnchor):
    """Anchor whose factor scales with the distance to the new sample."""

    def __init__(self, name: str, min_factor: float, max_factor: float, gain: float):
        super().__init__(name)
        self._min_factor = min_factor
        self._max_factor = max_factor
        self._gain = gain

    def factor_for(self, raw: np.ndarray) -> float:
        delta = float(np.linalg.norm(raw - self._value))
        return min(self._max_factor, max(self._min_factor, delta * self._gain))


class FixedAnchor(SmoothingAnchor):
    """Anchor with a constant factor."""

    def __init__(self, name: str, factor: float):
        super().__init__(name)
        self._factor = factor

    def factor_for(self, raw: np.ndarray) -> float:
        return self._factor


class SignalSmoother:
    """Owns the pinch and two-finger anchors for a session.

    Built from the ``smoothing`` config section.
    """

    def __init__(self, config: dict):
        self.pinch = AdaptiveAnchor(
            "pinch",
            min_factor=config["adaptive_min_factor"],
            max_factor=config["adaptive_max_factor"],
            gain=config["adaptive_gain"],
        )
        self.two_finger = FixedAnchor("two_finger", factor=config["fixed_factor"])
        logger.debug("SignalSmoother ready (adaptive %.2f..%.2f gain=%.1f, fixed %.2f)",
                     config["adaptive_min_factor"], config["adaptive_max_factor"],
                     config["adaptive_gain"], config["fixed_factor"])

    def reset(self):
        """Clear both anchors."""
        self.pinch.clear()
        self.two_finger.clear()
