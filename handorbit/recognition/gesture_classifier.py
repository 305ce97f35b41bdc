"""
Rule-based gesture classifier for the two-hand viewer controls.

One frame in, one Classification out. Rules are evaluated as an ordered
decision table and the order is the arbitration policy:

    1. dual-hand contact (wrists together, with hysteresis)
    2. right hand: pinch -> drag
    3. left hand:  two touching fingers -> rotate,
                   open palm -> zoom in, fist -> zoom out

Contact supersedes everything for the frame. The only state carried between
frames is the contact flag; smoothing and rate integration happen
downstream.
"""

import logging
from typing import Optional
import numpy as np

from handorbit.core.types import Frame, GestureLabel, HandObservation
from handorbit.detection.landmarks import (
    WRIST, THUMB_TIP, INDEX_TIP, MIDDLE_TIP,
    distance, midpoint, finger_states,
)

logger = logging.getLogger(__name__)


class ContactHysteresis:
    """Wrist-contact flag with separate enter and exit thresholds."""

    def __init__(self, enter_threshold: float, exit_multiplier: float):
        self.enter_threshold = enter_threshold
        self.exit_threshold = enter_threshold * exit_multiplier
        self.in_contact = False

    def update(self, wrist_distance: float) -> bool:
        if self.in_contact:
            if wrist_distance > self.exit_threshold:
                self.in_contact = False
                logger.debug("Hand contact released (%.3f > %.3f)",
                             wrist_distance, self.exit_threshold)
        elif wrist_distance < self.enter_threshold:
            self.in_contact = True
            logger.debug("Hand contact entered (%.3f < %.3f)",
                         wrist_distance, self.enter_threshold)
        return self.in_contact

    def reset(self):
        self.in_contact = False


class Classification:
    """Classifier output for one frame: labels plus raw (unsmoothed) geometry."""

    __slots__ = (
        "label", "is_dragging", "in_contact", "hand_count",
        "right_gesture", "left_gesture",
        "pinch_midpoint", "right_wrist", "two_finger_midpoint",
        "wrist_distance",
    )

    def __init__(self):
        self.label = GestureLabel.NONE
        self.is_dragging = False
        self.in_contact = False
        self.hand_count = 0
        # Per-hand results; None when that hand was not evaluated
        self.right_gesture: Optional[GestureLabel] = None
        self.left_gesture: Optional[GestureLabel] = None
        self.pinch_midpoint: Optional[np.ndarray] = None
        self.right_wrist: Optional[np.ndarray] = None
        self.two_finger_midpoint: Optional[np.ndarray] = None
        self.wrist_distance: Optional[float] = None

    def __repr__(self):
        return (f"Classification({self.label.value}, dragging={self.is_dragging}, "
                f"hands={self.hand_count})")


class GestureClassifier:
    """Classifies a Frame into a GestureLabel using landmark geometry.

    Built from the ``recognition`` config section.
    """

    def __init__(self, config: dict):
        self._pinch_threshold = config["pinch_threshold"]
        self._finger_contact_threshold = config["finger_contact_threshold"]
        self._contact = ContactHysteresis(
            config["contact_enter_threshold"], config["contact_exit_multiplier"]
        )

    def classify(self, frame: Frame) -> Classification:
        result = Classification()
        result.hand_count = frame.hand_count
        left, right = frame.left, frame.right

        # --- 1. Dual-hand contact ---
        if left is not None and right is not None:
            result.wrist_distance = distance(left.point(WRIST), right.point(WRIST))
            if self._contact.update(result.wrist_distance):
                result.in_contact = True
                result.label = GestureLabel.DUAL_HAND_CONTACT
                return result
        else:
            # Contact needs both wrists; a dropped hand ends it
            self._contact.reset()

        # --- 2. Right hand ---
        if right is not None:
            self._classify_right(right, result)

        # --- 3. Left hand ---
        if left is not None:
            self._classify_left(left, result)

        if result.left_gesture not in (None, GestureLabel.NONE):
            result.label = result.left_gesture
        elif result.is_dragging:
            result.label = GestureLabel.RIGHT_PINCH_DRAG
        return result

    def _classify_right(self, hand: HandObservation, result: Classification):
        thumb_tip = hand.point(THUMB_TIP)
        index_tip = hand.point(INDEX_TIP)
        result.right_wrist = hand.point(WRIST).copy()

        if distance(thumb_tip, index_tip) < self._pinch_threshold:
            result.right_gesture = GestureLabel.RIGHT_PINCH_DRAG
            result.is_dragging = True
            result.pinch_midpoint = midpoint(thumb_tip, index_tip)
        else:
            result.right_gesture = GestureLabel.NONE

    def _classify_left(self, hand: HandObservation, result: Classification):
        states = finger_states(hand.landmarks)
        index_tip = hand.point(INDEX_TIP)
        middle_tip = hand.point(MIDDLE_TIP)
        d_im = distance(index_tip, middle_tip)
        touching = d_im < self._finger_contact_threshold

        if states["index"] and states["middle"] and touching:
            result.left_gesture = GestureLabel.LEFT_TWO_FINGER_ROTATE
            result.two_finger_midpoint = midpoint(index_tip, middle_tip)
        elif all(states.values()) and not touching:
            result.left_gesture = GestureLabel.ZOOM_IN_PALM
        elif not any(states.values()):
            result.left_gesture = GestureLabel.ZOOM_OUT_FIST
        else:
            result.left_gesture = GestureLabel.NONE

    def reset(self):
        """Forget the cached contact flag."""
        self._contact.reset()

    @property
    def in_contact(self) -> bool:
        return self._contact.in_contact
