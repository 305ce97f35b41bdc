"""
Tests for shared types and landmark geometry
============================================
"""

import pytest
import numpy as np

from handorbit.core.types import (
    ControlState, Frame, GestureLabel, Handedness, HandObservation,
)
from handorbit.detection.landmarks import distance, finger_states, midpoint

from conftest import ALL_FINGERS, create_mock_hand


class TestHandObservation:

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            HandObservation(Handedness.LEFT, np.zeros((20, 3)))

    def test_handedness_checked(self):
        with pytest.raises(ValueError):
            HandObservation("Left", np.zeros((21, 3)))

    def test_point_is_planar(self):
        hand = create_mock_hand("Right", wrist=(0.4, 0.6))
        np.testing.assert_allclose(hand.point(0), [0.4, 0.6])


class TestFrame:

    def test_lookup_by_handedness(self):
        left = create_mock_hand("Left")
        frame = Frame([left], frame_id=2, timestamp=0.0)
        assert frame.left is left
        assert frame.right is None
        assert frame.hand_count == 1

    def test_one_hand_per_side(self):
        with pytest.raises(ValueError):
            Frame([create_mock_hand("Right"), create_mock_hand("Right")])

    def test_timestamp_defaults_to_now(self):
        assert Frame().timestamp > 0


class TestEnums:

    def test_from_label(self):
        assert Handedness.from_label("left") is Handedness.LEFT
        assert Handedness.from_label(" RIGHT ") is Handedness.RIGHT
        assert Handedness.from_label("") is None
        assert Handedness.from_label(None) is None
        assert Handedness.from_label(5) is None

    def test_zoom_labels(self):
        assert GestureLabel.ZOOM_IN_PALM.is_zoom
        assert GestureLabel.ZOOM_OUT_FIST.is_zoom
        assert not GestureLabel.LEFT_TWO_FINGER_ROTATE.is_zoom

    def test_control_state_is_immutable(self):
        state = ControlState.rest()
        with pytest.raises(AttributeError):
            state.zoom_speed = 1.0


class TestLandmarkGeometry:

    def test_distance_ignores_depth(self):
        assert distance([0, 0, 5.0], [3, 4, -2.0]) == pytest.approx(5.0)

    def test_midpoint(self):
        np.testing.assert_allclose(midpoint([0, 0, 1], [1, 2, 3]), [0.5, 1.0])

    def test_finger_states(self):
        states = finger_states(create_mock_hand("Left", extended=("index", "pinky")).landmarks)
        assert states == {"index": True, "middle": False, "ring": False, "pinky": True}

    def test_all_extended(self):
        states = finger_states(create_mock_hand("Right", extended=ALL_FINGERS).landmarks)
        assert all(states.values())
