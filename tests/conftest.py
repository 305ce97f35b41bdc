"""
Shared fixtures and a synthetic hand factory.

Landmarks are laid out for an upright hand facing the camera: fingers point
toward smaller y. Distances are chosen well away from the default
thresholds (pinch 0.05, finger contact 0.06).
"""

import pytest
import numpy as np

from handorbit.core.types import Frame, Handedness, HandObservation
from handorbit.core.events import EventBus
from handorbit.core.channel import ControlChannel
from handorbit.core.pipeline import Pipeline
from handorbit.recognition.gesture_classifier import GestureClassifier
from handorbit.recognition.signal_smoother import SignalSmoother
from handorbit.control.motion_integrator import MotionIntegrator
from handorbit.utils.config import Config, default_section

ALL_FINGERS = ("index", "middle", "ring", "pinky")

# x offset of each finger column from the wrist
_FINGER_X = {"index": -0.07, "middle": 0.0, "ring": 0.06, "pinky": 0.11}
_FINGER_BASE = {"index": 5, "middle": 9, "ring": 13, "pinky": 17}


def create_mock_hand(handedness="Right", extended=(), wrist=(0.5, 0.8),
                     pinch_at=None, touching=False, shift=(0.0, 0.0), score=0.95):
    """Build a HandObservation.

    Args:
        handedness: "Left"/"Right" or Handedness
        extended: names of extended fingers (index/middle/ring/pinky)
        wrist: wrist position before ``shift``
        pinch_at: if given, thumb tip and index tip straddle this point
            0.02 apart (a pinch centered on it)
        touching: put the middle tip 0.02 right of the index tip
        shift: translate the whole hand
    """
    if isinstance(handedness, str):
        handedness = Handedness(handedness)
    wx, wy = wrist
    lm = np.zeros((21, 3))
    lm[0] = [wx, wy, 0.0]

    # Thumb, curled across the palm side
    lm[1] = [wx - 0.05, wy - 0.03, 0.0]
    lm[2] = [wx - 0.09, wy - 0.06, 0.0]
    lm[3] = [wx - 0.12, wy - 0.09, 0.0]
    lm[4] = [wx - 0.14, wy - 0.12, 0.0]

    for name in ALL_FINGERS:
        base = _FINGER_BASE[name]
        x = wx + _FINGER_X[name]
        up = name in extended
        lm[base] = [x, wy - 0.10, 0.0]                             # MCP
        lm[base + 1] = [x, wy - 0.15, 0.0]                         # PIP
        lm[base + 2] = [x, wy - (0.19 if up else 0.13), 0.0]       # DIP
        lm[base + 3] = [x, wy - (0.23 if up else 0.11), 0.0]       # TIP

    if touching:
        lm[12, 0] = lm[8, 0] + 0.02
        lm[12, 1] = lm[8, 1]

    if pinch_at is not None:
        px, py = pinch_at
        lm[4] = [px - 0.01 - shift[0], py - shift[1], 0.0]
        lm[8] = [px + 0.01 - shift[0], py - shift[1], 0.0]

    lm[:, 0] += shift[0]
    lm[:, 1] += shift[1]
    return HandObservation(handedness, lm, score=score)


def make_frame(*hands, frame_id=0):
    return Frame(hands, frame_id=frame_id, timestamp=float(frame_id))


def two_finger_midpoint(hand: HandObservation) -> np.ndarray:
    return (hand.landmarks[8, :2] + hand.landmarks[12, :2]) / 2.0


@pytest.fixture
def recognition_cfg():
    return default_section("recognition")


@pytest.fixture
def smoothing_cfg():
    return default_section("smoothing")


@pytest.fixture
def motion_cfg():
    return default_section("motion")


@pytest.fixture
def classifier(recognition_cfg):
    return GestureClassifier(recognition_cfg)


@pytest.fixture
def integrator(motion_cfg, smoothing_cfg):
    return MotionIntegrator(motion_cfg, SignalSmoother(smoothing_cfg))


@pytest.fixture
def pipeline(classifier, integrator):
    return Pipeline(classifier, integrator, channel=ControlChannel(), event_bus=EventBus())


@pytest.fixture
def fresh_config():
    """Config singleton with defaults only, reset afterwards."""
    Config.reset()
    yield Config()
    Config.reset()
