"""
MediaPipe Hands wrapper producing Frames of HandObservations.
"""

import logging
from typing import List, Optional
import cv2
import numpy as np
import mediapipe as mp

from handorbit.core.types import Frame, Handedness, HandObservation, NUM_LANDMARKS
from handorbit.utils.logger import log_timing

logger = logging.getLogger(__name__)


class HandDetector:
    """Two-hand landmark detection with MediaPipe Hands.

    Built from the ``mediapipe`` config section.
    """

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 0)
        self._max_hands = config.get("max_num_hands", 2)
        self._min_detect_conf = config.get("min_detection_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._mp_hands = mp.solutions.hands
        self._hands = None
        self._initialized = False

    def initialize(self):
        """Create the MediaPipe Hands solution."""
        self._hands = self._mp_hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=self._max_hands,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._max_hands,
            self._min_detect_conf, self._min_track_conf,
        )

    @log_timing
    def detect(self, bgr_frame: np.ndarray):
        """Run the hand model on a BGR image; returns the raw MediaPipe results."""
        if not self._initialized:
            self.initialize()

        rgb = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        return self._hands.process(rgb)

    @staticmethod
    def to_frame(results, frame_id: int = 0, timestamp: Optional[float] = None,
                 mirrored: bool = False) -> Frame:
        """Convert MediaPipe results into a Frame.

        Keeps at most one observation per handedness (the higher-scoring one
        when the engine labels both hands the same). With ``mirrored`` the
        image was flipped before detection; x is flipped back so landmarks
        are in camera coordinates, while the labels stay as detected.
        """
        best = {}
        hand_landmarks = getattr(results, "multi_hand_landmarks", None) or []
        handedness = getattr(results, "multi_handedness", None) or []

        for landmarks, classification in zip(hand_landmarks, handedness):
            category = classification.classification[0]
            hand = Handedness.from_label(category.label)
            if hand is None:
                logger.debug("Skipping hand with unknown label %r", category.label)
                continue
            points = landmarks_to_array(landmarks)
            if points is None:
                continue
            if mirrored:
                points[:, 0] = 1.0 - points[:, 0]
            observation = HandObservation(hand, points, score=category.score)
            current = best.get(hand)
            if current is None or observation.score > current.score:
                best[hand] = observation

        return Frame(best.values(), frame_id=frame_id, timestamp=timestamp)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()


def landmarks_to_array(hand_landmarks) -> Optional[np.ndarray]:
    """NormalizedLandmarkList -> (21, 3) array, or None if incomplete."""
    points: List = [(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark]
    if len(points) != NUM_LANDMARKS:
        logger.warning("Expected %d landmarks, got %d", NUM_LANDMARKS, len(points))
        return None
    return np.asarray(points, dtype=np.float64)
