"""
21-point hand landmark indices and the planar geometry the classifier uses.

All measurements are taken in the normalized image plane (x, y); the
engine's z is depth relative to each hand's own wrist and is not comparable
across hands, so it is ignored here.
"""

import numpy as np

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

# (tip, proximal joint) per non-thumb finger
FINGER_TIP_PIP = {
    "index":  (INDEX_TIP, INDEX_PIP),
    "middle": (MIDDLE_TIP, MIDDLE_PIP),
    "ring":   (RING_TIP, RING_PIP),
    "pinky":  (PINKY_TIP, PINKY_PIP),
}


def distance(p1: np.ndarray, p2: np.ndarray) -> float:
    """Euclidean distance between two points in the image plane."""
    return float(np.linalg.norm(np.asarray(p1)[:2] - np.asarray(p2)[:2]))


def midpoint(p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    return (np.asarray(p1)[:2] + np.asarray(p2)[:2]) / 2.0


def finger_states(landmarks: np.ndarray) -> dict:
    """Which of index/middle/ring/pinky are extended.

    A finger counts as extended when its tip is above its PIP joint
    (smaller y, image y grows downward). This assumes an upright hand facing
    the camera; for a sideways or inverted hand the result is not
    meaningful.

    Returns:
        dict with finger names -> bool (True = extended)
    """
    return {
        name: bool(landmarks[tip][1] < landmarks[pip][1])
        for name, (tip, pip) in FINGER_TIP_PIP.items()
    }
