"""Gesture classification and signal smoothing."""

from handorbit.recognition.gesture_classifier import GestureClassifier, Classification
from handorbit.recognition.signal_smoother import SignalSmoother

__all__ = ["GestureClassifier", "Classification", "SignalSmoother"]
