"""
handorbit - hand-gesture control signals for an interactive 3D viewer.

Turns per-frame hand landmarks into a smoothed rotation/zoom/drag control
state shared between an inference-driven producer and a render-driven
consumer.
"""

__version__ = "1.0.0"
