"""
Live FrameSource: webcam capture plus MediaPipe hand detection.
"""

import logging
from typing import Optional

from handorbit.core.types import Frame
from handorbit.capture.camera_manager import CameraManager
from handorbit.detection.hand_detector import HandDetector

logger = logging.getLogger(__name__)


class CameraFrameSource:
    """Runs detection on the newest camera image, once per new image.

    ``read()`` returns None when the camera has not produced a new image
    since the last call, or when the camera is not open.
    """

    def __init__(self, camera: CameraManager, detector: HandDetector):
        self._camera = camera
        self._detector = detector
        self._last_frame_id = None

    @classmethod
    def from_config(cls, config) -> 'CameraFrameSource':
        return cls(CameraManager(config.camera), HandDetector(config.mediapipe))

    def open(self) -> bool:
        if not self._camera.open():
            return False
        self._camera.start_async()
        self._detector.initialize()
        logger.info("Camera frame source ready")
        return True

    def read(self) -> Optional[Frame]:
        captured = self._camera.latest() if self._camera.is_async else self._camera.grab()
        if captured is None or captured.frame_id == self._last_frame_id:
            return None
        self._last_frame_id = captured.frame_id

        results = self._detector.detect(captured.image)
        return HandDetector.to_frame(results, frame_id=captured.frame_id,
                                     timestamp=captured.timestamp,
                                     mirrored=self._camera.mirrored)

    def close(self):
        self._camera.stop()
        self._detector.close()

    @property
    def exhausted(self) -> bool:
        return False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()
