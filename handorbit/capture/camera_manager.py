"""
Webcam capture feeding the live frame source.

Hand detection is slower than the camera, so images are never queued: a
background thread keeps overwriting one slot and the producer picks up
whatever is newest when it is ready for more. Each stored image gets a
sequence number so the producer can tell a new image from one it has
already processed.
"""

import time
import logging
import threading
from typing import NamedTuple, Optional
import cv2
import numpy as np

logger = logging.getLogger(__name__)

_BACKENDS = {
    "auto": cv2.CAP_ANY,
    "v4l2": cv2.CAP_V4L2,
    "dshow": cv2.CAP_DSHOW,
    "gstreamer": cv2.CAP_GSTREAMER,
}

# (OpenCV property, camera config key)
_CAPTURE_PROPERTIES = (
    (cv2.CAP_PROP_FRAME_WIDTH, "width"),
    (cv2.CAP_PROP_FRAME_HEIGHT, "height"),
    (cv2.CAP_PROP_FPS, "fps"),
    (cv2.CAP_PROP_BUFFERSIZE, "buffer_size"),
)


class CapturedImage(NamedTuple):
    frame_id: int
    image: np.ndarray
    timestamp: float


class CameraManager:
    """One camera device plus an optional capture thread.

    Built from the ``camera`` config section. Images are mirrored when
    ``flip_horizontal`` is set, which is what the handedness labels of the
    hand model expect for a selfie view. Landmark x is mapped back to the
    unmirrored image by the detector, see ``HandDetector.to_frame``.
    """

    def __init__(self, config: dict):
        self._config = dict(config)
        self._device_id = self._config["device_id"]
        self._mirror = self._config["flip_horizontal"]

        self._capture: Optional[cv2.VideoCapture] = None
        self._latest: Optional[CapturedImage] = None
        self._sequence = 0
        self._slot_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None
        self._failed_reads = 0

    def open(self) -> bool:
        """Open and configure the device. Returns False when it is unavailable."""
        backend_name = self._config.get("backend", "auto")
        backend = _BACKENDS.get(backend_name)
        if backend is None:
            logger.warning("Unknown camera backend '%s', using auto", backend_name)
            backend = cv2.CAP_ANY

        capture = cv2.VideoCapture(self._device_id, backend)
        if not capture.isOpened():
            logger.error("Camera %s could not be opened (backend %s)",
                         self._device_id, backend_name)
            return False

        for prop, key in _CAPTURE_PROPERTIES:
            if key in self._config:
                capture.set(prop, self._config[key])

        logger.info("Camera %s: %dx%d at %s fps requested, %dx%d delivered",
                    self._device_id,
                    self._config.get("width", 0), self._config.get("height", 0),
                    self._config.get("fps", "?"),
                    int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)))

        # Auto-exposure settles during the first few reads
        for _ in range(self._config.get("warmup_frames", 0)):
            capture.read()

        self._capture = capture
        return True

    def start_async(self):
        """Keep the newest image in the slot from a daemon thread."""
        if self._capture is None or self.is_async:
            return
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._run, name="camera", daemon=True)
        self._worker.start()
        logger.info("Camera capture thread started")

    def _run(self):
        while not self._stop_event.is_set():
            captured = self._read_device()
            if captured is None:
                self._stop_event.wait(0.005)
                continue
            with self._slot_lock:
                self._latest = captured

    def _read_device(self) -> Optional[CapturedImage]:
        ok, image = self._capture.read()
        if not ok or image is None:
            self._failed_reads += 1
            if self._failed_reads % 100 == 1:
                logger.warning("Camera read failed (%d failures)", self._failed_reads)
            return None
        if self._mirror:
            image = cv2.flip(image, 1)
        self._sequence += 1
        return CapturedImage(self._sequence, image, time.time())

    def latest(self) -> Optional[CapturedImage]:
        """Newest image from the capture thread, or None before the first one."""
        with self._slot_lock:
            return self._latest

    def grab(self) -> Optional[CapturedImage]:
        """Read straight from the device on the calling thread."""
        if self._capture is None:
            return None
        return self._read_device()

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    @property
    def is_async(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    @property
    def failed_reads(self) -> int:
        return self._failed_reads

    @property
    def mirrored(self) -> bool:
        """Whether images come out flipped left-to-right."""
        return self._mirror

    def stop(self):
        """Stop the capture thread and release the device."""
        self._stop_event.set()
        if self._worker is not None:
            self._worker.join(timeout=2.0)
            self._worker = None
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Camera %s released", self._device_id)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
