"""
Recording and replaying hand frames as JSON lines.

One line per frame:

    {"frame_id": 12, "timestamp": 1712.5,
     "hands": [{"handedness": "Right", "score": 0.97, "landmarks": [[x, y, z], ...]}]}

Recordings let the control path be exercised without a camera.
"""

import os
import json
import time
import logging
from typing import Iterator, List, Optional

from handorbit.core.types import Frame, Handedness, HandObservation
from handorbit.utils.logger import log_timing

logger = logging.getLogger(__name__)


def frame_to_dict(frame: Frame) -> dict:
    return {
        "frame_id": frame.frame_id,
        "timestamp": frame.timestamp,
        "hands": [
            {
                "handedness": hand.handedness.value,
                "score": round(hand.score, 4),
                "landmarks": [[round(float(v), 6) for v in point] for point in hand.landmarks],
            }
            for hand in frame.hands
        ],
    }


def frame_from_dict(data: dict) -> Frame:
    """Inverse of frame_to_dict. Raises ValueError on malformed data."""
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    hands = []
    for entry in data.get("hands", []):
        if not isinstance(entry, dict):
            raise ValueError(f"Expected a hand object, got {type(entry).__name__}")
        handedness = Handedness.from_label(entry.get("handedness", ""))
        if handedness is None:
            raise ValueError(f"Unknown handedness {entry.get('handedness')!r}")
        hands.append(HandObservation(handedness, entry["landmarks"], entry.get("score", 1.0)))
    timestamp = data.get("timestamp")
    return Frame(hands, frame_id=int(data.get("frame_id", 0)),
                 timestamp=None if timestamp is None else float(timestamp))


class FrameRecorder:
    """Appends frames to a JSON-lines file.

    Subscribe ``on_frame`` to ``Events.FRAME_RECEIVED`` to record a live
    session.
    """

    def __init__(self, path: str):
        self._path = path
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._file = open(path, "w", encoding="utf-8")
        self._count = 0
        logger.info("Recording frames to %s", path)

    def write(self, frame: Frame):
        self._file.write(json.dumps(frame_to_dict(frame)) + "\n")
        self._count += 1

    def on_frame(self, frame, **_):
        self.write(frame)

    def close(self):
        if not self._file.closed:
            self._file.close()
            logger.info("Recorded %d frames to %s", self._count, self._path)

    @property
    def count(self) -> int:
        return self._count

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@log_timing
def load_frames(path: str) -> List[Frame]:
    """Read every valid frame from a recording; bad lines are logged and skipped."""
    frames = []
    with open(path, "rb") as f:
        for line_no, raw in enumerate(f, start=1):
            if not raw.strip():
                continue
            try:
                frames.append(frame_from_dict(json.loads(raw.decode("utf-8"))))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("%s:%d: skipping malformed frame (%s)", path, line_no, e)
    logger.info("Loaded %d frames from %s", len(frames), path)
    return frames


class ReplayFrameSource:
    """FrameSource over a recording.

    Args:
        frames: frames to replay, in order
        loop: start over at the end instead of becoming exhausted
        realtime: sleep between frames to reproduce the recorded cadence
    """

    def __init__(self, frames: List[Frame], loop: bool = False, realtime: bool = False):
        self._frames = list(frames)
        self._loop = loop
        self._realtime = realtime
        self._index = 0
        self._emitted = 0
        self._last_timestamp: Optional[float] = None

    @classmethod
    def from_file(cls, path: str, loop: bool = False, realtime: bool = False) -> 'ReplayFrameSource':
        return cls(load_frames(path), loop=loop, realtime=realtime)

    def read(self) -> Optional[Frame]:
        if not self._frames:
            return None
        if self._index >= len(self._frames):
            if not self._loop:
                return None
            self._index = 0
            self._last_timestamp = None

        recorded = self._frames[self._index]
        self._index += 1

        if self._realtime and self._last_timestamp is not None:
            gap = recorded.timestamp - self._last_timestamp
            if 0 < gap < 1.0:
                time.sleep(gap)
        self._last_timestamp = recorded.timestamp

        self._emitted += 1
        return Frame(recorded.hands, frame_id=self._emitted, timestamp=time.time())

    def __iter__(self) -> Iterator[Frame]:
        while True:
            frame = self.read()
            if frame is None:
                return
            yield frame

    @property
    def exhausted(self) -> bool:
        if not self._frames:
            return True
        return not self._loop and self._index >= len(self._frames)

    def __len__(self):
        return len(self._frames)
