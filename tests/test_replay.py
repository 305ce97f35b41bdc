"""
Tests for frame recording and replay
====================================
"""

import json

import pytest
import numpy as np

from handorbit.capture.replay import (
    FrameRecorder, ReplayFrameSource, frame_from_dict, frame_to_dict, load_frames,
)
from handorbit.core.types import Frame, Handedness

from conftest import ALL_FINGERS, create_mock_hand, make_frame


@pytest.fixture
def recording(tmp_path):
    path = str(tmp_path / "session" / "frames.jsonl")
    frames = [
        make_frame(create_mock_hand("Left", extended=ALL_FINGERS), frame_id=1),
        make_frame(frame_id=2),
        make_frame(create_mock_hand("Left", extended=()),
                   create_mock_hand("Right", wrist=(0.8, 0.8), pinch_at=(0.7, 0.4)),
                   frame_id=3),
    ]
    with FrameRecorder(path) as recorder:
        for frame in frames:
            recorder.write(frame)
        assert recorder.count == 3
    return path, frames


class TestRecording:

    def test_recorded_frames_load_back(self, recording):
        path, original = recording
        loaded = load_frames(path)

        assert [f.hand_count for f in loaded] == [1, 0, 2]
        assert loaded[2].right is not None
        np.testing.assert_allclose(loaded[2].right.landmarks, original[2].right.landmarks, atol=1e-6)

    def test_line_format(self, recording):
        path, _ = recording
        with open(path) as f:
            first = json.loads(f.readline())
        assert first["frame_id"] == 1
        assert first["hands"][0]["handedness"] == "Left"
        assert len(first["hands"][0]["landmarks"]) == 21

    def test_malformed_lines_skipped(self, recording, caplog):
        path, _ = recording
        with open(path, "a") as f:
            f.write("not json\n")
            f.write('{"hands": [{"handedness": "Middle", "landmarks": []}]}\n')
            f.write('{"hands": [{"handedness": "Left", "landmarks": [[0, 0, 0]]}]}\n')
            f.write("\n")
        assert len(load_frames(path)) == 3
        assert caplog.text.count("skipping malformed frame") == 3

    def test_non_object_lines_skipped(self, recording, caplog):
        path, _ = recording
        with open(path, "a") as f:
            f.write("42\n")
            f.write('{"hands": [7]}\n')
            f.write('{"hands": [{"handedness": 5, "landmarks": []}]}\n')
            f.write('{"frame_id": 9, "timestamp": "late", "hands": []}\n')
        assert len(load_frames(path)) == 3
        assert caplog.text.count("skipping malformed frame") == 4

    def test_undecodable_line_skipped(self, recording, caplog):
        path, _ = recording
        with open(path, "ab") as f:
            f.write(b"\xff\xfe\n")
            f.write(b'{"frame_id": 4, "hands": []}\n')
        frames = load_frames(path)
        assert [f.frame_id for f in frames] == [1, 2, 3, 4]
        assert "skipping malformed frame" in caplog.text

    def test_from_dict_rejects_duplicate_hands(self):
        hand = frame_to_dict(make_frame(create_mock_hand("Right")))["hands"][0]
        with pytest.raises(ValueError):
            frame_from_dict({"frame_id": 1, "hands": [hand, hand]})

    def test_recorder_as_frame_observer(self, tmp_path):
        path = str(tmp_path / "observer.jsonl")
        recorder = FrameRecorder(path)
        recorder.on_frame(frame=Frame(frame_id=4))
        recorder.close()
        recorder.close()
        assert len(load_frames(path)) == 1


class TestReplaySource:

    def test_plays_in_order_then_exhausts(self, recording):
        path, _ = recording
        source = ReplayFrameSource.from_file(path)
        assert len(source) == 3

        counts = [source.read().hand_count for _ in range(3)]
        assert counts == [1, 0, 2]
        assert source.exhausted
        assert source.read() is None

    def test_frame_ids_renumbered(self, recording):
        path, _ = recording
        frames = list(ReplayFrameSource.from_file(path))
        assert [f.frame_id for f in frames] == [1, 2, 3]

    def test_loop_never_exhausts(self, recording):
        path, _ = recording
        source = ReplayFrameSource.from_file(path, loop=True)
        frames = [source.read() for _ in range(7)]

        assert all(f is not None for f in frames)
        assert [f.hand_count for f in frames] == [1, 0, 2, 1, 0, 2, 1]
        assert frames[-1].frame_id == 7
        assert not source.exhausted

    def test_empty_source(self):
        source = ReplayFrameSource([])
        assert source.read() is None
        assert source.exhausted

    def test_empty_looping_source_is_exhausted(self):
        source = ReplayFrameSource([], loop=True)
        assert source.read() is None
        assert source.exhausted

    def test_handedness_preserved(self, recording):
        path, _ = recording
        frame = list(ReplayFrameSource.from_file(path))[0]
        assert frame.hands[0].handedness is Handedness.LEFT
