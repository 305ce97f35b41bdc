#!/usr/bin/env python3
"""
handorbit - hand-gesture control for an interactive 3D viewer.

Runs the producer loop (frames -> gestures -> control record) and the render
loop (control record -> smoothed model pose) side by side and logs what they
do.

Usage:
    python main.py                                  # live camera
    python main.py --record session.jsonl           # live camera, record frames
    python main.py --source replay --input session.jsonl [--loop] [--realtime]
"""

import sys
import time
import signal
import argparse
import logging

from handorbit import __version__
from handorbit.core.events import EventBus, Events
from handorbit.core.loops import ProducerLoop, RenderLoop
from handorbit.core.pipeline import Pipeline
from handorbit.control.viewer_rig import ViewerRig
from handorbit.utils.config import Config, ConfigError
from handorbit.utils.logger import setup_logging, GestureLogger
from handorbit.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class HandOrbitApp:
    """Wires config, frame source, pipeline and both loops together."""

    def __init__(self, config: Config, source, record_path: str = None):
        self._config = config
        self._source = source
        self._running = False

        self._bus = EventBus()
        self._pipeline = Pipeline.from_config(config, event_bus=self._bus)

        self._gesture_logger = GestureLogger()
        self._bus.subscribe(Events.GESTURE_CLASSIFIED, self._gesture_logger.on_gesture)

        self._recorder = None
        if record_path:
            from handorbit.capture.replay import FrameRecorder
            self._recorder = FrameRecorder(record_path)
            self._bus.subscribe(Events.FRAME_RECEIVED, self._recorder.on_frame)

        viewer_cfg = config.viewer
        self._rig = ViewerRig(viewer_cfg)
        self._producer = ProducerLoop(source, self._pipeline)
        self._renderer = RenderLoop(
            self._pipeline.channel,
            self._rig,
            target_fps=viewer_cfg["target_fps"],
            performance_monitor=PerformanceMonitor(
                "render", window_size=config.get("performance.metrics_window", 100)
            ),
        )
        self._report_interval = config.get("performance.report_interval_sec", 10)

    def run(self):
        self._pipeline.reset()
        self._running = True
        self._bus.emit(Events.SYSTEM_STARTED)
        self._producer.start()
        self._renderer.start()

        last_report = time.time()
        while self._running and self._producer.is_alive():
            time.sleep(0.1)
            if self._report_interval and time.time() - last_report >= self._report_interval:
                self._log_status()
                last_report = time.time()

        self._shutdown()
        return self._producer.error is None and self._renderer.error is None

    def _log_status(self):
        pose = self._rig.pose
        logger.info(
            "Gesture=%s | pose pitch=%.2f yaw=%.2f scale=%.2f pos=(%.2f, %.2f) | "
            "producer %.1f Hz, render %.1f Hz",
            self._pipeline.current_label.value,
            pose.pitch, pose.yaw, pose.scale, pose.x, pose.y,
            self._pipeline.performance.rate, self._renderer.performance.rate,
        )

    def _shutdown(self):
        logger.info("Shutting down...")
        self._running = False
        self._producer.stop()
        self._renderer.stop()
        self._producer.join(timeout=2.0)
        self._renderer.join(timeout=2.0)
        self._bus.emit(Events.SYSTEM_SHUTDOWN)

        close = getattr(self._source, "close", None)
        if close is not None:
            close()
        if self._recorder is not None:
            self._recorder.close()

        self._pipeline.performance.print_report()
        self._renderer.performance.print_report()
        logger.info("Gesture transitions: %d over %d cycles",
                    self._gesture_logger.total_transitions,
                    self._gesture_logger.cycles_observed)
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def build_source(args, config: Config):
    if args.source == "replay":
        from handorbit.capture.replay import ReplayFrameSource
        return ReplayFrameSource.from_file(args.input, loop=args.loop, realtime=args.realtime)

    from handorbit.capture.camera_source import CameraFrameSource
    source = CameraFrameSource.from_config(config)
    if not source.open():
        return None
    return source


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="handorbit - hand-gesture control for a 3D viewer"
    )
    parser.add_argument(
        "--source", choices=["camera", "replay"], default="camera",
        help="Where hand frames come from"
    )
    parser.add_argument("--input", type=str, default=None,
                        help="Recording to replay (--source replay)")
    parser.add_argument("--loop", action="store_true", help="Loop the replay")
    parser.add_argument("--realtime", action="store_true",
                        help="Replay at the recorded cadence")
    parser.add_argument("--record", type=str, default=None,
                        help="Write received frames to this JSON-lines file")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--camera", type=int, default=None, help="Camera device ID")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")
    args = parser.parse_args(argv)
    if args.source == "replay" and not args.input:
        parser.error("--source replay requires --input")
    return args


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    try:
        config.load(config_path=args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if args.camera is not None:
        config.set("camera.device_id", args.camera)

    log_cfg = config.logging
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  HANDORBIT %s", __version__)
    logger.info("  Source: %s", args.source)
    logger.info("=" * 60)

    source = build_source(args, config)
    if source is None:
        logger.error("Failed to open camera. Check connection and permissions.")
        return 1

    app = HandOrbitApp(config, source, record_path=args.record)
    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.run() else 1


if __name__ == "__main__":
    sys.exit(main())
