"""
Configuration for handorbit.

``config/config.yaml`` is read with PyYAML and laid over the built-in
defaults below, section by section, so a file only needs the keys it
changes. Every gesture threshold, smoothing factor and scale has its one
default here; recognition and control code is handed a section and reads
its keys directly.

Usage:
    config = Config().load()
    config.get("recognition.pinch_threshold")
    GestureClassifier(config.recognition)
"""

import os
import copy
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_CONFIG_PATH = os.path.join(_BASE_DIR, "config", "config.yaml")


class ConfigError(ValueError):
    """Raised when a configuration value breaks a control invariant."""


_DEFAULTS = {
    "system": {
        "name": "handorbit",
        "version": "1.0.0",
    },
    "camera": {
        "device_id": 0,
        "width": 320,
        "height": 240,
        "fps": 30,
        "backend": "auto",
        "buffer_size": 1,
        "flip_horizontal": True,
        "warmup_frames": 5,
    },
    "mediapipe": {
        "model_complexity": 0,
        "max_num_hands": 2,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "recognition": {
        "pinch_threshold": 0.05,
        "finger_contact_threshold": 0.06,
        "contact_enter_threshold": 0.12,
        "contact_exit_multiplier": 1.3,
    },
    "smoothing": {
        "adaptive_min_factor": 0.1,
        "adaptive_max_factor": 0.8,
        "adaptive_gain": 15.0,
        "fixed_factor": 0.5,
    },
    "motion": {
        "zoom_rate": 0.01,
        "rotation_sensitivity": 5.0,
        "rotation_deadzone": 0.002,
        "pan_scale_x": 6.0,
        "pan_scale_y": 4.0,
    },
    "viewer": {
        "target_fps": 60,
        "velocity_lerp": 0.2,
        "scale_lerp": 0.1,
        "min_scale": 0.4,
        "max_scale": 6.0,
        "drag_lerp": 0.75,
        "return_lerp": 0.05,
        "rest_y": -1.2,
        "idle_amplitude": 0.001,
        "idle_frequency": 0.3,
    },
    "performance": {
        "metrics_window": 100,
        "report_interval_sec": 10,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Expected value types, checked after loading; mismatches are only logged
_FIELD_TYPES = {
    "camera": {
        int: ("device_id", "width", "height", "fps", "buffer_size", "warmup_frames"),
        bool: ("flip_horizontal",),
    },
    "mediapipe": {
        int: ("model_complexity", "max_num_hands"),
        float: ("min_detection_confidence", "min_tracking_confidence"),
    },
    "recognition": {
        float: ("pinch_threshold", "finger_contact_threshold",
                "contact_enter_threshold", "contact_exit_multiplier"),
    },
    "smoothing": {
        float: ("adaptive_min_factor", "adaptive_max_factor", "adaptive_gain", "fixed_factor"),
    },
    "motion": {
        float: ("zoom_rate", "rotation_sensitivity", "rotation_deadzone",
                "pan_scale_x", "pan_scale_y"),
    },
    "viewer": {
        int: ("target_fps",),
        float: ("velocity_lerp", "scale_lerp", "min_scale", "max_scale",
                "drag_lerp", "return_lerp", "rest_y"),
    },
}

_CONTROL_SECTIONS = ("recognition", "smoothing", "motion")


def _matches(value, expected: type) -> bool:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _deep_merge(base: dict, override: dict) -> dict:
    """``base`` updated with ``override``, descending into nested mappings."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def default_section(name: str, **overrides) -> dict:
    """Copy of a built-in default section, with optional overrides."""
    section = copy.deepcopy(_DEFAULTS.get(name, {}))
    section.update(overrides)
    return section


def validate_control_settings(recognition: dict, smoothing: dict, motion: dict):
    """Check the invariants the control path relies on.

    Raises:
        ConfigError: on the first violated invariant
    """
    for name, section in (("recognition", recognition), ("smoothing", smoothing),
                          ("motion", motion)):
        for key in _FIELD_TYPES[name][float]:
            if not _matches(section.get(key), float):
                raise ConfigError(f"{name}.{key} must be a number, got {section.get(key)!r}")

    for key in ("pinch_threshold", "finger_contact_threshold", "contact_enter_threshold"):
        if recognition[key] <= 0:
            raise ConfigError(f"recognition.{key} must be positive, got {recognition[key]!r}")
    if recognition["contact_exit_multiplier"] < 1.0:
        raise ConfigError(
            "recognition.contact_exit_multiplier must be >= 1 so exit >= enter, "
            f"got {recognition['contact_exit_multiplier']!r}"
        )

    low = smoothing["adaptive_min_factor"]
    high = smoothing["adaptive_max_factor"]
    for key, value in (("adaptive_min_factor", low), ("adaptive_max_factor", high),
                       ("fixed_factor", smoothing["fixed_factor"])):
        if not 0.0 < value <= 1.0:
            raise ConfigError(f"smoothing.{key} must be in (0, 1], got {value!r}")
    if low > high:
        raise ConfigError(
            f"smoothing.adaptive_min_factor ({low}) exceeds adaptive_max_factor ({high})"
        )
    if smoothing["adaptive_gain"] < 0:
        raise ConfigError(f"smoothing.adaptive_gain must be >= 0, got {smoothing['adaptive_gain']!r}")

    if motion["rotation_deadzone"] < 0:
        raise ConfigError(f"motion.rotation_deadzone must be >= 0, got {motion['rotation_deadzone']!r}")
    if motion["zoom_rate"] < 0:
        raise ConfigError(f"motion.zoom_rate must be >= 0 (sign comes from the gesture), "
                          f"got {motion['zoom_rate']!r}")


class _Section:
    """Class attribute exposing one top-level section of the loaded config."""

    def __set_name__(self, owner, name):
        self._name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance._data.get(self._name, {})


class Config:
    """Process-wide configuration (singleton)."""

    _instance = None

    camera = _Section()
    mediapipe = _Section()
    recognition = _Section()
    smoothing = _Section()
    motion = _Section()
    viewer = _Section()
    performance = _Section()
    logging = _Section()

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._data = copy.deepcopy(_DEFAULTS)
            instance._path = None
            cls._instance = instance
        return cls._instance

    def load(self, config_path: str = None) -> 'Config':
        """Read a YAML file over the defaults and check it.

        A missing file is not an error: the defaults are used.

        Raises:
            ConfigError: the file is not a mapping, or a control value is
                out of range
        """
        path = config_path or DEFAULT_CONFIG_PATH
        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), self._read(path))
        self._path = path

        for problem in self._type_problems():
            logger.warning("Config %s: %s", path, problem)
        for name in _CONTROL_SECTIONS:
            if not isinstance(self._data.get(name), dict):
                raise ConfigError(f"Section '{name}' in {path} must be a mapping")
        validate_control_settings(self.recognition, self.smoothing, self.motion)
        return self

    @staticmethod
    def _read(path: str) -> dict:
        if not os.path.isfile(path):
            logger.warning("No config file at %s, running on built-in defaults", path)
            return {}
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Top level of {path} must be a mapping, "
                              f"got {type(loaded).__name__}")
        logger.info("Config loaded from %s", path)
        return loaded

    def _type_problems(self):
        for section_name, by_type in _FIELD_TYPES.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                yield f"section '{section_name}' is a {type(section).__name__}, expected a mapping"
                continue
            for expected, fields in by_type.items():
                for field in fields:
                    if field in section and not _matches(section[field], expected):
                        yield (f"{section_name}.{field} should be {expected.__name__}, "
                               f"got {section[field]!r}")

    def get(self, key_path: str, default=None):
        """Nested value by dot path, e.g. ``"viewer.target_fps"``."""
        node = self._data
        for key in key_path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def set(self, key_path: str, value):
        """Override a nested value (command-line flags, tests)."""
        *parents, leaf = key_path.split(".")
        node = self._data
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = value

    @property
    def path(self):
        """File the current values were loaded from (None before ``load``)."""
        return self._path

    @classmethod
    def reset(cls):
        """Forget the singleton so the next ``Config()`` starts from defaults."""
        cls._instance = None
