#!/usr/bin/env python3
"""Configuration loader for the whistle counter."""
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from logger import get_logger
from whistle_core.detector import DetectionConfig
from whistle_core.errors import InvalidConfigError

log = get_logger(__name__)


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "device": "default",
            "sample_rate": 44100,
            "channels": 1,
            "sample_format": "S16_LE",
            "fft_size": 2048,
            "smoothing_time_constant": 0.8,
            "min_decibels": -100.0,
            "max_decibels": -30.0
        },
        "detection": {
            "min_hz": 5000.0,
            "max_hz": 16000.0,
            "threshold": 180,
            "debounce_ms": 1200
        },
        "session": {
            "target_count": 3
        },
        "scheduler": {
            "tick_interval_sec": 0.0
        },
        "alarm": {
            "sound_file": None,
            "player": "aplay"
        },
        "visualization": {
            "enabled": True,
            "width": 64,
            "height": 8
        },
        "timer": {
            "default_minutes": 10,
            "default_seconds": 0
        }
    }


SUPPORTED_SAMPLE_FORMATS = ("S16_LE",)


def _is_number(value: Any) -> bool:
    """True for int/float values, excluding bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate configuration structure and values."""
    defaults = get_default_config()

    # Check required top-level keys
    for key in defaults.keys():
        if key not in config:
            return False, f"Missing required config section: {key}"
        if not isinstance(config[key], dict):
            return False, f"Config section {key} must be an object"

    # Validate audio settings
    audio = config["audio"]
    if not _is_int(audio.get("sample_rate")) or audio["sample_rate"] <= 0:
        return False, "audio.sample_rate must be a positive integer"
    if not _is_int(audio.get("channels")) or audio["channels"] not in (1, 2):
        return False, "audio.channels must be 1 or 2"
    if audio.get("sample_format") not in SUPPORTED_SAMPLE_FORMATS:
        return False, "audio.sample_format must be S16_LE"
    fft_size = audio.get("fft_size")
    if not _is_int(fft_size) or fft_size < 32 or fft_size & (fft_size - 1):
        return False, "audio.fft_size must be a power of two >= 32"
    smoothing = audio.get("smoothing_time_constant", 0)
    if not _is_number(smoothing) or not 0 <= smoothing <= 1:
        return False, "audio.smoothing_time_constant must be between 0 and 1"
    min_db, max_db = audio.get("min_decibels"), audio.get("max_decibels")
    if not (_is_number(min_db) and _is_number(max_db)) or min_db >= max_db:
        return False, "audio.min_decibels must be lower than audio.max_decibels"

    # Validate detection
    detection = config["detection"]
    min_hz, max_hz = detection.get("min_hz"), detection.get("max_hz")
    if not (_is_number(min_hz) and _is_number(max_hz)) or min_hz < 0 or max_hz <= min_hz:
        return False, "detection band must satisfy 0 <= min_hz < max_hz"
    if min_hz >= audio["sample_rate"] / 2:
        return False, "detection.min_hz must be below the Nyquist frequency (sample_rate / 2)"
    threshold = detection.get("threshold")
    if not _is_number(threshold) or not 0 <= threshold <= 255:
        return False, "detection.threshold must be between 0 and 255"
    debounce_ms = detection.get("debounce_ms")
    if not _is_number(debounce_ms) or debounce_ms < 0:
        return False, "detection.debounce_ms must be non-negative"

    # Validate session
    target = config["session"].get("target_count")
    if not _is_int(target) or target < 1:
        return False, "session.target_count must be an integer >= 1"

    tick_interval = config["scheduler"].get("tick_interval_sec", 0)
    if not _is_number(tick_interval) or tick_interval < 0:
        return False, "scheduler.tick_interval_sec must be non-negative"

    vis = config["visualization"]
    width, height = vis.get("width", 0), vis.get("height", 0)
    if not (_is_int(width) and _is_int(height)) or width < 0 or height < 0:
        return False, "visualization.width and visualization.height must be non-negative integers"

    timer = config["timer"]
    minutes, seconds = timer.get("default_minutes", 0), timer.get("default_seconds", 0)
    if (not (_is_int(minutes) and _is_int(seconds))
            or minutes < 0 or not 0 <= seconds <= 59):
        return False, "timer.default_minutes must be >= 0 and timer.default_seconds between 0 and 59"

    return True, None


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file, merging with defaults.

    Args:
        config_path: Path to config file. If None, looks for config.json in current directory.

    Returns:
        Merged configuration dictionary.

    Raises:
        InvalidConfigError: If the file is not valid JSON or a value is out of range.
    """
    defaults = get_default_config()

    if config_path is None:
        config_path = Path("config.json")

    if not config_path.exists():
        log.info(f"Config file {config_path} not found, using defaults")
        return defaults

    try:
        with config_path.open() as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file {config_path}: {e}")

    # Deep merge with defaults
    merged = _deep_merge(defaults, config)

    # Validate
    is_valid, error_msg = validate_config(merged)
    if not is_valid:
        raise InvalidConfigError(f"Invalid configuration: {error_msg}")

    log.info(f"Loaded configuration from {config_path}")
    return merged


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get nested config value using dot notation.

    Example: get_config_value(config, "detection.threshold")
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def detection_config_from(config: Dict[str, Any]) -> DetectionConfig:
    """Build the detector policy from the "detection" section."""
    detection = config["detection"]
    return DetectionConfig(
        min_hz=float(detection["min_hz"]),
        max_hz=float(detection["max_hz"]),
        threshold=float(detection["threshold"]),
        debounce_ms=float(detection["debounce_ms"]),
    )
