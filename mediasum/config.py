"""
Configuration loading.

Settings come from ``config.yaml`` merged over built-in defaults, with a few
environment variables applied last.
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from mediasum.schema import SamplingPolicy

logger = logging.getLogger(__name__)

DEFAULT_SECONDS_PER_FRAME = 10
DEFAULT_MAX_FRAMES = 30


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "ffmpeg": {
            "path": "ffmpeg",
            "audio_format": "mp3",
            "audio_bitrate": "128k",
            "jpeg_quality": 92,
            "timeout_seconds": 3600,
        },
        "sampling": {
            "interval_seconds": DEFAULT_SECONDS_PER_FRAME,
            "max_frames": DEFAULT_MAX_FRAMES,
        },
        "transcription": {
            "backend": "hosted",
            "model": "whisper-large-v3",
            "language": None,
            "local_model_size": "medium",
            "device": "auto",
            "compute_type": "default",
        },
        "llm": {
            "base_url": "https://api.groq.com/openai/v1",
            "api_key_env": "GROQ_API_KEY",
            "vision_model": "meta-llama/llama-4-scout-17b-16e-instruct",
            "text_model": "llama-3.3-70b-versatile",
            "batch_max_tokens": 1024,
            "synthesis_max_tokens": 3500,
            "summary_max_tokens": 512,
            "timeout_seconds": 120,
            "batch_timeout_seconds": 60,
        },
        "processing": {"work_dir": None, "progress_bar": True},
        "server": {
            "host": "127.0.0.1",
            "port": 3001,
            "uploads_dir": "./uploads",
            "max_upload_mb": 100,
        },
    }


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _positive_int_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer")
        return None
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be positive")
        return None
    return value


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides in place.

    Recognised: VIDEO_SECONDS_PER_FRAME, MAX_VIDEO_FRAMES, MEDIASUM_WORK_DIR,
    OPENAI_BASE_URL.
    """
    seconds = _positive_int_env("VIDEO_SECONDS_PER_FRAME")
    if seconds is not None:
        config.setdefault("sampling", {})["interval_seconds"] = seconds

    max_frames = _positive_int_env("MAX_VIDEO_FRAMES")
    if max_frames is not None:
        config.setdefault("sampling", {})["max_frames"] = max_frames

    work_dir = os.environ.get("MEDIASUM_WORK_DIR")
    if work_dir:
        config.setdefault("processing", {})["work_dir"] = work_dir

    base_url = os.environ.get("OPENAI_BASE_URL")
    if base_url:
        config.setdefault("llm", {})["base_url"] = base_url

    return config


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Without an explicit path, looks for config.yaml in the current directory
    and then next to this package. Falls back to defaults if none is found.

    Raises:
        FileNotFoundError: If an explicit path does not exist
    """
    if config_path is None:
        candidates = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                config_path = candidate
                break
        else:
            logger.warning("No config.yaml found, using defaults")
            return apply_env_overrides(get_default_config())

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    logger.info(f"Loaded config from: {config_path}")
    return apply_env_overrides(_deep_merge(get_default_config(), loaded))


def sampling_policy_from_config(config: dict[str, Any]) -> SamplingPolicy:
    """Build the sampling policy from the ``sampling`` section."""
    scfg = config.get("sampling", {})
    return SamplingPolicy(
        interval_seconds=float(scfg.get("interval_seconds", DEFAULT_SECONDS_PER_FRAME)),
        max_frames=int(scfg.get("max_frames", DEFAULT_MAX_FRAMES)),
    )
