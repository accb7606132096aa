"""
Path helpers and per-run artifact layout.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

# ============================================================
# Artifact Layout Constants
# ============================================================
# Standard layout inside each run's temporary directory

ARTIFACT_NAMES = {
    "audio": "audio.mp3",
    "frames_dir": "frames",
}

# Frame naming pattern: frame_XXXX.jpg (1-based plan index)
FRAME_PATTERN = "frame_{index:04d}.{ext}"


# ============================================================
# Path Helpers
# ============================================================


def ensure_dir(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to create

    Returns:
        The same path (for chaining)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(run_dir: Path, kind: str, ext: str | None = None) -> Path:
    """
    Get the path to a specific artifact in the run directory.

    Args:
        run_dir: The run's temporary directory
        kind: Artifact type (e.g., "audio", "frames_dir")
        ext: Optional replacement file extension (audio format)

    Returns:
        Full path to the artifact

    Raises:
        KeyError: If kind is not a known artifact type
    """
    if kind not in ARTIFACT_NAMES:
        raise KeyError(f"Unknown artifact kind: {kind}. Valid: {list(ARTIFACT_NAMES.keys())}")
    path = run_dir / ARTIFACT_NAMES[kind]
    if ext:
        path = path.with_suffix(f".{ext.lstrip('.')}")
    return path


def frame_path(frames_dir: Path, index: int, ext: str = "jpg") -> Path:
    """Get the path for the frame at a 1-based plan index."""
    return frames_dir / FRAME_PATTERN.format(index=index, ext=ext)


def exists_nonempty(path: Path) -> bool:
    """Check if a file exists and is non-empty."""
    return path.exists() and path.stat().st_size > 0


def safe_media_id(filename: str) -> str:
    """
    Convert a filename to a safe identifier.

    Args:
        filename: Original filename (with or without extension)

    Returns:
        Safe identifier with only alphanumeric, underscore, and hyphen
    """
    name = Path(filename).stem
    return "".join(c if c.isalnum() or c in "_-" else "_" for c in name) or "media"


def make_run_dir(source_path: Path, work_dir: Path | None = None) -> Path:
    """
    Create a fresh temporary directory for one run.

    Args:
        source_path: Media file being processed (used for the name prefix)
        work_dir: Parent directory, or the system temp dir if None

    Returns:
        Path to the newly created directory
    """
    if work_dir is not None:
        ensure_dir(work_dir)
    prefix = f"mediasum-{safe_media_id(source_path.name)}-"
    return Path(tempfile.mkdtemp(prefix=prefix, dir=work_dir))
