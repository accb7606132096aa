"""
Frame extraction from video.

Grabs one JPEG still per planned timestamp and loads it into memory for the
vision model.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from mediasum.io import ensure_dir, frame_path
from mediasum.schema import Frame

if TYPE_CHECKING:
    from mediasum.artifacts import ArtifactRegistry

logger = logging.getLogger(__name__)


class FrameExtractionError(Exception):
    """Error during frame extraction."""

    pass


def _extract_frame_ffmpeg(
    ffmpeg_path: str,
    video_path: Path,
    output_path: Path,
    timestamp: float,
    jpeg_quality: int = 2,
    timeout: float = 60,
) -> bool:
    """
    Extract a single frame using ffmpeg.

    Args:
        ffmpeg_path: Path to ffmpeg binary
        video_path: Input video path
        output_path: Output image path
        timestamp: Timestamp in seconds
        jpeg_quality: JPEG quality (2 = best, 31 = worst)
        timeout: Seconds before ffmpeg is killed

    Returns:
        True if successful
    """
    cmd = [
        ffmpeg_path,
        "-y",  # Overwrite
        "-ss",
        f"{timestamp:.3f}",  # Seek before input (faster)
        "-i",
        str(video_path),
        "-frames:v",
        "1",  # Extract one frame
        "-q:v",
        str(jpeg_quality),
        str(output_path),
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError):
        return False


def extract_frames(
    video_path: Path | str,
    timestamps: Sequence[float],
    output_dir: Path | str,
    *,
    artifacts: ArtifactRegistry | None = None,
    ffmpeg_path: str = "ffmpeg",
    jpeg_quality: int = 92,
    timeout: float = 60,
) -> list[Frame]:
    """
    Extract one frame per timestamp, in plan order.

    Each output file is registered with ``artifacts`` before ffmpeg writes
    it, so it is cleaned up even if a later frame fails.

    Args:
        video_path: Path to video file
        timestamps: Planned timestamps in seconds
        output_dir: Directory for output frames
        artifacts: Registry tracking temporary files for this run
        ffmpeg_path: Path to ffmpeg binary
        jpeg_quality: JPEG quality (0-100, converted for ffmpeg)
        timeout: Per-frame ffmpeg timeout in seconds

    Returns:
        List of Frame objects, ordered by plan index. Frames that could not
        be extracted are skipped.

    Raises:
        FrameExtractionError: If no frame could be extracted at all
        FileNotFoundError: If the video file doesn't exist
    """
    video_path = Path(video_path)
    output_dir = Path(output_dir)

    if not video_path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")

    ensure_dir(output_dir)

    # Convert quality for ffmpeg (inverted scale)
    ffmpeg_quality = max(2, min(31, 31 - int(jpeg_quality * 29 / 100)))

    frames: list[Frame] = []
    failed_count = 0

    logger.info(f"Extracting {len(timestamps)} frames from {video_path.name}")

    for index, timestamp in enumerate(timestamps, start=1):
        out_path = frame_path(output_dir, index)
        if artifacts is not None:
            artifacts.register(out_path)

        success = _extract_frame_ffmpeg(
            ffmpeg_path, video_path, out_path, timestamp, ffmpeg_quality, timeout
        )

        if not success or not out_path.exists():
            failed_count += 1
            logger.warning(f"Failed to extract frame {index} @ {timestamp:.2f}s")
            continue

        try:
            image_bytes = out_path.read_bytes()
        except OSError as e:
            failed_count += 1
            logger.warning(f"Could not read frame file {out_path}: {e}")
            continue

        if not image_bytes:
            failed_count += 1
            logger.warning(f"Frame file is empty: {out_path}")
            continue

        width, height = _get_image_dimensions(out_path)
        frames.append(
            Frame(
                index=index,
                image_bytes=image_bytes,
                timestamp=float(timestamp),
                path=str(out_path),
                width=width,
                height=height,
            )
        )

    if failed_count > 0:
        logger.warning(f"Failed to extract {failed_count} of {len(timestamps)} frames")

    if not frames and len(timestamps) > 0:
        raise FrameExtractionError("Failed to extract any frames")

    logger.info(f"Extracted {len(frames)} frames")
    return frames


def _get_image_dimensions(image_path: Path) -> tuple[int | None, int | None]:
    """Get image dimensions using PIL."""
    from PIL import Image

    try:
        with Image.open(image_path) as img:
            return img.size
    except OSError:
        return None, None
