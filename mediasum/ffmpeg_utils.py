"""
FFmpeg utilities for media probing and audio extraction.

Provides a clean interface to ffmpeg/ffprobe and the ``FFmpegExtractor``
adapter the pipeline uses to pull audio and frames out of an upload.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from mediasum.io import exists_nonempty
from mediasum.schema import MediaMeta

if TYPE_CHECKING:
    from mediasum.artifacts import ArtifactRegistry
    from mediasum.schema import Frame

logger = logging.getLogger(__name__)

AUDIO_CODECS = {
    "mp3": ["-codec:a", "libmp3lame"],
    "wav": ["-codec:a", "pcm_s16le"],
    "flac": ["-codec:a", "flac"],
}


class FFmpegError(Exception):
    """Error during FFmpeg execution."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str | None = None):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def check_ffmpeg(ffmpeg_path: str = "ffmpeg") -> bool:
    """
    Check if ffmpeg is available and working.

    Args:
        ffmpeg_path: Path to ffmpeg binary

    Returns:
        True if ffmpeg is available
    """
    try:
        result = subprocess.run(
            [ffmpeg_path, "-version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError):
        return False


def ffprobe_path_for(ffmpeg_path: str) -> str:
    """Derive the ffprobe binary path from the ffmpeg one (same directory)."""
    parent, _, name = ffmpeg_path.rpartition("/")
    probe_name = name.replace("ffmpeg", "ffprobe")
    return f"{parent}/{probe_name}" if parent else probe_name


def run_ffmpeg(cmd: list[str], *, timeout: float, what: str) -> subprocess.CompletedProcess:
    """
    Run an ffmpeg command, translating every failure into FFmpegError.

    Args:
        cmd: Full command line
        timeout: Seconds before the process is killed
        what: Short description used in error messages

    Returns:
        The completed process (returncode 0)
    """
    logger.debug(f"Running ffmpeg: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise FFmpegError(f"FFmpeg timed out during {what}") from e
    except FileNotFoundError as e:
        raise FFmpegError(f"FFmpeg not found at: {cmd[0]}") from e

    if result.returncode != 0:
        raise FFmpegError(
            f"FFmpeg {what} failed with code {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result


def extract_audio(
    video_path: Path,
    audio_path: Path,
    *,
    ffmpeg_path: str = "ffmpeg",
    audio_format: str = "mp3",
    bitrate: str = "128k",
    overwrite: bool = True,
    timeout: float = 3600,
) -> Path:
    """
    Extract the audio track from a video file.

    Args:
        video_path: Path to input video
        audio_path: Path for output audio file
        ffmpeg_path: Path to ffmpeg binary
        audio_format: Output container/codec (mp3, wav, flac)
        bitrate: Audio bitrate for lossy formats
        overwrite: Overwrite existing output file
        timeout: Seconds before ffmpeg is killed

    Returns:
        Path to the extracted audio file

    Raises:
        FFmpegError: If ffmpeg fails or the video has no audio
        FileNotFoundError: If video file doesn't exist
    """
    video_path = Path(video_path)
    audio_path = Path(audio_path)

    if not video_path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")
    if audio_format not in AUDIO_CODECS:
        raise ValueError(f"Unsupported audio format: {audio_format}. Valid: {list(AUDIO_CODECS)}")

    audio_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        ffmpeg_path,
        "-y" if overwrite else "-n",
        "-i",
        str(video_path),
        "-vn",  # No video
        *AUDIO_CODECS[audio_format],
    ]
    if audio_format == "mp3":
        cmd += ["-b:a", bitrate]
    cmd.append(str(audio_path))

    run_ffmpeg(cmd, timeout=timeout, what="audio extraction")

    if not exists_nonempty(audio_path):
        raise FFmpegError(f"FFmpeg produced no audio for {video_path}")

    logger.info(f"Extracted audio to: {audio_path}")
    return audio_path


def get_media_info(video_path: Path, ffmpeg_path: str = "ffmpeg", timeout: float = 60) -> MediaMeta:
    """
    Get media metadata using ffprobe.

    Never raises: probe failures are logged and reported as unknown values.

    Args:
        video_path: Path to media file
        ffmpeg_path: Path to ffmpeg binary (ffprobe assumed in same directory)
        timeout: Seconds before ffprobe is killed

    Returns:
        MediaMeta with whatever could be determined
    """
    cmd = [
        ffprobe_path_for(ffmpeg_path),
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)

        if result.returncode != 0:
            logger.warning(f"ffprobe failed for {video_path}")
            return MediaMeta()

        data = json.loads(result.stdout)

    except (subprocess.SubprocessError, FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(f"Could not get media info: {e}")
        return MediaMeta()

    info: dict[str, float | int | bool | None] = {}

    duration = data.get("format", {}).get("duration")
    if duration not in (None, "N/A"):
        try:
            info["duration"] = max(0.0, float(duration))
        except (TypeError, ValueError):
            logger.warning(f"Unparseable duration from ffprobe: {duration!r}")

    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")
        if codec_type == "audio":
            info["has_audio"] = True
        elif codec_type == "video" and not info.get("has_video"):
            info["has_video"] = True
            if stream.get("width"):
                info["width"] = int(stream["width"])
            if stream.get("height"):
                info["height"] = int(stream["height"])

            # Parse fps from r_frame_rate (e.g., "30/1" or "30000/1001")
            fps_str = stream.get("r_frame_rate", "")
            if "/" in fps_str:
                num, den = fps_str.split("/")
                if float(den) > 0 and float(num) > 0:
                    info["fps"] = float(num) / float(den)

    return MediaMeta(**info)


def probe_duration(path: Path, ffmpeg_path: str = "ffmpeg", timeout: float = 60) -> float | None:
    """Return the media duration in seconds, or None if unknown."""
    return get_media_info(path, ffmpeg_path, timeout).duration


class FFmpegExtractor:
    """
    Media extraction adapter backed by the ffmpeg and ffprobe binaries.

    Raises:
        ValueError: If ``audio_format`` is not one of AUDIO_CODECS
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        audio_format: str = "mp3",
        audio_bitrate: str = "128k",
        jpeg_quality: int = 92,
        timeout: float = 3600,
    ):
        if audio_format not in AUDIO_CODECS:
            raise ValueError(f"Unsupported audio format: {audio_format}. Valid: {list(AUDIO_CODECS)}")
        self.ffmpeg_path = ffmpeg_path
        self.audio_format = audio_format
        self.audio_bitrate = audio_bitrate
        self.jpeg_quality = jpeg_quality
        self.timeout = timeout

    def probe_duration(self, path: Path) -> float | None:
        return probe_duration(path, self.ffmpeg_path)

    def extract_audio(self, path: Path, audio_path: Path) -> Path:
        return extract_audio(
            path,
            audio_path,
            ffmpeg_path=self.ffmpeg_path,
            audio_format=self.audio_format,
            bitrate=self.audio_bitrate,
            timeout=self.timeout,
        )

    def extract_frames(
        self,
        path: Path,
        timestamps: Sequence[float],
        output_dir: Path,
        artifacts: ArtifactRegistry | None = None,
    ) -> list[Frame]:
        from mediasum.frames import extract_frames

        return extract_frames(
            path,
            timestamps,
            output_dir,
            artifacts=artifacts,
            ffmpeg_path=self.ffmpeg_path,
            jpeg_quality=self.jpeg_quality,
        )
