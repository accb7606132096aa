"""
Media pipeline orchestrator.

One call to ``MediaPipeline.run`` handles one uploaded file:

    received -> extracting (video only) -> transcribing -> synthesizing -> completed | failed

Every temporary file created along the way is registered with an
ArtifactRegistry and removed before ``run`` returns or raises.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Protocol, Sequence

from mediasum import sampling
from mediasum.artifacts import ArtifactRegistry
from mediasum.errors import (
    EmptyTranscript,
    ExtractionFailed,
    PipelineError,
    TranscriptionFailed,
    UnsupportedMediaType,
)
from mediasum.ffmpeg_utils import FFmpegError
from mediasum.frames import FrameExtractionError
from mediasum.io import artifact_path, make_run_dir
from mediasum.schema import Frame, SamplingPolicy, SynthesisResult
from mediasum.transcribe import TranscriptionError

if TYPE_CHECKING:
    from mediasum.synthesis import SynthesisEngine

logger = logging.getLogger(__name__)

MediaKind = Literal["audio", "video"]


class MediaExtractor(Protocol):
    """Pulls audio and still frames out of a media file."""

    audio_format: str

    def probe_duration(self, path: Path) -> float | None: ...

    def extract_audio(self, path: Path, audio_path: Path) -> Path: ...

    def extract_frames(
        self,
        path: Path,
        timestamps: Sequence[float],
        output_dir: Path,
        artifacts: ArtifactRegistry | None = None,
    ) -> list[Frame]: ...


class Transcriber(Protocol):
    """Turns an audio file into plain text."""

    def transcribe(self, audio_path: Path) -> str: ...


def classify_media_type(media_type: str | None) -> MediaKind:
    """
    Classify a declared MIME type as audio or video.

    Raises:
        UnsupportedMediaType: For anything that is not audio/* or video/*
    """
    main_type = (media_type or "").split(";", 1)[0].strip().lower()
    if main_type.startswith("video/"):
        return "video"
    if main_type.startswith("audio/"):
        return "audio"
    raise UnsupportedMediaType(f"Unsupported file type: {media_type or 'unknown'}")


class MediaPipeline:
    """
    Composes extraction, transcription and synthesis for single runs.

    Holds only collaborators and settings; all per-run state lives inside
    ``run`` so one instance can serve independent requests.
    """

    def __init__(
        self,
        extractor: MediaExtractor,
        transcriber: Transcriber,
        engine: SynthesisEngine,
        work_dir: Path | str | None = None,
    ):
        self.extractor = extractor
        self.transcriber = transcriber
        self.engine = engine
        self.work_dir = Path(work_dir) if work_dir else None

    def run(
        self,
        source_path: Path | str,
        declared_media_type: str | None,
        policy: SamplingPolicy,
        *,
        keep_source: bool = False,
    ) -> SynthesisResult:
        """
        Process one media file end to end.

        Args:
            source_path: Uploaded audio or video file
            declared_media_type: MIME type reported for the upload
            policy: Frame sampling policy for videos
            keep_source: Leave the source file in place (it is deleted
                with the other temporary artifacts otherwise)

        Returns:
            SynthesisResult for the file

        Raises:
            PipelineError: One of UnsupportedMediaType, ExtractionFailed,
                TranscriptionFailed, EmptyTranscript, SynthesisFailed
        """
        source_path = Path(source_path)
        artifacts = ArtifactRegistry()
        if not keep_source:
            artifacts.register(source_path)

        logger.info(f"Received: {source_path.name} ({declared_media_type})")
        try:
            kind = classify_media_type(declared_media_type)
            if not source_path.is_file():
                raise ExtractionFailed(f"Source file not found: {source_path}")

            frames: list[Frame] = []
            if kind == "video":
                logger.info("Extracting: audio and frames")
                audio_path, frames = self._extract(source_path, policy, artifacts)
            else:
                audio_path = source_path

            logger.info(f"Transcribing: {audio_path.name}")
            transcript = self._transcribe(audio_path)

            logger.info(f"Synthesizing: {kind} with {len(frames)} frames")
            if kind == "video" and frames:
                result = self.engine.synthesize(transcript, frames)
            else:
                result = self.engine.synthesize_transcript_only(transcript, style="summary")

            logger.info(f"Completed: {source_path.name} using {result.model}")
            return result

        except PipelineError as e:
            logger.error(f"Failed: {source_path.name} [{e.code}] {e}")
            raise
        except Exception:
            logger.exception(f"Failed: {source_path.name} with unexpected error")
            raise
        finally:
            artifacts.release_all()

    def _extract(
        self,
        source_path: Path,
        policy: SamplingPolicy,
        artifacts: ArtifactRegistry,
    ) -> tuple[Path, list[Frame]]:
        """Extract audio (required) and frames (best effort)."""
        run_dir = artifacts.register(make_run_dir(source_path, self.work_dir))

        audio_path = artifacts.register(
            artifact_path(run_dir, "audio", ext=self.extractor.audio_format)
        )
        try:
            audio_path = self.extractor.extract_audio(source_path, audio_path)
        except (FFmpegError, OSError, ValueError) as e:
            raise ExtractionFailed("Audio extraction failed", str(e)) from e
        artifacts.register(audio_path)

        try:
            frames = self._extract_frames(source_path, policy, run_dir, artifacts)
        except (FFmpegError, FrameExtractionError, OSError) as e:
            logger.warning(f"Frame extraction failed, continuing with audio only: {e}")
            frames = []

        return audio_path, frames

    def _extract_frames(
        self,
        source_path: Path,
        policy: SamplingPolicy,
        run_dir: Path,
        artifacts: ArtifactRegistry,
    ) -> list[Frame]:
        duration = self.extractor.probe_duration(source_path)
        frame_plan = sampling.plan(duration, policy)
        if frame_plan.is_empty:
            logger.warning("No frames planned, continuing with audio only")
            return []

        frames_dir = artifacts.register(artifact_path(run_dir, "frames_dir"))
        frames_dir.mkdir(parents=True, exist_ok=True)
        return self.extractor.extract_frames(source_path, frame_plan.timestamps, frames_dir, artifacts)

    def _transcribe(self, audio_path: Path) -> str:
        try:
            transcript = self.transcriber.transcribe(audio_path)
        except (TranscriptionError, OSError) as e:
            raise TranscriptionFailed("Transcription failed", str(e)) from e

        if not transcript or not transcript.strip():
            raise EmptyTranscript("Transcription resulted in empty text")
        return transcript.strip()


def build_transcriber(config: dict[str, Any], client: Any = None) -> Transcriber:
    """Create the configured transcription backend."""
    from mediasum.transcribe import HostedTranscriber, LocalWhisperTranscriber

    tcfg = config.get("transcription", {})
    backend = tcfg.get("backend", "hosted")
    if backend == "local":
        return LocalWhisperTranscriber(
            model_size=tcfg.get("local_model_size", "medium"),
            device=tcfg.get("device", "auto"),
            compute_type=tcfg.get("compute_type", "default"),
            language=tcfg.get("language"),
        )
    if backend != "hosted":
        raise ValueError(f"Unknown transcription backend: {backend}")

    from mediasum.llm import create_openai_client

    return HostedTranscriber(
        client or create_openai_client(config),
        model=tcfg.get("model", "whisper-large-v3"),
        language=tcfg.get("language"),
        timeout=config.get("llm", {}).get("timeout_seconds"),
    )


def build_pipeline(config: dict[str, Any]) -> MediaPipeline:
    """
    Wire the default adapters from configuration.

    Raises:
        ValueError: If the model API key is missing or a setting is invalid
    """
    from mediasum.ffmpeg_utils import FFmpegExtractor
    from mediasum.llm import OpenAICompatibleClient, create_openai_client
    from mediasum.synthesis import SynthesisEngine

    ffmpeg_cfg = config.get("ffmpeg", {})
    extractor = FFmpegExtractor(
        ffmpeg_path=ffmpeg_cfg.get("path", "ffmpeg"),
        audio_format=ffmpeg_cfg.get("audio_format", "mp3"),
        audio_bitrate=ffmpeg_cfg.get("audio_bitrate", "128k"),
        jpeg_quality=ffmpeg_cfg.get("jpeg_quality", 92),
        timeout=ffmpeg_cfg.get("timeout_seconds", 3600),
    )

    openai_client = create_openai_client(config)
    transcriber = build_transcriber(config, openai_client)
    engine = SynthesisEngine(
        OpenAICompatibleClient.from_config(config, openai_client),
        progress_bar=config.get("processing", {}).get("progress_bar", True),
    )

    return MediaPipeline(
        extractor,
        transcriber,
        engine,
        work_dir=config.get("processing", {}).get("work_dir"),
    )
