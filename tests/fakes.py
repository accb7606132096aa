"""Fakes for pipeline collaborators (model client, extractor, transcriber)."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from mediasum.io import frame_path
from mediasum.schema import Frame


class FakeModelClient:
    """Records every call; batch responses are scripted per call (str or exception)."""

    vision_model = "fake-vision"
    text_model = "fake-text"

    def __init__(self, batch_responses=None, synthesis_response=None, synthesis_error=None):
        self.batch_responses = list(batch_responses or [])
        self.synthesis_response = synthesis_response
        self.synthesis_error = synthesis_error
        self.batch_calls: list[tuple[str, list[bytes], str]] = []
        self.synthesis_calls: list[tuple[str, list[str] | None, str]] = []

    def analyze_batch(self, transcript: str, images: Sequence[bytes], instructions: str) -> str:
        self.batch_calls.append((transcript, list(images), instructions))
        position = len(self.batch_calls) - 1
        response = (
            self.batch_responses[position]
            if position < len(self.batch_responses)
            else f"details for batch {position + 1}"
        )
        if isinstance(response, BaseException):
            raise response
        return response

    def synthesize(self, transcript: str, batch_texts=None, style: str = "document") -> str:
        self.synthesis_calls.append((transcript, list(batch_texts) if batch_texts else None, style))
        if self.synthesis_error is not None:
            raise self.synthesis_error
        if self.synthesis_response is not None:
            return self.synthesis_response
        if batch_texts:
            return f"document with {len(batch_texts)} visual sections"
        return f"{style} from transcript only"


class FakeExtractor:
    """Writes small placeholder files instead of running ffmpeg."""

    audio_format = "mp3"

    def __init__(
        self,
        duration: float | None = 180.0,
        audio_error: Exception | None = None,
        frames_error: Exception | None = None,
    ):
        self.duration = duration
        self.audio_error = audio_error
        self.frames_error = frames_error
        self.audio_calls: list[tuple[Path, Path]] = []
        self.frame_calls: list[list[float]] = []
        self.created: list[Path] = []

    def probe_duration(self, path: Path) -> float | None:
        return self.duration

    def extract_audio(self, path: Path, audio_path: Path) -> Path:
        self.audio_calls.append((path, audio_path))
        if self.audio_error is not None:
            audio_path.write_bytes(b"partial")
            self.created.append(audio_path)
            raise self.audio_error
        audio_path.write_bytes(b"ID3audio")
        self.created.append(audio_path)
        return audio_path

    def extract_frames(self, path, timestamps, output_dir, artifacts=None) -> list[Frame]:
        self.frame_calls.append(list(timestamps))
        frames = []
        for index, ts in enumerate(timestamps, start=1):
            out = frame_path(output_dir, index)
            if artifacts is not None:
                artifacts.register(out)
            out.write_bytes(b"\xff\xd8jpeg%d" % index)
            self.created.append(out)
            if self.frames_error is not None and index == 2:
                raise self.frames_error
            frames.append(Frame(index=index, image_bytes=out.read_bytes(), timestamp=float(ts), path=str(out)))
        return frames


class FakeTranscriber:
    def __init__(self, text: str = "Run pip install mediasum, then call the CLI.", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[Path] = []

    def transcribe(self, audio_path: Path) -> str:
        self.calls.append(Path(audio_path))
        if self.error is not None:
            raise self.error
        return self.text


