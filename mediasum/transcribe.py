"""
Speech-to-text transcription.

Two backends share the same ``transcribe(audio_path) -> str`` interface:

- HostedTranscriber: Whisper behind an OpenAI-compatible API (Groq by default)
- LocalWhisperTranscriber: faster-whisper running in-process (``local`` extra)
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from faster_whisper import WhisperModel
    from openai import OpenAI

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """Error during transcription."""

    pass


class HostedTranscriber:
    """
    Transcribes audio through an OpenAI-compatible ``audio.transcriptions`` endpoint.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "whisper-large-v3",
        language: str | None = None,
        timeout: float | None = None,
    ):
        self.client = client
        self.model = model
        self.language = language
        self.timeout = timeout

    def transcribe(self, audio_path: Path | str) -> str:
        """
        Transcribe an audio file.

        Raises:
            TranscriptionError: If the API call fails or returns no text field
            FileNotFoundError: If audio file doesn't exist
        """
        from openai import OpenAIError

        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        logger.info(f"Transcribing {audio_path.name} using {self.model}...")

        kwargs: dict[str, Any] = {"model": self.model}
        if self.language:
            kwargs["language"] = self.language
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            with open(audio_path, "rb") as f:
                transcription = self.client.audio.transcriptions.create(file=f, **kwargs)
        except OpenAIError as e:
            raise TranscriptionError(f"Transcription failed ({self.model}): {e}") from e

        text = getattr(transcription, "text", None)
        if not isinstance(text, str):
            raise TranscriptionError(f"Unexpected transcription response from {self.model}")

        logger.info(f"Transcription received ({len(text)} chars)")
        return text


class LocalWhisperTranscriber:
    """
    Transcribes audio in-process with faster-whisper.

    The model is loaded lazily on first use and reused afterwards.
    """

    def __init__(
        self,
        model_size: str = "medium",
        device: str = "auto",
        compute_type: str = "default",
        language: str | None = None,
        vad_filter: bool = True,
        beam_size: int = 5,
        cpu_threads: int = 4,
    ):
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self.vad_filter = vad_filter
        self.beam_size = beam_size
        self.cpu_threads = cpu_threads
        self._model: WhisperModel | None = None
        self._model_lock = threading.Lock()

    def _load_model(self) -> WhisperModel:
        """Lazy load the Whisper model (once, even with concurrent callers)."""
        if self._model is not None:
            return self._model

        with self._model_lock:
            if self._model is None:
                from faster_whisper import WhisperModel

                logger.info(f"Loading Whisper model: {self.model_size} on {self.device} ({self.compute_type})")
                self._model = WhisperModel(
                    self.model_size,
                    device=self.device,
                    compute_type=self.compute_type,
                    cpu_threads=self.cpu_threads,
                )
        return self._model

    def transcribe(self, audio_path: Path | str) -> str:
        """
        Transcribe an audio file and join the segments into plain text.

        Raises:
            TranscriptionError: If transcription fails
            FileNotFoundError: If audio file doesn't exist
        """
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        try:
            model = self._load_model()
            segments, info = model.transcribe(
                str(audio_path),
                language=self.language,
                beam_size=self.beam_size,
                vad_filter=self.vad_filter,
            )
            logger.info(f"Detected language: {info.language} (prob: {info.language_probability:.2f})")
            # segments is a generator; decoding happens while iterating
            text = " ".join(seg.text.strip() for seg in segments if seg.text.strip())
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        logger.info(f"Transcribed {audio_path.name} ({len(text)} chars)")
        return text
