"""
Pipeline error taxonomy.

Stage-level failures surface to callers as one of these exceptions. Each
carries a stable ``code`` and a ``retryable`` hint; retrying is left to the
caller, nothing in the pipeline retries on its own.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for errors surfaced by a pipeline run."""

    code = "pipeline_error"
    retryable = False

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


class UnsupportedMediaType(PipelineError):
    """Declared media type is neither audio nor video."""

    code = "unsupported_media_type"


class ExtractionFailed(PipelineError):
    """Audio could not be extracted from the source."""

    code = "extraction_failed"
    retryable = True


class TranscriptionFailed(PipelineError):
    """Speech-to-text failed."""

    code = "transcription_failed"
    retryable = True


class EmptyTranscript(PipelineError):
    """Transcription produced no usable text."""

    code = "empty_transcript"


class SynthesisFailed(PipelineError):
    """Final synthesis failed after every fallback was exhausted."""

    code = "synthesis_failed"
    retryable = True
