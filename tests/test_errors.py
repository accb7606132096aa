"""Tests for mediasum/errors.py."""

import pytest

from mediasum.errors import (
    EmptyTranscript,
    ExtractionFailed,
    PipelineError,
    SynthesisFailed,
    TranscriptionFailed,
    UnsupportedMediaType,
)


class TestPipelineErrors:
    @pytest.mark.parametrize(
        "cls, code, retryable",
        [
            (UnsupportedMediaType, "unsupported_media_type", False),
            (ExtractionFailed, "extraction_failed", True),
            (TranscriptionFailed, "transcription_failed", True),
            (EmptyTranscript, "empty_transcript", False),
            (SynthesisFailed, "synthesis_failed", True),
        ],
    )
    def test_codes(self, cls, code, retryable):
        error = cls("message")
        assert isinstance(error, PipelineError)
        assert error.code == code
        assert error.retryable is retryable

    def test_str_includes_detail(self):
        assert str(ExtractionFailed("Audio extraction failed", "no audio stream")) == (
            "Audio extraction failed: no audio stream"
        )
        assert str(EmptyTranscript("Transcription resulted in empty text")) == "Transcription resulted in empty text"

    def test_to_dict(self):
        error = SynthesisFailed("Final synthesis failed", "503")
        assert error.to_dict() == {
            "code": "synthesis_failed",
            "message": "Final synthesis failed",
            "detail": "503",
        }
