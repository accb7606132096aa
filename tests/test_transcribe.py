"""Tests for mediasum/transcribe.py."""

import sys
import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from mediasum.transcribe import HostedTranscriber, LocalWhisperTranscriber, TranscriptionError


class FakeTranscriptions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def create(self, file, **kwargs):
        self.calls.append({"data": file.read(), **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def make_client(**kwargs):
    transcriptions = FakeTranscriptions(**kwargs)
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions)), transcriptions


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "audio.mp3"
    path.write_bytes(b"ID3data")
    return path


class TestHostedTranscriber:
    def test_returns_text(self, audio_file):
        client, calls = make_client(response=SimpleNamespace(text="hello world"))
        transcriber = HostedTranscriber(client, language="en", timeout=45)

        assert transcriber.transcribe(audio_file) == "hello world"
        call = calls.calls[0]
        assert call["data"] == b"ID3data"
        assert call["model"] == "whisper-large-v3"
        assert call["language"] == "en"
        assert call["timeout"] == 45

    def test_optional_kwargs_omitted(self, audio_file):
        client, calls = make_client(response=SimpleNamespace(text="hi"))
        HostedTranscriber(client, model="whisper-small").transcribe(str(audio_file))

        call = calls.calls[0]
        assert call["model"] == "whisper-small"
        assert "language" not in call
        assert "timeout" not in call

    def test_empty_text_is_returned(self, audio_file):
        client, _ = make_client(response=SimpleNamespace(text=""))
        assert HostedTranscriber(client).transcribe(audio_file) == ""

    def test_api_error(self, audio_file):
        client, _ = make_client(error=OpenAIError("service unavailable"))
        with pytest.raises(TranscriptionError, match="service unavailable"):
            HostedTranscriber(client).transcribe(audio_file)

    def test_missing_text_field(self, audio_file):
        client, _ = make_client(response=SimpleNamespace())
        with pytest.raises(TranscriptionError):
            HostedTranscriber(client).transcribe(audio_file)

    def test_missing_file(self, tmp_path):
        client, calls = make_client(response=SimpleNamespace(text="x"))
        with pytest.raises(FileNotFoundError):
            HostedTranscriber(client).transcribe(tmp_path / "nope.mp3")
        assert calls.calls == []


class TestLocalWhisperTranscriber:
    def test_joins_segments(self, audio_file):
        segments = [SimpleNamespace(text=" First part. "), SimpleNamespace(text="  "), SimpleNamespace(text="Second.")]
        info = SimpleNamespace(language="en", language_probability=0.98)

        class FakeWhisperModel:
            def transcribe(self, path, **kwargs):
                return iter(segments), info

        transcriber = LocalWhisperTranscriber()
        transcriber._model = FakeWhisperModel()

        assert transcriber.transcribe(audio_file) == "First part. Second."

    def test_model_error_wrapped(self, audio_file):
        class BrokenModel:
            def transcribe(self, path, **kwargs):
                raise RuntimeError("CUDA out of memory")

        transcriber = LocalWhisperTranscriber()
        transcriber._model = BrokenModel()

        with pytest.raises(TranscriptionError, match="CUDA out of memory"):
            transcriber.transcribe(audio_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocalWhisperTranscriber().transcribe(tmp_path / "nope.wav")

    def test_model_loaded_once_under_concurrency(self, audio_file, monkeypatch):
        created = []

        class SlowWhisperModel:
            def __init__(self, model_size, **kwargs):
                time.sleep(0.05)
                created.append(model_size)

            def transcribe(self, path, **kwargs):
                info = SimpleNamespace(language="en", language_probability=1.0)
                return iter([SimpleNamespace(text="hello")]), info

        monkeypatch.setitem(sys.modules, "faster_whisper", SimpleNamespace(WhisperModel=SlowWhisperModel))
        transcriber = LocalWhisperTranscriber(model_size="tiny")

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: transcriber.transcribe(audio_file), range(4)))

        assert results == ["hello"] * 4
        assert created == ["tiny"]
