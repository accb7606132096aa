"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from fakes import FakeExtractor, FakeModelClient, FakeTranscriber
from mediasum.schema import Frame


@pytest.fixture
def make_frames():
    def _make(count: int, start_index: int = 1) -> list[Frame]:
        return [
            Frame(index=i, image_bytes=b"img%d" % i, timestamp=float(i * 10))
            for i in range(start_index, start_index + count)
        ]

    return _make


@pytest.fixture
def fake_client():
    return FakeModelClient()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def fake_transcriber():
    return FakeTranscriber()


@pytest.fixture
def source_video(tmp_path):
    path = tmp_path / "uploads" / "demo video.mp4"
    path.parent.mkdir(exist_ok=True)
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


@pytest.fixture
def source_audio(tmp_path):
    path = tmp_path / "uploads" / "talk.mp3"
    path.parent.mkdir(exist_ok=True)
    path.write_bytes(b"ID3audio")
    return path
