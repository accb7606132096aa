"""Tests for mediasum/serve.py HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

import mediasum.serve as serve
from fakes import FakeExtractor, FakeModelClient, FakeTranscriber
from mediasum.config import get_default_config
from mediasum.llm import ModelCallError
from mediasum.pipeline import MediaPipeline
from mediasum.synthesis import SynthesisEngine


@pytest.fixture
def uploads_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def config(uploads_dir):
    config = get_default_config()
    config["server"]["uploads_dir"] = str(uploads_dir)
    return config


@pytest.fixture
def setup_server(monkeypatch, config, tmp_path):
    """Install a config and a pipeline built from fakes; globals restored afterwards."""

    def install(client=None, transcriber=None, extractor=None, pipeline=None):
        if pipeline is None:
            work_dir = tmp_path / "work"
            work_dir.mkdir(exist_ok=True)
            pipeline = MediaPipeline(
                extractor or FakeExtractor(),
                transcriber or FakeTranscriber(),
                SynthesisEngine(client or FakeModelClient(), progress_bar=False),
                work_dir=work_dir,
            )
        monkeypatch.setattr(serve, "_config", config)
        monkeypatch.setattr(serve, "_pipeline", pipeline)
        return TestClient(serve.app)

    return install


def upload(client, name="demo.mp4", content=b"\x00\x00\x00\x18ftypmp42", media_type="video/mp4"):
    return client.post("/summarize", files={"mediaFile": (name, content, media_type)})


class TestHealth:
    def test_health(self, setup_server):
        response = setup_server().get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestSummarize:
    def test_video_success(self, setup_server, uploads_dir):
        model = FakeModelClient()
        client = setup_server(client=model)

        response = upload(client)

        assert response.status_code == 200
        assert response.json() == {"summary": "document with 4 visual sections", "modelUsed": "fake-text"}
        assert len(model.batch_calls) == 4
        assert list(uploads_dir.iterdir()) == []

    def test_audio_success(self, setup_server, uploads_dir):
        model = FakeModelClient()
        client = setup_server(client=model)

        response = upload(client, name="talk.mp3", content=b"ID3audio", media_type="audio/mpeg")

        assert response.status_code == 200
        assert response.json()["summary"] == "summary from transcript only"
        assert model.batch_calls == []
        assert list(uploads_dir.iterdir()) == []

    def test_no_file(self, setup_server):
        response = setup_server().post("/summarize")

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded."}

    def test_unsupported_type(self, setup_server, uploads_dir):
        response = upload(setup_server(), name="notes.pdf", content=b"%PDF", media_type="application/pdf")

        assert response.status_code == 415
        body = response.json()
        assert body["error"] == "Unsupported file type."
        assert body["code"] == "unsupported_media_type"
        assert list(uploads_dir.iterdir()) == []

    def test_pipeline_failure(self, setup_server, uploads_dir):
        model = FakeModelClient(synthesis_error=ModelCallError("model overloaded"))
        response = upload(setup_server(client=model))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to process file."
        assert body["code"] == "synthesis_failed"
        assert "model overloaded" in body["details"]
        assert list(uploads_dir.iterdir()) == []

    def test_empty_transcript(self, setup_server):
        response = upload(setup_server(transcriber=FakeTranscriber(text="  ")), name="a.wav", media_type="audio/wav")

        assert response.status_code == 500
        assert response.json()["code"] == "empty_transcript"

    def test_upload_too_large(self, setup_server, config, uploads_dir):
        config["server"]["max_upload_mb"] = 0
        model = FakeModelClient()

        response = upload(setup_server(client=model))

        assert response.status_code == 413
        assert response.json()["error"] == "File too large."
        assert model.synthesis_calls == []
        assert list(uploads_dir.iterdir()) == []

    @pytest.mark.parametrize("sampling", [{"max_frames": 0}, {"interval_seconds": -5}, {"max_frames": "many"}])
    def test_invalid_sampling_config(self, setup_server, config, uploads_dir, sampling):
        config["sampling"].update(sampling)
        model = FakeModelClient()

        response = upload(setup_server(client=model), name="talk.mp3", content=b"ID3audio", media_type="audio/mpeg")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Server is not configured."
        assert body["details"]
        assert model.synthesis_calls == []
        assert list(uploads_dir.iterdir()) == []

    def test_unconfigured_server(self, monkeypatch, config, uploads_dir):
        def missing_key(config):
            raise ValueError("GROQ_API_KEY environment variable not set")

        monkeypatch.setattr(serve, "_config", config)
        monkeypatch.setattr(serve, "_pipeline", None)
        monkeypatch.setattr(serve, "build_pipeline", missing_key)

        response = upload(TestClient(serve.app))

        assert response.status_code == 500
        assert response.json()["error"] == "Server is not configured."
        assert list(uploads_dir.iterdir()) == []


class TestUploadPath:
    def test_keeps_extension_and_is_unique(self, tmp_path):
        first = serve._upload_path(tmp_path, "My Talk.m4a")
        second = serve._upload_path(tmp_path, "My Talk.m4a")

        assert first.suffix == ".m4a"
        assert first.name.startswith("mediaFile-")
        assert first != second
