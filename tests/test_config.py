"""Tests for mediasum/config.py."""

import pytest

from mediasum.config import (
    DEFAULT_MAX_FRAMES,
    DEFAULT_SECONDS_PER_FRAME,
    apply_env_overrides,
    get_default_config,
    load_config,
    sampling_policy_from_config,
)

ENV_VARS = ["VIDEO_SECONDS_PER_FRAME", "MAX_VIDEO_FRAMES", "MEDIASUM_WORK_DIR", "OPENAI_BASE_URL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_sections_present(self):
        config = get_default_config()
        for section in ("ffmpeg", "sampling", "transcription", "llm", "processing", "server"):
            assert section in config

    def test_sampling_defaults(self):
        policy = sampling_policy_from_config(get_default_config())
        assert policy.interval_seconds == DEFAULT_SECONDS_PER_FRAME
        assert policy.max_frames == DEFAULT_MAX_FRAMES

    def test_defaults_are_fresh_copies(self):
        get_default_config()["sampling"]["max_frames"] = 1
        assert get_default_config()["sampling"]["max_frames"] == DEFAULT_MAX_FRAMES


class TestLoadConfig:
    def test_merges_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sampling:\n  max_frames: 12\nllm:\n  text_model: other-model\n")

        config = load_config(path)

        assert config["sampling"]["max_frames"] == 12
        assert config["sampling"]["interval_seconds"] == DEFAULT_SECONDS_PER_FRAME
        assert config["llm"]["text_model"] == "other-model"
        assert config["llm"]["vision_model"] == get_default_config()["llm"]["vision_model"]

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == get_default_config()

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("sampling:\n  interval_seconds: 4\n")
        monkeypatch.setenv("VIDEO_SECONDS_PER_FRAME", "15")

        assert load_config(path)["sampling"]["interval_seconds"] == 15


class TestEnvOverrides:
    def test_all_recognised_variables(self, monkeypatch):
        monkeypatch.setenv("VIDEO_SECONDS_PER_FRAME", "5")
        monkeypatch.setenv("MAX_VIDEO_FRAMES", "8")
        monkeypatch.setenv("MEDIASUM_WORK_DIR", "/tmp/mediasum")
        monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8000/v1")

        config = apply_env_overrides(get_default_config())

        assert config["sampling"] == {"interval_seconds": 5, "max_frames": 8}
        assert config["processing"]["work_dir"] == "/tmp/mediasum"
        assert config["llm"]["base_url"] == "http://localhost:8000/v1"

    @pytest.mark.parametrize("value", ["abc", "0", "-3", "2.5"])
    def test_invalid_values_ignored(self, monkeypatch, value):
        monkeypatch.setenv("MAX_VIDEO_FRAMES", value)
        config = apply_env_overrides(get_default_config())
        assert config["sampling"]["max_frames"] == DEFAULT_MAX_FRAMES

    def test_policy_from_overridden_config(self, monkeypatch):
        monkeypatch.setenv("VIDEO_SECONDS_PER_FRAME", "20")
        policy = sampling_policy_from_config(apply_env_overrides(get_default_config()))
        assert policy.interval_seconds == 20.0
