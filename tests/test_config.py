"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from worklog.config import WorkRecordConfig, reset_config
from worklog.types import ProviderConfig

ENV_VARS = [
    "WORK_RECORD_LOG_DIR",
    "WORK_RECORD_OUTPUT_DIR",
    "WORK_RECORD_USE_LOCAL",
    "WORK_RECORD_OLLAMA_ENDPOINT",
    "WORK_RECORD_OLLAMA_MODEL",
    "WORK_RECORD_LLM_API_URL",
    "WORK_RECORD_LLM_API_KEY",
    "WORK_RECORD_LLM_MODEL",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


def _write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    return path


def test_defaults_without_config_file():
    config = WorkRecordConfig.load()

    assert config.provider.use_local is True
    assert config.provider.local_model == "llama3"
    assert config.storage.log_dir == "~/work_records"


def test_load_from_explicit_file(tmp_path):
    path = _write_yaml(tmp_path / "custom.yaml", {
        "provider": {"use_local": False, "remote_url": "https://api.example.com/v1/chat/completions",
                     "remote_api_key": "sk-file"},
        "output": {"output_dir": "/srv/summaries"},
    })
    config = WorkRecordConfig.load(path)

    assert config.provider.use_local is False
    assert config.provider.remote_api_key == "sk-file"
    assert config.output.output_dir == "/srv/summaries"
    assert config.storage.log_dir == "~/work_records"


def test_config_discovered_in_working_directory(tmp_path):
    _write_yaml(tmp_path / "work-record.yaml", {"provider": {"local_model": "qwen2"}})
    assert WorkRecordConfig.load().provider.local_model == "qwen2"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = _write_yaml(tmp_path / "c.yaml", {"provider": {"use_local": True, "local_model": "llama3"}})
    monkeypatch.setenv("WORK_RECORD_USE_LOCAL", "false")
    monkeypatch.setenv("WORK_RECORD_LLM_API_URL", "https://dashscope.aliyuncs.com/compatible-mode/v1")
    monkeypatch.setenv("WORK_RECORD_LLM_API_KEY", "sk-env")

    config = WorkRecordConfig.load(path)

    assert config.provider.use_local is False
    assert config.provider.remote_url.startswith("https://dashscope")
    assert config.provider.remote_api_key == "sk-env"


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        WorkRecordConfig.load(tmp_path / "absent.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("provider: [unclosed", encoding="utf-8")

    with pytest.raises(ValueError):
        WorkRecordConfig.load(path)


def test_unknown_field(tmp_path):
    path = _write_yaml(tmp_path / "bad.yaml", {"provider": {"temperature": 0.2}})

    with pytest.raises(ValueError):
        WorkRecordConfig.load(path)


def test_save_round_trip(tmp_path):
    config = WorkRecordConfig()
    config.provider.remote_model = "qwen-max"
    path = config.save(tmp_path / "saved" / "config.yaml")

    assert WorkRecordConfig.load(path).provider.remote_model == "qwen-max"


def test_to_provider_config():
    config = WorkRecordConfig()
    config.provider.remote_model = ""
    provider = config.provider.to_provider_config()

    assert isinstance(provider, ProviderConfig)
    assert provider.use_local is True
    assert provider.remote_model is None


def test_directories_expand_home(tmp_path):
    config = WorkRecordConfig()
    assert config.get_log_directory() == tmp_path / "home" / "work_records"
    assert config.get_output_directory() == tmp_path / "home" / "work_records" / "summaries"


def test_reset_config_returns_defaults():
    assert reset_config().provider.local_endpoint == "http://localhost:11434"
