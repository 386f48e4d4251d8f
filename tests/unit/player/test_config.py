"""Tests for configuration loading."""

from pathlib import Path

import pytest

from player.config import load_config


def _write_settings(config_dir: Path, text: str) -> None:
    (config_dir / "settings.yaml").write_text(text, encoding="utf-8")


def test_defaults_fill_missing_keys(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("STORY_FETCH_TOKEN", "tok-123")
    _write_settings(tmp_path, "player:\n  pace_text: true\nextra:\n  key: value\n")

    cfg = load_config(tmp_path)

    assert cfg["player"] == {"start": "start", "pace_text": True, "prompt": "Choice"}
    assert cfg["fetch"]["timeout"] == 30.0
    assert cfg["storage"]["journal_db"] is None
    assert cfg["extra"] == {"key": "value"}
    assert cfg["_secrets"]["story_token"] == "tok-123"


def test_env_file_supplies_token(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("STORY_FETCH_TOKEN", "placeholder")
    monkeypatch.delenv("STORY_FETCH_TOKEN")
    _write_settings(tmp_path, "")
    (tmp_path / ".env").write_text("STORY_FETCH_TOKEN=from-dotenv\n", encoding="utf-8")

    cfg = load_config(tmp_path)

    assert cfg["_secrets"]["story_token"] == "from-dotenv"


def test_missing_settings(tmp_path: Path):
    with pytest.raises(FileNotFoundError, match="settings.yaml"):
        load_config(tmp_path)


def test_bundled_settings_load():
    cfg = load_config()
    assert cfg["player"]["start"] == "start"
    assert cfg["fetch"]["base_dir"] == "."
