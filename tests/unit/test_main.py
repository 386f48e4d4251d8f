"""Tests for the command-line entry points."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from main import main
from scripts.check_story import check


def _config_dir(tmp_path: Path) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "settings.yaml").write_text(
        f"fetch:\n  base_dir: {json.dumps(str(tmp_path))}\n", encoding="utf-8"
    )
    return config_dir


def _write_story(tmp_path: Path, name: str, document: dict) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


_PICK = {
    "start": {
        "type": "fork",
        "text": "pick",
        "options": [["1", "go left", "left"], ["2", "go right", "right"]],
    },
    "left": {"type": "road", "text": "L", "next": None},
    "right": {"type": "road", "text": "R", "next": None},
}


def test_play_to_the_end(tmp_path: Path):
    story = _write_story(tmp_path, "pick.json", _PICK)
    result = CliRunner().invoke(
        main, [str(story), "--config-dir", str(_config_dir(tmp_path))], input="9\n2\n"
    )
    assert result.exit_code == 0, result.output
    assert "  1) go left" in result.output
    assert "'9' is not one of the choices." in result.output
    assert "\nR\n" in result.output
    assert "The End." in result.output


def test_play_follows_file_nodes(tmp_path: Path):
    _write_story(tmp_path, "more.json", {"entry": {"type": "road", "text": "from disk", "next": None}})
    story = _write_story(tmp_path, "main.json", {"start": {"type": "file", "path": "more.json", "next": "entry"}})
    result = CliRunner().invoke(main, [str(story), "--config-dir", str(_config_dir(tmp_path))])
    assert result.exit_code == 0, result.output
    assert "from disk" in result.output


def test_unknown_start_fails(tmp_path: Path):
    story = _write_story(tmp_path, "pick.json", _PICK)
    result = CliRunner().invoke(
        main, [str(story), "--start", "nowhere", "--config-dir", str(_config_dir(tmp_path))]
    )
    assert result.exit_code == 1
    assert "Node 'nowhere' does not exist" in result.output


def test_check_story_reports_counts(tmp_path: Path):
    story = _write_story(tmp_path, "pick.json", {
        **_PICK,
        "away": {"type": "link", "url": "https://example.com/more.json", "next": "entry"},
    })
    result = CliRunner().invoke(check, [str(story)])
    assert result.exit_code == 0, result.output
    assert "OK, 4 nodes" in result.output
    assert "https://example.com/more.json" in result.output


def test_check_story_rejects_dangling_reference(tmp_path: Path):
    story = _write_story(tmp_path, "bad.json", {"start": {"type": "road", "text": "hi", "next": "gone"}})
    result = CliRunner().invoke(check, [str(story)])
    assert result.exit_code == 1
    assert "'gone'" in result.output
