"""Configuration loading from settings.yaml and .env."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

DEFAULTS = {
    "player": {"start": "start", "pace_text": False, "prompt": "Choice"},
    "fetch": {"timeout": 30.0, "user_agent": "adventure/0.1", "base_dir": "."},
    "storage": {"journal_db": None, "log_file": None},
}


def load_config(
    config_dir: str | Path | None = None,
) -> dict:
    """Load settings.yaml and .env, return merged config dict."""
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent / "config"
    config_dir = Path(config_dir)

    # Load .env (silently skip if missing)
    env_path = config_dir / ".env"
    load_dotenv(env_path)

    settings_path = config_dir / "settings.yaml"
    if not settings_path.exists():
        raise FileNotFoundError(f"Config not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    cfg: dict = {}
    for section, defaults in DEFAULTS.items():
        cfg[section] = {**defaults, **(loaded.get(section) or {})}
    for section, value in loaded.items():
        cfg.setdefault(section, value)

    cfg["_secrets"] = {
        "story_token": os.getenv("STORY_FETCH_TOKEN", ""),
    }

    return cfg
