"""JSON config at %APPDATA%\\failwhale\\config.json.

Holds polling, retry and popup timings. Missing keys are filled from
defaults. API tokens are never written to disk; they are read from the
GITHUB_TOKEN and GIPHY_API_KEY environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "poll_interval": 10,
    "request_timeout": 10,
    "probe_timeout": 5,
    "max_attempts": 3,
    "backoff_base": 1.0,
    "backoff_cap": 30.0,
    "api_base": "https://api.github.com",
    "popup_visible_seconds": 5.0,
    "popup_slide_seconds": 0.5,
    "notify_queue_size": 3,
}

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GIPHY_KEY_ENV = "GIPHY_API_KEY"


def app_dir() -> Path:
    return Path(os.environ.get("APPDATA", Path.home())) / "failwhale"


def config_path() -> Path:
    return app_dir() / "config.json"


def load_config() -> dict:
    path = config_path()
    if not path.exists():
        save_config(DEFAULT_CONFIG)
        return dict(DEFAULT_CONFIG)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        log.error("Failed to load config: %s", e)
        return dict(DEFAULT_CONFIG)
    if not isinstance(data, dict):
        log.error("Ignoring config %s: expected a JSON object", path)
        return dict(DEFAULT_CONFIG)
    return {**DEFAULT_CONFIG, **data}


def save_config(cfg: dict) -> None:
    path = config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
    except OSError as e:
        log.error("Failed to save config: %s", e)
        return
    log.info("Config saved to %s", path)


def load_tokens() -> tuple[str, str]:
    """Return ``(github_token, giphy_api_key)`` from the environment."""
    github_token = os.environ.get(GITHUB_TOKEN_ENV, "").strip()
    giphy_key = os.environ.get(GIPHY_KEY_ENV, "").strip()
    if not giphy_key:
        log.warning("%s is not set; popups will be skipped", GIPHY_KEY_ENV)
    return github_token, giphy_key
