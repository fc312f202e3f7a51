"""Tests for the JSON config loader."""

from __future__ import annotations

import json

from failwhale.config import DEFAULT_CONFIG, config_path, load_config, load_tokens


def test_missing_config_writes_defaults(app_dir):
    cfg = load_config()

    assert cfg == DEFAULT_CONFIG
    assert config_path() == app_dir / "config.json"
    assert json.loads(config_path().read_text(encoding="utf-8")) == DEFAULT_CONFIG


def test_partial_config_is_merged_with_defaults(app_dir):
    app_dir.mkdir(parents=True)
    config_path().write_text(json.dumps({"poll_interval": 60}), encoding="utf-8")

    cfg = load_config()

    assert cfg["poll_interval"] == 60
    assert cfg["max_attempts"] == 3
    assert cfg["backoff_cap"] == 30.0


def test_malformed_config_falls_back_to_defaults(app_dir):
    app_dir.mkdir(parents=True)
    config_path().write_text("{not json", encoding="utf-8")

    assert load_config() == DEFAULT_CONFIG


def test_non_object_config_falls_back_to_defaults(app_dir):
    app_dir.mkdir(parents=True)
    config_path().write_text("[1, 2]", encoding="utf-8")

    assert load_config() == DEFAULT_CONFIG


def test_tokens_come_from_environment(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", " ghp_123 ")
    monkeypatch.setenv("GIPHY_API_KEY", "giphy")

    assert load_tokens() == ("ghp_123", "giphy")


def test_missing_tokens_are_empty(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GIPHY_API_KEY", raising=False)

    assert load_tokens() == ("", "")
