"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from failwhale.github_api import WorkflowRun


@pytest.fixture(autouse=True)
def app_dir(tmp_path, monkeypatch):
    """Point %APPDATA% at a temp dir so config and sources never touch $HOME."""
    monkeypatch.setenv("APPDATA", str(tmp_path))
    return tmp_path / "failwhale"


@pytest.fixture
def make_run():
    def _make(run_id, status="in_progress", conclusion=None):
        return WorkflowRun(id=run_id, status=status, conclusion=conclusion)

    return _make
