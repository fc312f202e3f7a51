"""Tests for a single polling cycle."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from failwhale.poller import Poller
from failwhale.sources import SourceStore
from failwhale.tracker import WorkflowTracker

KEYS = ["octo/alpha", "octo/beta"]


@pytest.fixture
def store(tmp_path):
    store = SourceStore(tmp_path / "sources.json")
    store.add("https://github.com/octo/alpha")
    store.add("https://github.com/octo/beta")
    return store


@pytest.fixture
def github():
    github = MagicMock()
    github.is_reachable.return_value = True
    github.fetch_latest_runs.return_value = []
    return github


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.notify.return_value = True
    return notifier


def test_polls_sources_in_stored_order(store, github, notifier):
    Poller(store, github, WorkflowTracker(KEYS), notifier).poll_once()

    calls = [c.args for c in github.fetch_latest_runs.call_args_list]
    assert calls == [("octo", "alpha"), ("octo", "beta")]


def test_unreachable_network_skips_cycle(store, github, notifier):
    github.is_reachable.return_value = False

    assert Poller(store, github, WorkflowTracker(KEYS), notifier).poll_once() is True
    github.fetch_latest_runs.assert_not_called()


def test_first_cycle_seeds_then_completion_notifies(store, github, notifier, make_run):
    tracker = WorkflowTracker(KEYS)
    poller = Poller(store, github, tracker, notifier)

    github.fetch_latest_runs.side_effect = lambda owner, repo: [make_run(1)]
    poller.poll_once()
    notifier.notify.assert_not_called()
    assert sorted(tracker.keys()) == ["octo/alpha", "octo/beta"]

    github.fetch_latest_runs.side_effect = lambda owner, repo: (
        [make_run(1, "completed", "success")] if repo == "alpha" else [make_run(1)]
    )
    poller.poll_once()
    notifier.notify.assert_called_once_with("success")


def test_only_latest_run_is_consulted(store, github, notifier, make_run):
    tracker = WorkflowTracker(KEYS)
    poller = Poller(store, github, tracker, notifier)
    github.fetch_latest_runs.side_effect = lambda owner, repo: [make_run(9), make_run(8, "completed", "failure")]

    poller.poll_once()

    assert tracker.get("octo/alpha").latest_run_id == 9


def test_empty_result_leaves_state_alone(store, github, notifier, make_run):
    tracker = WorkflowTracker(KEYS)
    tracker.observe("octo/alpha", make_run(1))
    poller = Poller(store, github, tracker, notifier)

    poller.poll_once()

    assert tracker.get("octo/alpha").latest_run_id == 1
    assert "octo/beta" not in tracker
    notifier.notify.assert_not_called()


def test_same_repo_polled_once_per_cycle(tmp_path, github, notifier):
    store = SourceStore(tmp_path / "sources.json")
    store.add("https://github.com/octo/alpha")
    store.add("https://github.com/octo/alpha/actions")

    Poller(store, github, WorkflowTracker(KEYS), notifier).poll_once()

    assert github.fetch_latest_runs.call_count == 1


def test_error_in_one_repo_does_not_abort_cycle(store, github, notifier, make_run):
    def fetch(owner, repo):
        if repo == "alpha":
            raise RuntimeError("boom")
        return [make_run(1)]

    tracker = WorkflowTracker(KEYS)
    github.fetch_latest_runs.side_effect = fetch

    Poller(store, github, tracker, notifier).poll_once()

    assert "octo/beta" in tracker


def test_overlapping_cycle_is_skipped(store, github, notifier):
    entered = threading.Event()
    release = threading.Event()

    def slow_probe():
        entered.set()
        release.wait(timeout=5)
        return False

    github.is_reachable.side_effect = slow_probe
    poller = Poller(store, github, WorkflowTracker(KEYS), notifier)
    worker = threading.Thread(target=poller.poll_once)
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert poller.busy
        assert poller.poll_once() is False
    finally:
        release.set()
        worker.join(timeout=5)

    assert github.is_reachable.call_count == 1
    assert not poller.busy
    assert poller.poll_once() is True


def test_unwatched_repo_is_not_fetched(store, github, notifier):
    Poller(store, github, WorkflowTracker(["octo/beta"]), notifier).poll_once()

    calls = [c.args for c in github.fetch_latest_runs.call_args_list]
    assert calls == [("octo", "beta")]


def test_same_repo_in_different_case_polled_once(tmp_path, github, notifier):
    store = SourceStore(tmp_path / "sources.json")
    store.add("https://github.com/Octo/Alpha")
    store.add("https://github.com/octo/alpha")

    Poller(store, github, WorkflowTracker(KEYS), notifier).poll_once()

    assert github.fetch_latest_runs.call_count == 1


def test_source_removed_during_fetch_leaves_no_state(store, github, notifier, make_run):
    tracker = WorkflowTracker(KEYS)
    fetching = threading.Event()
    release = threading.Event()

    def fetch(owner, repo):
        if repo == "alpha":
            fetching.set()
            release.wait(timeout=5)
        return [make_run(1)]

    github.fetch_latest_runs.side_effect = fetch
    poller = Poller(store, github, tracker, notifier)
    worker = threading.Thread(target=poller.poll_once)
    worker.start()
    try:
        assert fetching.wait(timeout=5)
        store.remove(0)
        tracker.forget("octo/alpha")
    finally:
        release.set()
        worker.join(timeout=5)

    assert "octo/alpha" not in tracker
    assert "octo/beta" in tracker
