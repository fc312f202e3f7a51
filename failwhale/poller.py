"""One polling cycle over all monitored repositories.

A cycle checks connectivity, then walks the sources in stored order,
fetches each repo's latest workflow run and lets the tracker decide
whether a popup is due. Cycles never overlap: a call that arrives while
another is still running is skipped.
"""

from __future__ import annotations

import logging
import threading

from .resolver import resolve_repo

log = logging.getLogger(__name__)


class Poller:
    """Polls GitHub for the sources in a store and triggers notifications."""

    def __init__(self, store, github, tracker, notifier) -> None:
        self._store = store
        self.github = github
        self._tracker = tracker
        self._notifier = notifier
        self._cycle_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._cycle_lock.locked()

    def poll_once(self) -> bool:
        """Run a cycle. Returns False if one was already in progress."""
        if not self._cycle_lock.acquire(blocking=False):
            log.info("Previous poll still running, skipping this cycle")
            return False
        try:
            self._cycle()
        finally:
            self._cycle_lock.release()
        return True

    def _cycle(self) -> None:
        if not self.github.is_reachable():
            log.info("Network unavailable, skipping workflow check")
            return

        seen: set[str] = set()
        notification_count = 0

        for source in self._store.sources():
            ref = resolve_repo(source.url)
            if ref is None:
                log.warning("Skipping source with unexpected url: %s", source.url)
                continue
            if ref.key in seen or not self._tracker.is_watched(ref.key):
                continue
            seen.add(ref.key)

            try:
                if self._check_repo(ref):
                    notification_count += 1
            except Exception as e:
                log.error("Error while checking %s: %s", ref.key, e)

        if notification_count:
            log.info("Sent %d notification(s) this cycle", notification_count)

    def _check_repo(self, ref) -> bool:
        runs = self.github.fetch_latest_runs(ref.owner, ref.repo)
        if not runs:
            return False

        tag = self._tracker.observe(ref.key, runs[0])
        if tag is None:
            return False
        return self._notifier.notify(tag)
