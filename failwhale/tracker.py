"""Per-repository workflow state and transition detection.

Each repo key maps to the latest run seen for it. Comparing run ids tells
a freshly started run apart from the one already being tracked; comparing
statuses of the same id detects completion. The first observation of a repo
only seeds its record so that adding a repo (or restarting) does not fire
a popup for runs that were already there.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable

from .github_api import WorkflowRun

log = logging.getLogger(__name__)

COMPLETED = "completed"

STARTED = "started"
SUCCESS = "success"
FAILURE = "failure"
TAGS = (STARTED, SUCCESS, FAILURE)


@dataclass(frozen=True)
class WorkflowState:
    latest_run_id: int
    status: str | None
    conclusion: str | None
    notified_start: bool = False

    @classmethod
    def from_run(cls, run: WorkflowRun, notified_start: bool = False) -> WorkflowState:
        return cls(run.id, run.status, run.conclusion, notified_start)


class WorkflowTracker:
    """Workflow state for the repo keys currently being watched.

    Only watched keys are recorded, so a poll that finishes after its repo
    was removed cannot bring the removed state back.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._watched: set[str] = set(keys)
        self._states: dict[str, WorkflowState] = {}

    def watch(self, key: str) -> None:
        with self._lock:
            self._watched.add(key)

    def is_watched(self, key: str) -> bool:
        with self._lock:
            return key in self._watched

    def get(self, key: str) -> WorkflowState | None:
        with self._lock:
            return self._states.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._states)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def forget(self, key: str) -> None:
        """Stop watching ``key`` and drop its state."""
        with self._lock:
            self._watched.discard(key)
            if self._states.pop(key, None) is not None:
                log.info("Dropped workflow state for %s", key)

    def observe(self, key: str, run: WorkflowRun) -> str | None:
        """Record the latest run for ``key`` and return the tag to notify, if any."""
        with self._lock:
            if key not in self._watched:
                log.debug("Ignoring run for unwatched %s", key)
                return None
            prior = self._states.get(key)

            if prior is None:
                self._states[key] = WorkflowState.from_run(run)
                log.info("Seeded %s with run %s (%s)", key, run.id, run.status)
                return None

            if run.id != prior.latest_run_id:
                if run.status != COMPLETED:
                    self._states[key] = WorkflowState.from_run(run, notified_start=True)
                    log.info("%s: run %s started", key, run.id)
                    return STARTED
                # Started and finished between two polls; recorded silently.
                self._states[key] = WorkflowState.from_run(run)
                log.info("%s: run %s already %s when first seen", key, run.id, run.conclusion)
                return None

            if prior.status != COMPLETED and run.status == COMPLETED:
                self._states[key] = WorkflowState.from_run(run, prior.notified_start)
                tag = SUCCESS if run.conclusion == "success" else FAILURE
                log.info("%s: run %s finished (%s)", key, run.id, run.conclusion)
                return tag

            return None
