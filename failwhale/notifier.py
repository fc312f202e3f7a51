"""Reaction-GIF notifications.

``Notifier.notify`` only queues the tag; a single worker thread looks up a
random GIF on Giphy for it, downloads it and hands it to the popup
renderer. A slow Giphy or a popup still on screen therefore never holds up
the polling loop. When the queue is full, new notifications are dropped.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable

import requests

from .github_api import USER_AGENT
from .tracker import TAGS

log = logging.getLogger(__name__)

GIPHY_RANDOM_URL = "https://api.giphy.com/v1/gifs/random"
SEARCH_TERMS = {
    "started": "lets get started",
    "success": "success",
    "failure": "fail",
}
DEFAULT_WIDTH = 400
DEFAULT_HEIGHT = 300

QUEUE_POLL_SECONDS = 0.2


@dataclass(frozen=True)
class ReactionImage:
    url: str = ""
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT


def _dimension(value, default: int) -> int:
    try:
        return int(value) or default
    except (TypeError, ValueError):
        return default


class Notifier:
    """Turns notification tags into popups without blocking the caller."""

    def __init__(
        self,
        api_key: str,
        renderer: Callable[[bytes, int, int], None],
        queue_size: int = 3,
        timeout: float = 10,
    ) -> None:
        self._api_key = api_key
        self._renderer = renderer
        self._timeout = timeout
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, queue_size))
        self._worker: threading.Thread | None = None
        self._stopping = threading.Event()

    def start(self) -> None:
        if self._worker is not None and self._worker.is_alive() and not self._stopping.is_set():
            return
        # One stop flag per worker.
        self._stopping = threading.Event()
        self._worker = threading.Thread(
            target=self._run, args=(self._stopping,), name="notifier", daemon=True
        )
        self._worker.start()

    def stop(self, timeout: float = 5.0) -> None:
        if self._worker is None:
            return
        self._stopping.set()
        self._worker.join(timeout)
        if self._worker.is_alive():
            log.warning("Notifier worker still busy after %.0fs", timeout)
        self._worker = None

    def notify(self, tag: str) -> bool:
        """Queue a popup for ``tag``. Returns False if it was dropped."""
        if tag not in TAGS:
            log.warning("Ignoring unknown notification tag %r", tag)
            return False
        try:
            self._queue.put_nowait(tag)
        except queue.Full:
            log.warning("Notification queue full, dropping %r", tag)
            return False
        return True

    def _run(self, stopping: threading.Event) -> None:
        while not stopping.is_set():
            try:
                tag = self._queue.get(timeout=QUEUE_POLL_SECONDS)
            except queue.Empty:
                continue
            self.show(tag)

    def show(self, tag: str) -> None:
        """Fetch and render a reaction for ``tag`` on the calling thread."""
        if not self._api_key:
            log.info("No Giphy API key, skipping %r popup", tag)
            return
        image = self.random_gif(SEARCH_TERMS.get(tag, tag))
        if not image.url:
            return
        try:
            resp = requests.get(image.url, headers={"User-Agent": USER_AGENT}, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.error("Failed to download gif: %s", e)
            return
        try:
            self._renderer(resp.content, image.width, image.height)
        except Exception as e:
            log.error("Failed to show popup: %s", e)

    def random_gif(self, search: str) -> ReactionImage:
        """Ask Giphy for a random GIF matching ``search``; empty url on failure."""
        try:
            resp = requests.get(
                GIPHY_RANDOM_URL,
                params={"api_key": self._api_key, "tag": search},
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            gif = resp.json()["data"]["images"]["downsized_medium"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            log.error("Error fetching gif: %s", e)
            return ReactionImage()

        if not isinstance(gif, dict) or not gif.get("url"):
            return ReactionImage()
        return ReactionImage(
            url=gif["url"],
            width=_dimension(gif.get("width"), DEFAULT_WIDTH),
            height=_dimension(gif.get("height"), DEFAULT_HEIGHT),
        )
