"""Application orchestrator - lifecycle and threading."""

import logging
import threading
from pathlib import Path

from .config import app_dir, load_config, load_tokens
from .github_api import GitHubClient
from .notifier import Notifier
from .poller import Poller
from .resolver import resolve_repo
from .sources import Source, SourceStore
from .tracker import WorkflowTracker

log = logging.getLogger(__name__)


def _repo_keys(sources: list[Source]) -> set[str]:
    refs = (resolve_repo(s.url) for s in sources)
    return {ref.key for ref in refs if ref is not None}


class Application:
    def __init__(self) -> None:
        self.log_path = self._setup_logging()
        self.config = load_config()
        self._github_token, giphy_key = load_tokens()

        self.store = SourceStore()
        self.tracker = WorkflowTracker(_repo_keys(self.store.sources()))
        self.github = GitHubClient.from_config(self.config, token=self._github_token)
        self.notifier = Notifier(
            giphy_key,
            renderer=self._render_popup,
            queue_size=self.config.get("notify_queue_size", 3),
        )
        self.poller = Poller(self.store, self.github, self.tracker, self.notifier)
        self.tray = None

        self._stop_event = threading.Event()
        self._poll_now_event = threading.Event()
        self.status_text = "Starting..."

    def _setup_logging(self) -> Path:
        log_dir = app_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "app.log"
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[
                logging.FileHandler(log_file, encoding="utf-8"),
                logging.StreamHandler(),
            ],
        )
        return log_file

    def _render_popup(self, data: bytes, width: int, height: int) -> None:
        from .popup import show_popup

        show_popup(
            data,
            width,
            height,
            visible_seconds=self.config.get("popup_visible_seconds", 5.0),
            slide_seconds=self.config.get("popup_slide_seconds", 0.5),
        )

    def run(self) -> None:
        from .tray import TrayIcon

        log.info("Starting FailWhale with %d source(s)", len(self.store))
        self.notifier.start()
        self.tray = TrayIcon(self)
        self.tray.run(setup_callback=self._on_tray_ready)

    def _on_tray_ready(self, icon) -> None:
        """Called by pystray in a background thread after the icon is visible."""
        icon.visible = True
        log.info("Tray icon visible")
        threading.Thread(target=self._background_loop, daemon=True).start()

    def _background_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tray.set_icon("polling")
            try:
                self.poller.poll_once()
                self.tray.set_icon("ok" if self.github.last_probe_ok else "offline")
                self.status_text = f"Watching {len(self.store)} repo(s)"
            except Exception as e:
                log.error("Poll error: %s", e)
                self.tray.set_icon("error")
                self.status_text = f"Error: {e}"
            self.tray.update_menu()

            # Interruptible sleep
            interval = self.config.get("poll_interval", 10)
            self._poll_now_event.wait(timeout=interval)
            self._poll_now_event.clear()

    def sources(self) -> list[Source]:
        return self.store.sources()

    def add_source(self, url: str) -> Source:
        """Add a repo to watch. Raises SourceError for invalid or duplicate urls."""
        source = self.store.add(url)
        self.tracker.watch(resolve_repo(source.url).key)
        self.poll_now()
        return source

    def remove_source(self, index: int) -> Source | None:
        removed = self.store.remove(index)
        if removed is None:
            return None
        ref = resolve_repo(removed.url)
        if ref is not None and ref.key not in _repo_keys(self.store.sources()):
            self.tracker.forget(ref.key)
        if self.tray is not None:
            self.tray.update_menu()
        return removed

    def poll_now(self) -> None:
        self._poll_now_event.set()

    def reload_config(self) -> None:
        self.config = load_config()
        self.github = GitHubClient.from_config(self.config, token=self._github_token)
        self.poller.github = self.github
        log.info("Config reloaded")
        self.status_text = "Config reloaded"
        if self.tray is not None:
            self.tray.update_menu()

    def shutdown(self) -> None:
        log.info("Shutting down")
        self._stop_event.set()
        self._poll_now_event.set()
        self.notifier.stop()
        if self.tray is not None:
            self.tray.stop()
