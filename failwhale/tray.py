"""System tray icon with right-click menu for managing watched repos."""

from __future__ import annotations

import logging
import tkinter as tk
import webbrowser
from tkinter import messagebox, simpledialog

import pystray

from . import icons
from .config import DEFAULT_CONFIG, config_path, save_config
from .sources import SourceError

log = logging.getLogger(__name__)

TITLE = "FailWhale - CI/CD Notifier"


class TrayIcon:
    """Manages the tray icon and its right-click context menu."""

    def __init__(self, app) -> None:
        self._app = app
        self._icon: pystray.Icon | None = None

    def _sources_menu(self) -> pystray.Menu:
        sources = self._app.sources()
        if not sources:
            return pystray.Menu(pystray.MenuItem("No sources yet", lambda: None, enabled=False))
        return pystray.Menu(
            *(
                pystray.MenuItem(f"Remove {s.url}", self._remove_action(i))
                for i, s in enumerate(sources)
            )
        )

    def _build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem(self._app.status_text, lambda: None, enabled=False),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Add Source...", self._on_add_source),
            pystray.MenuItem("Sources", self._sources_menu()),
            pystray.MenuItem("Poll Now", self._on_poll_now),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Open Config", self._on_open_config),
            pystray.MenuItem("Reload Config", self._on_reload_config),
            pystray.MenuItem("Open Log", self._on_open_log),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._on_quit),
        )

    def run(self, setup_callback) -> None:
        self._icon = pystray.Icon(
            name="failwhale",
            icon=icons.make_icon("offline"),
            title=TITLE,
            menu=self._build_menu(),
        )
        self._icon.run(setup=setup_callback)

    def set_icon(self, status: str) -> None:
        if self._icon is not None:
            self._icon.icon = icons.make_icon(status)

    def update_menu(self) -> None:
        if self._icon is not None:
            self._icon.menu = self._build_menu()
            self._icon.update_menu()

    def stop(self) -> None:
        if self._icon is not None:
            self._icon.stop()

    def _remove_action(self, index: int):
        def action(icon, item) -> None:
            self._app.remove_source(index)

        return action

    def _on_add_source(self, icon, item) -> None:
        url = self._ask_for_url()
        if not url:
            return
        try:
            self._app.add_source(url)
        except SourceError as e:
            log.warning("Rejected source %r: %s", url, e)
            self._show_error(f"Could not add {url}: {e}")
            return
        self.update_menu()

    def _on_poll_now(self, icon, item) -> None:
        self._app.poll_now()

    def _on_open_config(self, icon, item) -> None:
        path = config_path()
        if not path.exists():
            save_config(DEFAULT_CONFIG)
        webbrowser.open(path.as_uri())

    def _on_reload_config(self, icon, item) -> None:
        self._app.reload_config()

    def _on_open_log(self, icon, item) -> None:
        log_path = self._app.log_path
        if log_path and log_path.exists():
            webbrowser.open(log_path.as_uri())

    def _on_quit(self, icon, item) -> None:
        self._app.shutdown()

    @staticmethod
    def _ask_for_url() -> str | None:
        root = tk.Tk()
        root.withdraw()
        root.attributes("-topmost", True)
        url = simpledialog.askstring(
            TITLE,
            "GitHub repository to watch:\n\n(e.g. https://github.com/owner/repo)",
            parent=root,
        )
        root.destroy()
        return url

    @staticmethod
    def _show_error(message: str) -> None:
        root = tk.Tk()
        root.withdraw()
        root.attributes("-topmost", True)
        messagebox.showerror(TITLE, message, parent=root)
        root.destroy()
