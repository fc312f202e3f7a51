"""Thread-safe, persisted list of monitored repositories.

Sources are stored at %APPDATA%\\failwhale\\sources.json as a JSON array
of ``{"url": ..., "added": ...}`` objects, in the order they were added.
Writes are atomic (write to temp file, then rename) to prevent corruption.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

from .config import app_dir
from .resolver import resolve_repo

log = logging.getLogger(__name__)


class SourceError(ValueError):
    """A source could not be added."""


class InvalidSourceError(SourceError):
    pass


class DuplicateSourceError(SourceError):
    pass


@dataclass(frozen=True)
class Source:
    url: str
    added: str


def sources_path() -> Path:
    return app_dir() / "sources.json"


class SourceStore:
    """Ordered list of sources with thread-safe access and atomic writes."""

    def __init__(self, path: Path | None = None) -> None:
        self._lock = threading.Lock()
        self._path = path or sources_path()
        self._sources: list[Source] = []
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            log.error("Failed to load sources: %s", e)
            return
        if not isinstance(data, list):
            log.error("Ignoring %s: expected a JSON array", self._path)
            return

        for entry in data:
            if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
                log.warning("Skipping malformed source entry: %r", entry)
                continue
            self._sources.append(Source(url=entry["url"], added=str(entry.get("added", ""))))
        log.info("Loaded %d source(s)", len(self._sources))

    def _save(self) -> None:
        """Persist the list. Caller must hold the lock; failures are only logged."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        except OSError as e:
            log.error("Failed to save sources: %s", e)
            return
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([asdict(s) for s in self._sources], f, indent=2)
            os.replace(tmp, self._path)
        except OSError as e:
            log.error("Failed to save sources: %s", e)
            try:
                os.unlink(tmp)
            except OSError:
                pass

    def sources(self) -> list[Source]:
        """Snapshot of the sources in stored order."""
        with self._lock:
            return list(self._sources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def add(self, url: str) -> Source:
        """Append a new source.

        Raises InvalidSourceError if ``url`` does not name a GitHub repo and
        DuplicateSourceError if the exact same url is already stored.
        """
        url = url.strip()
        if resolve_repo(url) is None:
            raise InvalidSourceError("invalid identifier")
        with self._lock:
            if any(s.url == url for s in self._sources):
                raise DuplicateSourceError("duplicate")
            source = Source(url=url, added=datetime.now(timezone.utc).isoformat())
            self._sources.append(source)
            self._save()
        log.info("Added source %s", url)
        return source

    def remove(self, index: int) -> Source | None:
        """Remove the source at ``index``. Out-of-range indexes are ignored."""
        with self._lock:
            if not 0 <= index < len(self._sources):
                return None
            removed = self._sources.pop(index)
            self._save()
        log.info("Removed source %s", removed.url)
        return removed
