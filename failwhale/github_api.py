"""GitHub Actions REST client with retry, backoff and a reachability probe."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import requests

from . import __version__

log = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
USER_AGENT = f"FailWhale-CI-Notifier/{__version__}"


class GitHubAPIError(Exception):
    """A single request to the GitHub API failed."""


class TransientError(GitHubAPIError):
    """Timeouts and connection failures; worth retrying."""


class RateLimitedError(TransientError):
    pass


class ClientError(GitHubAPIError):
    """A failure that retrying will not fix."""


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    status: str | None
    conclusion: str | None
    created_at: str | None = None

    @classmethod
    def from_json(cls, data) -> WorkflowRun | None:
        if not isinstance(data, dict) or data.get("id") is None:
            return None
        return cls(
            id=data["id"],
            status=data.get("status"),
            conclusion=data.get("conclusion"),
            created_at=data.get("created_at"),
        )


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 30.0) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return min(base * 2 ** (attempt - 1), cap)


def parse_runs(body) -> list[WorkflowRun]:
    """Extract the workflow runs from an ``actions/runs`` response body."""
    if not isinstance(body, dict):
        return []
    entries = body.get("workflow_runs")
    if not isinstance(entries, list):
        return []
    runs = []
    for entry in entries:
        run = WorkflowRun.from_json(entry)
        if run is not None:
            runs.append(run)
    return runs


class GitHubClient:
    """Fetches workflow runs for one repo at a time. Never raises to callers."""

    def __init__(
        self,
        token: str = "",
        api_base: str = API_BASE,
        timeout: float = 10,
        probe_timeout: float = 5,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        backoff_cap: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._session = session or requests.Session()
        self.rate_remaining: int | None = None
        self.rate_reset: float = 0
        self.last_probe_ok = True

    @classmethod
    def from_config(cls, config: dict, token: str = "") -> GitHubClient:
        return cls(
            token=token,
            api_base=config.get("api_base", API_BASE),
            timeout=config.get("request_timeout", 10),
            probe_timeout=config.get("probe_timeout", 5),
            max_attempts=config.get("max_attempts", 3),
            backoff_base=config.get("backoff_base", 1.0),
            backoff_cap=config.get("backoff_cap", 30.0),
        )

    def _headers(self) -> dict[str, str]:
        h = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            h["Authorization"] = f"Bearer {self._token}"
        return h

    def _update_rate_limit(self, resp: requests.Response) -> None:
        remaining = resp.headers.get("X-RateLimit-Remaining")
        if remaining is not None and remaining.isdigit():
            self.rate_remaining = int(remaining)
        reset = resp.headers.get("X-RateLimit-Reset")
        if reset is not None and reset.isdigit():
            self.rate_reset = float(reset)

    def _get_runs(self, owner: str, repo: str) -> list[WorkflowRun]:
        """One attempt. Raises a GitHubAPIError subclass on failure."""
        url = f"{self.api_base}/repos/{owner}/{repo}/actions/runs"
        try:
            resp = self._session.get(url, headers=self._headers(), timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientError(str(e)) from e
        except requests.RequestException as e:
            raise ClientError(str(e)) from e

        self._update_rate_limit(resp)
        if resp.status_code == 429 or (
            resp.status_code == 403
            and (resp.headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in resp.headers)
        ):
            wait = max(0, self.rate_reset - time.time())
            raise RateLimitedError(f"rate limited ({resp.status_code}), reset in {wait:.0f}s")
        if not resp.ok:
            raise ClientError(f"GitHub API error: {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            log.warning("Malformed runs response for %s/%s", owner, repo)
            return []
        return parse_runs(body)

    def fetch_latest_runs(self, owner: str, repo: str) -> list[WorkflowRun]:
        """Return the repo's workflow runs, newest first.

        An empty list means nothing could be learned this cycle, not that the
        repo has no runs.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._get_runs(owner, repo)
            except TransientError as e:
                if attempt == self.max_attempts:
                    log.error(
                        "Failed to fetch workflows for %s/%s after %d attempts: %s",
                        owner, repo, self.max_attempts, e,
                    )
                    return []
                delay = backoff_delay(attempt, self.backoff_base, self.backoff_cap)
                log.warning(
                    "Transient error for %s/%s (attempt %d/%d): %s. Retrying in %.1fs",
                    owner, repo, attempt, self.max_attempts, e, delay,
                )
                time.sleep(delay)
            except ClientError as e:
                log.error("Not retrying %s/%s: %s", owner, repo, e)
                return []
        return []

    def is_reachable(self) -> bool:
        """Cheap HEAD against the API root; False when offline or the API is down."""
        try:
            resp = self._session.head(
                self.api_base, headers={"User-Agent": USER_AGENT}, timeout=self.probe_timeout
            )
        except requests.RequestException as e:
            log.debug("Reachability probe failed: %s", e)
            self.last_probe_ok = False
            return False
        self.last_probe_ok = resp.status_code < 500
        return self.last_probe_ok
