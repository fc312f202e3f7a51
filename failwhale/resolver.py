"""Parse GitHub repository URLs into (owner, repo) pairs."""

from __future__ import annotations

import re
from typing import NamedTuple

GITHUB_HOST = "github.com"

_REPO_RE = re.compile(
    r"^(?:[a-z][a-z0-9+.-]*://)?(?:www\.)?"
    + re.escape(GITHUB_HOST)
    + r"/([^/?#\s]+)/([^/?#\s]+)",
    re.IGNORECASE,
)


class RepoRef(NamedTuple):
    owner: str
    repo: str

    @property
    def key(self) -> str:
        """The ``owner/repo`` key used to track workflow state.

        Lower-cased, as GitHub owner and repo names are case-insensitive.
        """
        return f"{self.owner}/{self.repo}".lower()


def resolve_repo(identifier) -> RepoRef | None:
    """Return the owner/repo named by ``identifier``, or None.

    Accepts ``github.com/<owner>/<repo>`` with an optional scheme and any
    trailing path, query or fragment. Anything else, including URLs for
    other hosts or without a repo segment, yields None.
    """
    if not isinstance(identifier, str):
        return None
    match = _REPO_RE.match(identifier.strip())
    if match is None:
        return None
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        return None
    return RepoRef(owner, repo)
