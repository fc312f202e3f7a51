"""Tests for GitHub URL resolution."""

from __future__ import annotations

import pytest

from failwhale.resolver import RepoRef, resolve_repo


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/tnylea/failwhale", ("tnylea", "failwhale")),
        ("github.com/microsoft/vscode", ("microsoft", "vscode")),
        ("http://www.github.com/user-name/repo-name", ("user-name", "repo-name")),
        ("https://github.com/facebook/react/tree/main", ("facebook", "react")),
        ("https://github.com/facebook/react/", ("facebook", "react")),
        ("https://github.com/psf/requests.git", ("psf", "requests")),
        ("https://github.com/a/b?tab=readme#top", ("a", "b")),
        ("  https://github.com/a/b  ", ("a", "b")),
    ],
)
def test_resolves_owner_and_repo(url, expected):
    assert resolve_repo(url) == RepoRef(*expected)


@pytest.mark.parametrize(
    "url",
    [
        "https://gitlab.com/user/repo",
        "https://notgithub.com/user/repo",
        "not-a-url",
        "",
        "https://github.com/",
        "https://github.com/user",
        "https://github.com/user/",
        "https://github.com//repo",
        None,
        42,
    ],
)
def test_rejects_invalid_identifiers(url):
    assert resolve_repo(url) is None


def test_key_is_owner_slash_repo():
    assert resolve_repo("https://github.com/a/b").key == "a/b"


def test_key_ignores_case():
    ref = resolve_repo("https://github.com/Octo/Repo")

    assert ref == RepoRef("Octo", "Repo")
    assert ref.key == resolve_repo("github.com/octo/repo").key == "octo/repo"


def test_resolution_is_idempotent():
    url = "https://github.com/facebook/react/pulls"
    assert resolve_repo(url) == resolve_repo(url)
