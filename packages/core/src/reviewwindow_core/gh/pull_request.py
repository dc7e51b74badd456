from __future__ import annotations

import threading

from github import Github


def get_github(token: str | None) -> Github:
    return Github(token) if token else Github()


def get_repo(repo_name: str, token: str | None):
    return get_github(token).get_repo(repo_name)


def get_open_pull_requests(repo):
    return repo.get_pulls(state="open")


def get_issue_labels(repo, number: int) -> list[str]:
    """Return the label names of an issue or pull request, in the order GitHub lists them."""
    return [label.name for label in repo.get_issue(number).get_labels()]


class RepositoryQuery:
    """Memoized repository lookup by full name (``owner/name``).

    Repository objects are stable for the life of the process, so each one is
    fetched once and shared by every event for that repository.
    """

    def __init__(self, github: Github):
        self._github = github
        self._cache: dict = {}
        self._lock = threading.Lock()

    def get(self, full_name: str):
        with self._lock:
            repo = self._cache.get(full_name)
        if repo is not None:
            return repo

        # Fetched outside the lock so one slow lookup does not stall other repositories.
        repo = self._github.get_repo(full_name)
        with self._lock:
            return self._cache.setdefault(full_name, repo)
