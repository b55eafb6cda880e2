"""Abstract corpus interface.

A corpus is a static, pre-loaded snapshot of one review system and one issue
tracker. issuestate_core depends on BaseCorpus only, so snapshot formats
(JSON file, SQLite database) are swappable without touching the classifier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from issuestate_corpus.models import Change, Issue


class BaseCorpus(ABC):
    """Read-only access to the changes and issues of a snapshot.

    Both iterators check the requested name eagerly, so an unknown project or
    repository raises SetupError at call time, before any record is yielded.
    Failures while yielding raise IterationError.
    """

    @abstractmethod
    def iter_changes(self, project: str) -> Iterator[Change]:
        """Return an iterator over every change of a review project."""

    @abstractmethod
    def iter_issues(self, repo: str) -> Iterator[Issue]:
        """Return an iterator over every issue of a repository, in snapshot order."""

    def close(self) -> None:
        """Release any resources held by the corpus.

        Default is a no-op so callers can always call close() safely.
        """
