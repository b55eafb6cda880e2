"""Snapshot data models for the mirrored issue tracker and review system.

These are read-only views of the corpus. Backends build them from whatever
format the snapshot is stored in; issuestate_core only ever reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

INACTIVE_CHANGE_STATUSES = frozenset({"merged", "abandoned"})


@dataclass(frozen=True)
class IssueRef:
    """A link from a change to an issue in a tracked repository."""

    repo: str  # "owner/name"
    number: int


@dataclass(frozen=True)
class ReviewMeta:
    """One review-event snapshot of a change.

    ``votes`` maps a review label (e.g. "Code-Review") to every vote value
    cast on it at the time of the snapshot.
    """

    votes: dict[str, tuple[int, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Change:
    """A code change under review, with the issues it references."""

    change_id: str
    status: str  # "new" | "draft" | "merged" | "abandoned" | ...
    metas: tuple[ReviewMeta, ...] = ()  # oldest first
    issue_refs: tuple[IssueRef, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_CHANGE_STATUSES

    @property
    def latest_meta(self) -> ReviewMeta | None:
        return self.metas[-1] if self.metas else None


@dataclass(frozen=True)
class Label:
    id: int | None
    name: str


@dataclass(frozen=True)
class Assignee:
    login: str


@dataclass(frozen=True)
class Milestone:
    title: str


@dataclass(frozen=True)
class Issue:
    """A tracker issue (or pull request; the tracker does not separate them)."""

    number: int
    title: str = ""
    updated: datetime | None = None
    not_exist: bool = False
    pull_request: bool = False
    closed: bool = False
    locked: bool = False
    milestone: Milestone | None = None
    labels: tuple[Label, ...] = ()
    assignees: tuple[Assignee, ...] = ()
