"""Issue classification: fold labels, flags and the change index into one row.

States and urgency tags each form a ladder. Every rule proposes a candidate
and the highest-ranked candidate wins, so the result never depends on the
order in which the tracker happens to list an issue's labels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timezone
from typing import TYPE_CHECKING

from issuestate_core.rules import (
    DOCUMENTATION,
    EARLY_IN_CYCLE,
    FEATURE_REQUEST,
    FROZEN_DUE_TO_AGE,
    NEEDS_DECISION,
    PROPOSAL_HOLD,
    RELEASE_BLOCKER,
    TESTING,
    WAITING_FOR_INFO,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime

    from issuestate_core.rules import ClassificationRules
    from issuestate_corpus.models import Issue

logger = logging.getLogger(__name__)

_STATE_RANK = {"open": 0, "pending": 1, "deciding": 2, "waiting": 3, "locked": 4, "closed": 5}
STATES = tuple(sorted(_STATE_RANK, key=_STATE_RANK.__getitem__, reverse=True))

_WHEN_RANK = {"": 0, "doc": 1, "test": 2, "feature": 3, "early": 4, "release": 5}

# Urgency role -> "when" tag it proposes.
_WHEN_TAGS = (
    (RELEASE_BLOCKER, "release"),
    (EARLY_IN_CYCLE, "early"),
    (FEATURE_REQUEST, "feature"),
    (TESTING, "test"),
    (DOCUMENTATION, "doc"),
)


@dataclass(frozen=True)
class ClassifiedRecord:
    """One exported row. Built once per issue and never modified."""

    number: int
    updated: str  # YYYY-MM-DD in UTC, or "" when the snapshot has no timestamp
    state: str
    aux: str  # milestone title or urgency tag, depending on aux_policy
    labels: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    title: str = ""

    def to_row(self) -> list[str]:
        return [
            str(self.number),
            self.updated,
            self.state,
            self.aux,
            ",".join(self.labels),
            ",".join(self.assignees),
            self.title,
        ]


def is_eligible(issue: Issue, rules: ClassificationRules) -> bool:
    if issue.not_exist or issue.pull_request:
        return False
    if rules.skip_frozen and issue.locked and rules.labels.has_role(issue.labels, FROZEN_DUE_TO_AGE):
        return False
    return True


def derive_state(issue: Issue, index: frozenset[int], rules: ClassificationRules) -> str:
    """Return the issue's workflow state.

    closed > locked > waiting > deciding > pending > open. A waiting or
    deciding label always beats an in-flight change; pending only applies
    once every label has been seen and none of them decided the state.
    """
    candidates = ["open"]
    if issue.closed:
        candidates.append("closed")
    if issue.locked:
        candidates.append("locked")
    for label in issue.labels:
        roles = rules.labels.roles_of(label)
        if WAITING_FOR_INFO in roles or PROPOSAL_HOLD in roles:
            candidates.append("waiting")
        if NEEDS_DECISION in roles:
            candidates.append("deciding")
    if issue.number in index:
        candidates.append("pending")
    return max(candidates, key=_STATE_RANK.__getitem__)


def _milestone_title(issue: Issue) -> str:
    return issue.milestone.title if issue.milestone is not None else ""


def derive_when(issue: Issue, rules: ClassificationRules) -> str:
    """Return the strongest urgency tag among the issue's labels.

    release > early > feature > test > doc > "". A release blocker reports
    its milestone title when it has one.
    """
    best = ""
    for label in issue.labels:
        roles = rules.labels.roles_of(label)
        for role, tag in _WHEN_TAGS:
            if role in roles and _WHEN_RANK[tag] > _WHEN_RANK[best]:
                best = tag
    if best == "release":
        return _milestone_title(issue) or "release"
    return best


def derive_aux(issue: Issue, rules: ClassificationRules) -> str:
    if rules.aux_policy == "urgency":
        return derive_when(issue, rules)
    return _milestone_title(issue)


def collect_labels(issue: Issue, rules: ClassificationRules) -> tuple[str, ...]:
    return tuple(sorted(label.name.lower() for label in issue.labels if not rules.labels.is_state_label(label)))


def collect_assignees(issue: Issue) -> tuple[str, ...]:
    # Empty logins are a known gap in the mirrored data; drop them.
    return tuple(sorted(a.login for a in issue.assignees if a.login))


def format_updated(updated: datetime | None) -> str:
    """Render the update time as a UTC calendar date."""
    if updated is None:
        return ""
    if updated.tzinfo is not None:
        updated = updated.astimezone(timezone.utc)
    return updated.strftime("%Y-%m-%d")


def classify_issue(issue: Issue, index: frozenset[int], rules: ClassificationRules) -> ClassifiedRecord | None:
    """Classify a single issue, or return None if it is not exported."""
    if not is_eligible(issue, rules):
        logger.debug("Skipping issue %d", issue.number)
        return None
    return ClassifiedRecord(
        number=issue.number,
        updated=format_updated(issue.updated),
        state=derive_state(issue, index, rules),
        aux=derive_aux(issue, rules),
        labels=collect_labels(issue, rules),
        assignees=collect_assignees(issue),
        title=issue.title or "",
    )


def classify_issues(
    issues: Iterable[Issue], index: frozenset[int], rules: ClassificationRules
) -> Iterator[ClassifiedRecord]:
    """Yield a record per eligible issue, preserving the input order."""
    for issue in issues:
        record = classify_issue(issue, index, rules)
        if record is not None:
            yield record
