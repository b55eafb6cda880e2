"""Change-reference index: which issues have an in-flight fix under review."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from issuestate_core.rules import ClassificationRules
    from issuestate_corpus.models import Change

logger = logging.getLogger(__name__)


def blocked_by_vote(change: Change, rules: ClassificationRules) -> bool:
    """Return True if the latest review snapshot carries a rejecting vote.

    Only the most recent snapshot counts: a rejection that was later withdrawn
    does not block, and a fresh one blocks whatever came before.
    """
    meta = change.latest_meta
    if meta is None:
        return False
    return rules.reject_vote in meta.votes.get(rules.review_label, ())


def change_qualifies(change: Change, repo: str, rules: ClassificationRules) -> bool:
    if not change.is_active:
        return False
    if not any(ref.repo == repo for ref in change.issue_refs):
        return False
    if blocked_by_vote(change, rules):
        logger.debug("Change %s has a rejecting %s vote", change.change_id, rules.review_label)
        return False
    return True


def build_reference_index(changes: Iterable[Change], repo: str, rules: ClassificationRules) -> frozenset[int]:
    """Return the numbers of issues in ``repo`` referenced by a qualifying change.

    Errors raised by the change iterator propagate unchanged; no partial index
    is ever returned.
    """
    numbers: set[int] = set()
    scanned = 0
    for change in changes:
        scanned += 1
        if not change_qualifies(change, repo, rules):
            continue
        numbers.update(ref.number for ref in change.issue_refs if ref.repo == repo)

    logger.info("Scanned %d change(s); %d issue(s) in %s have a pending change", scanned, len(numbers), repo)
    return frozenset(numbers)
