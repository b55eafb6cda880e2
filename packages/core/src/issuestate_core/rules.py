"""Classification rule table.

Which labels carry which meaning is configuration, not code: a LabelTable maps
each role to the set of label keys that hold it, and ClassificationRules
bundles that table with the review-vote and auxiliary-field settings the
indexer and classifier read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from issuestate_corpus.models import Label

WAITING_FOR_INFO = "waiting_for_info"
PROPOSAL_HOLD = "proposal_hold"
NEEDS_DECISION = "needs_decision"
FROZEN_DUE_TO_AGE = "frozen_due_to_age"
RELEASE_BLOCKER = "release_blocker"
EARLY_IN_CYCLE = "early_in_cycle"
FEATURE_REQUEST = "feature_request"
TESTING = "testing"
DOCUMENTATION = "documentation"

ROLES = frozenset(
    {
        WAITING_FOR_INFO,
        PROPOSAL_HOLD,
        NEEDS_DECISION,
        FROZEN_DUE_TO_AGE,
        RELEASE_BLOCKER,
        EARLY_IN_CYCLE,
        FEATURE_REQUEST,
        TESTING,
        DOCUMENTATION,
    }
)

# Labels consumed by state derivation; they never reach the output label list.
STATE_ROLES = frozenset({WAITING_FOR_INFO, PROPOSAL_HOLD, NEEDS_DECISION})

AUX_POLICIES = ("milestone", "urgency")


@dataclass(frozen=True)
class LabelTable:
    """Role -> label keys.

    An int key matches a label's numeric id; a str key matches its
    lower-cased name. Either is enough for a label to hold the role.
    """

    roles: dict[str, frozenset] = field(default_factory=dict)

    def roles_of(self, label: Label) -> frozenset[str]:
        name = label.name.lower()
        return frozenset(
            role
            for role, keys in self.roles.items()
            if (label.id is not None and label.id in keys) or name in keys
        )

    def has_role(self, labels: Iterable[Label], role: str) -> bool:
        return any(role in self.roles_of(label) for label in labels)

    def is_state_label(self, label: Label) -> bool:
        return bool(self.roles_of(label) & STATE_ROLES)


@dataclass(frozen=True)
class ClassificationRules:
    labels: LabelTable
    review_label: str = "Code-Review"
    reject_vote: int = -2
    aux_policy: str = "milestone"
    skip_frozen: bool = True


def _normalize_key(key):
    # YAML may give us ids as strings ("357033853"); names compare lower-cased.
    if isinstance(key, bool):
        raise ValueError(f"Invalid label key: {key!r}")
    if isinstance(key, int):
        return key
    text = str(key).strip()
    if text.isdigit():
        return int(text)
    return text.lower()


def label_table_from_config(labels: dict) -> LabelTable:
    unknown = set(labels) - ROLES
    if unknown:
        raise ValueError(
            f"Unknown label role(s): {', '.join(sorted(unknown))}. Choose from {', '.join(sorted(ROLES))}."
        )
    return LabelTable(roles={role: frozenset(_normalize_key(k) for k in keys or []) for role, keys in labels.items()})


def rules_from_config(config: dict) -> ClassificationRules:
    """Build the rule set from a loaded config dict (see issuestate_core.config)."""
    aux_policy = config.get("aux_policy", "milestone")
    if aux_policy not in AUX_POLICIES:
        raise ValueError(f"Unknown aux_policy: {aux_policy!r}. Choose 'milestone' or 'urgency'.")
    return ClassificationRules(
        labels=label_table_from_config(config.get("labels") or {}),
        review_label=config.get("review_label", "Code-Review"),
        reject_vote=int(config.get("reject_vote", -2)),
        aux_policy=aux_policy,
        skip_frozen=bool(config.get("skip_frozen", True)),
    )
