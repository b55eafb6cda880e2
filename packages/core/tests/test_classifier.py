"""Tests for issue classification."""

from datetime import datetime, timedelta, timezone
from itertools import permutations

import pytest

from issuestate_core.classifier import (
    ClassifiedRecord,
    classify_issue,
    classify_issues,
    collect_assignees,
    collect_labels,
    derive_aux,
    derive_state,
    derive_when,
    is_eligible,
)
from issuestate_core.config import DEFAULT_LABELS
from issuestate_core.rules import ClassificationRules, label_table_from_config
from issuestate_corpus.models import Assignee, Issue, Label, Milestone
from issuestate_corpus.serialization import issue_from_dict

WAITING = Label(id=357033853, name="WaitingForInfo")
HOLD = Label(id=477156222, name="Proposal-Hold")
DECISION = Label(id=373401956, name="NeedsDecision")
FROZEN = Label(id=398069301, name="FrozenDueToAge")
HELP = Label(id=150880243, name="help wanted")
NEEDS_FIX = Label(id=373399998, name="NeedsFix")
RELEASE = Label(id=1, name="release-blocker")
EARLY = Label(id=2, name="early-in-cycle")
FEATURE = Label(id=3, name="FeatureRequest")
TESTING = Label(id=4, name="Testing")
DOCS = Label(id=5, name="Documentation")

NO_INDEX: frozenset = frozenset()


def _rules(**overrides):
    kwargs = {"labels": label_table_from_config(DEFAULT_LABELS)}
    kwargs.update(overrides)
    return ClassificationRules(**kwargs)


def _make_issue(number=1, labels=(), **kwargs):
    return Issue(number=number, title=kwargs.pop("title", "cmd/go: something"), labels=tuple(labels), **kwargs)


# ---------------------------------------------------------------------------
# is_eligible
# ---------------------------------------------------------------------------


class TestIsEligible:
    def test_regular_issue_eligible(self):
        assert is_eligible(_make_issue(), _rules()) is True

    def test_tombstoned_issue_skipped(self):
        assert is_eligible(_make_issue(not_exist=True), _rules()) is False

    def test_pull_request_skipped(self):
        assert is_eligible(_make_issue(pull_request=True), _rules()) is False

    def test_locked_and_frozen_skipped(self):
        assert is_eligible(_make_issue(locked=True, labels=[FROZEN]), _rules()) is False

    def test_locked_without_frozen_label_kept(self):
        assert is_eligible(_make_issue(locked=True, labels=[HELP]), _rules()) is True

    def test_frozen_label_without_lock_kept(self):
        assert is_eligible(_make_issue(labels=[FROZEN]), _rules()) is True

    def test_frozen_kept_when_skip_disabled(self):
        issue = _make_issue(locked=True, labels=[FROZEN])
        assert is_eligible(issue, _rules(skip_frozen=False)) is True


# ---------------------------------------------------------------------------
# derive_state
# ---------------------------------------------------------------------------


class TestDeriveState:
    def test_default_open(self):
        assert derive_state(_make_issue(), NO_INDEX, _rules()) == "open"

    def test_pending_when_referenced(self):
        assert derive_state(_make_issue(number=7), frozenset({7}), _rules()) == "pending"

    def test_other_issue_in_index_does_not_matter(self):
        assert derive_state(_make_issue(number=7), frozenset({8}), _rules()) == "open"

    @pytest.mark.parametrize("labels", [[], [WAITING], [DECISION], [HOLD, DECISION], [HELP]])
    def test_closed_always_wins(self, labels):
        issue = _make_issue(number=3, closed=True, locked=True, labels=labels)
        assert derive_state(issue, frozenset({3}), _rules()) == "closed"

    @pytest.mark.parametrize("labels", [[], [WAITING], [DECISION], [HOLD]])
    def test_locked_beats_labels(self, labels):
        issue = _make_issue(number=3, locked=True, labels=labels)
        assert derive_state(issue, frozenset({3}), _rules()) == "locked"

    def test_waiting_label(self):
        assert derive_state(_make_issue(labels=[WAITING]), NO_INDEX, _rules()) == "waiting"

    def test_proposal_hold_counts_as_waiting(self):
        assert derive_state(_make_issue(labels=[HOLD]), NO_INDEX, _rules()) == "waiting"

    def test_deciding_label(self):
        assert derive_state(_make_issue(labels=[DECISION]), NO_INDEX, _rules()) == "deciding"

    @pytest.mark.parametrize("labels", list(permutations([DECISION, WAITING, HELP])))
    def test_waiting_beats_deciding_in_any_order(self, labels):
        assert derive_state(_make_issue(labels=labels), NO_INDEX, _rules()) == "waiting"

    def test_labels_beat_pending(self):
        rules = _rules()
        assert derive_state(_make_issue(number=5, labels=[DECISION]), frozenset({5}), rules) == "deciding"
        assert derive_state(_make_issue(number=5, labels=[WAITING]), frozenset({5}), rules) == "waiting"

    def test_unrelated_labels_leave_pending(self):
        issue = _make_issue(number=5, labels=[HELP, NEEDS_FIX])
        assert derive_state(issue, frozenset({5}), _rules()) == "pending"

    def test_label_matched_by_name_when_id_missing(self):
        issue = _make_issue(labels=[Label(id=None, name="NeedsDecision")])
        assert derive_state(issue, NO_INDEX, _rules()) == "deciding"

    def test_string_label_id_from_snapshot_matches_role(self):
        issue = issue_from_dict({"number": 1, "labels": [{"id": "373401956", "name": "Decision Needed"}]})
        assert derive_state(issue, NO_INDEX, _rules()) == "deciding"


# ---------------------------------------------------------------------------
# Auxiliary field
# ---------------------------------------------------------------------------


class TestDeriveAux:
    def test_milestone_policy_uses_title(self):
        issue = _make_issue(milestone=Milestone(title="Go1.22"))
        assert derive_aux(issue, _rules()) == "Go1.22"

    def test_milestone_policy_empty_without_milestone(self):
        assert derive_aux(_make_issue(labels=[RELEASE]), _rules()) == ""

    def test_urgency_policy_dispatches_to_when(self):
        issue = _make_issue(labels=[DOCS], milestone=Milestone(title="Go1.22"))
        assert derive_aux(issue, _rules(aux_policy="urgency")) == "doc"


class TestDeriveWhen:
    def test_no_urgency_labels(self):
        assert derive_when(_make_issue(labels=[HELP]), _rules()) == ""

    def test_release_blocker_uses_milestone(self):
        issue = _make_issue(labels=[RELEASE], milestone=Milestone(title="Go1.22"))
        assert derive_when(issue, _rules()) == "Go1.22"

    def test_release_blocker_without_milestone(self):
        assert derive_when(_make_issue(labels=[RELEASE]), _rules()) == "release"

    @pytest.mark.parametrize(
        "label, tag",
        [(EARLY, "early"), (FEATURE, "feature"), (TESTING, "test"), (DOCS, "doc")],
    )
    def test_single_tag(self, label, tag):
        assert derive_when(_make_issue(labels=[label]), _rules()) == tag

    @pytest.mark.parametrize("labels", list(permutations([DOCS, TESTING, FEATURE, EARLY])))
    def test_strongest_tag_wins_in_any_order(self, labels):
        assert derive_when(_make_issue(labels=labels), _rules()) == "early"

    def test_release_never_downgraded(self):
        issue = _make_issue(labels=[RELEASE, DOCS, EARLY])
        assert derive_when(issue, _rules()) == "release"

    def test_test_beats_doc(self):
        assert derive_when(_make_issue(labels=[DOCS, TESTING]), _rules()) == "test"


# ---------------------------------------------------------------------------
# Labels and assignees
# ---------------------------------------------------------------------------


class TestCollectLabels:
    def test_lowercased_and_sorted(self):
        issue = _make_issue(labels=[NEEDS_FIX, HELP, Label(id=9, name="OS-Windows")])
        assert collect_labels(issue, _rules()) == ("help wanted", "needsfix", "os-windows")

    def test_state_labels_excluded(self):
        issue = _make_issue(labels=[WAITING, HOLD, DECISION, HELP])
        assert collect_labels(issue, _rules()) == ("help wanted",)

    def test_non_state_roles_kept(self):
        issue = _make_issue(labels=[FROZEN, RELEASE])
        assert collect_labels(issue, _rules()) == ("frozenduetoage", "release-blocker")

    def test_empty(self):
        assert collect_labels(_make_issue(), _rules()) == ()


class TestCollectAssignees:
    def test_sorted(self):
        issue = _make_issue(assignees=(Assignee("rsc"), Assignee("bcmills"), Assignee("ianlancetaylor")))
        assert collect_assignees(issue) == ("bcmills", "ianlancetaylor", "rsc")

    def test_empty_logins_dropped(self):
        issue = _make_issue(assignees=(Assignee(""), Assignee("rsc")))
        assert collect_assignees(issue) == ("rsc",)


# ---------------------------------------------------------------------------
# classify_issue / classify_issues
# ---------------------------------------------------------------------------


class TestClassifyIssue:
    def test_deciding_with_milestone(self):
        issue = _make_issue(
            number=61234,
            labels=[DECISION, HELP],
            milestone=Milestone(title="Go1.22"),
            updated=datetime(2023, 7, 4, 15, 30, tzinfo=timezone.utc),
            title="proposal: spec: add range-over-func",
        )
        record = classify_issue(issue, NO_INDEX, _rules())
        assert record == ClassifiedRecord(
            number=61234,
            updated="2023-07-04",
            state="deciding",
            aux="Go1.22",
            labels=("help wanted",),
            assignees=(),
            title="proposal: spec: add range-over-func",
        )

    def test_pending_row(self):
        record = classify_issue(_make_issue(number=42), frozenset({42}), _rules())
        assert record.state == "pending"

    def test_skipped_issue_returns_none(self):
        assert classify_issue(_make_issue(pull_request=True), NO_INDEX, _rules()) is None

    def test_missing_fields_default_to_empty(self):
        record = classify_issue(Issue(number=9), NO_INDEX, _rules())
        assert record.to_row() == ["9", "", "open", "", "", "", ""]

    def test_updated_converted_to_utc_date(self):
        eastern = timezone(timedelta(hours=-5))
        issue = _make_issue(updated=datetime(2023, 11, 20, 23, 30, tzinfo=eastern))
        assert classify_issue(issue, NO_INDEX, _rules()).updated == "2023-11-21"

    def test_naive_updated_formatted_as_is(self):
        issue = _make_issue(updated=datetime(2023, 11, 20, 23, 30))
        assert classify_issue(issue, NO_INDEX, _rules()).updated == "2023-11-20"

    def test_to_row_joins_lists(self):
        record = ClassifiedRecord(
            number=1,
            updated="2024-01-02",
            state="open",
            aux="",
            labels=("a", "b"),
            assignees=("x", "y"),
            title="t",
        )
        assert record.to_row() == ["1", "2024-01-02", "open", "", "a,b", "x,y", "t"]


class TestClassifyIssues:
    def test_preserves_order_and_skips(self):
        issues = [_make_issue(number=3), _make_issue(number=1, pull_request=True), _make_issue(number=2)]
        records = list(classify_issues(issues, NO_INDEX, _rules()))
        assert [r.number for r in records] == [3, 2]

    def test_label_and_assignee_order_does_not_change_row(self):
        issues = [
            _make_issue(number=1, labels=[NEEDS_FIX, HELP], assignees=(Assignee("b"), Assignee("a"))),
            _make_issue(number=1, labels=[HELP, NEEDS_FIX], assignees=(Assignee("a"), Assignee("b"))),
        ]
        first, second = [r.to_row() for r in classify_issues(issues, NO_INDEX, _rules())]
        assert first == second

    def test_repeat_runs_are_identical(self):
        issues = [_make_issue(number=n, labels=[DECISION, TESTING]) for n in (4, 2, 9)]
        first = [r.to_row() for r in classify_issues(issues, frozenset({2}), _rules())]
        second = [r.to_row() for r in classify_issues(issues, frozenset({2}), _rules())]
        assert first == second
