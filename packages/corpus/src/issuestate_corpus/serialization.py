"""Dict <-> model conversion shared by the JSON and SQLite backends.

Missing optional keys fall back to the model defaults. Missing required keys
(``number`` on issues and refs, ``id``/``status`` on changes) raise KeyError;
the backends turn that into an IterationError for the record being scanned.
"""

from __future__ import annotations

from datetime import datetime

from issuestate_corpus.models import Assignee, Change, Issue, IssueRef, Label, Milestone, ReviewMeta


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # fromisoformat() only accepts a trailing "Z" from Python 3.11 on.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def change_from_dict(d: dict) -> Change:
    return Change(
        change_id=str(d["id"]),
        status=d["status"],
        metas=tuple(
            ReviewMeta(votes={name: tuple(int(v) for v in values) for name, values in (m.get("votes") or {}).items()})
            for m in d.get("metas", [])
        ),
        issue_refs=tuple(IssueRef(repo=r["repo"], number=int(r["number"])) for r in d.get("issue_refs", [])),
    )


def change_to_dict(change: Change) -> dict:
    return {
        "id": change.change_id,
        "status": change.status,
        "metas": [{"votes": {name: list(values) for name, values in m.votes.items()}} for m in change.metas],
        "issue_refs": [{"repo": r.repo, "number": r.number} for r in change.issue_refs],
    }


def issue_from_dict(d: dict) -> Issue:
    milestone = d.get("milestone")
    return Issue(
        number=int(d["number"]),
        title=d.get("title") or "",
        updated=parse_timestamp(d.get("updated")),
        not_exist=bool(d.get("not_exist", False)),
        pull_request=bool(d.get("pull_request", False)),
        closed=bool(d.get("closed", False)),
        locked=bool(d.get("locked", False)),
        milestone=Milestone(title=milestone.get("title") or "") if milestone else None,
        labels=tuple(
            Label(id=int(lbl["id"]) if lbl.get("id") is not None else None, name=lbl.get("name") or "")
            for lbl in d.get("labels", [])
        ),
        assignees=tuple(Assignee(login=a.get("login") or "") for a in d.get("assignees", [])),
    )


def issue_to_dict(issue: Issue) -> dict:
    return {
        "number": issue.number,
        "title": issue.title,
        "updated": issue.updated.isoformat() if issue.updated else None,
        "not_exist": issue.not_exist,
        "pull_request": issue.pull_request,
        "closed": issue.closed,
        "locked": issue.locked,
        "milestone": {"title": issue.milestone.title} if issue.milestone else None,
        "labels": [{"id": lbl.id, "name": lbl.name} for lbl in issue.labels],
        "assignees": [{"login": a.login} for a in issue.assignees],
    }
