"""SQLiteCorpus — a corpus snapshot stored in a local SQLite database.

Suited to large mirrors: issues and changes are streamed row by row instead
of parsing one big JSON document, and a snapshot can be built incrementally
with save_change()/save_issue().

Schema:
  projects, repos — names known to the snapshot (an empty project still exists)
  changes         — one row per change; review metas and issue refs as JSON
  issues          — one row per issue; labels and assignees as JSON
Rows are yielded in insertion order.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from issuestate_corpus.base import BaseCorpus
from issuestate_corpus.errors import IterationError, SetupError
from issuestate_corpus.serialization import change_from_dict, change_to_dict, issue_from_dict, issue_to_dict

if TYPE_CHECKING:
    from collections.abc import Iterator

    from issuestate_corpus.models import Change, Issue

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    name            TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS repos (
    name            TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS changes (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    project         TEXT NOT NULL,
    change_id       TEXT NOT NULL,
    status          TEXT NOT NULL,
    metas_json      TEXT DEFAULT '[]',
    refs_json       TEXT DEFAULT '[]',
    UNIQUE (project, change_id)
);
CREATE TABLE IF NOT EXISTS issues (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    repo            TEXT NOT NULL,
    number          INTEGER NOT NULL,
    title           TEXT,
    updated         TEXT,
    not_exist       INTEGER DEFAULT 0,
    pull_request    INTEGER DEFAULT 0,
    closed          INTEGER DEFAULT 0,
    locked          INTEGER DEFAULT 0,
    milestone       TEXT,
    labels_json     TEXT DEFAULT '[]',
    assignees_json  TEXT DEFAULT '[]',
    UNIQUE (repo, number)
);
CREATE INDEX IF NOT EXISTS idx_changes_project ON changes (project);
CREATE INDEX IF NOT EXISTS idx_issues_repo     ON issues (repo);
"""


class SQLiteCorpus(BaseCorpus):
    """Reads (and optionally builds) a snapshot in a SQLite database file.

    Opening a path that does not exist is a SetupError unless ``create`` is
    set; sqlite3 would otherwise silently create an empty database.
    """

    def __init__(self, db_path: str = "corpus.db", create: bool = False):
        if not create and not Path(db_path).exists():
            raise SetupError(f"Corpus database not found: {db_path}")
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise SetupError(f"Cannot open corpus database {db_path}: {e}") from e
        logger.debug("Opened corpus database %s", db_path)

    # ------------------------------------------------------------------ #
    # Snapshot loading                                                     #
    # ------------------------------------------------------------------ #

    def add_project(self, name: str) -> None:
        self._conn.execute("INSERT OR IGNORE INTO projects (name) VALUES (?)", (name,))
        self._conn.commit()

    def add_repo(self, name: str) -> None:
        self._conn.execute("INSERT OR IGNORE INTO repos (name) VALUES (?)", (name,))
        self._conn.commit()

    def save_change(self, project: str, change: Change) -> None:
        d = change_to_dict(change)
        self.add_project(project)
        self._conn.execute(
            """
            INSERT OR REPLACE INTO changes
              (project, change_id, status, metas_json, refs_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            (project, d["id"], d["status"], json.dumps(d["metas"]), json.dumps(d["issue_refs"])),
        )
        self._conn.commit()

    def save_issue(self, repo: str, issue: Issue) -> None:
        d = issue_to_dict(issue)
        self.add_repo(repo)
        self._conn.execute(
            """
            INSERT OR REPLACE INTO issues
              (repo, number, title, updated, not_exist, pull_request, closed,
               locked, milestone, labels_json, assignees_json)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                repo,
                d["number"],
                d["title"],
                d["updated"],
                int(d["not_exist"]),
                int(d["pull_request"]),
                int(d["closed"]),
                int(d["locked"]),
                d["milestone"]["title"] if d["milestone"] else None,
                json.dumps(d["labels"]),
                json.dumps(d["assignees"]),
            ),
        )
        self._conn.commit()

    # ------------------------------------------------------------------ #
    # BaseCorpus                                                           #
    # ------------------------------------------------------------------ #

    def iter_changes(self, project: str) -> Iterator[Change]:
        self._require("projects", project)
        return self._scan(
            "SELECT * FROM changes WHERE project=? ORDER BY id",
            (project,),
            lambda row: change_from_dict(self._row_to_change_dict(row)),
        )

    def iter_issues(self, repo: str) -> Iterator[Issue]:
        self._require("repos", repo)
        return self._scan(
            "SELECT * FROM issues WHERE repo=? ORDER BY id",
            (repo,),
            lambda row: issue_from_dict(self._row_to_issue_dict(row)),
        )

    def close(self) -> None:
        self._conn.close()

    def _require(self, table: str, name: str) -> None:
        kind = "Project" if table == "projects" else "Repository"
        try:
            row = self._conn.execute(f"SELECT 1 FROM {table} WHERE name=?", (name,)).fetchone()
        except sqlite3.Error as e:
            raise SetupError(f"Cannot read {table} from corpus database: {e}") from e
        if row is None:
            raise SetupError(f"{kind} {name} not found in corpus database")

    def _scan(self, query: str, params: tuple, convert):
        try:
            cursor = self._conn.execute(query, params)
        except sqlite3.Error as e:
            raise IterationError(f"Corpus query failed: {e}") from e
        while True:
            try:
                row = cursor.fetchone()
                if row is None:
                    return
                record = convert(row)
            except sqlite3.Error as e:
                raise IterationError(f"Corpus scan failed: {e}") from e
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise IterationError(f"Malformed corpus row: {type(e).__name__}: {e}") from e
            yield record

    @staticmethod
    def _row_to_change_dict(row: sqlite3.Row) -> dict:
        return {
            "id": row["change_id"],
            "status": row["status"],
            "metas": json.loads(row["metas_json"] or "[]"),
            "issue_refs": json.loads(row["refs_json"] or "[]"),
        }

    @staticmethod
    def _row_to_issue_dict(row: sqlite3.Row) -> dict:
        return {
            "number": row["number"],
            "title": row["title"] or "",
            "updated": row["updated"],
            "not_exist": bool(row["not_exist"]),
            "pull_request": bool(row["pull_request"]),
            "closed": bool(row["closed"]),
            "locked": bool(row["locked"]),
            "milestone": {"title": row["milestone"]} if row["milestone"] is not None else None,
            "labels": json.loads(row["labels_json"] or "[]"),
            "assignees": json.loads(row["assignees_json"] or "[]"),
        }
