"""JsonCorpus — a corpus snapshot held in a single JSON file.

Format:

    {
      "projects": {"go.googlesource.com/go": {"changes": [...]}},
      "repos":    {"golang/go": {"issues": [...]}}
    }

Each change and issue entry uses the layout of issuestate_corpus.serialization.
The whole file is parsed up front; records are converted lazily while iterating.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from issuestate_corpus.base import BaseCorpus
from issuestate_corpus.errors import IterationError, SetupError
from issuestate_corpus.serialization import change_from_dict, issue_from_dict

if TYPE_CHECKING:
    from collections.abc import Iterator

    from issuestate_corpus.models import Change, Issue

logger = logging.getLogger(__name__)


class JsonCorpus(BaseCorpus):
    def __init__(self, path: str):
        self._path = Path(path)
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SetupError(f"Cannot load corpus snapshot {path}: {e}") from e
        if not isinstance(data, dict):
            raise SetupError(f"Corpus snapshot {path} must contain a JSON object")
        self._projects = data.get("projects") or {}
        self._repos = data.get("repos") or {}
        if not isinstance(self._projects, dict) or not isinstance(self._repos, dict):
            raise SetupError(f"Corpus snapshot {path}: 'projects' and 'repos' must be JSON objects")
        logger.debug("Loaded %s: %d project(s), %d repo(s)", path, len(self._projects), len(self._repos))

    def iter_changes(self, project: str) -> Iterator[Change]:
        entry = self._lookup(self._projects, project, "Project")
        return self._convert(entry.get("changes", []), change_from_dict, "change")

    def iter_issues(self, repo: str) -> Iterator[Issue]:
        entry = self._lookup(self._repos, repo, "Repository")
        return self._convert(entry.get("issues", []), issue_from_dict, "issue")

    def _lookup(self, table: dict, name: str, kind: str) -> dict:
        if name not in table:
            raise SetupError(f"{kind} {name} not found in {self._path}")
        entry = table[name]
        if not isinstance(entry, dict):
            raise SetupError(f"{kind} {name} in {self._path} must be a JSON object")
        return entry

    @staticmethod
    def _convert(entries, from_dict, kind: str):
        if not isinstance(entries, list):
            raise IterationError(f"Expected a list of {kind}s, got {type(entries).__name__}")
        for position, entry in enumerate(entries):
            try:
                record = from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise IterationError(f"Malformed {kind} at position {position}: {type(e).__name__}: {e}") from e
            yield record
