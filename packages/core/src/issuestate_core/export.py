"""Export pipeline: index changes, classify issues, write CSV rows."""

from __future__ import annotations

import csv
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from issuestate_core.classifier import classify_issues
from issuestate_core.indexer import build_reference_index
from issuestate_core.rules import rules_from_config
from issuestate_corpus.errors import IterationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from typing import TextIO

    from issuestate_core.classifier import ClassifiedRecord
    from issuestate_corpus.base import BaseCorpus

logger = logging.getLogger(__name__)


@dataclass
class ExportSummary:
    project: str
    repo: str
    rows: int = 0
    state_counts: Counter = field(default_factory=Counter)


def classify_repository(corpus: BaseCorpus, config: dict) -> Iterator[ClassifiedRecord]:
    """Classify every issue of the configured repository.

    Project and repository are both resolved before anything is scanned, so
    a SetupError for either leaves no output behind. The change index is
    complete before the first issue is classified.
    """
    rules = rules_from_config(config)
    project = config["project"]
    repo = config["repo"]

    changes = corpus.iter_changes(project)
    issues = corpus.iter_issues(repo)

    index = build_reference_index(changes, repo, rules)
    return classify_issues(issues, index, rules)


def write_records(records: Iterable[ClassifiedRecord], out: TextIO, summary: ExportSummary | None = None) -> int:
    """Write records as header-less CSV rows and return how many were written."""
    writer = csv.writer(out, lineterminator="\n")
    written = 0
    for record in records:
        try:
            writer.writerow(record.to_row())
        except (OSError, csv.Error) as e:
            raise IterationError(f"Failed to write row for issue {record.number}: {e}") from e
        written += 1
        if summary is not None:
            summary.rows += 1
            summary.state_counts[record.state] += 1
    try:
        out.flush()
    except OSError as e:
        raise IterationError(f"Failed to flush output: {e}") from e
    return written


def run_export(corpus: BaseCorpus, config: dict, out: TextIO) -> ExportSummary:
    summary = ExportSummary(project=config["project"], repo=config["repo"])
    records = classify_repository(corpus, config)
    write_records(records, out, summary)
    logger.info(
        "Exported %d issue(s) from %s (%s)",
        summary.rows,
        summary.repo,
        ", ".join(f"{state}={count}" for state, count in sorted(summary.state_counts.items())),
    )
    return summary
