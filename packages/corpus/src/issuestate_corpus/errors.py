"""Corpus error types.

Both are fatal to a run. Nothing is retried and there is no partial-success
mode: the CLI logs the error and exits non-zero.
"""

from __future__ import annotations


class CorpusError(Exception):
    """Base class for errors raised while reading a corpus snapshot."""


class SetupError(CorpusError):
    """The snapshot, project or repository could not be found or loaded."""


class IterationError(CorpusError):
    """A scan failed part way through (bad record, backend or output failure)."""
