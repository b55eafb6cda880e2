"""Shared plumbing for commands that read a corpus."""

from __future__ import annotations

import logging
from contextlib import contextmanager

import click

from issuestate_corpus.errors import CorpusError

logger = logging.getLogger(__name__)


def resolve_config(ctx: click.Context, **overrides) -> dict:
    """Return a copy of the loaded config with non-None command options applied.

    The rule set is validated here so a bad aux_policy or label role is
    reported as a usage error before any corpus is opened.
    """
    from issuestate_core.rules import rules_from_config

    config = dict(ctx.obj["config"]) if ctx.obj else {}
    for key, value in overrides.items():
        if value is not None:
            config[key] = value
    try:
        rules_from_config(config)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    return config


@contextmanager
def corpus_session(config: dict):
    """Open the configured corpus, close it afterwards, and make corpus errors fatal.

    A SetupError or IterationError is logged and turned into a ClickException,
    so the process exits non-zero. Rows written before the failure stay on the
    output stream.
    """
    from issuestate_cli.cli import _build_corpus

    try:
        corpus = _build_corpus(config)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    except CorpusError as e:
        logger.error("%s: %s", type(e).__name__, e)
        raise click.ClickException(str(e)) from e

    try:
        yield corpus
    except CorpusError as e:
        logger.error("%s: %s", type(e).__name__, e)
        raise click.ClickException(str(e)) from e
    finally:
        corpus.close()
