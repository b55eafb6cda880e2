"""CLI entry point for issuestate.

Commands:
  export  — classify every issue and write the CSV table
  stats   — summarise the state distribution of a repository
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from issuestate_cli.commands.export import export_cmd
from issuestate_cli.commands.stats import stats_cmd


def _build_corpus(config: dict):
    """Instantiate the configured corpus backend from .issuestate.yml settings.

    Corpus selection:
      corpus: json   → JsonCorpus   (corpus_path, default corpus.json)
      corpus: sqlite → SQLiteCorpus (corpus_path, must already exist)

    Raises SetupError if the snapshot cannot be opened and ValueError for an
    unknown backend name.
    """
    corpus_type = config.get("corpus", "json")
    corpus_path = config.get("corpus_path", "corpus.json")

    if corpus_type == "json":
        from issuestate_corpus.json_file import JsonCorpus

        return JsonCorpus(corpus_path)

    if corpus_type == "sqlite":
        from issuestate_corpus.sqlite import SQLiteCorpus

        return SQLiteCorpus(db_path=corpus_path)

    raise ValueError(f"Unknown corpus backend: {corpus_type!r}. Choose 'json' or 'sqlite'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("issuestate"),
    prog_name="issuestate",
)
@click.option(
    "--config",
    "config_path",
    default=".issuestate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="ISSUESTATE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log progress and skipped records to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Derive workflow states for tracker issues from labels and code review."""
    from issuestate_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


main.add_command(export_cmd)
main.add_command(stats_cmd)
