"""export command — write the classified issue table as CSV."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from issuestate_cli.session import corpus_session, resolve_config
from issuestate_core.export import run_export

# The table goes to stdout; everything else goes to stderr.
console = Console(stderr=True)


@click.command("export")
@click.option("--project", default=None, help="Review project (host/name). Overrides config file.")
@click.option("--repo", default=None, help="Tracked repository (owner/name). Overrides config file.")
@click.option(
    "--aux-policy",
    "aux_policy",
    type=click.Choice(["milestone", "urgency"]),
    default=None,
    help="What the fourth column holds. Overrides config file.",
)
@click.option(
    "--output",
    "-o",
    type=click.File("w"),
    default="-",
    show_default=True,
    help="Where to write the CSV table.",
)
@click.pass_context
def export_cmd(ctx, project: str | None, repo: str | None, aux_policy: str | None, output):
    """Classify every issue of a repository and write one CSV row per issue.

    \b
    Columns (no header row):
      number, updated, state, milestone-or-urgency, labels, assignees, title
    """
    config = resolve_config(ctx, project=project, repo=repo, aux_policy=aux_policy)

    with corpus_session(config) as corpus:
        summary = run_export(corpus, config, output)

    counts = ", ".join(f"{state} {count}" for state, count in summary.state_counts.most_common())
    message = f"Exported {summary.rows} issue(s) from {escape(summary.repo)}"
    if counts:
        message += f" ({counts})"
    console.print(f"[dim]{message}[/dim]")
