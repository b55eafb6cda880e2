"""stats command — aggregate derived states across a repository."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from issuestate_cli.session import corpus_session, resolve_config
from issuestate_core.classifier import STATES
from issuestate_core.export import classify_repository

console = Console()

_STATE_STYLE = {
    "closed": "dim",
    "locked": "dim",
    "waiting": "yellow",
    "deciding": "magenta",
    "pending": "green",
    "open": "cyan",
}


@click.command("stats")
@click.option("--project", default=None, help="Review project (host/name). Overrides config file.")
@click.option("--repo", default=None, help="Tracked repository (owner/name). Overrides config file.")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, project: str | None, repo: str | None, top: int):
    """Show how a repository's issues split across workflow states.

    Also lists the most common milestones (or urgency tags) and labels among
    issues that are still open in some form.
    """
    config = resolve_config(ctx, project=project, repo=repo)

    state_counter: Counter[str] = Counter()
    aux_counter: Counter[str] = Counter()
    label_counter: Counter[str] = Counter()

    with corpus_session(config) as corpus:
        for record in classify_repository(corpus, config):
            state_counter[record.state] += 1
            if record.state == "closed":
                continue
            if record.aux:
                aux_counter[record.aux] += 1
            label_counter.update(record.labels)

    total = sum(state_counter.values())
    if not total:
        console.print(f"[yellow]No issues found in {escape(config['repo'])}.[/yellow]")
        return

    console.print(f"\n[bold]Issue states for [cyan]{escape(config['repo'])}[/cyan][/bold]")
    console.print(f"  Total issues:   {total}")
    console.print(f"  Not closed:     {total - state_counter.get('closed', 0)}")

    # --- State breakdown ---
    state_table = Table(title="State Breakdown", show_header=True)
    state_table.add_column("State", style="bold")
    state_table.add_column("Count", justify="right")
    state_table.add_column("% of total", justify="right")
    for state in STATES:
        count = state_counter.get(state, 0)
        style = _STATE_STYLE.get(state, "white")
        state_table.add_row(f"[{style}]{state}[/{style}]", str(count), f"{count / total * 100:.1f}%")
    console.print(state_table)

    # --- Milestones / urgency ---
    if aux_counter:
        heading = "Urgency" if config.get("aux_policy") == "urgency" else "Milestone"
        aux_table = Table(title=f"Top {top} {heading} Values (not closed)", show_header=True)
        aux_table.add_column(heading)
        aux_table.add_column("Issues", justify="right")
        for value, count in aux_counter.most_common(top):
            aux_table.add_row(escape(value), str(count))
        console.print(aux_table)

    # --- Labels ---
    if label_counter:
        label_table = Table(title=f"Top {top} Labels (not closed)", show_header=True)
        label_table.add_column("Label")
        label_table.add_column("Issues", justify="right")
        for label, count in label_counter.most_common(top):
            label_table.add_row(escape(label), str(count))
        console.print(label_table)
