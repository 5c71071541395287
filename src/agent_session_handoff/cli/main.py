"""CLI entry point for agent-session-handoff.

Invoked as::

    agent-session-handoff [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_session_handoff.cli.main

Commands
--------
- version   - Show detailed version information
- monitor   - Evaluate one usage sample against the trigger policy
- report    - Handoff report command group

Report sub-commands
-------------------
- report generate  - Build and store a report from a state file
- report show      - Display a stored report
- report list      - List the most recent reports
- report prompt    - Render the onboarding prompt for a report
"""
from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agent_session_handoff.config import HandoffSettings, load_settings
from agent_session_handoff.errors import ConfigurationError, HandoffError, ReportNotFoundError

console = Console()

_URGENCY_STYLE = {
    "immediate": "bold red",
    "soon": "yellow",
    "planned": "cyan",
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config(config_path: str | None) -> HandoffSettings:
    try:
        return load_settings(config_path)
    except ConfigurationError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(1)


def _make_store(storage: str, db_path: str | None, settings: HandoffSettings) -> object:
    """Instantiate the requested report store.

    Parameters
    ----------
    storage:
        Store name: ``"memory"`` or ``"sqlite"``.
    db_path:
        Path to the SQLite database (used when ``storage="sqlite"``).
    settings:
        Supplies the retention cap.

    Returns
    -------
    ReportStore
    """
    from agent_session_handoff.storage.memory import InMemoryReportStore
    from agent_session_handoff.storage.sqlite import SQLiteReportStore

    if storage == "memory":
        return InMemoryReportStore(max_reports=settings.max_reports)
    if storage == "sqlite":
        db = Path(db_path) if db_path else Path.home() / ".agent-handoff" / "reports.db"
        return SQLiteReportStore(db_path=db, max_reports=settings.max_reports)
    console.print(f"[red]Unknown storage backend: {storage!r}[/red]")
    sys.exit(1)


def _read_state_file(path: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        console.print(f"[red]Cannot read state file:[/red] {exc}")
        sys.exit(1)
    if data is None:
        return {}
    if not isinstance(data, dict):
        console.print("[red]State file must contain a mapping at top level.[/red]")
        sys.exit(1)
    return data


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-session-handoff")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Context handoff between conversational agent sessions"""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_session_handoff import __version__

    console.print(f"[bold]agent-session-handoff[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# monitor
# ---------------------------------------------------------------------------


@cli.command(name="monitor")
@click.option("--token-usage", required=True, type=int, help="Tokens consumed so far.")
@click.option("--conversation-length", required=True, type=int, help="Messages so far.")
@click.option(
    "--session-start-ms",
    default=None,
    type=int,
    help="Session start as epoch milliseconds. Defaults to now.",
)
@click.option("--max-tokens", default=None, type=int, help="Override the context budget.")
@click.option("--config", "config_path", default=None, help="YAML settings file.")
def monitor_command(
    token_usage: int,
    conversation_length: int,
    session_start_ms: int | None,
    max_tokens: int | None,
    config_path: str | None,
) -> None:
    """Evaluate one usage sample and print metrics, trigger and advice."""
    from agent_session_handoff.monitor.context_monitor import ContextMonitor, recommendations_for

    settings = _load_config(config_path)
    try:
        monitor = ContextMonitor(settings, max_tokens=max_tokens)
        metrics = monitor.update(
            token_usage,
            conversation_length,
            session_start_ms if session_start_ms is not None else _now_ms(),
        )
    except ValueError as exc:
        console.print(f"[red]Invalid sample:[/red] {exc}")
        sys.exit(1)
    trigger = monitor.evaluate_trigger()

    table = Table(title="Context Metrics", show_lines=False)
    table.add_column("Metric", style="bold cyan")
    table.add_column("Value", justify="right")
    table.add_row("token_usage", str(metrics.token_usage))
    table.add_row("max_tokens", str(metrics.max_tokens))
    table.add_row("fill_percentage", metrics.fill_label())
    table.add_row("conversation_length", str(metrics.conversation_length))
    table.add_row("session_duration_ms", str(metrics.session_duration))
    console.print(table)

    if trigger is None:
        console.print("[green]No handoff trigger.[/green]")
        return

    style = _URGENCY_STYLE.get(trigger.urgency.value, "white")
    console.print(
        f"[{style}]Trigger: {trigger.trigger_type.value} "
        f"(urgency={trigger.urgency.value}, notify={trigger.notification_required})[/{style}]"
    )
    for line in recommendations_for(trigger):
        console.print(f"  - {line}")


# ---------------------------------------------------------------------------
# report command group
# ---------------------------------------------------------------------------


@cli.group(name="report")
@click.option(
    "--storage",
    default="sqlite",
    show_default=True,
    type=click.Choice(["memory", "sqlite"], case_sensitive=False),
    help="Report store to use.",
)
@click.option("--db-path", default=None, help="Path to SQLite database (sqlite store).")
@click.option("--config", "config_path", default=None, help="YAML settings file.")
@click.pass_context
def report_group(
    ctx: click.Context,
    storage: str,
    db_path: str | None,
    config_path: str | None,
) -> None:
    """Handoff report commands."""
    ctx.ensure_object(dict)
    settings = _load_config(config_path)
    ctx.obj["settings"] = settings
    ctx.obj["store"] = _make_store(storage, db_path, settings)


def _make_engine(ctx: click.Context) -> Any:
    from agent_session_handoff.engine import HandoffEngine

    return HandoffEngine(ctx.obj["settings"], ctx.obj["store"])


# ---------------------------------------------------------------------------
# report generate
# ---------------------------------------------------------------------------


@report_group.command(name="generate")
@click.argument("state_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--session-id", required=True, help="Session being handed off.")
@click.pass_context
def report_generate(ctx: click.Context, state_file: str, session_id: str) -> None:
    """Build a handoff report from STATE_FILE and store it.

    STATE_FILE is YAML or JSON with any of the keys project_state,
    wisdom_state, conversation_history, user_preferences, technical_state,
    token_usage, conversation_length and session_start_ms.
    """
    from agent_session_handoff.engine import StateSnapshot

    data = _read_state_file(state_file)
    engine = _make_engine(ctx)
    snapshot = StateSnapshot(
        project_state=data.get("project_state"),
        wisdom_state=data.get("wisdom_state"),
        conversation_history=data.get("conversation_history"),
        user_preferences=data.get("user_preferences"),
        technical_state=data.get("technical_state"),
    )

    try:
        engine.submit_usage_sample(
            session_id,
            int(data.get("token_usage", 0)),
            int(data.get("conversation_length", 0)),
            int(data.get("session_start_ms", _now_ms())),
        )
        generated = asyncio.run(engine.generate_report(session_id, snapshot))
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Invalid usage values in state file:[/red] {exc}")
        sys.exit(1)
    except HandoffError as exc:
        console.print(f"[red]Report generation failed:[/red] {exc}")
        sys.exit(1)

    report = generated.report
    console.print(f"[green]Report stored:[/green] {generated.handoff_id}")
    console.print(f"[dim]{report.transition_notes.handoff_reason}[/dim]")
    if report.degraded_sections:
        console.print(
            "[yellow]Degraded sections:[/yellow] " + ", ".join(report.degraded_sections)
        )


# ---------------------------------------------------------------------------
# report show
# ---------------------------------------------------------------------------


@report_group.command(name="show")
@click.argument("handoff_id")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of formatted view.")
@click.pass_context
def report_show(ctx: click.Context, handoff_id: str, json_output: bool) -> None:
    """Display the report stored under HANDOFF_ID."""
    try:
        report = ctx.obj["store"].get(handoff_id)
    except ReportNotFoundError:
        console.print(f"[red]Report not found:[/red] {handoff_id}")
        sys.exit(1)
    except HandoffError as exc:
        console.print(f"[red]Cannot read report:[/red] {exc}")
        sys.exit(1)

    if json_output:
        console.print_json(report.to_json())
        return

    table = Table(title=f"Handoff Report {report.id[:8]}", show_lines=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    summary = report.executive_summary
    history = report.conversation_history
    table.add_row("id", report.id)
    table.add_row("timestamp", report.timestamp.isoformat())
    table.add_row("previous_session_id", report.previous_session_id)
    table.add_row("fill_percentage", report.context_metrics.fill_label())
    table.add_row("handoff_reason", report.transition_notes.handoff_reason)
    table.add_row("current_phase", summary.current_phase)
    table.add_row("current_topic", history.current_topic)
    table.add_row("last_user_request", history.last_user_request)
    if report.degraded_sections:
        table.add_row("degraded_sections", ", ".join(report.degraded_sections))
    console.print(table)

    if summary.immediate_priorities:
        console.print("\n[bold]Immediate Priorities:[/bold]")
        for priority in summary.immediate_priorities:
            console.print(f"  - {priority}")
    console.print(Panel(history.recent_summary, title="Recent Summary", expand=False))


# ---------------------------------------------------------------------------
# report list
# ---------------------------------------------------------------------------


@report_group.command(name="list")
@click.option("--limit", default=10, show_default=True, help="Maximum reports to show.")
@click.pass_context
def report_list(ctx: click.Context, limit: int) -> None:
    """List the most recent handoff reports, newest first."""
    try:
        summaries = ctx.obj["store"].list_recent(limit)
    except HandoffError as exc:
        console.print(f"[red]Cannot list reports:[/red] {exc}")
        sys.exit(1)

    if not summaries:
        console.print("[yellow]No reports found.[/yellow]")
        return

    table = Table(title="Recent Handoff Reports", show_lines=False)
    table.add_column("Handoff ID", style="cyan")
    table.add_column("Timestamp")
    table.add_column("Fill", justify="right")
    table.add_column("Reason")
    table.add_column("Top Priorities")

    for summary in summaries:
        table.add_row(
            summary.id,
            summary.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"{summary.fill_percentage * 100:.1f}%",
            summary.handoff_reason,
            "; ".join(summary.immediate_priorities) or "-",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# report prompt
# ---------------------------------------------------------------------------


@report_group.command(name="prompt")
@click.argument("handoff_id")
@click.pass_context
def report_prompt(ctx: click.Context, handoff_id: str) -> None:
    """Print the onboarding prompt for HANDOFF_ID."""
    engine = _make_engine(ctx)
    try:
        onboarding = engine.synthesize_onboarding_prompt(handoff_id)
    except ReportNotFoundError:
        console.print(f"[red]Report not found:[/red] {handoff_id}")
        sys.exit(1)
    except HandoffError as exc:
        console.print(f"[red]Cannot render prompt:[/red] {exc}")
        sys.exit(1)

    click.echo(onboarding.prompt)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
