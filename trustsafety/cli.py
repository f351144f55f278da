"""trustsafety CLI: operator console for the enforcement engine."""

import logging
from dataclasses import replace
from typing import NoReturn

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from trustsafety import __version__
from trustsafety.accounts.models import Actor, Role
from trustsafety.config import load_config
from trustsafety.errors import NotEligible, TrustSafetyError
from trustsafety.logging import configure_logging
from trustsafety.security.audit_log import AuditAction

console = Console()

_SEVERITY_STYLE = {
    "none": "green",
    "low": "cyan",
    "medium": "yellow",
    "high": "red",
}


def _engine(ctx: click.Context):
    from trustsafety.engine import TrustSafetyEngine

    return TrustSafetyEngine(ctx.obj["config"])


def _fail(exc: TrustSafetyError) -> NoReturn:
    console.print(f"[red]{type(exc).__name__}:[/] {exc}")
    if isinstance(exc, NotEligible) and exc.reason:
        console.print(f"  [dim]reason: {exc.reason}[/]")
    raise SystemExit(1)


def _admin(admin_id: str) -> Actor:
    return Actor(id=admin_id, role=Role.admin)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="YAML config file")
@click.option("--data-dir", default=None, help="Override the storage directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, data_dir: str | None, verbose: bool):
    """Trust & Safety enforcement engine.

    Screens chat messages for off-platform contact attempts, tracks
    violations and reputation, and manages suspensions and appeals.
    """
    config = load_config(config_path)
    if data_dir:
        config = replace(config, data_dir=data_dir)
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    configure_logging(level)
    ctx.obj = {"config": config}


# ── Messages ─────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
def analyze(text: str):
    """Analyze TEXT without recording anything."""
    from trustsafety.moderation import analyze as run_analysis

    result = run_analysis(text)
    style = _SEVERITY_STYLE[result.severity.value]
    console.print(f"\nSeverity: [{style}]{result.severity.value}[/]")

    if result.matches:
        table = Table(title=f"Matches ({len(result.matches)})")
        table.add_column("Category", style="cyan")
        table.add_column("Severity")
        table.add_column("Text")
        for m in result.matches:
            table.add_row(m.category.value, m.severity.value, m.text)
        console.print(table)

    if result.should_block_message():
        console.print(Panel(result.explanation(), title="Blocked", border_style="red"))
    elif result.should_warn_user():
        console.print(Panel(result.explanation(), title="Confirm before sending", border_style="yellow"))


@main.command()
@click.argument("account_id")
@click.argument("text")
@click.option("--message-id", default=None, help="Originating message id (deduplication key)")
@click.pass_context
def screen(ctx: click.Context, account_id: str, text: str, message_id: str | None):
    """Screen an outbound message from ACCOUNT_ID and apply enforcement."""
    try:
        verdict = _engine(ctx).screen_message(account_id, text, message_id=message_id)
    except TrustSafetyError as exc:
        _fail(exc)

    if verdict.delivered:
        console.print("[green]Delivered[/]")
    elif verdict.requires_confirmation:
        console.print(Panel(verdict.explanation, title="Confirm before sending", border_style="yellow"))
    else:
        console.print(Panel(verdict.explanation, title="Blocked", border_style="red"))

    if verdict.violation:
        v = verdict.violation
        console.print(f"  Reputation: {v.reputation:.2f}  Status: {v.status.value}")
        if v.suspended_now:
            console.print(f"  [red]Account suspended ({v.suspension.reason.value})[/]")


# ── Accounts & violations ────────────────────────────────────────────


@main.command()
@click.argument("account_id")
@click.pass_context
def register(ctx: click.Context, account_id: str):
    """Register ACCOUNT_ID at full reputation."""
    try:
        account = _engine(ctx).register_account(account_id)
    except TrustSafetyError as exc:
        _fail(exc)
    console.print(f"[green]Registered[/] {account.id} (reputation {account.reputation_score:.1f})")


@main.command()
@click.argument("account_id")
@click.argument(
    "violation_type",
    type=click.Choice(["contact_sharing", "spam", "inappropriate_content", "no_show"]),
)
@click.option("--description", "-d", default="", help="What happened")
@click.option("--severity", default="medium", type=click.Choice(["low", "medium", "high"]))
@click.option("--source", default=None, help="Source reference (e.g. message or booking id)")
@click.option("--admin", "admin_id", required=True, help="Admin recording the violation")
@click.pass_context
def record(
    ctx: click.Context,
    account_id: str,
    violation_type: str,
    description: str,
    severity: str,
    source: str | None,
    admin_id: str,
):
    """Record a violation against ACCOUNT_ID."""
    try:
        outcome = _engine(ctx).record_violation(
            account_id,
            violation_type,
            description,
            severity=severity,
            source_reference=source,
            reported_by=admin_id,
            actor=_admin(admin_id),
        )
    except TrustSafetyError as exc:
        _fail(exc)

    if not outcome.created:
        console.print("[yellow]Duplicate violation ignored.[/]")
    console.print(f"Reputation: {outcome.reputation:.2f}  Status: {outcome.status.value}")
    if outcome.suspended_now:
        console.print(f"[red]Account suspended ({outcome.suspension.reason.value})[/]")


@main.command()
@click.argument("account_id")
@click.pass_context
def status(ctx: click.Context, account_id: str):
    """Show reputation, warning level and recent violations of ACCOUNT_ID."""
    try:
        summary = _engine(ctx).account_summary(account_id)
    except TrustSafetyError as exc:
        _fail(exc)

    account = summary.account
    lines = [
        f"Status: {account.status.value}",
        f"Reputation: {summary.reputation:.2f}",
        f"Warning level: {summary.warning_level.value}",
        f"Violations: {summary.violation_count}",
        f"Can appeal: {'yes' if account.can_appeal else 'no'}",
    ]
    if summary.active_suspension:
        lines.append(f"Suspended: {summary.active_suspension.reason.value} since {summary.active_suspension.suspended_at}")
    if summary.pending_appeal:
        lines.append(f"Pending appeal: {summary.pending_appeal.id}")
    console.print(Panel("\n".join(lines), title=account.id))

    if summary.warning_level.message:
        console.print(f"[yellow]{summary.warning_level.message}[/]")

    if summary.recent_violations:
        table = Table(title="Recent violations")
        table.add_column("When", style="dim")
        table.add_column("Type", style="cyan")
        table.add_column("Severity")
        table.add_column("Description")
        for v in summary.recent_violations:
            table.add_row(v.timestamp[:19], v.type.value, v.severity.value, v.description[:60])
        console.print(table)


# ── Suspensions ──────────────────────────────────────────────────────


@main.command()
@click.argument("account_id")
@click.option(
    "--reason",
    default="other",
    type=click.Choice(["low_reputation", "contact_sharing", "spam", "inappropriate", "fraud", "other"]),
)
@click.option("--details", default="", help="Investigation notes")
@click.option("--admin", "admin_id", required=True, help="Admin applying the suspension")
@click.option("--appeal/--no-appeal", default=True, help="Whether the account may appeal")
@click.pass_context
def suspend(ctx: click.Context, account_id: str, reason: str, details: str, admin_id: str, appeal: bool):
    """Manually suspend ACCOUNT_ID."""
    try:
        record = _engine(ctx).suspend(account_id, reason, details, _admin(admin_id), can_appeal=appeal)
    except TrustSafetyError as exc:
        _fail(exc)
    console.print(f"[red]Suspended[/] {account_id} ({record.reason.value}), suspension {record.id}")


@main.command()
@click.argument("account_id")
@click.option("--admin", "admin_id", required=True, help="Admin lifting the suspension")
@click.option("--reason", default="", help="Why the account is reinstated")
@click.pass_context
def reinstate(ctx: click.Context, account_id: str, admin_id: str, reason: str):
    """Reinstate a suspended ACCOUNT_ID (reputation is not reset)."""
    try:
        account = _engine(ctx).reinstate(account_id, _admin(admin_id), reason)
    except TrustSafetyError as exc:
        _fail(exc)
    console.print(f"[green]Reinstated[/] {account.id} at reputation {account.reputation_score:.2f}")


@main.command(name="suspensions")
@click.pass_context
def list_suspensions(ctx: click.Context):
    """List active suspensions."""
    records = _engine(ctx).active_suspensions()
    if not records:
        console.print("[yellow]No active suspensions.[/]")
        return

    table = Table(title=f"Active suspensions ({len(records)})")
    table.add_column("Account", style="cyan")
    table.add_column("Reason")
    table.add_column("Since", style="dim")
    table.add_column("By")
    table.add_column("Appeal")
    for r in records:
        table.add_row(r.account_id, r.reason.value, r.suspended_at[:19], r.suspended_by, "yes" if r.can_appeal else "no")
    console.print(table)


# ── Appeals ──────────────────────────────────────────────────────────


@main.group()
def appeal():
    """Submit and resolve suspension appeals."""


@appeal.command(name="submit")
@click.argument("account_id")
@click.argument("message")
@click.pass_context
def submit_appeal(ctx: click.Context, account_id: str, message: str):
    """Submit an appeal for suspended ACCOUNT_ID."""
    try:
        result = _engine(ctx).submit_appeal(account_id, message)
    except TrustSafetyError as exc:
        _fail(exc)
    console.print(f"[green]Appeal submitted:[/] {result.id} (pending review)")


@appeal.command(name="resolve")
@click.argument("appeal_id")
@click.argument("decision", type=click.Choice(["approved", "rejected"]))
@click.option("--admin", "admin_id", required=True, help="Admin resolving the appeal")
@click.option("--notes", default="", help="Resolution notes")
@click.pass_context
def resolve_appeal(ctx: click.Context, appeal_id: str, decision: str, admin_id: str, notes: str):
    """Approve or reject APPEAL_ID."""
    try:
        result = _engine(ctx).resolve_appeal(appeal_id, decision, _admin(admin_id), notes)
    except TrustSafetyError as exc:
        _fail(exc)
    style = "green" if decision == "approved" else "red"
    console.print(f"Appeal {result.id}: [{style}]{result.status.value}[/]")


@appeal.command(name="list")
@click.option("--account", "account_id", default=None, help="Only this account")
@click.pass_context
def list_appeals(ctx: click.Context, account_id: str | None):
    """List pending appeals (or every appeal of one account)."""
    engine = _engine(ctx)
    appeals = engine.appeals.appeals_for_account(account_id) if account_id else engine.pending_appeals()
    if not appeals:
        console.print("[yellow]No appeals found.[/]")
        return

    table = Table(title=f"Appeals ({len(appeals)})")
    table.add_column("ID", style="dim")
    table.add_column("Account", style="cyan")
    table.add_column("Status")
    table.add_column("Submitted", style="dim")
    table.add_column("Message")
    for a in appeals:
        table.add_row(a.id, a.account_id, a.status.value, a.submitted_at[:19], a.message[:60])
    console.print(table)


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option(
    "--action",
    default=None,
    type=click.Choice([a.value for a in AuditAction]),
    help="Only this action",
)
@click.option("--account", "account_id", default=None, help="Only entries about this account")
@click.option("--format", "fmt", default="table", type=click.Choice(["table", "json", "csv"]))
@click.option("--limit", default=50, help="Maximum number of entries")
@click.pass_context
def audit(ctx: click.Context, action: str | None, account_id: str | None, fmt: str, limit: int):
    """Show the enforcement audit trail."""
    log = _engine(ctx).audit
    if fmt != "table":
        click.echo(log.export(fmt, action=action, account_id=account_id, limit=limit))
        return

    entries = log.events(action=action, account_id=account_id, limit=limit)
    table = Table(title=f"Audit log ({len(entries)})")
    table.add_column("When", style="dim")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Account")
    table.add_column("Subject", style="dim")
    for e in entries:
        table.add_row(e.timestamp[:19], e.actor, e.action, e.account_id, e.subject_id)
    console.print(table)


if __name__ == "__main__":
    main()
