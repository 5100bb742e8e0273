"""auditctl query: search the audit log."""

import json
from datetime import datetime
from pathlib import Path

import click

from auditctl.audit.models import AuditQuery
from auditctl.cli.main import audit_file_option, cli, open_storage, parse_date


@cli.command()
@click.option("--loan-id", default=None, help="Filter by loan ID")
@click.option("--tool", default=None, help="Filter by tool name")
@click.option("--command", "command_name", default=None, help="Filter by command")
@click.option("--operator", default=None, help="Filter by operator")
@click.option("--session-id", default=None, help="Filter by session ID")
@click.option("--start-date", default=None, callback=parse_date, help="Start of range (ISO-8601)")
@click.option("--end-date", default=None, callback=parse_date, help="End of range (ISO-8601)")
@click.option("--has-risk-flags", is_flag=True, default=False, help="Only entries with risk flags")
@click.option("--human-review", is_flag=True, default=False, help="Only entries needing review")
@click.option(
    "--limit", default=100, type=click.IntRange(min=0), help="Maximum entries (0 for no limit)"
)
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Pagination offset")
@audit_file_option
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "jsonl", "summary"]))
@click.pass_context
def query(
    ctx: click.Context,
    loan_id: str | None,
    tool: str | None,
    command_name: str | None,
    operator: str | None,
    session_id: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    has_risk_flags: bool,
    human_review: bool,
    limit: int,
    offset: int,
    audit_file: Path | None,
    fmt: str,
) -> None:
    """Query audit entries."""
    storage = open_storage(ctx, audit_file)
    filters = AuditQuery(
        loan_id=loan_id,
        tool=tool,
        command=command_name,
        operator=operator,
        session_id=session_id,
        start_date=start_date,
        end_date=end_date,
        has_risk_flags=has_risk_flags,
        human_review_required=True if human_review else None,
        limit=limit,
        offset=offset,
    )
    entries = storage.query(filters)

    if fmt == "json":
        click.echo(json.dumps([e.to_record() for e in entries], indent=2, ensure_ascii=False))
    elif fmt == "jsonl":
        for e in entries:
            click.echo(json.dumps(e.to_record(), ensure_ascii=False))
    else:
        click.echo(f"Found {storage.count(filters)} entries")
        for e in entries:
            click.echo(f"  {e.audit_id[:8]}  {e.timestamp}  {e.tool} {e.command}")
            if e.compliance.risk_flags:
                click.echo(f"    risk flags: {', '.join(e.compliance.risk_flags)}")
