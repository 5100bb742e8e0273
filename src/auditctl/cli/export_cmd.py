"""auditctl export: export entries for examination."""

from datetime import datetime
from pathlib import Path

import click

from auditctl.audit.models import AuditQuery
from auditctl.cli.main import audit_file_option, cli, open_storage, parse_date
from auditctl.export import EXPORT_FORMATS, export_entries


@cli.command()
@click.option("--format", "fmt", required=True, type=click.Choice(list(EXPORT_FORMATS)))
@click.option("--start-date", default=None, callback=parse_date, help="Start of range (ISO-8601)")
@click.option("--end-date", default=None, callback=parse_date, help="End of range (ISO-8601)")
@click.option("--loan-id", default=None, help="Filter by loan ID")
@click.option("--tool", default=None, help="Filter by tool name")
@click.option(
    "-o", "--output", "output_path", default=None, type=click.Path(dir_okay=False, path_type=Path)
)
@audit_file_option
@click.pass_context
def export(
    ctx: click.Context,
    fmt: str,
    start_date: datetime | None,
    end_date: datetime | None,
    loan_id: str | None,
    tool: str | None,
    output_path: Path | None,
    audit_file: Path | None,
) -> None:
    """Export audit entries for compliance review."""
    entries = open_storage(ctx, audit_file).query(
        AuditQuery(start_date=start_date, end_date=end_date, loan_id=loan_id, tool=tool)
    )
    content = export_entries(entries, fmt)

    if output_path:
        output_path.write_text(content, encoding="utf-8")
        click.echo(f"Exported {len(entries)} entries to {output_path}")
    else:
        click.echo(content)
