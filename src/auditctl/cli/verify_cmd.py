"""auditctl verify: check the hash chain for tampering."""

import json
from datetime import datetime
from pathlib import Path

import click

from auditctl.cli.main import audit_file_option, cli, open_storage, parse_date


@cli.command()
@click.option(
    "--from", "from_date", default=None, callback=parse_date, help="Only report entries from date"
)
@audit_file_option
@click.option("--format", "fmt", default="text", type=click.Choice(["json", "text"]))
@click.pass_context
def verify(
    ctx: click.Context, from_date: datetime | None, audit_file: Path | None, fmt: str
) -> None:
    """Verify audit log hash chain integrity."""
    result = open_storage(ctx, audit_file).verify_integrity(from_date)

    if fmt == "json":
        click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    elif result.valid:
        click.echo(f"Audit log verified: {result.entries_checked} entries, chain intact.")
    else:
        click.echo(
            f"VERIFICATION FAILED: {result.invalid_entries} of {result.entries_checked} "
            "entries invalid"
        )
        for i, failure in enumerate(result.failures, start=1):
            click.echo(f"  {i}. {failure.audit_id} at {failure.timestamp}")
            click.echo(f"     {failure.reason}")
            click.echo(f"     expected {failure.expected_hash}, got {failure.actual_hash}")

    if not result.valid:
        raise SystemExit(1)
