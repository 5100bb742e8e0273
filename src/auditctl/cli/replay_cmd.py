"""auditctl replay: show one entry and re-check its hash."""

import json
from pathlib import Path

import click

from auditctl.audit.verifier import check_entry
from auditctl.cli.main import audit_file_option, cli, open_storage


@cli.command()
@click.option("--id", "audit_id", required=True, help="Audit entry ID to replay")
@audit_file_option
@click.option("--format", "fmt", default="text", type=click.Choice(["json", "text"]))
@click.pass_context
def replay(ctx: click.Context, audit_id: str, audit_file: Path | None, fmt: str) -> None:
    """Replay and verify a specific audit entry."""
    entry = open_storage(ctx, audit_file).get_by_id(audit_id)
    if entry is None:
        click.echo(f"Audit entry not found: {audit_id}", err=True)
        raise SystemExit(1)

    hash_valid, computed = check_entry(entry)

    if fmt == "json":
        payload = {
            "entry": entry.to_record(),
            "verification": {
                "hashValid": hash_valid,
                "computedHash": computed,
                "storedHash": entry.entry_hash,
            },
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        click.echo(f"Audit ID:  {entry.audit_id}")
        click.echo(f"Timestamp: {entry.timestamp}")
        click.echo(f"Tool:      {entry.tool} {entry.command} (v{entry.tool_version})")
        click.echo(f"Operator:  {entry.operator}")
        if entry.loan_id:
            click.echo(f"Loan ID:   {entry.loan_id}")
        if entry.session_id:
            click.echo(f"Session:   {entry.session_id}")
        if entry.parent_audit_id:
            click.echo(f"Parent:    {entry.parent_audit_id}")
        click.echo("Inputs:")
        click.echo(json.dumps(entry.inputs, indent=2, ensure_ascii=False))
        click.echo("Outputs:")
        click.echo(json.dumps(entry.outputs, indent=2, ensure_ascii=False))
        click.echo(f"Rationale: {entry.rationale}")
        for warning in entry.warnings:
            click.echo(f"  warning: {warning}")
        compliance = entry.compliance
        click.echo(f"Regulations:  {', '.join(compliance.regulations) or 'None'}")
        click.echo(f"Risk flags:   {', '.join(compliance.risk_flags) or 'None'}")
        click.echo(
            f"Human review: {'Required' if compliance.human_review_required else 'Not required'}"
        )
        if hash_valid:
            click.echo("Hash verified: entry has not been modified.")
        else:
            click.echo("HASH MISMATCH: entry may have been modified.")
            click.echo(f"  stored:   {entry.entry_hash}")
            click.echo(f"  computed: {computed}")

    if not hash_valid:
        raise SystemExit(1)
