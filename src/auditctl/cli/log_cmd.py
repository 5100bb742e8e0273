"""auditctl log: append an entry to the audit log."""

import json
from pathlib import Path

import click
from pydantic import ValidationError

from auditctl.audit.logger import AuditLogger
from auditctl.audit.models import AuditEntryOptions, Decision
from auditctl.cli.main import (
    audit_file_option,
    cli,
    get_config,
    open_storage,
    parse_json_object,
    split_list,
)


@cli.command(name="log")
@click.option("-t", "--tool", default=None, help="Tool name (e.g. finctl, mortctl)")
@click.option("-c", "--command", "command_name", default=None, help="Command executed")
@click.option("--tool-version", default=None, help="Tool version")
@click.option("-i", "--inputs", default=None, callback=parse_json_object, help="Inputs as JSON")
@click.option("-o", "--outputs", default=None, callback=parse_json_object, help="Outputs as JSON")
@click.option("-r", "--rationale", default="", help="Human-readable rationale")
@click.option("-w", "--warnings", default=None, help="Comma-separated warnings")
@click.option("--regulations", default=None, help="Comma-separated regulation codes")
@click.option("--risk-flags", default=None, help="Comma-separated risk flags")
@click.option("--human-review", is_flag=True, default=False, help="Requires human review")
@click.option("--operator", default=None, help="Operator identifier")
@click.option("--session-id", default=None, help="Session identifier")
@click.option("--loan-id", default=None, help="Loan/application identifier")
@click.option("--parent-id", default=None, help="Parent audit ID for chained operations")
@click.option("--duration", default=None, type=int, help="Operation duration in milliseconds")
@click.option(
    "--decision",
    default=None,
    type=click.Choice([d.value for d in Decision]),
    help="Record a credit decision (adds ECOA / Reg B)",
)
@click.option("--decline-reasons", default=None, help="Comma-separated adverse action reasons")
@click.option(
    "-f",
    "--file",
    "entry_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read entry fields from a JSON file",
)
@audit_file_option
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "table"]))
@click.pass_context
def log_entry(
    ctx: click.Context,
    tool: str | None,
    command_name: str | None,
    tool_version: str | None,
    inputs: dict | None,
    outputs: dict | None,
    rationale: str,
    warnings: str | None,
    regulations: str | None,
    risk_flags: str | None,
    human_review: bool,
    operator: str | None,
    session_id: str | None,
    loan_id: str | None,
    parent_id: str | None,
    duration: int | None,
    decision: str | None,
    decline_reasons: str | None,
    entry_file: Path | None,
    audit_file: Path | None,
    fmt: str,
) -> None:
    """Log an audit entry."""
    try:
        if entry_file:
            try:
                data = json.loads(entry_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise click.BadParameter(f"invalid JSON: {e}", param_hint="--file") from e
            options = AuditEntryOptions.model_validate(data)
        else:
            if not (tool and command_name and tool_version):
                raise click.UsageError("--tool, --command and --tool-version are required")
            options = AuditEntryOptions(
                tool=tool,
                command=command_name,
                tool_version=tool_version,
                inputs=inputs or {},
                outputs=outputs or {},
                rationale=rationale,
                warnings=split_list(warnings) or [],
                compliance={
                    "regulations": split_list(regulations) or [],
                    "risk_flags": split_list(risk_flags) or [],
                    "human_review_required": human_review,
                },
                operator=operator,
                session_id=session_id,
                loan_id=loan_id,
                parent_audit_id=parent_id,
                duration_ms=duration,
            )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    logger = AuditLogger(open_storage(ctx, audit_file, create=True), get_config(ctx))
    if decision:
        entry = logger.log_decision(
            options, decision=decision, decline_reasons=split_list(decline_reasons)
        )
    else:
        entry = logger.log(options)

    if fmt == "json":
        click.echo(json.dumps(entry.to_record(), indent=2, ensure_ascii=False))
    else:
        click.echo(f"Audit entry logged: {entry.audit_id}")
        click.echo(f"  Timestamp: {entry.timestamp}")
        click.echo(f"  Tool: {entry.tool} {entry.command}")
        click.echo(f"  Hash: {entry.entry_hash[:16]}...")
