"""Click CLI group for auditctl."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from auditctl.audit.models import parse_timestamp
from auditctl.config import AuditConfig, load_config
from auditctl.storage.file import FileStorage


@click.group()
@click.version_option(package_name="auditctl")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config YAML (default: ~/.auditctl/config.yaml)",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str) -> None:
    """Tamper-evident, hash-chained audit logging for lending decisions."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        ctx.obj = load_config(config_path)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e


def get_config(ctx: click.Context) -> AuditConfig:
    return ctx.find_root().obj or AuditConfig()


def open_storage(ctx: click.Context, audit_file: Path | None, create: bool = False) -> FileStorage:
    """Storage for --audit-file, falling back to the configured path."""
    path = audit_file or get_config(ctx).audit_file
    return FileStorage(path, create_if_missing=create)


def audit_file_option(f: Any) -> Any:
    return click.option(
        "--audit-file",
        default=None,
        type=click.Path(dir_okay=False, path_type=Path),
        help="Audit log file path (default: from config, else ./audit.jsonl)",
    )(f)


def parse_json_object(ctx: click.Context, param: click.Parameter, value: str | None) -> dict | None:
    if value is None:
        return None
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise click.BadParameter("expected a JSON object")
    return data


def parse_date(ctx: click.Context, param: click.Parameter, value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise click.BadParameter(f"not an ISO-8601 date: {value}") from e


def split_list(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]
