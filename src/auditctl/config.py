"""Config loading from ~/.auditctl/ or an explicit YAML file."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from auditctl.audit.sanitize import DEFAULT_SENSITIVE_KEYS

AUDITCTL_DIR = Path.home() / ".auditctl"
CONFIG_PATH = AUDITCTL_DIR / "config.yaml"
DEFAULT_AUDIT_FILE = Path("audit.jsonl")


class AuditConfig(BaseModel):
    default_operator: str = "system"
    audit_file: Path = DEFAULT_AUDIT_FILE
    sensitive_keys: list[str] = Field(default_factory=lambda: list(DEFAULT_SENSITIVE_KEYS))


def load_config(path: Path | None = None) -> AuditConfig:
    """Load config from the given YAML file or ~/.auditctl/config.yaml, else defaults.

    An explicitly given path must exist.
    """
    if path is not None and not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    config_path = path or CONFIG_PATH
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        return AuditConfig(**data)
    return AuditConfig()
