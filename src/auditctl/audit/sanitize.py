"""PII redaction for entry inputs."""

from collections.abc import Iterable, Mapping
from typing import Any

REDACTED = "[REDACTED]"

DEFAULT_SENSITIVE_KEYS: tuple[str, ...] = (
    "ssn",
    "social_security",
    "socialSecurity",
    "ssn_last4",
    "password",
    "secret",
    "token",
    "api_key",
    "apiKey",
    "account_number",
    "accountNumber",
    "routing_number",
    "routingNumber",
)


def sanitize_inputs(
    inputs: Mapping[str, Any],
    sensitive_keys: Iterable[str] = DEFAULT_SENSITIVE_KEYS,
) -> dict[str, Any]:
    """Return a copy of inputs with sensitive values replaced by "[REDACTED]".

    A key is sensitive when any of sensitive_keys is a case-insensitive
    substring of it. Nested mappings, including mappings inside lists, are
    sanitized recursively; other values pass through unchanged.
    """
    needles = [k.lower() for k in sensitive_keys]
    return _sanitize_mapping(inputs, needles)


def _sanitize_mapping(mapping: Mapping[str, Any], needles: list[str]) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for key, value in mapping.items():
        lower_key = str(key).lower()
        if any(needle in lower_key for needle in needles):
            sanitized[key] = REDACTED
        else:
            sanitized[key] = _sanitize_value(value, needles)
    return sanitized


def _sanitize_value(value: Any, needles: list[str]) -> Any:
    if isinstance(value, Mapping):
        return _sanitize_mapping(value, needles)
    if isinstance(value, list):
        return [_sanitize_value(item, needles) for item in value]
    return value
