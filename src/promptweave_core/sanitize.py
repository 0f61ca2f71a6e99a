"""Escaping of template delimiters inside substituted values."""

from typing import Any

OPEN_ESCAPED = "\\{{"
CLOSE_ESCAPED = "\\}}"


def sanitize(value: str) -> str:
    """Escape ``{{`` and ``}}`` so a value can never reopen template syntax.

    Only ever applied to substituted values, never to the template's own text.
    """
    return value.replace("{{", OPEN_ESCAPED).replace("}}", CLOSE_ESCAPED)


def sanitize_value(value: Any) -> Any:
    """Sanitize strings, recursing into sequences; other values pass through."""
    if isinstance(value, str):
        return sanitize(value)
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]
    return value
