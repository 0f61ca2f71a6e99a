"""Value resolution, truthiness and sequence serialization.

Resolution order for a key:

1. explicit non-empty value from the context
2. explicit empty value (``""`` or an empty sequence): present but empty
3. the variable definition's default
4. unresolved: rendered back as the literal ``{{key}}`` placeholder
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from .errors import CoercionWarning
from .models import SerializationFormat, VariableDefinition
from .sanitize import sanitize_value

logger = logging.getLogger(__name__)

DefinitionIndex = Mapping[str, VariableDefinition]
Definitions = Union[Sequence[VariableDefinition], DefinitionIndex]


class DisplayState(str, Enum):
    """Where the text shown for a placeholder came from."""

    EXPLICIT = "hasExplicitValue"
    DEFAULT = "usingDefault"
    UNRESOLVED = "unresolvedPlaceholder"


@dataclass(frozen=True)
class ResolvedValue:
    """Outcome of resolving one key.

    ``text`` is the formatted value before escaping and is what comparison
    helpers look at; ``display`` is exactly what render mode emits.
    """

    key: str
    raw: Any
    text: str
    display: str
    is_explicitly_set: bool
    has_default_fallback: bool
    state: DisplayState

    @property
    def is_resolved(self) -> bool:
        return self.state != DisplayState.UNRESOLVED

    @property
    def truthy(self) -> bool:
        return is_truthy(self.raw)

    @property
    def comparison_text(self) -> str:
        return self.text if self.is_resolved else ""


def placeholder(key: str) -> str:
    return "{{" + key + "}}"


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_truthy(value: Any) -> bool:
    """None, False, "" and empty sequences are false; everything else is true."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if is_sequence(value):
        return len(value) > 0
    return True


def format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def serialize_sequence(
    items: Iterable[Any],
    fmt: Union[SerializationFormat, str, None] = SerializationFormat.COMMA,
) -> str:
    """Join a sequence according to a serialization format."""
    fmt = SerializationFormat(fmt or SerializationFormat.COMMA)
    parts = [format_scalar(item) for item in items]
    if not parts:
        return ""
    if fmt == SerializationFormat.NEWLINE:
        return "\n".join(parts)
    if fmt == SerializationFormat.NUMBERED:
        return "\n".join(f"{i + 1}. {item}" for i, item in enumerate(parts))
    if fmt == SerializationFormat.BULLET:
        return "\n".join(f"- {item}" for item in parts)
    return ", ".join(parts)


def index_definitions(definitions: Optional[Definitions]) -> Dict[str, VariableDefinition]:
    """Key -> definition lookup. The first definition wins on duplicate keys."""
    if definitions is None:
        return {}
    if isinstance(definitions, Mapping):
        return dict(definitions)
    index: Dict[str, VariableDefinition] = {}
    for definition in definitions:
        index.setdefault(definition.key, definition)
    return index


def to_text(
    value: Any,
    definition: Optional[VariableDefinition] = None,
    default_format: SerializationFormat = SerializationFormat.COMMA,
    *,
    warn: bool = True,
) -> str:
    """Stringify a raw value, serializing sequences with the definition's format.

    Emits CoercionWarning when the value's shape does not match the
    definition type; the value is still converted.
    """
    fmt = definition.format if definition is not None and definition.format else default_format

    if is_sequence(value):
        if warn and definition is not None and not definition.is_sequence:
            warnings.warn(
                f"Sequence supplied for {definition.type.value} variable '{definition.key}'",
                CoercionWarning,
                stacklevel=3,
            )
        return serialize_sequence(value, fmt)

    if warn and definition is not None and definition.is_sequence and value != "":
        warnings.warn(
            f"Scalar supplied for {definition.type.value} variable '{definition.key}'",
            CoercionWarning,
            stacklevel=3,
        )
    if warn and not isinstance(value, (str, int, float)):
        warnings.warn(
            f"Unsupported value type {type(value).__name__} for '{getattr(definition, 'key', '?')}'",
            CoercionWarning,
            stacklevel=3,
        )
    return format_scalar(value)


def resolve(
    key: str,
    context: Mapping[str, Any],
    definitions: Optional[Definitions] = None,
    *,
    default_format: SerializationFormat = SerializationFormat.COMMA,
) -> ResolvedValue:
    """Resolve ``key`` against the context, falling back to the definition default."""
    index = definitions if isinstance(definitions, Mapping) else index_definitions(definitions)
    definition = index.get(key)

    value = context.get(key)
    if value is not None:
        if value == "" or (is_sequence(value) and len(value) == 0):
            return ResolvedValue(
                key=key,
                raw=value,
                text="",
                display="",
                is_explicitly_set=True,
                has_default_fallback=False,
                state=DisplayState.EXPLICIT,
            )
        return ResolvedValue(
            key=key,
            raw=value,
            text=to_text(value, definition, default_format),
            display=to_text(sanitize_value(value), definition, default_format, warn=False),
            is_explicitly_set=True,
            has_default_fallback=False,
            state=DisplayState.EXPLICIT,
        )

    if definition is not None and definition.default is not None:
        default = definition.default
        return ResolvedValue(
            key=key,
            raw=default,
            text=to_text(default, definition, default_format),
            display=to_text(sanitize_value(default), definition, default_format, warn=False),
            is_explicitly_set=False,
            has_default_fallback=True,
            state=DisplayState.DEFAULT,
        )

    return ResolvedValue(
        key=key,
        raw=None,
        text=placeholder(key),
        display=placeholder(key),
        is_explicitly_set=False,
        has_default_fallback=False,
        state=DisplayState.UNRESOLVED,
    )


__all__ = [
    "DisplayState",
    "ResolvedValue",
    "format_scalar",
    "index_definitions",
    "is_sequence",
    "is_truthy",
    "placeholder",
    "resolve",
    "serialize_sequence",
    "to_text",
]
