"""Variable discovery and value maps for variable definitions."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence

from .models import VARIABLE_KEY_PATTERN, VariableDefinition, VariableType
from .tokenizer import BlockStartToken, VariableToken, tokenize

_KEY_RE = re.compile(VARIABLE_KEY_PATTERN)
_WORD_SPLIT_RE = re.compile(r"[-_]")


def is_valid_variable_key(key: str) -> bool:
    return bool(_KEY_RE.match(key))


def label_from_key(key: str) -> str:
    """Derive a display label: ``competitor-analysis`` -> ``Competitor Analysis``."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in _WORD_SPLIT_RE.split(key))


def extract_variables(template: str) -> List[str]:
    """Return the unique keys referenced by ``template`` in first-seen order.

    Picks up plain references (``{{key}}``), simple block helpers
    (``{{#if key}}``) and condition helpers (``{{#if (eq key "x")}}``,
    ``{{#if (and key other)}}``).
    Keys that would not be valid definition keys are skipped.
    """
    keys: Dict[str, None] = {}
    for token in tokenize(template):
        if not isinstance(token, (VariableToken, BlockStartToken)):
            continue
        referenced = [token.key]
        if isinstance(token, BlockStartToken) and token.comparison is not None and token.comparison.other:
            referenced.append(token.comparison.other)
        for key in referenced:
            if is_valid_variable_key(key):
                keys.setdefault(key, None)
    return list(keys)


def sync_variables(existing: Sequence[VariableDefinition], template: str) -> List[VariableDefinition]:
    """Reconcile definitions with the keys the template actually uses.

    - Keeps existing definitions whose key is still referenced
    - Adds text definitions for new keys
    - Drops definitions the template no longer references

    The result follows template order.
    """
    by_key = {definition.key: definition for definition in existing}
    synced: List[VariableDefinition] = []
    for key in extract_variables(template):
        definition = by_key.get(key)
        if definition is None:
            definition = VariableDefinition(key=key, label=label_from_key(key), type=VariableType.TEXT)
        synced.append(definition)
    return synced


def preview_values(definitions: Sequence[VariableDefinition]) -> Dict[str, Any]:
    """Key -> preview value, falling back to the default. Keys with neither are omitted."""
    values: Dict[str, Any] = {}
    for definition in definitions:
        if definition.preview is not None:
            values[definition.key] = definition.preview
        elif definition.default is not None:
            values[definition.key] = definition.default
    return values


def default_values(definitions: Sequence[VariableDefinition]) -> Dict[str, Any]:
    """Key -> default value for every definition that has one."""
    return {
        definition.key: definition.default
        for definition in definitions
        if definition.default is not None
    }
