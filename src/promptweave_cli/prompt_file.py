"""Prompt file loading: Markdown body with YAML front matter.

The front matter may declare ``name``, ``description`` and a ``variables``
list; the body is the template. Invalid variable entries are reported and
skipped so one bad definition does not hide the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import frontmatter
from pydantic import ValidationError

from promptweave_core import VariableDefinition

logger = logging.getLogger(__name__)


class PromptFileError(Exception):
    """Prompt file could not be read or its front matter is not valid YAML."""

    def __init__(self, path: Path, details: str) -> None:
        self.path = path
        self.details = details
        super().__init__(f"Cannot load prompt file {path}: {details}")


@dataclass
class PromptFile:
    path: Path
    name: str
    template: str
    description: str = ""
    variables: List[VariableDefinition] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _validate_variables(raw: Any) -> tuple[List[VariableDefinition], List[str]]:
    if raw is None:
        return [], []
    if not isinstance(raw, list):
        return [], ["variables: must be a list"]

    valid: List[VariableDefinition] = []
    errors: List[str] = []
    seen: Dict[str, int] = {}
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            errors.append(f"variables[{i}]: must be a mapping")
            continue
        try:
            definition = VariableDefinition.model_validate(entry)
        except ValidationError as e:
            details = "; ".join(err["msg"] for err in e.errors())
            errors.append(f"variables[{i}]: {details}")
            continue
        if definition.key in seen:
            errors.append(f"variables[{i}]: duplicate key '{definition.key}' (first at variables[{seen[definition.key]}])")
            continue
        seen[definition.key] = i
        valid.append(definition)
    return valid, errors


def load_prompt_file(path: Path) -> PromptFile:
    """Parse a prompt file.

    Raises:
        PromptFileError: If the file cannot be read or parsed.
    """
    try:
        post = frontmatter.load(path)
    except Exception as e:
        raise PromptFileError(path, str(e)) from e

    metadata = post.metadata
    variables, errors = _validate_variables(metadata.get("variables"))
    for error in errors:
        logger.warning("%s: %s", path, error)

    return PromptFile(
        path=path,
        name=str(metadata.get("name") or path.stem),
        description=str(metadata.get("description") or ""),
        template=post.content,
        variables=variables,
        errors=errors,
    )
