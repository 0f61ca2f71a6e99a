from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from hypothesis import settings

from promptweave_core import VariableDefinition

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("promptweave-tests", database=None)
settings.load_profile("promptweave-tests")


def write_prompt_file(
    directory: Path,
    template: str,
    *,
    name: str = "test-prompt",
    variables: Optional[List[Dict[str, Any]]] = None,
    filename: str = "prompt.md",
) -> Path:
    """Write a Markdown prompt file with YAML front matter for CLI tests.

    Args:
        directory: Target directory (tmp_path).
        template: Template body.
        name: Prompt name in the front matter.
        variables: Raw variable definitions, written as YAML flow mappings.

    Returns:
        Path to the written file.
    """
    import json

    lines = ["---", f"name: {name}"]
    if variables:
        lines.append("variables:")
        for var in variables:
            # JSON is valid YAML flow syntax
            lines.append(f"  - {json.dumps(var)}")
    lines.extend(["---", template])

    path = directory / filename
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def age_def() -> VariableDefinition:
    return VariableDefinition(key="age", label="Age", type="number", default="25")


@pytest.fixture
def city_def() -> VariableDefinition:
    return VariableDefinition(key="city", label="City", type="text")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "PROMPTWEAVE_MAX_TEMPLATE_BYTES",
        "PROMPTWEAVE_MAX_NESTING_DEPTH",
        "PROMPTWEAVE_DEFAULT_FORMAT",
        "PROMPTWEAVE_FALLBACK_ON_ERROR",
    ):
        monkeypatch.delenv(var, raising=False)
