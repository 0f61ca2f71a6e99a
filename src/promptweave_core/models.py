"""Pydantic models for template variable definitions."""

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VARIABLE_KEY_PATTERN = r"^[A-Za-z0-9_-]{1,50}$"


class VariableType(str, Enum):
    """Input widget type of a template variable."""

    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    NUMBER = "number"
    SLIDER = "slider"
    ARRAY = "array"
    MULTI_SELECT = "multi-select"


class SerializationFormat(str, Enum):
    """How a sequence value is joined when substituted as text."""

    COMMA = "comma"
    NEWLINE = "newline"
    NUMBERED = "numbered"
    BULLET = "bullet"


SEQUENCE_TYPES = frozenset({VariableType.ARRAY, VariableType.MULTI_SELECT})
OPTION_TYPES = frozenset({VariableType.SELECT, VariableType.MULTI_SELECT})

DefaultValue = Union[str, int, float, List[str]]


class SelectOption(BaseModel):
    """Selectable option for select and multi-select variables."""

    label: str
    value: str

    model_config = ConfigDict(frozen=True)


class VariableDefinition(BaseModel):
    """One declared template placeholder."""

    key: str = Field(..., pattern=VARIABLE_KEY_PATTERN, description="Placeholder key used in {{key}}")
    label: str = Field(..., min_length=1)
    type: VariableType = VariableType.TEXT
    default: Optional[DefaultValue] = None
    format: Optional[SerializationFormat] = Field(None, description="Only for array/multi-select")
    options: Optional[List[SelectOption]] = None

    required: bool = False
    placeholder: Optional[str] = None
    description: Optional[str] = None
    preview: Optional[DefaultValue] = Field(None, description="Value used when previewing the template")

    # Slider bounds
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=False,  # Keep enum objects, not string values
    )

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, (list, tuple)):
            raise ValueError("options must be a list")
        normalized = []
        for opt in value:
            if isinstance(opt, str):
                normalized.append({"label": opt, "value": opt})
            elif isinstance(opt, dict) and "value" in opt:
                normalized.append({"label": opt.get("label", opt["value"]), "value": opt["value"]})
            elif isinstance(opt, SelectOption):
                normalized.append(opt)
            else:
                normalized.append({"label": str(opt), "value": str(opt)})
        return normalized

    @model_validator(mode="after")
    def _check_type_rules(self) -> "VariableDefinition":
        if self.type in OPTION_TYPES and not self.options:
            raise ValueError(f"{self.type.value} type requires at least one option")

        if self.type == VariableType.SLIDER:
            if self.min is None or self.max is None:
                raise ValueError("slider type requires min and max")
            if self.min >= self.max:
                raise ValueError("slider min must be less than max")
            if self.step is not None and self.step <= 0:
                raise ValueError("slider step must be a positive number")

        if self.format is not None and self.type not in SEQUENCE_TYPES:
            raise ValueError("format is only valid for array and multi-select types")
        return self

    @property
    def is_sequence(self) -> bool:
        """True for array and multi-select variables."""
        return self.type in SEQUENCE_TYPES

    @property
    def option_values(self) -> List[str]:
        return [opt.value for opt in self.options or []]
