"""Exception taxonomy for promptweave-core."""

from enum import Enum
from typing import Optional, Tuple


class PromptWeaveError(Exception):
    """Base exception for all promptweave errors."""

    pass


# Config errors


class ConfigError(PromptWeaveError):
    """Failed to load or validate engine configuration."""

    pass


# Template structure errors


class ParseErrorKind(str, Enum):
    """Structural failures detected by the block parser."""

    UNMATCHED_BLOCK_START = "UnmatchedBlockStart"
    UNMATCHED_BLOCK_END = "UnmatchedBlockEnd"
    MULTIPLE_ELSE = "MultipleElse"
    MISMATCHED_BLOCK_END = "MismatchedBlockEnd"
    ELSE_OUTSIDE_BLOCK = "ElseOutsideBlock"
    NESTING_TOO_DEEP = "NestingTooDeep"


class TemplateParseError(PromptWeaveError):
    """Template syntax is structurally malformed."""

    def __init__(
        self,
        kind: ParseErrorKind,
        details: str,
        span: Optional[Tuple[int, int]] = None,
    ) -> None:
        self.kind = kind
        self.details = details
        self.span = span
        location = f" at {span[0]}..{span[1]}" if span is not None else ""
        super().__init__(f"{kind.value}{location}: {details}")


class TemplateTooLargeError(PromptWeaveError):
    """Template exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Template is {size} bytes; limit is {limit} bytes")


# Evaluation errors


class RenderErrorKind(str, Enum):
    """Failures raised while evaluating a parsed template."""

    INVALID_COMPARISON_OPERAND = "InvalidComparisonOperand"
    UNKNOWN_OPERATOR = "UnknownOperator"
    OPERAND_MISMATCH = "OperandMismatch"


class RenderError(PromptWeaveError):
    """A condition could not be evaluated.

    The evaluator catches this and treats the condition as false, so one bad
    comparison never blanks the whole output.
    """

    def __init__(self, kind: RenderErrorKind, details: str) -> None:
        self.kind = kind
        self.details = details
        super().__init__(f"{kind.value}: {details}")


class CoercionWarning(UserWarning):
    """A value was stringified best-effort because its shape did not match the definition."""

    pass
