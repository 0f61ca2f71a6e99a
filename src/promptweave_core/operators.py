"""Built-in condition operators for ``{{#if (op ...)}}`` blocks.

Three call shapes exist, fixed by the tokenizer grammar:

- ``(op key "literal")``: eq, ne, gt, gte, lt, lte, contains
- ``(op key other)``: and, or
- ``(op key)``: not

The table is a read-only mapping handed to the evaluator explicitly; nothing
is registered globally, and callers may pass a narrower table.
"""

from __future__ import annotations

import math
import operator
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional

from .errors import RenderError, RenderErrorKind
from .tokenizer import Comparison
from .values import ResolvedValue, format_scalar, is_sequence

_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")


class OperandKind(str, Enum):
    """What an operator receives for each operand."""

    TEXT = "text"  # formatted value text and the literal, as strings
    NUMBER = "number"  # both sides coerced to finite floats
    TRUTHINESS = "truthiness"  # truthiness of each variable operand
    SEQUENCE = "sequence"  # raw variable value and the literal


@dataclass(frozen=True)
class Operator:
    """One condition operator.

    ``arity`` counts every operand, the block's own variable included.
    """

    name: str
    kind: OperandKind
    compare: Callable[..., bool]
    arity: int = 2

    @property
    def numeric(self) -> bool:
        return self.kind == OperandKind.NUMBER


OperatorTable = Mapping[str, Operator]


def to_number(text: str) -> float:
    """Parse a finite decimal number or raise RenderError."""
    if not _NUMBER_RE.match(text):
        raise RenderError(RenderErrorKind.INVALID_COMPARISON_OPERAND, f"{text!r} is not a number")
    value = float(text)
    if not math.isfinite(value):
        raise RenderError(RenderErrorKind.INVALID_COMPARISON_OPERAND, f"{text!r} is not a finite number")
    return value


def _contains(value: Any, item: str) -> bool:
    """Sequence membership by item text; scalars never contain anything."""
    return is_sequence(value) and any(format_scalar(element) == item for element in value)


BUILTIN_OPERATORS: OperatorTable = MappingProxyType(
    {
        "eq": Operator("eq", OperandKind.TEXT, operator.eq),
        "ne": Operator("ne", OperandKind.TEXT, operator.ne),
        "gt": Operator("gt", OperandKind.NUMBER, operator.gt),
        "gte": Operator("gte", OperandKind.NUMBER, operator.ge),
        "lt": Operator("lt", OperandKind.NUMBER, operator.lt),
        "lte": Operator("lte", OperandKind.NUMBER, operator.le),
        "contains": Operator("contains", OperandKind.SEQUENCE, _contains),
        "and": Operator("and", OperandKind.TRUTHINESS, lambda a, b: a and b),
        "or": Operator("or", OperandKind.TRUTHINESS, lambda a, b: a or b),
        "not": Operator("not", OperandKind.TRUTHINESS, operator.not_, arity=1),
    }
)


def _operands(op: Operator, comparison: Comparison, left: ResolvedValue, right: Optional[ResolvedValue]) -> List[Any]:
    if op.kind == OperandKind.TRUTHINESS:
        if comparison.literal is not None:
            raise RenderError(RenderErrorKind.OPERAND_MISMATCH, f"{op.name} takes variables, not a literal")
        operands = [left.truthy]
        if right is not None:
            operands.append(right.truthy)
        return operands

    if comparison.literal is None:
        raise RenderError(RenderErrorKind.OPERAND_MISMATCH, f"{op.name} needs a quoted literal")
    if op.kind == OperandKind.NUMBER:
        return [to_number(left.comparison_text), to_number(comparison.literal)]
    if op.kind == OperandKind.SEQUENCE:
        return [left.raw, comparison.literal]
    return [left.comparison_text, comparison.literal]


def evaluate_comparison(
    comparison: Comparison,
    left: ResolvedValue,
    right: Optional[ResolvedValue] = None,
    operators: OperatorTable = BUILTIN_OPERATORS,
) -> bool:
    """Evaluate a condition helper.

    Args:
        comparison: The block's condition.
        left: Resolved value of the block's own key.
        right: Resolved value of ``comparison.other`` for two-variable forms.
        operators: Operator table to look ``comparison.op`` up in.

    Raises:
        RenderError: If the operator is unknown, its operands do not fit its
            shape, or a numeric operand does not parse as a number.
    """
    op = operators.get(comparison.op)
    if op is None:
        raise RenderError(RenderErrorKind.UNKNOWN_OPERATOR, f"no operator named {comparison.op!r}")
    operands = _operands(op, comparison, left, right)
    if len(operands) != op.arity:
        raise RenderError(
            RenderErrorKind.OPERAND_MISMATCH,
            f"{op.name} takes {op.arity} operand(s), got {len(operands)}",
        )
    return bool(op.compare(*operands))
