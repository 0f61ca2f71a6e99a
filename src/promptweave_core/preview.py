"""Annotated template tree produced by preview mode.

The tree mirrors the parse tree. Both branches of every block are kept and
flagged with ``taken``, so a UI can show what a block would produce on hover
without evaluating anything itself. Presentation (colours, tooltips) is left
to the consumer walking this tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .tokenizer import Comparison, Span
from .values import DisplayState


@dataclass(frozen=True)
class AnnotatedText:
    node_id: int
    span: Span
    text: str
    visible: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "text",
            "node_id": self.node_id,
            "span": [self.span.start, self.span.end],
            "text": self.text,
            "visible": self.visible,
        }


@dataclass(frozen=True)
class AnnotatedVariable:
    node_id: int
    span: Span
    key: str
    label: str
    displayed_value: str
    display_state: DisplayState
    is_explicitly_set: bool
    has_default_fallback: bool
    visible: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "variable",
            "node_id": self.node_id,
            "span": [self.span.start, self.span.end],
            "key": self.key,
            "label": self.label,
            "displayed_value": self.displayed_value,
            "display_state": self.display_state.value,
            "is_explicitly_set": self.is_explicitly_set,
            "has_default_fallback": self.has_default_fallback,
            "visible": self.visible,
        }


@dataclass(frozen=True)
class AnnotatedBranch:
    children: Tuple["AnnotatedNode", ...]
    taken: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"taken": self.taken, "children": [child.to_dict() for child in self.children]}


@dataclass(frozen=True)
class AnnotatedBlock:
    """A block with its evaluated condition.

    ``condition_value`` is the raw test result (truthiness or comparison);
    ``resolved_condition`` is whether the consequent is shown, i.e. the raw
    result with ``#unless`` inversion applied.
    """

    node_id: int
    span: Span
    helper: str
    key: str
    inverted: bool
    comparison: Optional[Comparison]
    condition_value: bool
    resolved_condition: bool
    consequent: AnnotatedBranch
    alternate: Optional[AnnotatedBranch]
    visible: bool
    comparison_error: Optional[str] = None
    else_span: Optional[Span] = None

    @property
    def taken_branch(self) -> Optional[AnnotatedBranch]:
        if self.consequent.taken:
            return self.consequent
        if self.alternate is not None and self.alternate.taken:
            return self.alternate
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": "block",
            "node_id": self.node_id,
            "span": [self.span.start, self.span.end],
            "helper": self.helper,
            "key": self.key,
            "inverted": self.inverted,
            "comparison": (
                {"op": self.comparison.op, "literal": self.comparison.literal, "other": self.comparison.other}
                if self.comparison
                else None
            ),
            "condition_value": self.condition_value,
            "resolved_condition": self.resolved_condition,
            "visible": self.visible,
            "consequent": self.consequent.to_dict(),
            "alternate": self.alternate.to_dict() if self.alternate is not None else None,
        }
        if self.comparison_error:
            data["comparison_error"] = self.comparison_error
        return data


AnnotatedNode = Union[AnnotatedText, AnnotatedVariable, AnnotatedBlock]


@dataclass(frozen=True)
class AnnotatedTemplate:
    """Result of :func:`promptweave_core.annotate`."""

    source: str
    root: AnnotatedBlock

    @property
    def children(self) -> Tuple[AnnotatedNode, ...]:
        return self.root.consequent.children

    def visible_text(self) -> str:
        """Concatenate the text of taken branches only; equals render output."""
        parts: List[str] = []
        _collect_visible(self.root.consequent.children, parts)
        return "".join(parts)

    def walk(self) -> Iterator[AnnotatedNode]:
        """Yield every node depth-first, untaken branches included."""
        yield from _walk(self.root.consequent.children)

    def variables(self) -> List[AnnotatedVariable]:
        return [node for node in self.walk() if isinstance(node, AnnotatedVariable)]

    def blocks(self) -> List[AnnotatedBlock]:
        return [node for node in self.walk() if isinstance(node, AnnotatedBlock)]

    def variable_keys(self) -> List[str]:
        """Keys referenced by placeholders or block conditions, first-seen order."""
        seen: Dict[str, None] = {}
        for node in self.walk():
            if isinstance(node, (AnnotatedVariable, AnnotatedBlock)):
                seen.setdefault(node.key, None)
            if isinstance(node, AnnotatedBlock) and node.comparison is not None and node.comparison.other:
                seen.setdefault(node.comparison.other, None)
        return list(seen)

    def to_dict(self) -> Dict[str, Any]:
        return {"children": [child.to_dict() for child in self.children]}


def _collect_visible(children: Tuple[AnnotatedNode, ...], parts: List[str]) -> None:
    for node in children:
        if isinstance(node, AnnotatedText):
            parts.append(node.text)
        elif isinstance(node, AnnotatedVariable):
            parts.append(node.displayed_value)
        else:
            branch = node.taken_branch
            if branch is not None:
                _collect_visible(branch.children, parts)


def _walk(children: Tuple[AnnotatedNode, ...]) -> Iterator[AnnotatedNode]:
    for node in children:
        yield node
        if isinstance(node, AnnotatedBlock):
            yield from _walk(node.consequent.children)
            if node.alternate is not None:
                yield from _walk(node.alternate.children)
