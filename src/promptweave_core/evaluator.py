"""Tree evaluation in render mode and preview (annotate) mode.

Both modes share one condition routine so they can never disagree on which
branch of a block is active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import RenderError
from .models import SerializationFormat
from .operators import BUILTIN_OPERATORS, OperatorTable, evaluate_comparison
from .parser import BlockNode, TemplateTree, TextNode, VariableNode
from .preview import (
    AnnotatedBlock,
    AnnotatedBranch,
    AnnotatedNode,
    AnnotatedTemplate,
    AnnotatedText,
    AnnotatedVariable,
)
from .values import Definitions, ResolvedValue, index_definitions, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionOutcome:
    value: bool
    consequent_taken: bool
    error: Optional[RenderError] = None


@dataclass
class _Evaluation:
    """State for a single evaluation call. Never shared between calls."""

    tree: TemplateTree
    context: Mapping[str, Any]
    definitions: Dict[str, Any]
    operators: OperatorTable
    default_format: SerializationFormat
    _resolved: Dict[str, ResolvedValue] = field(default_factory=dict)

    def resolve(self, key: str) -> ResolvedValue:
        resolved = self._resolved.get(key)
        if resolved is None:
            resolved = resolve(key, self.context, self.definitions, default_format=self.default_format)
            self._resolved[key] = resolved
        return resolved

    def condition(self, block: BlockNode) -> ConditionOutcome:
        resolved = self.resolve(block.key)
        error: Optional[RenderError] = None
        if block.comparison is None:
            value = resolved.truthy
        else:
            other = block.comparison.other
            right = self.resolve(other) if other is not None else None
            try:
                value = evaluate_comparison(block.comparison, resolved, right, self.operators)
            except RenderError as exc:
                logger.debug("Comparison on '%s' evaluated as false: %s", block.key, exc)
                value = False
                error = exc
        return ConditionOutcome(value=value, consequent_taken=value != block.inverted, error=error)

    # Render mode

    def render(self, node_ids: Sequence[int], out: List[str]) -> None:
        for node in self.tree.children(node_ids):
            if isinstance(node, TextNode):
                out.append(node.text)
            elif isinstance(node, VariableNode):
                out.append(self.resolve(node.key).display)
            else:
                outcome = self.condition(node)
                if outcome.consequent_taken:
                    self.render(node.consequent, out)
                elif node.alternate is not None:
                    self.render(node.alternate, out)

    # Preview mode

    def annotate(self, node_ids: Sequence[int], visible: bool) -> Tuple[AnnotatedNode, ...]:
        annotated: List[AnnotatedNode] = []
        for node in self.tree.children(node_ids):
            if isinstance(node, TextNode):
                annotated.append(AnnotatedText(node_id=node.id, span=node.span, text=node.text, visible=visible))
            elif isinstance(node, VariableNode):
                annotated.append(self._annotate_variable(node, visible))
            else:
                annotated.append(self._annotate_block(node, visible))
        return tuple(annotated)

    def _annotate_variable(self, node: VariableNode, visible: bool) -> AnnotatedVariable:
        resolved = self.resolve(node.key)
        definition = self.definitions.get(node.key)
        return AnnotatedVariable(
            node_id=node.id,
            span=node.span,
            key=node.key,
            label=definition.label if definition is not None else node.key,
            displayed_value=resolved.display,
            display_state=resolved.state,
            is_explicitly_set=resolved.is_explicitly_set,
            has_default_fallback=resolved.has_default_fallback,
            visible=visible,
        )

    def _annotate_block(self, node: BlockNode, visible: bool) -> AnnotatedBlock:
        outcome = self.condition(node)
        consequent_taken = outcome.consequent_taken
        alternate_taken = not consequent_taken and node.alternate is not None
        consequent = AnnotatedBranch(
            children=self.annotate(node.consequent, visible and consequent_taken),
            taken=consequent_taken,
        )
        alternate = None
        if node.alternate is not None:
            alternate = AnnotatedBranch(
                children=self.annotate(node.alternate, visible and alternate_taken),
                taken=alternate_taken,
            )
        return AnnotatedBlock(
            node_id=node.id,
            span=node.span,
            helper=node.helper,
            key=node.key,
            inverted=node.inverted,
            comparison=node.comparison,
            condition_value=outcome.value,
            resolved_condition=consequent_taken,
            consequent=consequent,
            alternate=alternate,
            visible=visible,
            comparison_error=str(outcome.error) if outcome.error is not None else None,
            else_span=node.else_span,
        )


def _evaluation(
    tree: TemplateTree,
    context: Optional[Mapping[str, Any]],
    definitions: Optional[Definitions],
    operators: OperatorTable,
    default_format: SerializationFormat,
) -> _Evaluation:
    return _Evaluation(
        tree=tree,
        context=context or {},
        definitions=index_definitions(definitions),
        operators=operators,
        default_format=default_format,
    )


def render_tree(
    tree: TemplateTree,
    context: Optional[Mapping[str, Any]] = None,
    definitions: Optional[Definitions] = None,
    *,
    operators: OperatorTable = BUILTIN_OPERATORS,
    default_format: SerializationFormat = SerializationFormat.COMMA,
) -> str:
    """Render a parsed template to its final string.

    Missing keys fall back to defaults or literal placeholders; a condition
    helper that cannot be evaluated (a non-numeric operand, for instance)
    counts as false. Never raises for either.
    """
    evaluation = _evaluation(tree, context, definitions, operators, default_format)
    out: List[str] = []
    evaluation.render(tree.root.consequent, out)
    return "".join(out)


def annotate_tree(
    tree: TemplateTree,
    context: Optional[Mapping[str, Any]] = None,
    definitions: Optional[Definitions] = None,
    *,
    operators: OperatorTable = BUILTIN_OPERATORS,
    default_format: SerializationFormat = SerializationFormat.COMMA,
) -> AnnotatedTemplate:
    """Evaluate a parsed template keeping both branches of every block."""
    evaluation = _evaluation(tree, context, definitions, operators, default_format)
    root = tree.root
    root_branch = AnnotatedBranch(children=evaluation.annotate(root.consequent, True), taken=True)
    annotated_root = AnnotatedBlock(
        node_id=root.id,
        span=root.span,
        helper=root.helper,
        key=root.key,
        inverted=False,
        comparison=None,
        condition_value=True,
        resolved_condition=True,
        consequent=root_branch,
        alternate=None,
        visible=True,
    )
    return AnnotatedTemplate(source=tree.source, root=annotated_root)
