"""Block parser: flat tokens -> arena-indexed node tree.

Nodes are stored in ``TemplateTree.nodes`` and refer to their children by
index. Node 0 is always a synthetic root block wrapping the top-level
children. Nesting is resolved with an explicit stack; a closing tag always
closes the innermost open block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .errors import ParseErrorKind, TemplateParseError
from .tokenizer import (
    BlockElseToken,
    BlockEndToken,
    BlockStartToken,
    Comparison,
    Span,
    TextToken,
    Token,
    VariableToken,
    tokenize,
)

logger = logging.getLogger(__name__)

ROOT_HELPER = "root"
ROOT_ID = 0
DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class TextNode:
    id: int
    text: str
    span: Span


@dataclass(frozen=True)
class VariableNode:
    id: int
    key: str
    span: Span


@dataclass(frozen=True)
class BlockNode:
    id: int
    helper: str
    key: str
    inverted: bool
    span: Span
    consequent: Tuple[int, ...] = ()
    alternate: Optional[Tuple[int, ...]] = None
    comparison: Optional[Comparison] = None
    else_span: Optional[Span] = None

    @property
    def is_root(self) -> bool:
        return self.helper == ROOT_HELPER


Node = Union[TextNode, VariableNode, BlockNode]


@dataclass(frozen=True)
class TemplateTree:
    """Parsed template. ``nodes[ROOT_ID]`` is the synthetic root block."""

    source: str
    nodes: Tuple[Node, ...]

    @property
    def root(self) -> BlockNode:
        root = self.nodes[ROOT_ID]
        assert isinstance(root, BlockNode)
        return root

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def children(self, node_ids: Sequence[int]) -> Iterator[Node]:
        for node_id in node_ids:
            yield self.nodes[node_id]


@dataclass
class _OpenBlock:
    """Mutable parser frame for a block whose closing tag has not been seen yet."""

    id: int
    token: Optional[BlockStartToken]
    consequent: List[int] = field(default_factory=list)
    alternate: Optional[List[int]] = None
    else_span: Optional[Span] = None

    @property
    def current(self) -> List[int]:
        return self.alternate if self.alternate is not None else self.consequent


def parse(tokens: Sequence[Token], source: str = "", *, max_depth: int = DEFAULT_MAX_DEPTH) -> TemplateTree:
    """Build a node tree from a flat token stream.

    Args:
        tokens: Output of :func:`promptweave_core.tokenizer.tokenize`.
        source: Original template text, kept on the tree for span lookups.
        max_depth: Maximum block nesting depth.

    Returns:
        TemplateTree whose node 0 is the synthetic root block.

    Raises:
        TemplateParseError: If block open/else/close tags are not balanced.
    """
    nodes: List[Optional[Node]] = [None]  # slot 0 reserved for the root
    stack: List[_OpenBlock] = [_OpenBlock(id=ROOT_ID, token=None)]

    def add(node: Node) -> None:
        nodes.append(node)
        stack[-1].current.append(node.id)

    for token in tokens:
        if isinstance(token, TextToken):
            add(TextNode(id=len(nodes), text=token.content, span=token.span))

        elif isinstance(token, VariableToken):
            add(VariableNode(id=len(nodes), key=token.key, span=token.span))

        elif isinstance(token, BlockStartToken):
            if len(stack) > max_depth:
                raise TemplateParseError(
                    ParseErrorKind.NESTING_TOO_DEEP,
                    f"blocks nested deeper than {max_depth} levels",
                    (token.span.start, token.span.end),
                )
            node_id = len(nodes)
            nodes.append(None)  # placeholder until the block closes
            stack[-1].current.append(node_id)
            stack.append(_OpenBlock(id=node_id, token=token))

        elif isinstance(token, BlockElseToken):
            frame = stack[-1]
            if frame.token is None:
                raise TemplateParseError(
                    ParseErrorKind.ELSE_OUTSIDE_BLOCK,
                    "{{else}} outside of any block",
                    (token.span.start, token.span.end),
                )
            if frame.alternate is not None:
                raise TemplateParseError(
                    ParseErrorKind.MULTIPLE_ELSE,
                    f"second {{{{else}}}} in #{frame.token.helper} {frame.token.key}",
                    (token.span.start, token.span.end),
                )
            frame.alternate = []
            frame.else_span = token.span

        elif isinstance(token, BlockEndToken):
            frame = stack[-1]
            if frame.token is None:
                raise TemplateParseError(
                    ParseErrorKind.UNMATCHED_BLOCK_END,
                    f"{{{{/{token.helper}}}}} has no matching opening tag",
                    (token.span.start, token.span.end),
                )
            if frame.token.helper != token.helper:
                raise TemplateParseError(
                    ParseErrorKind.MISMATCHED_BLOCK_END,
                    f"#{frame.token.helper} closed by /{token.helper}",
                    (token.span.start, token.span.end),
                )
            stack.pop()
            start = frame.token
            nodes[frame.id] = BlockNode(
                id=frame.id,
                helper=start.helper,
                key=start.key,
                inverted=start.inverted,
                span=Span(start.span.start, token.span.end),
                consequent=tuple(frame.consequent),
                alternate=tuple(frame.alternate) if frame.alternate is not None else None,
                comparison=start.comparison,
                else_span=frame.else_span,
            )

        else:  # pragma: no cover
            raise TypeError(f"Unknown token type: {type(token).__name__}")

    if len(stack) > 1:
        unclosed = stack[-1].token
        assert unclosed is not None
        raise TemplateParseError(
            ParseErrorKind.UNMATCHED_BLOCK_START,
            f"#{unclosed.helper} {unclosed.key} is never closed",
            (unclosed.span.start, unclosed.span.end),
        )

    root_frame = stack[0]
    nodes[ROOT_ID] = BlockNode(
        id=ROOT_ID,
        helper=ROOT_HELPER,
        key="",
        inverted=False,
        span=Span(0, len(source)),
        consequent=tuple(root_frame.consequent),
    )
    logger.debug("Parsed %d tokens into %d nodes", len(tokens), len(nodes))
    return TemplateTree(source=source, nodes=tuple(nodes))  # type: ignore[arg-type]


def parse_template(template: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> TemplateTree:
    """Tokenize and parse ``template`` in one call."""
    return parse(tokenize(template), template, max_depth=max_depth)
