"""Template tokenizer.

Splits raw template text into a flat sequence of typed tokens in a single
left-to-right pass:

- ``{{key}}``                          -> VariableToken
- ``{{#if key}}`` / unless / each / with -> BlockStartToken
- ``{{#if (eq key "literal")}}``       -> BlockStartToken with a Comparison
- ``{{#if (and key other)}}``          -> BlockStartToken with a Comparison
- ``{{#if (not key)}}``                -> BlockStartToken with a Comparison
- ``{{else}}``                         -> BlockElseToken
- ``{{/if}}`` / unless / each / with   -> BlockEndToken
- everything else                      -> TextToken (verbatim)

Tokens carry their source span but no nesting information; nesting is
resolved by :mod:`promptweave_core.parser`.

An escaped opener ``\\{{`` never starts a tag and is kept exactly as written,
backslash included. Handlebars drops that backslash; here it stays so that
text produced by :func:`promptweave_core.sanitize.sanitize` reads the same
however many times it is rendered.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union

OPEN = "{{"
CLOSE = "}}"
ESCAPE = "\\"

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_-]*"

BLOCK_HELPERS = ("if", "unless", "each", "with")
COMPARISON_HELPERS = ("if", "unless")

# (op key "literal")
LITERAL_OPS = ("eq", "ne", "gt", "gte", "lt", "lte", "contains")
# (op key other)
KEY_OPS = ("and", "or")
# (op key)
UNARY_OPS = ("not",)
COMPARISON_OPS = LITERAL_OPS + KEY_OPS + UNARY_OPS

_HELPER = rf"#({'|'.join(COMPARISON_HELPERS)})\s+"

_ELSE_RE = re.compile(r"\s*else\s*")
_VARIABLE_RE = re.compile(rf"\s*({IDENTIFIER})\s*")
_SIMPLE_BLOCK_RE = re.compile(rf"\s*#({'|'.join(BLOCK_HELPERS)})\s+({IDENTIFIER})\s*")
_LITERAL_CONDITION_RE = re.compile(
    rf"\s*{_HELPER}\(\s*({'|'.join(LITERAL_OPS)})\s+({IDENTIFIER})\s+"
    r"(?:\"([^\"]*)\"|'([^']*)')\s*\)\s*"
)
_KEY_CONDITION_RE = re.compile(
    rf"\s*{_HELPER}\(\s*({'|'.join(KEY_OPS)})\s+({IDENTIFIER})\s+({IDENTIFIER})\s*\)\s*"
)
_UNARY_CONDITION_RE = re.compile(rf"\s*{_HELPER}\(\s*({'|'.join(UNARY_OPS)})\s+({IDENTIFIER})\s*\)\s*")
_BLOCK_END_RE = re.compile(rf"\s*/({'|'.join(BLOCK_HELPERS)})\s*")


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` in the source template."""

    start: int
    end: int

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


@dataclass(frozen=True)
class Comparison:
    """Condition helper of a block.

    ``literal`` is set for ``(op key "literal")`` forms, ``other`` (a second
    variable key) for ``(and key other)`` / ``(or key other)``; ``(not key)``
    has neither.
    """

    op: str
    literal: Optional[str] = None
    other: Optional[str] = None


@dataclass(frozen=True)
class TextToken:
    content: str
    span: Span


@dataclass(frozen=True)
class VariableToken:
    key: str
    span: Span


@dataclass(frozen=True)
class BlockStartToken:
    helper: str
    key: str
    inverted: bool
    span: Span
    comparison: Optional[Comparison] = None


@dataclass(frozen=True)
class BlockElseToken:
    span: Span


@dataclass(frozen=True)
class BlockEndToken:
    helper: str
    span: Span


Token = Union[TextToken, VariableToken, BlockStartToken, BlockElseToken, BlockEndToken]


def classify_tag(text: str, span: Span, pos: int = 0, endpos: Optional[int] = None) -> Optional[Token]:
    """Turn the tag content ``text[pos:endpos]`` into a token.

    The content is matched in place, without slicing, so rejecting a
    non-tag costs only the characters the patterns actually inspect.
    Returns None when the content is not part of the supported syntax; the
    caller then keeps the whole tag as literal text.
    """
    if endpos is None:
        endpos = len(text)

    if _ELSE_RE.fullmatch(text, pos, endpos):
        return BlockElseToken(span=span)

    match = _VARIABLE_RE.fullmatch(text, pos, endpos)
    if match:
        return VariableToken(key=match.group(1), span=span)

    match = _SIMPLE_BLOCK_RE.fullmatch(text, pos, endpos)
    if match:
        helper = match.group(1)
        return BlockStartToken(helper=helper, key=match.group(2), inverted=helper == "unless", span=span)

    comparison: Optional[Comparison] = None
    match = _LITERAL_CONDITION_RE.fullmatch(text, pos, endpos)
    if match:
        helper, op, key, dq_literal, sq_literal = match.groups()
        comparison = Comparison(op=op, literal=dq_literal if dq_literal is not None else sq_literal)
    else:
        match = _KEY_CONDITION_RE.fullmatch(text, pos, endpos)
        if match:
            helper, op, key, other = match.groups()
            comparison = Comparison(op=op, other=other)
        else:
            match = _UNARY_CONDITION_RE.fullmatch(text, pos, endpos)
            if match:
                helper, op, key = match.groups()
                comparison = Comparison(op=op)
    if comparison is not None:
        return BlockStartToken(
            helper=helper,
            key=key,
            inverted=helper == "unless",
            span=span,
            comparison=comparison,
        )

    match = _BLOCK_END_RE.fullmatch(text, pos, endpos)
    if match:
        return BlockEndToken(helper=match.group(1), span=span)

    return None


def tokenize(template: str) -> List[Token]:
    """Split ``template`` into tokens.

    Unrecognized ``{{...}}`` content, an opener without a closing ``}}``,
    and escaped openers (``\\{{``) are all kept verbatim inside TextTokens.
    Adjacent literal text is always merged into one TextToken.
    """
    tokens: List[Token] = []
    text_start = 0
    pos = 0
    close_idx = -1
    length = len(template)

    while pos < length:
        open_idx = template.find(OPEN, pos)
        if open_idx == -1:
            break

        if open_idx > 0 and template[open_idx - 1] == ESCAPE:
            pos = open_idx + len(OPEN)
            continue

        # The nearest "}}" only moves forward, so it is searched at most once per position.
        if close_idx < open_idx + len(OPEN):
            close_idx = template.find(CLOSE, open_idx + len(OPEN))
        if close_idx == -1:
            break

        span = Span(open_idx, close_idx + len(CLOSE))
        token = classify_tag(template, span, open_idx + len(OPEN), close_idx)
        if token is None:
            pos = open_idx + 1
            continue

        if open_idx > text_start:
            tokens.append(TextToken(content=template[text_start:open_idx], span=Span(text_start, open_idx)))
        tokens.append(token)
        pos = text_start = span.end

    if text_start < length:
        tokens.append(TextToken(content=template[text_start:], span=Span(text_start, length)))

    return tokens
