"""Engine entry points: render and annotate.

Each call tokenizes, parses and evaluates from scratch; nothing is cached
between calls, so one engine can serve any number of threads.

Usage::

    from promptweave_core import TemplateEngine

    engine = TemplateEngine()
    text = engine.render("Hello {{name}}", {"name": "Ada"}, [])
    tree = engine.annotate("{{#if name}}Hi{{/if}}", {"name": "Ada"}, [])
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import EngineConfig
from .errors import TemplateParseError, TemplateTooLargeError
from .evaluator import annotate_tree, render_tree
from .operators import BUILTIN_OPERATORS, OperatorTable
from .parser import TemplateTree, parse
from .preview import AnnotatedTemplate
from .tokenizer import tokenize
from .values import Definitions

logger = logging.getLogger(__name__)


class TemplateEngine:
    """Render and preview prompt templates.

    Args:
        config: Limits and defaults; ``EngineConfig()`` when omitted.
        operators: Comparison operator table; the built-in table when omitted.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        operators: OperatorTable = BUILTIN_OPERATORS,
    ) -> None:
        self.config = config or EngineConfig()
        self.operators = operators

    def _check_size(self, template: str) -> None:
        size = len(template.encode("utf-8"))
        if size > self.config.max_template_bytes:
            raise TemplateTooLargeError(size, self.config.max_template_bytes)

    def parse(self, template: str) -> TemplateTree:
        """Tokenize and parse ``template``.

        Raises:
            TemplateTooLargeError: If the template exceeds ``max_template_bytes``.
            TemplateParseError: If the block structure is malformed.
        """
        self._check_size(template)
        return parse(tokenize(template), template, max_depth=self.config.max_nesting_depth)

    def render(
        self,
        template: str,
        context: Optional[Mapping[str, Any]] = None,
        definitions: Optional[Definitions] = None,
    ) -> str:
        """Render ``template`` with ``context`` values.

        A malformed or oversized template is returned unchanged instead of
        raising, unless ``fallback_on_error`` is disabled in the config.
        """
        try:
            tree = self.parse(template)
        except TemplateTooLargeError as exc:
            if not self.config.fallback_on_error:
                raise
            logger.warning("Returning template unrendered: %s", exc)
            return template
        except TemplateParseError as exc:
            if not self.config.fallback_on_error:
                raise
            logger.debug("Returning template unrendered: %s", exc)
            return template

        return render_tree(
            tree,
            context,
            definitions,
            operators=self.operators,
            default_format=self.config.serialization_format,
        )

    def annotate(
        self,
        template: str,
        context: Optional[Mapping[str, Any]] = None,
        definitions: Optional[Definitions] = None,
    ) -> AnnotatedTemplate:
        """Build the annotated preview tree for ``template``.

        Raises:
            TemplateTooLargeError: If the template exceeds ``max_template_bytes``.
            TemplateParseError: If the block structure is malformed.
        """
        tree = self.parse(template)
        return annotate_tree(
            tree,
            context,
            definitions,
            operators=self.operators,
            default_format=self.config.serialization_format,
        )


_default_engine = TemplateEngine()


def render(
    template: str,
    context: Optional[Mapping[str, Any]] = None,
    definitions: Optional[Definitions] = None,
) -> str:
    """Render with the default engine configuration."""
    return _default_engine.render(template, context, definitions)


def annotate(
    template: str,
    context: Optional[Mapping[str, Any]] = None,
    definitions: Optional[Definitions] = None,
) -> AnnotatedTemplate:
    """Annotate with the default engine configuration."""
    return _default_engine.annotate(template, context, definitions)
