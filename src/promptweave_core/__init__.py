"""promptweave core - Prompt template interpolation and structural preview engine."""

from .__version__ import __version__, __version_info__

from .config import EngineConfig, load_engine_config
from .engine import TemplateEngine, annotate, render
from .errors import (
    CoercionWarning,
    ConfigError,
    ParseErrorKind,
    PromptWeaveError,
    RenderError,
    RenderErrorKind,
    TemplateParseError,
    TemplateTooLargeError,
)
from .evaluator import annotate_tree, render_tree
from .models import SelectOption, SerializationFormat, VariableDefinition, VariableType
from .operators import BUILTIN_OPERATORS, OperandKind, Operator
from .parser import BlockNode, TemplateTree, TextNode, VariableNode, parse, parse_template
from .preview import (
    AnnotatedBlock,
    AnnotatedBranch,
    AnnotatedTemplate,
    AnnotatedText,
    AnnotatedVariable,
)
from .sanitize import sanitize, sanitize_value
from .tokenizer import (
    BlockElseToken,
    BlockEndToken,
    BlockStartToken,
    Comparison,
    Span,
    TextToken,
    VariableToken,
    tokenize,
)
from .values import DisplayState, ResolvedValue, is_truthy, resolve, serialize_sequence
from .variables import (
    default_values,
    extract_variables,
    label_from_key,
    preview_values,
    sync_variables,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Engine
    "TemplateEngine",
    "render",
    "annotate",
    "render_tree",
    "annotate_tree",
    # Config
    "EngineConfig",
    "load_engine_config",
    # Models
    "SelectOption",
    "SerializationFormat",
    "VariableDefinition",
    "VariableType",
    # Tokenizer
    "BlockElseToken",
    "BlockEndToken",
    "BlockStartToken",
    "Comparison",
    "Span",
    "TextToken",
    "VariableToken",
    "tokenize",
    # Parser
    "BlockNode",
    "TemplateTree",
    "TextNode",
    "VariableNode",
    "parse",
    "parse_template",
    # Values
    "DisplayState",
    "ResolvedValue",
    "is_truthy",
    "resolve",
    "serialize_sequence",
    "sanitize",
    "sanitize_value",
    # Operators
    "BUILTIN_OPERATORS",
    "OperandKind",
    "Operator",
    # Preview
    "AnnotatedBlock",
    "AnnotatedBranch",
    "AnnotatedTemplate",
    "AnnotatedText",
    "AnnotatedVariable",
    # Variables
    "default_values",
    "extract_variables",
    "label_from_key",
    "preview_values",
    "sync_variables",
    # Errors
    "CoercionWarning",
    "ConfigError",
    "ParseErrorKind",
    "PromptWeaveError",
    "RenderError",
    "RenderErrorKind",
    "TemplateParseError",
    "TemplateTooLargeError",
]
