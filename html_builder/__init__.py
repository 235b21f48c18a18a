"""
HTML Builder

Parses HTML-like markup into a node tree, fills {{placeholders}} and writes
the tree back out as markup.
- Preprocessor: comment, case, line-break and doctype cleanup
- TreeBuilder: recursive-descent parse into a node forest
- Serializer / template substitution over the tree

Public API surface:
  Core operations  — parse, try_parse, serialize, substitute, substitute_recursive, copy
  Tree model       — Node, NodeKind, VOID_TAGS, Document
  Orchestration    — TemplateEngine, TemplateCache, Settings
  Error types      — ParseError and its kinds (fatal)
"""

# --- Core operations ---
from .tree_builder import parse, try_parse, parse_attributes, TreeBuilder
from .serializer import serialize, serialize_forest
from .template import substitute, substitute_recursive, find_placeholders, collect_placeholders
from .node import Node, NodeKind, VOID_TAGS, copy
from .document import Document
from .preprocessor import Preprocessor

# --- Orchestration and results ---
from .main import TemplateEngine, render_html, render_html_file
from .template_cache import TemplateCache
from .schemas import ParseResult, ParseErrorResponse, RenderResult
from .config import Settings, get_settings

# --- Exceptions (callers catch the kind they care about) ---
from .exceptions import (
    HTMLBuilderError,
    ParseError,
    UnterminatedCommentError,
    UnterminatedTagError,
    MismatchedClosingTagError,
    NestingDepthError,
    TemplateCacheError,
)

__version__ = "0.1.0"
__all__ = [
    "parse",
    "try_parse",
    "parse_attributes",
    "TreeBuilder",
    "serialize",
    "serialize_forest",
    "substitute",
    "substitute_recursive",
    "find_placeholders",
    "collect_placeholders",
    "Node",
    "NodeKind",
    "VOID_TAGS",
    "copy",
    "Document",
    "Preprocessor",
    "TemplateEngine",
    "render_html",
    "render_html_file",
    "TemplateCache",
    "ParseResult",
    "ParseErrorResponse",
    "RenderResult",
    "Settings",
    "get_settings",
    "HTMLBuilderError",
    "ParseError",
    "UnterminatedCommentError",
    "UnterminatedTagError",
    "MismatchedClosingTagError",
    "NestingDepthError",
    "TemplateCacheError",
]
