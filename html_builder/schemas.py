"""
Pydantic schemas for results handed back to callers.

ParseResult: result-object view of a parse (see tree_builder.try_parse)
RenderResult: output of TemplateEngine.render
"""

from typing import Optional
from pydantic import BaseModel, Field

from .node import Node


class ParseErrorResponse(BaseModel):
    """Describes a fatal parse failure so the caller can branch on its kind."""
    error: str                  # Exception class name, e.g. "UnterminatedTagError"
    message: str
    details: dict = Field(default_factory=dict)   # position, expected/found, ...


class ParseResult(BaseModel):
    """Either the parsed forest or the reason there is none."""
    ok: bool
    nodes: list[Node] = Field(default_factory=list)
    error: Optional[ParseErrorResponse] = None


class RenderResult(BaseModel):
    """Output from TemplateEngine.render."""
    html: str
    doctype: Optional[str] = None
    # Placeholders still in the output because no parameter matched them
    unresolved: list[str] = Field(default_factory=list)
