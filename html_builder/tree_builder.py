"""
Tree builder: recursive-descent scan from cleaned markup to a node forest.

Pipeline position: Stage 2 of 2 (Preprocessor → TreeBuilder).
Input:  cleaned markup string (see preprocessor.py)
Output: list of root Nodes

Each call works on a half-open range [start, end) of one shared string and
returns where it stopped, so nested elements are parsed without slicing the
buffer. An opening tag recurses into the range after its '>' and the
recursive call stops at the first closing tag it cannot use itself.

Strict vs. lenient:
  - a '<' without '>', or a closing tag that matches no open element, aborts
  - an element still open at the end of its range is closed there
  - a closing tag for an ancestor closes every element opened inside it
"""

import re
from typing import Optional

from .node import Node, VOID_TAGS
from .preprocessor import Preprocessor
from .schemas import ParseResult, ParseErrorResponse
from .config import get_settings
from .exceptions import (
    ParseError,
    UnterminatedTagError,
    MismatchedClosingTagError,
    NestingDepthError,
)
from .logger import get_module_logger

logger = get_module_logger("tree_builder")

_WHITESPACE = re.compile(r"\s")

# Attribute keys that are leftovers of the tag syntax, never real attributes
_DISCARDED_KEYS = ("", "/")


def parse_attributes(attr_text: str) -> dict[str, str]:
    """
    Parse the attribute part of a tag into a dict.

    Handles:
    - key="value with spaces" (and single quotes)
    - key=value (unquoted, ends at whitespace)
    - boolean attributes (stored as "")

    Empty keys and a lone '/' are dropped. A repeated key keeps its last value.
    """
    attributes = {}

    def store(key: str, value: str) -> None:
        key = key.strip()
        if key in _DISCARDED_KEYS:
            return
        attributes[key] = value

    current = []
    pending_key = None  # set once '=' has been seen for the current pair
    quote = None

    for c in attr_text.strip():
        if quote:
            if c == quote:
                store(pending_key or "", "".join(current))
                pending_key = None
                current = []
                quote = None
            else:
                current.append(c)
        elif c == "=":
            if pending_key is None:
                pending_key = "".join(current)
                current = []
        elif c in ('"', "'") and pending_key is not None and not current:
            quote = c
        elif c.isspace():
            if pending_key is None:
                store("".join(current), "")
                current = []
            elif current:
                store(pending_key, "".join(current))
                pending_key = None
                current = []
        else:
            current.append(c)

    # Whatever is left: an unquoted or unterminated value, or a boolean attribute
    if pending_key is not None:
        store(pending_key, "".join(current))
    elif current:
        store("".join(current), "")

    return attributes


def split_tag(content: str) -> tuple[str, str, bool]:
    """
    Split the inside of a tag into (name, attribute text, explicit self-close).

    `img src="a.png" /` -> ("img", 'src="a.png"', True)
    """
    content = content.strip()
    explicit_close = content.endswith("/")
    if explicit_close:
        content = content[:-1].rstrip()

    m = _WHITESPACE.search(content)
    if m is None:
        return content, "", explicit_close
    return content[:m.start()], content[m.end():].strip(), explicit_close


class TreeBuilder:
    """Builds node forests from cleaned markup."""

    def __init__(self, max_depth: Optional[int] = None):
        """
        Args:
            max_depth: Deepest element nesting accepted before NestingDepthError.
                       Defaults to the configured HTML_BUILDER_MAX_DEPTH.
        """
        self.max_depth = max_depth if max_depth is not None else get_settings().max_depth

    def _append_text(self, nodes: list[Node], text: str) -> None:
        # Whitespace-only runs between tags are layout, not content
        if text.strip():
            nodes.append(Node.text_node(text))

    def closing_name(self, html: str, tag_start: int, end: int) -> str:
        """Name in the closing tag starting at `tag_start` ("div" for `</div>`)."""
        tag_end = html.find(">", tag_start, end)
        return html[tag_start + 1:tag_end].strip()[1:].strip()

    def build(
        self,
        html: str,
        start: int = 0,
        end: Optional[int] = None,
        open_tags: tuple[str, ...] = ()
    ) -> tuple[list[Node], int]:
        """
        Parse html[start:end] into a forest.

        Args:
            html: Cleaned markup
            start: Offset to start scanning at
            end: Offset to stop at (default: end of string)
            open_tags: Names of the elements enclosing this range, outermost first

        Returns:
            Tuple of (nodes, stopped_at). stopped_at is the offset of the '<' of
            the closing tag that ended the range, or `end` if none did.

        Raises:
            UnterminatedTagError, MismatchedClosingTagError, NestingDepthError
        """
        if end is None:
            end = len(html)
        if len(open_tags) > self.max_depth:
            raise NestingDepthError(self.max_depth, start)

        nodes = []
        pos = start

        while pos < end:
            tag_start = html.find("<", pos, end)
            if tag_start == -1:
                self._append_text(nodes, html[pos:end])
                break

            if tag_start > pos:
                self._append_text(nodes, html[pos:tag_start])

            tag_end = html.find(">", tag_start, end)
            if tag_end == -1:
                raise UnterminatedTagError(tag_start)

            content = html[tag_start + 1:tag_end].strip()

            # <> and </> carry nothing; declarations (<!...>) and processing
            # instructions (<?...?>) have no place in the tree
            if not content or content == "/" or content[0] in "!?":
                pos = tag_end + 1
                continue

            # --- Closing tag: hand control back to whoever opened the element ---
            if content[0] == "/":
                name = content[1:].strip()
                if name in VOID_TAGS:
                    # Void elements never own a closing tag; </br> is ignored
                    logger.debug(f"Ignoring closing tag </{name}> at offset {tag_start}")
                    pos = tag_end + 1
                    continue
                return nodes, tag_start

            name, attr_text, explicit_close = split_tag(content)
            attributes = parse_attributes(attr_text)

            # --- Self-closing: no recursion, stay at this level ---
            if explicit_close or name in VOID_TAGS:
                nodes.append(Node.void(name, attributes))
                pos = tag_end + 1
                continue

            # --- Opening tag: children come from the range after '>' ---
            children, stopped_at = self.build(html, tag_end + 1, end, open_tags + (name,))
            nodes.append(Node.element(name, attributes, children=children))

            if stopped_at >= end:
                # Ran out of input: close the element here
                logger.debug(f"<{name}> closed implicitly at end of range")
                pos = end
                continue

            found = self.closing_name(html, stopped_at, end)
            if found == name:
                pos = html.find(">", stopped_at, end) + 1
            elif found in open_tags:
                # </div> inside an unclosed <p>: close <p>, leave </div> for its owner
                logger.debug(f"<{name}> closed implicitly by </{found}> at offset {stopped_at}")
                pos = stopped_at
            else:
                raise MismatchedClosingTagError(name, found, stopped_at)

        return nodes, end


def parse(html: str, max_depth: Optional[int] = None) -> list[Node]:
    """
    Parse markup into a forest of nodes.

    A doctype declaration, if present, becomes the first node.

    Args:
        html: Raw markup string
        max_depth: Nesting limit (default: configured HTML_BUILDER_MAX_DEPTH)

    Returns:
        List of root nodes

    Raises:
        ParseError subclass on comments or tags that are never closed, and on
        closing tags that match no open element.
    """
    preprocessed = Preprocessor().process(html)
    cleaned = preprocessed["cleaned_html"]

    builder = TreeBuilder(max_depth=max_depth)
    nodes, stopped_at = builder.build(cleaned)
    if stopped_at < len(cleaned):
        # A closing tag with nothing open at the top level
        found = builder.closing_name(cleaned, stopped_at, len(cleaned))
        raise MismatchedClosingTagError(None, found, stopped_at)

    if preprocessed["doctype"] is not None:
        nodes.insert(0, Node.doctype(preprocessed["doctype"]))

    logger.debug(f"Parsed {len(html)} chars into {len(nodes)} root nodes")
    return nodes


def try_parse(html: str, max_depth: Optional[int] = None) -> ParseResult:
    """
    Parse markup without raising on malformed input.

    Returns:
        ParseResult with ok=True and the nodes, or ok=False and the error
        kind, message and details.
    """
    try:
        return ParseResult(ok=True, nodes=parse(html, max_depth=max_depth))
    except ParseError as e:
        logger.info(f"Parse failed: {e.message}")
        return ParseResult(ok=False, error=ParseErrorResponse(**e.to_response()))
