"""
Serializer: node tree back to markup text.

Output is padded with newlines around element text and after closing tags.
Only structure round-trips (tag nesting, attributes, text); whitespace does not.
"""

from typing import Optional

from .node import Node, NodeKind
from .config import get_settings


def quote_attribute(value: str) -> str:
    """
    Quote an attribute value so the tree builder reads it back unchanged.

    Double quotes unless the value contains one, then single quotes. A value
    holding both kinds has its double quotes written as &quot;.
    """
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    return '"' + value.replace('"', "&quot;") + '"'


def render_attributes(attributes: dict[str, str], sort_attributes: bool = False) -> str:
    """
    Render attributes as ' name="value"' pairs.

    Boolean attributes (empty value) render as the bare name. Order is
    insertion order, or sorted by key when `sort_attributes` is set.
    """
    keys = sorted(attributes) if sort_attributes else list(attributes)
    parts = []
    for key in keys:
        value = attributes[key]
        parts.append(f" {key}={quote_attribute(value)}" if value else f" {key}")
    return "".join(parts)


def serialize(node: Node, sort_attributes: Optional[bool] = None) -> str:
    """
    Render a node and its subtree as markup.

    Args:
        node: Node to render
        sort_attributes: Sort attributes by key (default: configured
                         HTML_BUILDER_SORT_ATTRIBUTES)
    """
    if sort_attributes is None:
        sort_attributes = get_settings().sort_attributes
    return _serialize(node, sort_attributes)


def _serialize(node: Node, sort_attributes: bool) -> str:
    # The stack holds nodes still to render and the closing tags that follow
    # their children
    parts = []
    stack = [node]

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        kind = item.kind

        if kind == NodeKind.DOCTYPE:
            parts.append(f"<!DOCTYPE {item.text}>")
        elif kind == NodeKind.TEXT:
            parts.append(item.text)
        elif kind == NodeKind.FRAGMENT:
            stack.extend(reversed(item.children))
        elif kind == NodeKind.VOID:
            attrs = render_attributes(item.attributes, sort_attributes)
            parts.append(f"<{item.tag}{attrs}/>")
        else:
            attrs = render_attributes(item.attributes, sort_attributes)
            parts.append(f"<{item.tag}{attrs}>\n{item.text}\n")
            stack.append(f"</{item.tag}>\n")
            stack.extend(reversed(item.children))

    return "".join(parts)


def serialize_forest(nodes: list[Node], sort_attributes: Optional[bool] = None) -> str:
    """Render a list of root nodes one after another."""
    return "".join(serialize(node, sort_attributes) for node in nodes)
