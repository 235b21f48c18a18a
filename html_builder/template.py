"""
Template substitution: replace {{name}} placeholders in text and in trees.

Replacement is literal and single-pass per key: the scan resumes right after
each inserted value, so a value that itself contains "{{...}}" is never
expanded again.
"""

import re

from .node import Node

# Placeholder names are whatever sits between the braces, minus nesting braces
PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


def substitute(text: str, params: dict[str, str]) -> str:
    """
    Replace every {{key}} in `text` with params[key].

    Placeholders with no matching key are left as they are.

    Args:
        text: Text containing placeholders
        params: Placeholder name -> replacement value

    Returns:
        Text with placeholders replaced
    """
    result = text
    for key, value in params.items():
        placeholder = "{{" + key + "}}"
        value = str(value)
        pos = result.find(placeholder)
        while pos != -1:
            result = result[:pos] + value + result[pos + len(placeholder):]
            pos = result.find(placeholder, pos + len(value))
    return result


def substitute_recursive(node: Node, params: dict[str, str]) -> None:
    """
    Substitute placeholders in a node's text, attribute values and all
    descendants. Mutates the tree in place; use node.copy() first to keep the
    template reusable.
    """
    for n in node.walk():
        if n.text:
            n.text = substitute(n.text, params)
        for key, value in n.attributes.items():
            n.attributes[key] = substitute(value, params)


def find_placeholders(text: str) -> list[str]:
    """Names of the {{...}} placeholders in `text`, in order of appearance."""
    return PLACEHOLDER_PATTERN.findall(text)


def collect_placeholders(node: Node) -> list[str]:
    """Distinct placeholder names used anywhere in a tree, first seen first."""
    seen = {}
    for n in node.walk():
        for name in find_placeholders(n.text):
            seen.setdefault(name, None)
        for value in n.attributes.values():
            for name in find_placeholders(value):
                seen.setdefault(name, None)
    return list(seen)
