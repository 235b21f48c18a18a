"""
Document: a doctype plus an <html> root, for building pages in code.
"""

from typing import Optional

from .node import Node, NodeKind
from .serializer import serialize


class Document:
    """
    A whole page.

    Children added to the document go under its <html> root.
    """

    def __init__(self, doctype: str = "html", root: Optional[Node] = None):
        self.doctype = doctype
        self.root = root if root is not None else Node.element("html")

    @classmethod
    def from_forest(cls, nodes: list[Node]) -> "Document":
        """
        Wrap a parsed forest.

        Uses the forest's doctype if it has one and its <html> element as the
        root; any other top-level nodes are appended to the root.
        """
        doctype = "html"
        root = None
        rest = []
        for node in nodes:
            if node.kind == NodeKind.DOCTYPE:
                doctype = node.text
            elif root is None and node.kind == NodeKind.ELEMENT and node.tag == "html":
                root = node
            else:
                rest.append(node)

        document = cls(doctype=doctype, root=root)
        for node in rest:
            document.add_child(node)
        return document

    def add_child(self, node: Optional[Node]) -> bool:
        """Append a node to the <html> root. None is ignored."""
        if node is None:
            return False
        return self.root.append_child(node)

    def as_forest(self) -> list[Node]:
        return [Node.doctype(self.doctype), self.root]

    def to_string(self, sort_attributes: Optional[bool] = None) -> str:
        return f"<!DOCTYPE {self.doctype}>\n" + serialize(self.root, sort_attributes)

    def __str__(self) -> str:
        return self.to_string()
