"""
Node model for parsed and programmatically built markup trees.

A single pydantic model covers every node kind; `kind` says which fields
matter:

  ELEMENT   tag, attributes, text, children
  VOID      tag, attributes (never text or children)
  DOCTYPE   text holds the doctype payload ("html")
  FRAGMENT  children only; the tag is always empty
  TEXT      text only, a run of character data found between tags

Each node owns its children list outright. There are no parent pointers, so a
subtree can be copied or moved without fixing up references.
"""

from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, Field, model_validator


# Elements that never have content or a closing tag.
VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})


class NodeKind(str, Enum):
    """Kinds of node in a tree."""
    ELEMENT = "element"
    VOID = "void"
    DOCTYPE = "doctype"
    FRAGMENT = "fragment"
    TEXT = "text"


class Node(BaseModel):
    """A node in a markup tree."""
    kind: NodeKind = NodeKind.ELEMENT
    tag: str = ""
    # Insertion ordered; the serializer can sort on request
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list["Node"] = Field(default_factory=list)
    text: str = ""

    @model_validator(mode="after")
    def check_kind_fields(self) -> "Node":
        if self.kind in (NodeKind.ELEMENT, NodeKind.VOID) and not self.tag:
            raise ValueError(f"{self.kind.value} node needs a tag name")
        if self.kind == NodeKind.FRAGMENT and self.tag:
            raise ValueError("fragment node cannot have a tag name")
        if self.kind not in (NodeKind.ELEMENT, NodeKind.FRAGMENT) and self.children:
            raise ValueError(f"{self.kind.value} node cannot have children")
        if self.kind in (NodeKind.VOID, NodeKind.FRAGMENT) and self.text:
            raise ValueError(f"{self.kind.value} node cannot have text")
        return self

    # --- Constructors ---

    @classmethod
    def element(
        cls,
        tag: str,
        attributes: Optional[dict[str, str]] = None,
        text: str = "",
        children: Optional[list["Node"]] = None
    ) -> "Node":
        return cls(
            kind=NodeKind.ELEMENT,
            tag=tag,
            attributes=dict(attributes or {}),
            text=text,
            children=list(children or []),
        )

    @classmethod
    def void(cls, tag: str, attributes: Optional[dict[str, str]] = None) -> "Node":
        return cls(kind=NodeKind.VOID, tag=tag, attributes=dict(attributes or {}))

    @classmethod
    def doctype(cls, payload: str = "html") -> "Node":
        return cls(kind=NodeKind.DOCTYPE, text=payload)

    @classmethod
    def fragment(cls, children: Optional[list["Node"]] = None) -> "Node":
        return cls(kind=NodeKind.FRAGMENT, children=list(children or []))

    @classmethod
    def text_node(cls, text: str) -> "Node":
        return cls(kind=NodeKind.TEXT, text=text)

    # --- Kind checks ---

    @property
    def is_void(self) -> bool:
        return self.kind == NodeKind.VOID

    @property
    def accepts_children(self) -> bool:
        return self.kind in (NodeKind.ELEMENT, NodeKind.FRAGMENT)

    @property
    def accepts_text(self) -> bool:
        return self.kind in (NodeKind.ELEMENT, NodeKind.TEXT)

    @property
    def accepts_attributes(self) -> bool:
        return self.kind in (NodeKind.ELEMENT, NodeKind.VOID)

    # --- Mutation ---
    # Operations that make no sense for a kind (a child on <br>, text on a
    # doctype) are ignored and report False instead of raising.

    def append_child(self, child: "Node") -> bool:
        """Append a child node. Returns False if this kind holds no children."""
        if not self.accepts_children:
            return False
        self.children.append(child)
        return True

    def set_text(self, text: str) -> bool:
        """Replace the node's own text. Returns False if this kind holds no text."""
        if not self.accepts_text:
            return False
        self.text = text
        return True

    def set_attribute(self, key: str, value: str = "") -> bool:
        """Set an attribute (empty value = boolean attribute)."""
        if not self.accepts_attributes or not key:
            return False
        self.attributes[key] = value
        return True

    def get_attribute(self, key: str, default: str = "") -> str:
        """Get an attribute value, or `default` if it is missing."""
        return self.attributes.get(key, default)

    # --- Reading ---

    @property
    def text_content(self) -> str:
        """
        Own text followed by the text of direct TEXT children.

        For `<p>Hi</p>` this is "Hi". Text inside nested elements is not included.
        """
        if self.kind in (NodeKind.TEXT, NodeKind.DOCTYPE):
            return self.text
        parts = [self.text] if self.text else []
        parts.extend(c.text for c in self.children if c.kind == NodeKind.TEXT)
        return "".join(parts)

    def element_children(self) -> list["Node"]:
        """Children that are elements or void elements (no text runs)."""
        return [c for c in self.children if c.kind in (NodeKind.ELEMENT, NodeKind.VOID)]

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_all(self, tag: str) -> list["Node"]:
        """All descendants (and self) with the given tag name."""
        return [n for n in self.walk() if n.tag == tag and n.accepts_attributes]

    def copy(self) -> "Node":
        """
        Deep copy: new attribute dict, new text and copied descendants.

        Render one parsed template several times by substituting into copies.
        Uses an explicit stack, not recursion, so it handles trees as deep as
        the parser accepts.
        """
        root = self._copy_without_children()
        stack = [(self, root)]
        while stack:
            source, target = stack.pop()
            for child in source.children:
                duplicate = child._copy_without_children()
                target.children.append(duplicate)
                stack.append((child, duplicate))
        return root

    def _copy_without_children(self) -> "Node":
        return self.model_copy(update={"attributes": dict(self.attributes), "children": []})


Node.model_rebuild()


def copy(node: Node) -> Node:
    """Return an independent deep copy of `node`."""
    return node.copy()
