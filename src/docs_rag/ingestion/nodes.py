"""Typed document tree consumed by the flattener and the section segmenter.

The tree mirrors the Markdoc AST: every node has a *kind*, an attribute
mapping and an ordered list of children.  Attributes used downstream:

* heading — ``level`` (int), optional ``id`` (explicit anchor)
* fence — ``language``, ``content`` (raw code)
* image — ``alt``, ``src``
* link — ``href``
* text / code — ``content``
* list — ``ordered``
* tag — ``name`` (the element that had no dedicated kind)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    """Every node kind the parser adapter can emit."""

    DOCUMENT = "document"
    TEXT = "text"
    CODE = "code"
    LINK = "link"
    IMAGE = "image"
    STRONG = "strong"
    EM = "em"
    KBD = "kbd"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    ITEM = "item"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    FENCE = "fence"
    TABLE = "table"
    ROW = "tr"
    CELL = "td"
    COMMENT = "comment"
    TAG = "tag"


@dataclass
class Node:
    """One node of a parsed document."""

    kind: NodeKind
    attributes: dict[str, Any] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)

    # -- convenience constructors ---------------------------------------------

    @classmethod
    def text(cls, content: str) -> Node:
        return cls(NodeKind.TEXT, {"content": content})

    @classmethod
    def heading(cls, level: int, *children: Node, anchor: str | None = None) -> Node:
        attributes: dict[str, Any] = {"level": level}
        if anchor:
            attributes["id"] = anchor
        return cls(NodeKind.HEADING, attributes, list(children))

    @classmethod
    def paragraph(cls, *children: Node) -> Node:
        return cls(NodeKind.PARAGRAPH, children=list(children))

    @classmethod
    def fence(cls, content: str, language: str = "") -> Node:
        return cls(NodeKind.FENCE, {"language": language, "content": content})

    @classmethod
    def document(cls, *children: Node) -> Node:
        return cls(NodeKind.DOCUMENT, children=list(children))
