"""Node flattener — turn a document subtree into the plain text that gets embedded.

Inline markup is dropped, but code fences and tables are rebuilt so they
stay readable once embedded.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from docs_rag.ingestion.nodes import Node, NodeKind

BULLET = "- "
COLUMN_SEPARATOR = " | "
FENCE_MARKER = "```"


def flatten(node: Node) -> str:
    """Return the plain-text rendering of *node* and its descendants."""
    rule = _RULES.get(node.kind, _children)
    return rule(node)


def flatten_all(nodes: Iterable[Node]) -> str:
    """Concatenate the flattened text of *nodes* without separators."""
    return "".join(flatten(n) for n in nodes)


# ---------------------------------------------------------------------------
# Per-kind rules
# ---------------------------------------------------------------------------


def _children(node: Node) -> str:
    return flatten_all(node.children)


def _text(node: Node) -> str:
    return str(node.attributes.get("content") or "")


def _inline_code(node: Node) -> str:
    content = node.attributes.get("content")
    if content is None:
        content = _children(node)
    return f"`{content}`"


def _image(node: Node) -> str:
    return str(node.attributes.get("alt") or "")


def _list(node: Node) -> str:
    return "\n".join(f"{BULLET}{flatten(item)}" for item in node.children)


def _fence(node: Node) -> str:
    language = node.attributes.get("language") or ""
    content = node.attributes.get("content") or ""
    return f"{FENCE_MARKER}{language}\n{content}\n{FENCE_MARKER}"


def _table(node: Node) -> str:
    rows = [
        COLUMN_SEPARATOR.join(_children(cell) for cell in row.children)
        for row in node.children
    ]
    return "\n".join(rows)


def _comment(node: Node) -> str:
    return ""


_RULES: dict[NodeKind, Callable[[Node], str]] = {
    NodeKind.TEXT: _text,
    NodeKind.CODE: _inline_code,
    NodeKind.LINK: _children,  # href discarded
    NodeKind.IMAGE: _image,
    NodeKind.STRONG: _children,
    NodeKind.EM: _children,
    NodeKind.KBD: _children,
    NodeKind.HEADING: _children,
    NodeKind.PARAGRAPH: _children,
    NodeKind.ITEM: _children,
    NodeKind.BLOCKQUOTE: _children,
    NodeKind.LIST: _list,
    NodeKind.FENCE: _fence,
    NodeKind.TABLE: _table,
    NodeKind.COMMENT: _comment,
}
