"""Markdown/Markdoc parser adapter — raw page source → :class:`Node` tree.

Markdown is rendered to HTML with Python-Markdown and the HTML is walked
with BeautifulSoup.  Markdoc tag syntax is not understood by Python-Markdown,
so tag markers are removed first and the prose they wrap is kept.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import markdown
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from docs_rag.errors import DocumentParseError
from docs_rag.ingestion.models import UNTITLED_DOCUMENT
from docs_rag.ingestion.nodes import Node, NodeKind

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "attr_list"]

_FRONTMATTER_OPEN = re.compile(r"\A---[ \t]*\r?\n")
_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.S)
_TITLE = re.compile(r"^title:\s*(.*?)\s*$", re.M)
_HEADING_ANCHOR = re.compile(r"^(#{1,6}[ \t].*?)[ \t]*\{%\s*#([\w-]+)\s*%\}[ \t]*$")
_MARKDOC_TAG = re.compile(r"\{%.*?%\}")
_FENCE_LINE = re.compile(r"^[ \t]*(```|~~~)")

_BLOCK_CONTAINERS = frozenset(
    {"[document]", "ul", "ol", "table", "thead", "tbody", "tfoot", "tr"}
)
_LOOSE_CONTAINERS = frozenset({"li", "blockquote"})
_SPAN_KINDS = {
    "strong": NodeKind.STRONG,
    "b": NodeKind.STRONG,
    "em": NodeKind.EM,
    "i": NodeKind.EM,
    "kbd": NodeKind.KBD,
}
_HEADINGS = {f"h{n}": n for n in range(1, 7)}


@dataclass
class ParsedDocument:
    """A parsed page: front-matter title, raw front matter and node tree."""

    title: str
    tree: Node
    frontmatter: str = ""


def load_document(path: str | Path) -> ParsedDocument:
    """Read *path* as strict UTF-8 and parse it."""
    path = Path(path)
    try:
        text = path.read_bytes().decode("utf-8")
    except OSError as exc:
        raise DocumentParseError(str(path), f"cannot read file: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DocumentParseError(str(path), f"invalid UTF-8: {exc}") from exc
    return parse_document(text, source=str(path))


def parse_document(text: str, source: str | None = None) -> ParsedDocument:
    """Parse Markdoc page source into a :class:`ParsedDocument`.

    Raises
    ------
    DocumentParseError
        When the front matter is unterminated or the renderer fails.
    """
    source = source or "<string>"
    frontmatter, body = split_frontmatter(text, source)

    try:
        html = markdown.markdown(strip_markdoc_tags(body), extensions=MARKDOWN_EXTENSIONS)
    except Exception as exc:
        raise DocumentParseError(source, f"markdown rendering failed: {exc}") from exc

    try:
        soup = BeautifulSoup(html, "html.parser")
        tree = Node(NodeKind.DOCUMENT, children=_convert_children(soup))
    except RecursionError as exc:
        raise DocumentParseError(source, "document nesting too deep") from exc
    except Exception as exc:
        raise DocumentParseError(source, f"HTML conversion failed: {exc}") from exc
    return ParsedDocument(title=extract_title(frontmatter), tree=tree, frontmatter=frontmatter)


def split_frontmatter(text: str, source: str = "<string>") -> tuple[str, str]:
    """Return ``(frontmatter, body)``; front matter is empty when absent."""
    text = text.lstrip("\ufeff")
    if not _FRONTMATTER_OPEN.match(text):
        return "", text
    match = _FRONTMATTER.match(text)
    if match is None:
        raise DocumentParseError(source, "unterminated front matter")
    return match.group(1) or "", text[match.end():]


def extract_title(frontmatter: str) -> str:
    """Title declared in *frontmatter*, or ``"Untitled Document"``."""
    match = _TITLE.search(frontmatter)
    if not match or not match.group(1):
        return UNTITLED_DOCUMENT
    title = match.group(1)
    if len(title) >= 2 and title[0] == title[-1] and title[0] in "\"'":
        title = title[1:-1]
    return title or UNTITLED_DOCUMENT


def strip_markdoc_tags(body: str) -> str:
    """Remove ``{% ... %}`` markers outside code fences.

    A heading annotation ``## Title {% #anchor %}`` is rewritten to the
    ``{#anchor}`` attribute-list form so the anchor survives rendering.
    """
    lines: list[str] = []
    in_fence = False
    for line in body.splitlines():
        if _FENCE_LINE.match(line):
            in_fence = not in_fence
            lines.append(line)
            continue
        if not in_fence:
            line = _HEADING_ANCHOR.sub(r"\1 {#\2}", line)
            line = _MARKDOC_TAG.sub("", line)
        lines.append(line)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# HTML → Node
# ---------------------------------------------------------------------------


def _convert_children(parent: Tag) -> list[Node]:
    nodes: list[Node] = []
    for child in parent.children:
        node = _convert(child, parent)
        if node is not None:
            nodes.append(node)
    return nodes


def _convert(element: object, parent: Tag) -> Node | None:
    if isinstance(element, Comment):
        return Node(NodeKind.COMMENT, {"content": str(element)})
    if isinstance(element, NavigableString):
        return _convert_string(str(element), parent)
    if not isinstance(element, Tag):
        return None

    name = element.name
    if name in _HEADINGS:
        attributes = {"level": _HEADINGS[name]}
        if element.get("id"):
            attributes["id"] = element["id"]
        return Node(NodeKind.HEADING, attributes, _convert_children(element))
    if name == "p":
        return Node(NodeKind.PARAGRAPH, children=_convert_children(element))
    if name == "pre":
        return _convert_fence(element)
    if name == "code":
        return Node(NodeKind.CODE, {"content": element.get_text()})
    if name == "a":
        return Node(NodeKind.LINK, {"href": element.get("href", "")}, _convert_children(element))
    if name == "img":
        return Node(NodeKind.IMAGE, {"alt": element.get("alt", ""), "src": element.get("src", "")})
    if name in _SPAN_KINDS:
        return Node(_SPAN_KINDS[name], children=_convert_children(element))
    if name in ("ul", "ol"):
        return Node(NodeKind.LIST, {"ordered": name == "ol"}, _convert_children(element))
    if name == "li":
        return Node(NodeKind.ITEM, children=_convert_children(element))
    if name == "blockquote":
        return Node(NodeKind.BLOCKQUOTE, children=_convert_children(element))
    if name == "table":
        rows = [
            Node(NodeKind.ROW, children=[
                Node(NodeKind.CELL, {"header": cell.name == "th"}, _convert_children(cell))
                for cell in row.find_all(["th", "td"], recursive=False)
            ])
            for row in element.find_all("tr")
        ]
        return Node(NodeKind.TABLE, children=rows)
    return Node(NodeKind.TAG, {"name": name}, _convert_children(element))


def _convert_string(text: str, parent: Tag) -> Node | None:
    if not text.strip():
        # Layout whitespace between block elements carries no content.
        if parent.name in _BLOCK_CONTAINERS:
            return None
        if parent.name in _LOOSE_CONTAINERS and "\n" in text:
            return None
    return Node.text(text)


def _convert_fence(element: Tag) -> Node:
    code = element.find("code")
    target = code if isinstance(code, Tag) else element
    language = ""
    for css_class in target.get("class") or []:
        if css_class.startswith("language-"):
            language = css_class[len("language-"):]
            break
    return Node.fence(target.get_text().rstrip("\n"), language)
