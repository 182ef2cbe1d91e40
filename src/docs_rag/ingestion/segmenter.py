"""Section segmenter — cut a document into sections at level-1/2 headings.

Content before the first major heading forms the *lead-in* section, which
carries the document title as its heading and no anchor.  Level-3+ headings
stay inside the current section as ``### Heading`` text lines.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Iterator
from dataclasses import dataclass, field

from docs_rag.ingestion.flatten import flatten
from docs_rag.ingestion.nodes import Node, NodeKind

logger = logging.getLogger(__name__)

MAX_SECTION_LEVEL = 2
BLOCK_SEPARATOR = "\n\n"

_CONTENT_KINDS = frozenset(
    {
        NodeKind.PARAGRAPH,
        NodeKind.FENCE,
        NodeKind.LIST,
        NodeKind.TABLE,
        NodeKind.BLOCKQUOTE,
    }
)
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z\d]+)")
_CAMEL_BOUNDARY = re.compile(r"([a-z\d]+)([A-Z])")


def slugify(text: str) -> str:
    """Lower-case, ASCII-only, dash-separated anchor for *text*."""
    text = text.replace("&", " and ")
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    # useOnboarding -> use Onboarding, HTMLParser -> HTML Parser
    text = _ACRONYM_BOUNDARY.sub(r"\1 \2", text)
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text).lower()
    return _NON_SLUG_CHARS.sub("-", text).strip("-")


class SlugGenerator:
    """Per-document slug factory; repeated slugs get ``-1``, ``-2``, … suffixes.

    Explicit anchors are registered through :meth:`reserve` so that generated
    slugs never collide with them.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()
        self._suffix: dict[str, int] = {}

    def reserve(self, anchor: str) -> None:
        self._used.add(anchor)

    def __call__(self, text: str) -> str:
        base = slugify(text) or "section"
        counter = self._suffix.get(base, 0)
        slug = base if counter == 0 else f"{base}-{counter}"
        while slug in self._used:
            counter += 1
            slug = f"{base}-{counter}"
        self._suffix[base] = counter
        self._used.add(slug)
        return slug


@dataclass(frozen=True)
class Section:
    """A span of a document between two major headings."""

    heading: str
    hash: str | None
    text: str


@dataclass
class _SegmentState:
    """Traversal state for exactly one document."""

    heading: str
    hash: str | None = None
    buffer: list[str] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    slugs: SlugGenerator = field(default_factory=SlugGenerator)

    def flush(self) -> None:
        text = BLOCK_SEPARATOR.join(self.buffer).strip()
        self.buffer = []
        if text:
            self.sections.append(Section(self.heading, self.hash, text))

    def open_section(self, heading: str, anchor: str | None) -> None:
        self.flush()
        if anchor:
            self.slugs.reserve(anchor)
            self.hash = anchor
        else:
            self.hash = self.slugs(heading)
        self.heading = heading


def segment(tree: Node, document_title: str) -> list[Section]:
    """Split *tree* into ordered sections.

    Sections whose buffered text is empty after trimming are omitted, so a
    heading immediately followed by another heading produces nothing.
    Explicit anchors are reserved up front, so a generated slug never takes
    an anchor declared further down the page.
    """
    state = _SegmentState(heading=document_title)
    for anchor in _explicit_anchors(tree):
        state.slugs.reserve(anchor)
    _visit(tree, state)
    state.flush()
    return state.sections


def _explicit_anchors(node: Node) -> Iterator[str]:
    if node.kind == NodeKind.HEADING:
        level = int(node.attributes.get("level") or 1)
        if level <= MAX_SECTION_LEVEL and node.attributes.get("id"):
            yield node.attributes["id"]
        return
    if node.kind in _CONTENT_KINDS:
        return
    for child in node.children:
        yield from _explicit_anchors(child)


def _visit(node: Node, state: _SegmentState) -> None:
    if node.kind == NodeKind.HEADING:
        _visit_heading(node, state)
        return

    if node.kind in _CONTENT_KINDS:
        content = flatten(node).strip()
        if content:
            state.buffer.append(content)
        return

    for child in node.children:
        _visit(child, state)


def _visit_heading(node: Node, state: _SegmentState) -> None:
    text = flatten(node).strip()
    level = int(node.attributes.get("level") or 1)

    if level <= MAX_SECTION_LEVEL:
        state.open_section(text, node.attributes.get("id") or None)
        logger.debug("Section %r (#%s)", state.heading, state.hash)
    elif text:
        state.buffer.append(f"{'#' * level} {text}")
