"""Text chunking strategies."""

from __future__ import annotations

import re
from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
SEPARATORS = ["\n\n", "\n", ". ", " ", ""]

_FENCE_OPEN = "```"
_FENCE_CLOSE = re.compile(r"(?:^|\n)```\s*$")


class SectionTextSplitter(RecursiveCharacterTextSplitter):
    """Recursive splitter that never cuts through a fenced code block.

    Blocks are the blank-line separated units produced by the section
    segmenter.  A fence longer than ``chunk_size`` is emitted as its own
    window instead of being split on newlines.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        **kwargs: Any,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
            )
        kwargs.setdefault("separators", SEPARATORS)
        super().__init__(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            **kwargs,
        )

    def split_text(self, text: str) -> list[str]:
        text = text.strip()
        if not text:
            return []
        if self._length_function(text) <= self._chunk_size:
            return [text]

        windows: list[str] = []
        pending: list[str] = []

        def flush() -> None:
            if pending:
                windows.extend(self._merge_splits(pending, "\n\n"))
                pending.clear()

        for block in split_blocks(text):
            if self._length_function(block) <= self._chunk_size:
                pending.append(block)
                continue
            flush()
            if block.startswith(_FENCE_OPEN):
                windows.append(block)
            else:
                windows.extend(super().split_text(block))
        flush()

        return [w.strip() for w in windows if w.strip()]


def split_blocks(text: str) -> list[str]:
    """Split *text* on blank lines, keeping each fenced code block whole."""
    blocks: list[str] = []
    fence: list[str] | None = None

    for part in text.split("\n\n"):
        if fence is not None:
            fence.append(part)
            if _FENCE_CLOSE.search(part):
                blocks.append("\n\n".join(fence))
                fence = None
        elif part.startswith(_FENCE_OPEN) and not _is_closed_fence(part):
            fence = [part]
        else:
            blocks.append(part)

    if fence is not None:
        blocks.append("\n\n".join(fence))
    return [b for b in blocks if b.strip()]


def _is_closed_fence(part: str) -> bool:
    # The opening marker itself must not count as the closing one.
    return "\n" in part and _FENCE_CLOSE.search(part[part.index("\n"):]) is not None


def split_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split one section's *text* into bounded, overlapping windows.

    Parameters
    ----------
    text:
        Accumulated section text (blocks separated by blank lines).
    chunk_size:
        Maximum number of characters per window.
    chunk_overlap:
        Number of overlapping characters between consecutive windows.

    Returns
    -------
    list[str]
        Trimmed, non-empty windows in reading order.
    """
    return SectionTextSplitter(chunk_size, chunk_overlap).split_text(text)
