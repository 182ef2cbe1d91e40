"""Domain model for the unit that gets embedded and upserted."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

UNTITLED_DOCUMENT = "Untitled Document"


class DocumentChunk(BaseModel):
    """One bounded, embeddable window of documentation text.

    Attributes
    ----------
    id:
        ``"{base_path_for_id}-{ordinal}"``; the ordinal counts every chunk
        emitted for the document and never resets between sections.
    content:
        Trimmed, non-empty text that is embedded verbatim.
    source_url:
        Page URL, suffixed with ``#section_hash`` for named sections.
    document_title:
        Title from the document's front matter.
    section_heading:
        Nearest enclosing level-1/2 heading, or the document title for the
        lead-in content.
    section_hash:
        Anchor of ``section_heading``; ``None`` for the lead-in content.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    source_url: str
    document_title: str = UNTITLED_DOCUMENT
    section_heading: str | None = None
    section_hash: str | None = None

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk content must not be empty or whitespace-only")
        return value

    def store_metadata(self) -> dict[str, Any]:
        """Metadata persisted next to the embedding (``None`` values omitted)."""
        metadata: dict[str, Any] = {
            "source_url": self.source_url,
            "document_title": self.document_title,
            "section_heading": self.section_heading,
            "section_hash": self.section_hash,
        }
        return {k: v for k, v in metadata.items() if v is not None}
