"""Unit tests for the document pipeline — chunk assembly and corpus processing."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from docs_rag.errors import ConfigurationError
from docs_rag.ingestion.chunker import SectionTextSplitter
from docs_rag.ingestion.nodes import Node, NodeKind
from docs_rag.ingestion.pipeline import (
    chunk_corpus,
    discover_documents,
    locate_document,
    process_document,
)

BASE = "https://docs.example.com"


def _p(text: str) -> Node:
    return Node.paragraph(Node.text(text))


def _h2(text: str) -> Node:
    return Node.heading(2, Node.text(text))


def _ordinal(chunk_id: str) -> int:
    return int(chunk_id.rsplit("-", 1)[1])


# ── process_document ────────────────────────────────────────────────────


def test_single_short_paragraph_gives_one_chunk(prose) -> None:
    """A titled page with one 50-char paragraph yields exactly one lead-in chunk."""
    tree = Node.document(_p(prose(50)))
    chunks = process_document(tree, "Installation", BASE, "/installation", "installation")

    assert len(chunks) == 1
    chunk = chunks[0]
    assert chunk.id == "installation-0"
    assert chunk.content == prose(50)
    assert chunk.section_heading == "Installation"
    assert chunk.section_hash is None
    assert chunk.source_url == f"{BASE}/installation"
    assert chunk.document_title == "Installation"


def test_two_long_sections_give_four_chunks(prose) -> None:
    tree = Node.document(
        _h2("Setup"), _p(prose(1500, "setup")), _h2("Usage"), _p(prose(1500, "usage"))
    )
    chunks = process_document(
        tree,
        "Guide",
        BASE,
        "/guide",
        "guide",
        splitter=SectionTextSplitter(chunk_size=1000, chunk_overlap=200),
    )

    assert [c.id for c in chunks] == ["guide-0", "guide-1", "guide-2", "guide-3"]
    assert [c.section_hash for c in chunks] == ["setup", "setup", "usage", "usage"]
    assert [c.section_heading for c in chunks] == ["Setup", "Setup", "Usage", "Usage"]
    assert chunks[0].source_url == f"{BASE}/guide#setup"
    assert chunks[3].source_url == f"{BASE}/guide#usage"
    assert all(len(c.content) <= 1000 for c in chunks)


def test_repeated_heading_text_never_collides() -> None:
    tree = Node.document(_h2("Overview"), _p("a"), _h2("Overview"), _p("b"))
    chunks = process_document(tree, "T", BASE, "/t", "t")
    assert [c.section_hash for c in chunks] == ["overview", "overview-1"]
    assert chunks[1].source_url == f"{BASE}/t#overview-1"


def test_ordinals_strictly_increase_across_sections(prose) -> None:
    tree = Node.document(
        _p(prose(2500)), _h2("A"), _p(prose(1800)), _h2("B"), _h2("C"), _p("tail")
    )
    chunks = process_document(tree, "T", BASE, "/t", "t")
    ordinals = [_ordinal(c.id) for c in chunks]

    assert ordinals == list(range(len(chunks)))
    assert len({c.id for c in chunks}) == len(chunks)
    assert "b" not in {c.section_hash for c in chunks}


def test_chunks_follow_reading_order() -> None:
    tree = Node.document(_p("first"), _h2("Two"), _p("second"), _h2("Three"), _p("third"))
    contents = [c.content for c in process_document(tree, "T", BASE, "/t", "t")]
    assert contents == ["first", "second", "third"]


def test_windows_cover_every_buffered_block_in_order() -> None:
    """Dropping overlap, the windows replay each section's blocks in reading order."""
    counter = iter(range(10_000))

    def words(n: int, sep: str = " ") -> str:
        return sep.join(f"w{next(counter):04d}" for _ in range(n))

    lead_in = words(20)
    long_prose = words(250)
    items = [words(3) for _ in range(4)]
    fence_code = words(180, sep="\n")
    closing = words(10)
    usage = words(300)
    expected = [f"w{i:04d}" for i in range(next(counter))]

    tree = Node.document(
        _p(lead_in),
        _h2("Install"),
        _p(long_prose),
        Node(NodeKind.LIST, children=[Node(NodeKind.ITEM, children=[Node.text(i)]) for i in items]),
        Node.fence(fence_code, language="text"),
        _p(closing),
        _h2("Usage"),
        _p(usage),
    )
    chunks = process_document(
        tree, "T", BASE, "/t", "t", splitter=SectionTextSplitter(chunk_size=1000, chunk_overlap=200)
    )

    seen = [tok for c in chunks for tok in re.findall(r"w\d{4}", c.content)]
    assert list(dict.fromkeys(seen)) == expected

    fence_text = f"```text\n{fence_code}\n```"
    list_text = "\n".join(f"- {i}" for i in items)
    assert fence_text in [c.content for c in chunks]
    assert any(list_text in c.content for c in chunks)
    assert all(len(c.content) <= 1000 for c in chunks if c.content != fence_text)


def test_no_chunk_is_blank() -> None:
    tree = Node.document(_p("  "), _h2("Empty"), _h2("Real"), _p("text"))
    chunks = process_document(tree, "T", BASE, "/t", "t")
    assert [c.content for c in chunks] == ["text"]
    assert all(c.content.strip() for c in chunks)


def test_store_metadata_omits_missing_section_fields() -> None:
    (chunk,) = process_document(Node.document(_p("x")), "T", BASE, "/t", "t")
    assert chunk.store_metadata() == {
        "source_url": f"{BASE}/t",
        "document_title": "T",
        "section_heading": "T",
    }


# ── document locations ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("relative", "document_path", "base_id"),
    [
        ("installation.md", "/installation", "installation"),
        ("steps/typed-steps.md", "/steps/typed-steps", "steps-typed-steps"),
        ("ui/progress/page.md", "/ui/progress", "ui-progress-page"),
        ("page.md", "", "page"),
        ("v1.2/notes.md", "/v1.2/notes", "v1-2-notes"),
    ],
)
def test_locate_document(tmp_path: Path, relative: str, document_path: str, base_id: str) -> None:
    location = locate_document(tmp_path, tmp_path / relative)
    assert location.relative_path == relative
    assert location.document_path == document_path
    assert location.base_path_for_id == base_id


def test_discover_documents_is_sorted(write_page, tmp_path: Path) -> None:
    for name in ("b.md", "a/z.md", "a.md", "notes.txt"):
        write_page(name, "x")
    assert [loc.relative_path for loc in discover_documents(tmp_path)] == [
        "a.md",
        "a/z.md",
        "b.md",
    ]


def test_missing_corpus_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Corpus directory not found"):
        chunk_corpus(tmp_path / "nope", BASE)


# ── corpus ──────────────────────────────────────────────────────────────


def test_corpus_end_to_end(write_page, tmp_path: Path) -> None:
    write_page(
        "installation/page.md",
        "Install the package.\n\n## Requirements\n\nNode 18.\n\n### Optional\n\nYarn.\n",
        title="Installation",
    )
    write_page("page.md", "Welcome to the docs.", title="Getting started")

    result = chunk_corpus(tmp_path, BASE + "/")

    assert result.failures == []
    assert result.documents_processed == 2
    assert [(c.id, c.source_url, c.section_heading) for c in result.chunks] == [
        ("installation-page-0", f"{BASE}/installation", "Installation"),
        ("installation-page-1", f"{BASE}/installation#requirements", "Requirements"),
        ("page-0", BASE, "Getting started"),
    ]
    assert result.chunks[1].content == "Node 18.\n\n### Optional\n\nYarn."


def test_malformed_document_is_skipped(write_page, tmp_path: Path, prose) -> None:
    """One malformed page among ten valid ones is reported; the rest are chunked."""
    for i in range(10):
        write_page(f"page-{i:02d}.md", prose(80), title=f"Page {i}")
    (tmp_path / "broken.md").write_bytes(b"---\ntitle: Broken\n---\n\n\xff\xfe")

    result = chunk_corpus(tmp_path, BASE, max_workers=3)

    assert len(result.failures) == 1
    assert result.failures[0].path == "broken.md"
    assert result.documents_processed == 10
    assert {c.id.rsplit("-", 1)[0] for c in result.chunks} == {f"page-{i:02d}" for i in range(10)}


def test_deeply_nested_document_is_skipped(write_page, tmp_path: Path) -> None:
    for name in ("a", "b", "c"):
        write_page(f"{name}.md", f"Page {name}.", title=name.upper())
    write_page("deep.md", "<div>" * 1200 + "x" + "</div>" * 1200)

    result = chunk_corpus(tmp_path, BASE)

    assert [f.path for f in result.failures] == ["deep.md"]
    assert result.documents_processed == 3
    assert [c.id for c in result.chunks] == ["a-0", "b-0", "c-0"]


def test_corpus_chunking_is_deterministic(write_page, tmp_path: Path, prose) -> None:
    for i in range(6):
        body = f"{prose(1200)}\n\n## Part {i}\n\n{prose(900, 'ipsum')}\n"
        write_page(f"docs/p{i}.md", body, title=f"P{i}")

    first = chunk_corpus(tmp_path, BASE, max_workers=4)
    second = chunk_corpus(tmp_path, BASE, max_workers=1)

    assert [c.model_dump() for c in first.chunks] == [c.model_dump() for c in second.chunks]
