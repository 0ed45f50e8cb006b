"""
Unit tests for the PDF object model and its serialization.
"""

import re

import pytest

from doc_translator.core.exceptions import RenderError
from doc_translator.core.renderers.pdf_renderer import (
    LINES_PER_PAGE, PdfObject, build_pdf, escape_pdf_text, render_pdf, serialize_pdf
)


def text_operations(stream: bytes):
    return [op for op in stream.split(b"\n") if op.endswith(b" Tj")]


class TestEscaping:

    def test_literal_string_specials_are_escaped(self):
        assert escape_pdf_text("f(x) = a\\b") == b"f\\(x\\) = a\\\\b"

    def test_carriage_return_is_escaped(self):
        assert escape_pdf_text("a\rb") == b"a\\rb"

    def test_latin_characters_use_winansi(self):
        assert escape_pdf_text("año") == b"a\xf1o"

    def test_unmappable_characters_become_question_marks(self):
        assert escape_pdf_text("日本") == b"??"

    def test_escaped_line_lands_in_operator(self):
        data = render_pdf("Call (555) C:\\tmp")
        assert b"(Call \\(555\\) C:\\\\tmp) Tj" in data


class TestObjectModel:

    def test_single_page_graph(self):
        document = build_pdf("Hola\nMundo")

        assert document.catalog.dictionary["Type"] == "/Catalog"
        assert document.catalog.dictionary["Pages"] == document.page_tree.reference
        assert document.font.dictionary["BaseFont"] == "/Helvetica"
        assert len(document.pages) == 1
        assert document.page_tree.dictionary["Kids"] == f"[{document.pages[0].page.reference}]"
        assert document.page_tree.dictionary["Count"] == "1"

    def test_each_page_references_font_and_its_content(self):
        document = build_pdf("x\n" * 120)
        for page in document.pages:
            assert page.page.dictionary["Parent"] == document.page_tree.reference
            assert page.page.dictionary["Contents"] == page.content.reference
            assert document.font.reference in page.page.dictionary["Resources"]

    def test_lines_per_page_follows_geometry(self):
        assert LINES_PER_PAGE == 51

    @pytest.mark.parametrize("line_count, page_count", [
        (1, 1), (50, 1), (51, 1), (52, 2), (102, 2), (103, 3), (400, 8),
    ])
    def test_n_lines_give_n_text_operations(self, line_count, page_count):
        text = "\n".join(f"line {i}" for i in range(line_count))

        document = build_pdf(text)

        assert len(document.pages) == page_count
        operations = [op for page in document.pages for op in text_operations(page.content.stream)]
        assert len(operations) == line_count
        assert operations[0] == b"(line 0) Tj"
        assert operations[-1] == f"(line {line_count - 1}) Tj".encode()

    def test_blank_lines_still_emit_operations(self):
        document = build_pdf("a\n\nb")
        assert text_operations(document.pages[0].content.stream) == [b"(a) Tj", b"() Tj", b"(b) Tj"]

    def test_empty_text_is_one_empty_line(self):
        document = build_pdf("")
        assert len(document.pages) == 1
        assert text_operations(document.pages[0].content.stream) == [b"() Tj"]

    def test_content_stream_positions_text(self):
        stream = build_pdf("Hola").pages[0].content.stream
        assert stream.startswith(b"BT\n/F1 12 Tf\n14 TL\n50 750 Td\n")
        assert stream.endswith(b"ET")

    def test_rejects_non_text(self):
        with pytest.raises(RenderError):
            build_pdf(b"bytes")


class TestSerialization:

    def test_header_and_eof(self):
        data = render_pdf("Hola")
        assert data.startswith(b"%PDF-1.4\n")
        assert data.endswith(b"%%EOF\n")

    def test_xref_offsets_point_at_objects(self):
        data = render_pdf("\n".join(["text"] * 60))

        startxref = int(re.search(rb"startxref\n(\d+)\n%%EOF", data).group(1))
        assert data[startxref:].startswith(b"xref\n")

        header = re.match(rb"xref\n0 (\d+)\n", data[startxref:])
        size = int(header.group(1))
        entries = data[startxref + header.end():].split(b"\n")[:size]

        assert entries[0] == b"0000000000 65535 f "
        for number, entry in enumerate(entries[1:], start=1):
            assert len(entry) + 1 == 20
            offset = int(entry[:10])
            assert data[offset:].startswith(f"{number} 0 obj\n".encode())

    def test_trailer_references_catalog(self):
        document = build_pdf("Hola")
        data = serialize_pdf(document)
        size = len(document.objects) + 1
        assert f"trailer\n<< /Size {size} /Root 1 0 R >>".encode() in data

    def test_stream_length_matches(self):
        document = build_pdf("Hola\nMundo")
        data = serialize_pdf(document)
        stream = document.pages[0].content.stream
        assert f"/Length {len(stream)}".encode() in data
        assert b"stream\n" + stream + b"\nendstream" in data

    def test_non_contiguous_numbering_rejected(self):
        document = build_pdf("Hola")
        document.font = PdfObject(9, dict(document.font.dictionary))
        with pytest.raises(RenderError):
            serialize_pdf(document)

    def test_opens_in_pymupdf(self):
        fitz = pytest.importorskip("fitz")

        lines = [f"Linea {i} (con parentesis) y barra \\" for i in range(70)]
        with fitz.open(stream=render_pdf("\n".join(lines)), filetype="pdf") as doc:
            assert not doc.is_repaired
            assert doc.page_count == 2
            extracted = [
                line.strip() for page in doc for line in page.get_text().splitlines() if line.strip()
            ]

        assert extracted == lines
