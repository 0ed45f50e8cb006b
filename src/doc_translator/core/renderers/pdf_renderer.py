"""
PDF Renderer - Lays translated text out as a minimal, conformant PDF.

Rendering happens in two passes: ``build_pdf`` produces an object graph
(catalog, page tree, shared font, one page and one content stream per page)
and ``serialize_pdf`` turns it into bytes with a byte-exact cross-reference
table and trailer.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..exceptions import RenderError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# US Letter, points
PAGE_WIDTH = 612
PAGE_HEIGHT = 792
FONT_RESOURCE = "F1"
BASE_FONT = "Helvetica"
FONT_SIZE = 12
LEADING = 14
LEFT_MARGIN = 50
TOP_BASELINE = 750
BOTTOM_MARGIN = 50

# Baselines run from TOP_BASELINE down to BOTTOM_MARGIN inclusive
LINES_PER_PAGE = (TOP_BASELINE - BOTTOM_MARGIN) // LEADING + 1

_HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"


@dataclass
class PdfObject:
    """An indirect object: a dictionary, optionally followed by a stream."""
    number: int
    dictionary: Dict[str, str] = field(default_factory=dict)
    stream: Optional[bytes] = None

    @property
    def reference(self) -> str:
        return f"{self.number} 0 R"

    def serialize(self) -> bytes:
        entries = dict(self.dictionary)
        if self.stream is not None:
            entries["Length"] = str(len(self.stream))

        body = "<< " + " ".join(f"/{key} {value}" for key, value in entries.items()) + " >>"
        data = body.encode("latin-1")
        if self.stream is not None:
            data += b"\nstream\n" + self.stream + b"\nendstream"
        return data


@dataclass
class PdfPage:
    page: PdfObject
    content: PdfObject
    lines: List[str]


@dataclass
class PdfDocument:
    catalog: PdfObject
    page_tree: PdfObject
    font: PdfObject
    pages: List[PdfPage] = field(default_factory=list)

    @property
    def objects(self) -> List[PdfObject]:
        objects = [self.catalog, self.page_tree, self.font]
        for page in self.pages:
            objects.extend([page.page, page.content])
        return sorted(objects, key=lambda obj: obj.number)

    def link_pages(self):
        """Point the page tree at every page object, in order."""
        kids = " ".join(page.page.reference for page in self.pages)
        self.page_tree.dictionary["Kids"] = f"[{kids}]"
        self.page_tree.dictionary["Count"] = str(len(self.pages))


def escape_pdf_text(line: str) -> bytes:
    """
    Encode a line for a literal string operand.

    Characters outside cp1252 become ``?``; the base font has no glyphs for them.
    """
    raw = line.encode("cp1252", errors="replace")
    return (raw.replace(b"\\", b"\\\\")
               .replace(b"(", b"\\(")
               .replace(b")", b"\\)")
               .replace(b"\r", b"\\r"))


def paginate(lines: List[str]) -> List[List[str]]:
    """Group lines into pages; there is always at least one page."""
    pages = [lines[i:i + LINES_PER_PAGE] for i in range(0, len(lines), LINES_PER_PAGE)]
    return pages or [[]]


def build_content_stream(lines: List[str]) -> bytes:
    operations = [
        b"BT",
        f"/{FONT_RESOURCE} {FONT_SIZE} Tf".encode("ascii"),
        f"{LEADING} TL".encode("ascii"),
        f"{LEFT_MARGIN} {TOP_BASELINE} Td".encode("ascii"),
    ]
    for line in lines:
        operations.append(b"(" + escape_pdf_text(line) + b") Tj")
        operations.append(b"T*")
    operations.append(b"ET")
    return b"\n".join(operations)


def build_pdf(text: str) -> PdfDocument:
    """
    Build the object graph for ``text``, one text-showing operation per line.

    Args:
        text: Translated text; lines separated by ``\\n``

    Returns:
        PdfDocument ready for serialization
    """
    if not isinstance(text, str):
        raise RenderError(f"PDF renderer expects str, got {type(text).__name__}")

    document = PdfDocument(
        catalog=PdfObject(1, {"Type": "/Catalog", "Pages": "2 0 R"}),
        page_tree=PdfObject(2, {"Type": "/Pages"}),
        font=PdfObject(3, {
            "Type": "/Font",
            "Subtype": "/Type1",
            "BaseFont": f"/{BASE_FONT}",
            "Encoding": "/WinAnsiEncoding",
        }),
    )

    next_number = 4
    for page_lines in paginate(text.split("\n")):
        content = PdfObject(next_number + 1, stream=build_content_stream(page_lines))
        page = PdfObject(next_number, {
            "Type": "/Page",
            "Parent": document.page_tree.reference,
            "MediaBox": f"[0 0 {PAGE_WIDTH} {PAGE_HEIGHT}]",
            "Resources": f"<< /Font << /{FONT_RESOURCE} {document.font.reference} >> >>",
            "Contents": content.reference,
        })
        document.pages.append(PdfPage(page=page, content=content, lines=page_lines))
        next_number += 2

    document.link_pages()
    return document


def serialize_pdf(document: PdfDocument) -> bytes:
    """Write header, objects, cross-reference table and trailer."""
    objects = document.objects
    expected = list(range(1, len(objects) + 1))
    if [obj.number for obj in objects] != expected:
        raise RenderError("PDF objects must be numbered contiguously from 1")

    out = bytearray(_HEADER)
    offsets = []
    for obj in objects:
        offsets.append(len(out))
        out += f"{obj.number} 0 obj\n".encode("ascii")
        out += obj.serialize()
        out += b"\nendobj\n"

    xref_offset = len(out)
    size = len(objects) + 1
    out += f"xref\n0 {size}\n".encode("ascii")
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode("ascii")

    out += (
        f"trailer\n<< /Size {size} /Root {document.catalog.reference} >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode("ascii")
    return bytes(out)


def render_pdf(text: str) -> bytes:
    document = build_pdf(text)
    data = serialize_pdf(document)
    logger.debug(f"Rendered PDF: {len(document.pages)} pages, {len(data)} bytes")
    return data
