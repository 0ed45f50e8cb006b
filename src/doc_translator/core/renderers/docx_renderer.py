"""
DOCX Renderer - Packages translated text as a minimal WordprocessingML document.

``build_docx`` assembles the parts graph (content-type manifest, package
relationships, main document body); ``serialize_docx`` writes it out as a
ZIP archive that word processors recognize.
"""

import io
import re
import logging
import zipfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import RenderError

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

WORDML_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
RELATIONSHIPS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
OFFICE_DOCUMENT_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"

CONTENT_TYPES_PART = "[Content_Types].xml"
PACKAGE_RELS_PART = "_rels/.rels"
DOCUMENT_PART = "word/document.xml"

RELS_CONTENT_TYPE = "application/vnd.openxmlformats-package.relationships+xml"
DOCUMENT_MAIN_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
)

# Code points XML 1.0 does not allow in character data
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


@dataclass
class PackagePart:
    """One member of the package: its archive name and XML tree."""
    name: str
    element: ET.Element
    content_type: Optional[str] = None

    def to_bytes(self) -> bytes:
        return ET.tostring(self.element, encoding="UTF-8", xml_declaration=True)


@dataclass
class DocxPackage:
    parts: List[PackagePart] = field(default_factory=list)

    def part(self, name: str) -> PackagePart:
        for part in self.parts:
            if part.name == name:
                return part
        raise KeyError(name)

    @property
    def paragraphs(self) -> List[ET.Element]:
        # Tags carry a literal "w:" prefix, which ElementPath would treat as a namespace
        root = self.part(DOCUMENT_PART).element
        body = next(child for child in root if child.tag == "w:body")
        return [child for child in body if child.tag == "w:p"]


def build_document_xml(text: str) -> ET.Element:
    """One paragraph per line, each holding a single run."""
    root = ET.Element("w:document")
    root.set("xmlns:w", WORDML_NS)
    body = ET.SubElement(root, "w:body")

    for line in text.split("\n"):
        paragraph = ET.SubElement(body, "w:p")
        run = ET.SubElement(paragraph, "w:r")
        text_elem = ET.SubElement(run, "w:t")
        text_elem.set("xml:space", "preserve")
        # ElementTree escapes &, < and > on output but passes control characters through
        text_elem.text = _XML_INVALID_CHARS.sub(" ", line)

    return root


def build_package_relationships(main_part: PackagePart) -> ET.Element:
    root = ET.Element("Relationships")
    root.set("xmlns", RELATIONSHIPS_NS)

    rel = ET.SubElement(root, "Relationship")
    rel.set("Id", "rId1")
    rel.set("Type", OFFICE_DOCUMENT_REL)
    rel.set("Target", main_part.name)
    return root


def build_content_types(parts: List[PackagePart]) -> ET.Element:
    root = ET.Element("Types")
    root.set("xmlns", CONTENT_TYPES_NS)

    for extension, content_type in (("rels", RELS_CONTENT_TYPE), ("xml", "application/xml")):
        default = ET.SubElement(root, "Default")
        default.set("Extension", extension)
        default.set("ContentType", content_type)

    for part in parts:
        if part.content_type:
            override = ET.SubElement(root, "Override")
            override.set("PartName", f"/{part.name}")
            override.set("ContentType", part.content_type)

    return root


def build_docx(text: str) -> DocxPackage:
    """
    Build the parts graph for ``text``.

    Args:
        text: Translated text; lines separated by ``\\n``

    Returns:
        DocxPackage with the manifest first, then relationships, then the body
    """
    if not isinstance(text, str):
        raise RenderError(f"DOCX renderer expects str, got {type(text).__name__}")

    document = PackagePart(DOCUMENT_PART, build_document_xml(text), DOCUMENT_MAIN_CONTENT_TYPE)
    relationships = PackagePart(PACKAGE_RELS_PART, build_package_relationships(document))
    content_types = PackagePart(CONTENT_TYPES_PART, build_content_types([document]))

    return DocxPackage(parts=[content_types, relationships, document])


def serialize_docx(package: DocxPackage) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for part in package.parts:
            archive.writestr(part.name, part.to_bytes())
    return buffer.getvalue()


def render_docx(text: str) -> bytes:
    package = build_docx(text)
    data = serialize_docx(package)
    logger.debug(f"Rendered DOCX: {len(package.paragraphs)} paragraphs, {len(data)} bytes")
    return data
