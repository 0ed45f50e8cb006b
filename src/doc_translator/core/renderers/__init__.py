"""
Output renderers for translated text.
"""

from .pdf_renderer import render_pdf, build_pdf, serialize_pdf, PDF_CONTENT_TYPE
from .docx_renderer import render_docx, build_docx, serialize_docx, DOCX_CONTENT_TYPE

__all__ = [
    'render_pdf',
    'build_pdf',
    'serialize_pdf',
    'PDF_CONTENT_TYPE',
    'render_docx',
    'build_docx',
    'serialize_docx',
    'DOCX_CONTENT_TYPE'
]
