"""
Extraction layer: raw bytes to text, text to translation segments.
"""

from .text_extractor import extract_text
from .chunker import chunk_text, DEFAULT_CHUNK_SIZE

__all__ = [
    'extract_text',
    'chunk_text',
    'DEFAULT_CHUNK_SIZE'
]
