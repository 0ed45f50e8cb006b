"""
Core Document Translation Pipeline Components.
"""

from .pipeline import TranslationPipeline
from .schemas.records import Document, DocumentStatus, Translation, TranslationStatus

__all__ = [
    'TranslationPipeline',
    'Document',
    'DocumentStatus',
    'Translation',
    'TranslationStatus'
]
