from .records import (
    Document, DocumentStatus, Translation, TranslationStatus, ArtifactPaths
)

__all__ = [
    'Document',
    'DocumentStatus',
    'Translation',
    'TranslationStatus',
    'ArtifactPaths'
]
