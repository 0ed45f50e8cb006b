"""
Persistence collaborators: object store for blobs, repository for records.
"""

from .object_store import ObjectStore, LocalObjectStore, InMemoryObjectStore
from .repository import SqlRepository, create_session_factory

__all__ = [
    'ObjectStore',
    'LocalObjectStore',
    'InMemoryObjectStore',
    'SqlRepository',
    'create_session_factory'
]
