"""
Pytest configuration and fixtures for all tests.

Provides an in-memory SQLite repository, an in-memory object store and a
stub of the gtx translation endpoint served through httpx.MockTransport.
"""

from typing import Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from doc_translator.core.pipeline import TranslationPipeline
from doc_translator.core.schemas import Document
from doc_translator.core.storage import (
    InMemoryObjectStore, SqlRepository, create_session_factory
)
from doc_translator.core.translation import GoogleTranslateClient


def gtx_response(pieces: List[str], sources: Optional[List[str]] = None) -> list:
    """Build a response shaped like the gtx endpoint's nested arrays."""
    sources = sources or pieces
    entries = [[piece, source, None, None, 3] for piece, source in zip(pieces, sources)]
    return [entries, None, "en", None, None, None, 1.0, [], [["en"], None, [1.0], ["en"]]]


class StubTranslateService:
    """
    Translates line by line from a word map, like the real service splits
    sentences into separate entries. Unmapped lines are echoed back.
    """

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self.mapping = mapping or {}
        self.requests: List[httpx.Request] = []

    @property
    def queries(self) -> List[str]:
        return [request.url.params["q"] for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        query = request.url.params["q"]

        pieces, sources = [], []
        for line in query.splitlines(keepends=True):
            content = line.rstrip("\n")
            newline = line[len(content):]
            pieces.append(self.mapping.get(content, content) + newline)
            sources.append(line)

        return httpx.Response(200, json=gtx_response(pieces, sources))


def make_translator(handler: Callable, **kwargs) -> GoogleTranslateClient:
    kwargs.setdefault("backoff", 0)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleTranslateClient(http_client, **kwargs)


@pytest.fixture
def repository() -> SqlRepository:
    repo = SqlRepository(create_session_factory("sqlite://"))
    repo.create_tables()
    return repo


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def stub_service() -> StubTranslateService:
    return StubTranslateService({"Hello": "Hola", "World": "Mundo"})


@pytest.fixture
def translator(stub_service) -> GoogleTranslateClient:
    return make_translator(stub_service)


@pytest.fixture
def pipeline(repository, object_store, translator) -> TranslationPipeline:
    return TranslationPipeline(repository, object_store, translator)


@pytest.fixture
def sample_document() -> Document:
    return Document(
        id="d1",
        user_id="u1",
        original_filename="letter.pdf",
        original_file_path="u1/123.pdf",
        file_size=11,
        mime_type="application/pdf",
    )


@pytest_asyncio.fixture
async def stored_document(repository, object_store, sample_document) -> Document:
    """Document d1 registered and its original uploaded."""
    await object_store.upload(
        "documents", sample_document.original_file_path, b"Hello\nWorld", "application/pdf"
    )
    return await repository.add_document(sample_document)
