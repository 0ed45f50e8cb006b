"""
Unit tests for the SQLAlchemy repository.
"""

import pytest

from doc_translator.core.exceptions import InvalidTransitionError, NotFoundError
from doc_translator.core.schemas import DocumentStatus, TranslationStatus


class TestDocuments:

    @pytest.mark.asyncio
    async def test_add_and_get(self, repository, sample_document):
        await repository.add_document(sample_document)

        document = await repository.get_document("d1")

        assert document.user_id == "u1"
        assert document.original_file_path == "u1/123.pdf"
        assert document.original_language == "auto"
        assert document.status is DocumentStatus.UPLOADED

    @pytest.mark.asyncio
    async def test_missing_document(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_document("nope")

    @pytest.mark.asyncio
    async def test_set_status(self, repository, sample_document):
        await repository.add_document(sample_document)
        await repository.set_document_status("d1", DocumentStatus.PROCESSING)
        assert (await repository.get_document("d1")).status is DocumentStatus.PROCESSING


class TestTranslations:

    @pytest.mark.asyncio
    async def test_created_processing_without_outputs(self, repository, sample_document):
        await repository.add_document(sample_document)

        translation = await repository.create_translation("d1", "es")

        assert translation.status is TranslationStatus.PROCESSING
        assert translation.translated_pdf_path is None
        assert translation.translated_word_path is None
        assert translation.error_message is None

    @pytest.mark.asyncio
    async def test_create_for_missing_document(self, repository):
        with pytest.raises(NotFoundError):
            await repository.create_translation("nope", "es")

    @pytest.mark.asyncio
    async def test_latest_is_newest_attempt(self, repository, sample_document):
        await repository.add_document(sample_document)
        first = await repository.create_translation("d1", "es")
        second = await repository.create_translation("d1", "es")
        await repository.create_translation("d1", "fr")

        latest = await repository.latest_translation("d1", "es")

        assert latest.id == second.id != first.id
        assert await repository.latest_translation("d1", "de") is None

    @pytest.mark.asyncio
    async def test_history_is_newest_first(self, repository, sample_document):
        await repository.add_document(sample_document)
        first = await repository.create_translation("d1", "es")
        second = await repository.create_translation("d1", "fr")

        history = await repository.list_translations("d1")

        assert [t.id for t in history] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_complete_sets_paths_and_date(self, repository, sample_document):
        await repository.add_document(sample_document)
        translation = await repository.create_translation("d1", "es")

        completed = await repository.complete_translation(translation.id, "u1/d1_es.pdf", "u1/d1_es.docx")

        assert completed.status is TranslationStatus.COMPLETED
        assert completed.translated_pdf_path == "u1/d1_es.pdf"
        assert completed.translated_word_path == "u1/d1_es.docx"
        assert completed.translation_date is not None
        assert (await repository.get_translation(translation.id)).status is TranslationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, repository, sample_document):
        await repository.add_document(sample_document)
        translation = await repository.create_translation("d1", "es")
        await repository.fail_translation(translation.id, "storage_error: boom")

        with pytest.raises(InvalidTransitionError):
            await repository.complete_translation(translation.id, "a.pdf", "a.docx")

        stored = await repository.get_translation(translation.id)
        assert stored.status is TranslationStatus.FAILED
        assert stored.error_message == "storage_error: boom"

    @pytest.mark.asyncio
    async def test_only_processing_records_are_pending(self, repository, sample_document):
        await repository.add_document(sample_document)
        pending = await repository.create_translation("d1", "es")
        done = await repository.create_translation("d1", "fr")
        await repository.complete_translation(done.id, "a.pdf", "a.docx")

        assert [t.id for t in await repository.list_pending()] == [pending.id]

    @pytest.mark.asyncio
    async def test_unknown_fields_rejected(self, repository):
        with pytest.raises(ValueError):
            await repository.update_translation("t1", document_id="other")

    @pytest.mark.asyncio
    async def test_update_missing_translation(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update_translation("nope", error_message="x")

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        assert await repository.ping()
