"""
Translation Pipeline - Main orchestrator for document translation.
Moves one Translation record from processing to completed or failed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from .exceptions import (
    PipelineError, NotFoundError, RenderError, UpdateError,
    DeadlineExceededError, InvalidTransitionError
)
from .extractors import extract_text
from .renderers import render_pdf, render_docx, PDF_CONTENT_TYPE, DOCX_CONTENT_TYPE
from .schemas.records import (
    ArtifactPaths, Document, DocumentStatus, Translation, TranslationStatus
)
from .storage.object_store import ObjectStore
from .storage.repository import SqlRepository
from .translation import GoogleTranslateClient

logger = logging.getLogger(__name__)


@dataclass
class RenderedArtifacts:
    pdf: bytes
    docx: bytes


class TranslationPipeline:
    """
    Sequences extraction, translation, rendering and persistence for one
    (document, target language) request.

    Collaborators are passed in and hold no per-request state, so a single
    pipeline instance can serve concurrent requests.
    """

    def __init__(self, repository: SqlRepository, object_store: ObjectStore,
                 translator: GoogleTranslateClient, documents_bucket: str = "documents",
                 translations_bucket: str = "translations", request_deadline: float = 300.0):
        self.repository = repository
        self.object_store = object_store
        self.translator = translator
        self.documents_bucket = documents_bucket
        self.translations_bucket = translations_bucket
        self.request_deadline = request_deadline

    async def request_translation(self, document_id: str, target_language: str) -> Translation:
        """
        Resolve the Translation record for a request and run it.

        The newest record for the pair is reused while it is still processing
        (the client may have created it before calling us); otherwise a new
        attempt is recorded.

        Returns:
            The completed Translation

        Raises:
            PipelineError: the run failed; the record has been marked failed
                unless the error is an UpdateError
        """
        translation = await self.repository.latest_translation(document_id, target_language)
        if translation is None or translation.status.is_terminal:
            translation = await self.repository.create_translation(document_id, target_language)
            logger.info(f"Created translation {translation.id} for {document_id} -> {target_language}")

        return await self.run(translation.id)

    async def run(self, translation_id: str) -> Translation:
        translation = await self.repository.get_translation(translation_id)
        if translation.status.is_terminal:
            raise InvalidTransitionError(
                f"Translation {translation_id} is already {translation.status.value}"
            )

        logger.info(
            f"Starting translation {translation.id} "
            f"(document {translation.document_id} -> {translation.target_language})"
        )

        try:
            return await asyncio.wait_for(self._process(translation), timeout=self.request_deadline)

        except asyncio.TimeoutError as e:
            # The final update runs in an executor thread and may commit after cancellation
            completed = await self._completed_after_deadline(translation)
            if completed is not None:
                return completed

            error = DeadlineExceededError(
                f"Translation did not finish within {self.request_deadline:g}s"
            )
            await self._mark_failed(translation, error)
            raise error from e

        except UpdateError as e:
            # Artifacts are stored but the record could not be completed; leave it processing
            logger.error(f"Translation {translation.id} left inconsistent: {e}")
            raise

        except PipelineError as e:
            await self._mark_failed(translation, e)
            raise

        except Exception as e:
            error = PipelineError(f"Unexpected error: {e}")
            await self._mark_failed(translation, error)
            raise error from e

    async def _process(self, translation: Translation) -> Translation:
        document = await self._load_phase(translation)
        await self._set_document_status(document.id, DocumentStatus.PROCESSING)

        original = await self._download_phase(document)
        text = extract_text(original)
        logger.info(f"Extracted {len(text)} characters from {document.original_file_path}")

        translated = await self._translation_phase(text, translation.target_language)
        artifacts = self._render_phase(translated)

        paths = ArtifactPaths.for_request(document.user_id, document.id, translation.target_language)
        await self._upload_phase(paths, artifacts)

        completed = await self._finalize_phase(translation, paths)
        await self._set_document_status(document.id, DocumentStatus.COMPLETED)

        logger.info(f"Completed translation {translation.id}: {paths.pdf}, {paths.docx}")
        return completed

    async def _load_phase(self, translation: Translation) -> Document:
        return await self.repository.get_document(translation.document_id)

    async def _download_phase(self, document: Document) -> bytes:
        return await self.object_store.download(self.documents_bucket, document.original_file_path)

    async def _translation_phase(self, text: str, target_language: str) -> str:
        return await self.translator.translate(text, target_language)

    def _render_phase(self, text: str) -> RenderedArtifacts:
        try:
            return RenderedArtifacts(pdf=render_pdf(text), docx=render_docx(text))
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Rendering failed: {e}") from e

    async def _upload_phase(self, paths: ArtifactPaths, artifacts: RenderedArtifacts):
        # Not atomic: a failed DOCX upload leaves the PDF in place
        await self.object_store.upload(
            self.translations_bucket, paths.pdf, artifacts.pdf, PDF_CONTENT_TYPE, overwrite=True
        )
        await self.object_store.upload(
            self.translations_bucket, paths.docx, artifacts.docx, DOCX_CONTENT_TYPE, overwrite=True
        )

    async def _finalize_phase(self, translation: Translation, paths: ArtifactPaths) -> Translation:
        try:
            return await self.repository.complete_translation(translation.id, paths.pdf, paths.docx)
        except PipelineError as e:
            raise UpdateError(
                f"Artifacts stored but translation {translation.id} could not be completed: {e}"
            ) from e

    async def _completed_after_deadline(self, translation: Translation) -> Optional[Translation]:
        try:
            current = await self.repository.get_translation(translation.id)
        except PipelineError as e:
            logger.warning(f"Could not re-read translation {translation.id} after deadline: {e}")
            return None

        if current.status is not TranslationStatus.COMPLETED:
            return None

        logger.warning(f"Translation {translation.id} completed as its deadline expired")
        await self._set_document_status(current.document_id, DocumentStatus.COMPLETED)
        return current

    async def _mark_failed(self, translation: Translation, error: PipelineError):
        logger.error(f"Translation {translation.id} failed: {error.as_record_message()}")
        try:
            await self.repository.fail_translation(translation.id, error.as_record_message())
        except InvalidTransitionError as e:
            # Another writer already settled the record; its outcome stands
            logger.warning(f"Translation {translation.id} not marked failed: {e}")
            return
        except PipelineError:
            logger.exception(f"Could not record failure of translation {translation.id}")

        await self._set_document_status(translation.document_id, DocumentStatus.FAILED)

    async def _set_document_status(self, document_id: str, status: DocumentStatus):
        try:
            await self.repository.set_document_status(document_id, status)
        except PipelineError as e:
            logger.warning(f"Could not set document {document_id} to {status.value}: {e}")

    async def reconcile(self, min_age: Optional[float] = None) -> List[Translation]:
        """
        Complete translations stuck in processing whose artifacts both exist.

        Args:
            min_age: Only consider records at least this many seconds old;
                defaults to the request deadline, past which no run can
                still be in flight

        Returns:
            The translations that were completed
        """
        age = self.request_deadline if min_age is None else min_age
        cutoff = datetime.utcnow() - timedelta(seconds=age)

        completed = []
        for translation in await self.repository.list_pending():
            if translation.created_at > cutoff:
                continue

            try:
                document = await self.repository.get_document(translation.document_id)
            except NotFoundError:
                logger.warning(f"Translation {translation.id} references a missing document")
                continue

            paths = ArtifactPaths.for_request(document.user_id, document.id, translation.target_language)
            pdf_exists = await self.object_store.exists(self.translations_bucket, paths.pdf)
            docx_exists = await self.object_store.exists(self.translations_bucket, paths.docx)
            if not (pdf_exists and docx_exists):
                continue

            try:
                completed.append(
                    await self.repository.complete_translation(translation.id, paths.pdf, paths.docx)
                )
            except InvalidTransitionError:
                continue

            logger.info(f"Reconciled translation {translation.id}")

        return completed
