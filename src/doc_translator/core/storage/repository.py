"""
Repository - Document and Translation persistence on top of SQLAlchemy.

Sessions are synchronous; every public method hands its work to the default
executor so callers can await it without blocking the event loop.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..exceptions import InvalidTransitionError, NotFoundError, RepositoryError
from ..schemas.records import (
    Document, DocumentStatus, Translation, TranslationStatus
)
from .models import Base, DocumentRecord, TranslationRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UPDATABLE_FIELDS = {
    "translated_pdf_path", "translated_word_path", "translation_date", "status", "error_message"
}


def create_session_factory(database_url: str) -> sessionmaker:
    """Engine + session factory; in-memory SQLite shares one connection across threads."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        database = make_url(database_url).database
        if database:
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(database_url, pool_pre_ping=True)

    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class SqlRepository:
    """Reads and partial updates for documents and translations."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def _run(self, operation: Callable[[Session], T]) -> T:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._run_sync, operation)

    def _run_sync(self, operation: Callable[[Session], T]) -> T:
        try:
            with self.session_factory() as session:
                result = operation(session)
                session.commit()
                return result
        except SQLAlchemyError as e:
            raise RepositoryError(f"Database operation failed: {e}") from e

    def create_tables(self):
        engine = self.session_factory.kw["bind"]
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to create tables: {e}") from e

    async def ping(self) -> bool:
        try:
            await self._run(lambda session: session.execute(text("SELECT 1")))
            return True
        except RepositoryError:
            return False

    # Documents

    async def add_document(self, document: Document) -> Document:
        def operation(session: Session) -> Document:
            record = DocumentRecord(**document.model_dump(mode="python"))
            record.status = document.status.value
            session.add(record)
            session.flush()
            return Document.model_validate(record)

        return await self._run(operation)

    async def get_document(self, document_id: str) -> Document:
        def operation(session: Session) -> Document:
            record = session.get(DocumentRecord, document_id)
            if record is None:
                raise NotFoundError(f"Document {document_id} not found")
            return Document.model_validate(record)

        return await self._run(operation)

    async def set_document_status(self, document_id: str, status: DocumentStatus) -> None:
        def operation(session: Session):
            record = session.get(DocumentRecord, document_id)
            if record is None:
                raise NotFoundError(f"Document {document_id} not found")
            record.status = status.value

        await self._run(operation)

    # Translations

    async def create_translation(self, document_id: str, target_language: str) -> Translation:
        translation = Translation(document_id=document_id, target_language=target_language)

        def operation(session: Session) -> Translation:
            if session.get(DocumentRecord, document_id) is None:
                raise NotFoundError(f"Document {document_id} not found")
            record = TranslationRecord(**translation.model_dump(mode="python"))
            record.status = translation.status.value
            session.add(record)
            session.flush()
            return Translation.model_validate(record)

        return await self._run(operation)

    async def get_translation(self, translation_id: str) -> Translation:
        def operation(session: Session) -> Translation:
            record = session.get(TranslationRecord, translation_id)
            if record is None:
                raise NotFoundError(f"Translation {translation_id} not found")
            return Translation.model_validate(record)

        return await self._run(operation)

    async def latest_translation(self, document_id: str, target_language: str) -> Optional[Translation]:
        def operation(session: Session) -> Optional[Translation]:
            record = (
                session.query(TranslationRecord)
                .filter(TranslationRecord.document_id == document_id)
                .filter(TranslationRecord.target_language == target_language)
                .order_by(TranslationRecord.created_at.desc())
                .first()
            )
            return Translation.model_validate(record) if record else None

        return await self._run(operation)

    async def list_translations(self, document_id: str) -> List[Translation]:
        def operation(session: Session) -> List[Translation]:
            records = (
                session.query(TranslationRecord)
                .filter(TranslationRecord.document_id == document_id)
                .order_by(TranslationRecord.created_at.desc())
                .all()
            )
            return [Translation.model_validate(record) for record in records]

        return await self._run(operation)

    async def list_pending(self) -> List[Translation]:
        def operation(session: Session) -> List[Translation]:
            records = (
                session.query(TranslationRecord)
                .filter(TranslationRecord.status == TranslationStatus.PROCESSING.value)
                .order_by(TranslationRecord.created_at)
                .all()
            )
            return [Translation.model_validate(record) for record in records]

        return await self._run(operation)

    async def update_translation(self, translation_id: str, **fields: Any) -> Translation:
        """
        Partially update one Translation by primary key.

        A status change is only accepted while the record is still processing.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update translation fields: {sorted(unknown)}")

        def operation(session: Session) -> Translation:
            record = session.get(TranslationRecord, translation_id)
            if record is None:
                raise NotFoundError(f"Translation {translation_id} not found")

            if "status" in fields and record.status != TranslationStatus.PROCESSING.value:
                raise InvalidTransitionError(
                    f"Translation {translation_id} is already {record.status}",
                    context={'requested': str(fields["status"])}
                )

            for name, value in fields.items():
                if isinstance(value, TranslationStatus):
                    value = value.value
                setattr(record, name, value)

            session.flush()
            return Translation.model_validate(record)

        translation = await self._run(operation)
        logger.debug(f"Updated translation {translation_id}: {sorted(fields)}")
        return translation

    async def complete_translation(self, translation_id: str, pdf_path: str, docx_path: str) -> Translation:
        return await self.update_translation(
            translation_id,
            translated_pdf_path=pdf_path,
            translated_word_path=docx_path,
            translation_date=datetime.utcnow(),
            status=TranslationStatus.COMPLETED,
            error_message=None,
        )

    async def fail_translation(self, translation_id: str, error_message: str) -> Translation:
        return await self.update_translation(
            translation_id,
            translation_date=datetime.utcnow(),
            status=TranslationStatus.FAILED,
            error_message=error_message,
        )
