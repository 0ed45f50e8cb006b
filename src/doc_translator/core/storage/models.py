from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DocumentRecord(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    original_filename = Column(String(255), nullable=False)
    original_file_path = Column(String(512), nullable=False)
    original_language = Column(String(10), nullable=False, default="auto")
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(255), nullable=False)
    upload_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    status = Column(String(20), nullable=False, default="uploaded")


class TranslationRecord(Base):
    __tablename__ = "translations"
    # Several attempts per (document, language) may exist; the newest one is authoritative
    __table_args__ = (
        Index("ix_translations_document_language", "document_id", "target_language", "created_at"),
    )

    id = Column(String(36), primary_key=True)
    document_id = Column(String(36), ForeignKey("documents.id"), nullable=False)
    target_language = Column(String(10), nullable=False)
    translated_pdf_path = Column(String(512), nullable=True)
    translated_word_path = Column(String(512), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    translation_date = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="processing")
    error_message = Column(Text, nullable=True)
