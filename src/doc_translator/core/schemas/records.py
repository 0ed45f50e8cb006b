from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
import uuid


class DocumentStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranslationStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TranslationStatus.PROCESSING


class Document(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    original_filename: str
    original_file_path: str
    original_language: str = "auto"
    file_size: int = 0
    mime_type: str = "application/octet-stream"
    upload_date: datetime = Field(default_factory=datetime.utcnow)
    status: DocumentStatus = DocumentStatus.UPLOADED


class Translation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    document_id: str
    target_language: str = Field(..., min_length=2, max_length=10)
    translated_pdf_path: Optional[str] = None
    translated_word_path: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    translation_date: Optional[datetime] = None
    status: TranslationStatus = TranslationStatus.PROCESSING
    error_message: Optional[str] = None


class ArtifactPaths(BaseModel):
    """Deterministic output locations for one (document, language) pair."""
    pdf: str
    docx: str

    @classmethod
    def for_request(cls, user_id: str, document_id: str, target_language: str) -> "ArtifactPaths":
        stem = f"{user_id}/{document_id}_{target_language}"
        return cls(pdf=f"{stem}.pdf", docx=f"{stem}.docx")
