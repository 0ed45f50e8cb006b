"""
FastAPI Service - Document Translation API
Translates stored documents and delivers PDF and DOCX renditions
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional, List, Dict

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings, get_settings
from ..core import TranslationPipeline, Translation
from ..core.exceptions import PipelineError
from ..core.storage import LocalObjectStore, SqlRepository, create_session_factory
from ..core.translation import GoogleTranslateClient

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-Client-Info", "Apikey"]

SUPPORTED_LANGUAGES = [
    {"code": "en", "name": "English"},
    {"code": "fr", "name": "French"},
    {"code": "es", "name": "Spanish"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "nl", "name": "Dutch"},
    {"code": "ru", "name": "Russian"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ar", "name": "Arabic"},
]


# Pydantic models
class TranslateDocumentRequest(BaseModel):
    """Translation request for an uploaded document"""
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(..., alias="documentId", min_length=1)
    target_language: str = Field(..., alias="targetLanguage", min_length=2, max_length=10)


class TranslateDocumentResponse(BaseModel):
    success: bool
    message: str


class TranslationModel(BaseModel):
    """Translation record as exposed to clients"""
    id: str
    document_id: str
    target_language: str
    status: str
    translated_pdf_path: Optional[str]
    translated_word_path: Optional[str]
    created_at: datetime
    translation_date: Optional[datetime]
    error_message: Optional[str]

    @classmethod
    def from_translation(cls, translation: Translation) -> "TranslationModel":
        return cls(**translation.model_dump(exclude={"status"}), status=translation.status.value)


class HealthCheck(BaseModel):
    """Health check response"""
    status: str
    version: str
    services: Dict[str, bool]
    timestamp: datetime


def build_pipeline(settings: Settings, http_client: httpx.AsyncClient) -> TranslationPipeline:
    """Wire the pipeline from settings; every collaborator is stateless and shared."""
    repository = SqlRepository(create_session_factory(settings.database_url))
    translator = GoogleTranslateClient(
        http_client,
        base_url=settings.translate_url,
        max_attempts=settings.translate_max_attempts,
        backoff=settings.translate_backoff,
        timeout=settings.translate_timeout,
        concurrency=settings.translate_concurrency,
        chunk_size=settings.chunk_size,
    )
    return TranslationPipeline(
        repository=repository,
        object_store=LocalObjectStore(settings.storage_root),
        translator=translator,
        documents_bucket=settings.documents_bucket,
        translations_bucket=settings.translations_bucket,
        request_deadline=settings.request_deadline,
    )


def create_app(settings: Optional[Settings] = None,
               pipeline: Optional[TranslationPipeline] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to environment-derived settings
        pipeline: Pre-built pipeline; when omitted one is wired from settings
            on startup, together with the shared HTTP client
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=settings.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
        logger.info("Document Translation API starting...")

        http_client = None
        if pipeline is None:
            http_client = httpx.AsyncClient(timeout=settings.translate_timeout)
            app.state.pipeline = build_pipeline(settings, http_client)
        else:
            app.state.pipeline = pipeline
        app.state.pipeline.repository.create_tables()

        yield

        if http_client is not None:
            await http_client.aclose()
        logger.info("Document Translation API shutting down...")

    app = FastAPI(
        title=settings.app_name,
        description="Translate uploaded documents into PDF and DOCX renditions",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    def get_pipeline(request: Request) -> TranslationPipeline:
        return request.app.state.pipeline

    # API Endpoints

    @app.get("/", response_model=Dict[str, str])
    async def root():
        """Root endpoint"""
        return {
            "service": "Document Translation",
            "version": VERSION,
            "status": "operational"
        }

    @app.get("/health", response_model=HealthCheck)
    async def health_check(request: Request):
        """Health check endpoint"""
        services = {
            "api": True,
            "database": await get_pipeline(request).repository.ping(),
        }

        return HealthCheck(
            status="healthy" if all(services.values()) else "degraded",
            version=VERSION,
            services=services,
            timestamp=datetime.utcnow()
        )

    @app.post("/translate-document", response_model=TranslateDocumentResponse)
    async def translate_document(body: TranslateDocumentRequest, request: Request):
        """
        Translate a stored document and store PDF and DOCX renditions.

        - **documentId**: Identifier of the uploaded document
        - **targetLanguage**: Target language code
        """
        await get_pipeline(request).request_translation(body.document_id, body.target_language)
        return TranslateDocumentResponse(success=True, message="Translation completed")

    @app.get("/translations/{translation_id}", response_model=TranslationModel)
    async def get_translation(translation_id: str, request: Request):
        """
        Get translation status.

        - **translation_id**: Translation identifier
        """
        translation = await get_pipeline(request).repository.get_translation(translation_id)
        return TranslationModel.from_translation(translation)

    @app.get("/documents/{document_id}/translations", response_model=List[TranslationModel])
    async def list_document_translations(document_id: str, request: Request):
        """Translation history for a document, newest first"""
        pipeline = get_pipeline(request)
        await pipeline.repository.get_document(document_id)
        translations = await pipeline.repository.list_translations(document_id)
        return [TranslationModel.from_translation(t) for t in translations]

    @app.post("/translations/reconcile", response_model=List[TranslationModel])
    async def reconcile_translations(request: Request, min_age: Optional[float] = None):
        """Complete translations whose artifacts exist but whose record is still processing"""
        translations = await get_pipeline(request).reconcile(min_age=min_age)
        return [TranslationModel.from_translation(t) for t in translations]

    @app.get("/languages")
    async def get_supported_languages():
        """Get list of supported target languages"""
        return {"target_languages": SUPPORTED_LANGUAGES}

    # Exception handlers

    @app.exception_handler(PipelineError)
    async def pipeline_exception_handler(request, exc: PipelineError):
        # Details live on the persisted record; callers get a generic indicator
        logger.info(f"{request.method} {request.url.path} failed: {exc.as_record_message()}")
        message = "Not found" if exc.status_code == 404 else "Translation failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()]
        logger.info(f"{request.method} {request.url.path} rejected: invalid {fields}")
        return JSONResponse(
            status_code=422,
            content={"error": f"Invalid request: {', '.join(fields)}"}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
