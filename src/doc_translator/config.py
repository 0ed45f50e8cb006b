from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "doc-translator API"
    database_url: str = "sqlite:///data/doc_translator.db"
    storage_root: str = "data/storage"
    documents_bucket: str = "documents"
    translations_bucket: str = "translations"

    translate_url: str = "https://translate.googleapis.com/translate_a/single"
    chunk_size: int = 500
    translate_max_attempts: int = 3
    translate_backoff: float = 0.5  # seconds, doubled per attempt
    translate_timeout: float = 30.0
    translate_concurrency: int = 4

    request_deadline: float = 300.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DOC_TRANSLATOR_")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
