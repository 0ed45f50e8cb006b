from .google_client import (
    GoogleTranslateClient, parse_translation_response, UnparseableResponseError,
    DEFAULT_TRANSLATE_URL
)

__all__ = [
    'GoogleTranslateClient',
    'parse_translation_response',
    'UnparseableResponseError',
    'DEFAULT_TRANSLATE_URL'
]
