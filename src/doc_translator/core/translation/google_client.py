"""
Google Translate Client - Translates text segments through the public gtx endpoint.
Handles chunking, bounded concurrency, retries with backoff and defensive parsing.
"""

import asyncio
import logging
from typing import Any, List, Optional

import httpx

from ..exceptions import TranslationServiceError, TranslationTimeoutError
from ..extractors.chunker import chunk_text, DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

DEFAULT_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"


class UnparseableResponseError(ValueError):
    """The service answered, but not with anything we can read a translation from."""


class GoogleTranslateClient:
    """
    Client for the Google Translate gtx endpoint.

    The response schema is not contractually guaranteed, so parsing tolerates
    reshaped entries and only fails when no translation can be recovered.
    The client keeps no per-request state and can be shared across requests.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str = DEFAULT_TRANSLATE_URL,
                 max_attempts: int = 3, backoff: float = 0.5, timeout: float = 30.0,
                 concurrency: int = 4, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.http_client = http_client
        self.base_url = base_url
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.timeout = timeout
        self.concurrency = concurrency
        self.chunk_size = chunk_size

    async def translate(self, text: str, target_lang: str) -> str:
        """
        Translate a whole text.

        Args:
            text: Source text, any length
            target_lang: Target language code

        Returns:
            Per-segment translations appended in order, no separators added
        """
        chunks = chunk_text(text, self.chunk_size)
        logger.info(f"Translating {len(text)} characters in {len(chunks)} segments to {target_lang}")

        translated = await self.translate_chunks(chunks, target_lang)
        return ''.join(translated)

    async def translate_chunks(self, chunks: List[str], target_lang: str) -> List[str]:
        """
        Translate segments, at most ``concurrency`` at a time.

        Results land in a list pre-sized to ``len(chunks)`` and addressed by
        segment index, so completion order never affects output order. The
        first segment that exhausts its retries cancels the others.
        """
        results: List[Optional[str]] = [None] * len(chunks)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def worker(index: int, chunk: str):
            async with semaphore:
                results[index] = await self._translate_segment(chunk, target_lang, index)

        tasks = [asyncio.create_task(worker(i, chunk)) for i, chunk in enumerate(chunks)]
        try:
            await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return results

    async def _translate_segment(self, segment: str, target_lang: str, index: int) -> str:
        if not segment.strip():
            return segment

        last_error = None
        timed_out = False

        for attempt in range(self.max_attempts):
            if attempt:
                await asyncio.sleep(self.backoff * 2 ** (attempt - 1))

            try:
                return await self._make_translation_request(segment, target_lang)
            except httpx.TimeoutException as e:
                last_error, timed_out = f"timeout: {e!r}", True
            except httpx.HTTPError as e:
                last_error, timed_out = str(e) or repr(e), False
            except ValueError as e:
                last_error, timed_out = f"unparseable response: {e}", False

            logger.warning(
                f"Segment {index} attempt {attempt + 1}/{self.max_attempts} failed: {last_error}"
            )

        error_cls = TranslationTimeoutError if timed_out else TranslationServiceError
        raise error_cls(
            f"Segment {index} failed after {self.max_attempts} attempts: {last_error}",
            context={'target_lang': target_lang}
        )

    async def _make_translation_request(self, segment: str, target_lang: str) -> str:
        params = {
            "client": "gtx",
            "sl": "auto",
            "tl": target_lang,
            "dt": "t",
            "q": segment,
        }

        response = await self.http_client.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()

        return parse_translation_response(response.json())


def parse_translation_response(data: Any) -> str:
    """
    Pull the translated text out of a gtx response.

    Expected shape: ``[[["translated", "source", ...], ...], ...]``. Entries
    that do not start with a string are skipped.

    Raises:
        UnparseableResponseError: if no translated piece can be found
    """
    if not isinstance(data, list) or not data:
        raise UnparseableResponseError(f"expected a non-empty list, got {type(data).__name__}")

    entries = data[0]
    if not isinstance(entries, list):
        raise UnparseableResponseError(f"first element is {type(entries).__name__}, not a list")

    pieces = [
        entry[0] for entry in entries
        if isinstance(entry, (list, tuple)) and entry and isinstance(entry[0], str)
    ]
    if not pieces:
        raise UnparseableResponseError("no translated pieces in response")

    return ''.join(pieces)
