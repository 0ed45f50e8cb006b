"""
Text Extractor - Recovers plain text lines from arbitrary document bytes.
Heuristic only: no structural parsing of the original format.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Anything outside printable ASCII plus tab/newline/carriage return
_NON_PRINTABLE = re.compile(r'[^\x20-\x7E\n\r\t]')

# Lines made only of digits, whitespace and < > / \ are structural noise
_NOISE_LINE = re.compile(r'^[\d\s<>/\\]+$')


def extract_text(data: bytes) -> str:
    """
    Extract readable text lines from raw bytes.

    Never raises: undecodable byte sequences become replacement characters,
    which are then blanked out with every other non-printable character.

    Args:
        data: Raw bytes of the original document

    Returns:
        Surviving lines joined with newlines, possibly empty
    """
    text = data.decode('utf-8', errors='replace')
    text = _NON_PRINTABLE.sub(' ', text)

    lines = [line for line in text.split('\n') if _is_content_line(line)]

    logger.debug(f"Extracted {len(lines)} lines from {len(data)} bytes")
    return '\n'.join(lines)


def _is_content_line(line: str) -> bool:
    trimmed = line.strip()
    return bool(trimmed) and not _NOISE_LINE.match(trimmed)
