"""
Chunker - Splits text into bounded, ordered segments for translation.
"""

from typing import List

DEFAULT_CHUNK_SIZE = 500


def chunk_text(text: str, size: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    """
    Split text into consecutive segments of at most ``size`` code points.

    Boundaries fall on code points only, so a word or sentence may be cut in
    two. Joining the result gives back ``text`` exactly.
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")

    return [text[start:start + size] for start in range(0, len(text), size)]
