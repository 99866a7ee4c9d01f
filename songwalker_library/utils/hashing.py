"""SongWalker Library - Hashing utilities.

Hash functions return HEX DIGEST ONLY (no prefix).
Audio blobs are identified by a truncated sha256 of their decoded bytes.
"""

import hashlib

from songwalker_library.config import CONTENT_HASH_LENGTH


def content_hash(data: bytes, length: int = CONTENT_HASH_LENGTH) -> str:
    """Compute the blob identity of decoded audio bytes.

    Args:
        data: Decoded audio payload.
        length: Number of leading hex characters to keep.

    Returns:
        First `length` chars of sha256(data).
    """
    return hashlib.sha256(data).hexdigest()[:length]
