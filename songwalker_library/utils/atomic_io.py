"""SongWalker Library - Atomic I/O utilities.

Implements the atomic publish rule for every file in the library tree:
1. Write to temp path in same directory
2. Flush + best-effort fsync
3. Rename temp -> final (the publish boundary)

A preset, index or audio blob path either holds complete data or does not
exist. An interrupted run only leaves temp files behind.
"""

import json
import os
from pathlib import Path
from typing import Any


def _write_all(fd: int, data: bytes) -> None:
    """Write all bytes to a file descriptor, handling partial writes.

    Args:
        fd: File descriptor to write to.
        data: Bytes to write.

    Raises:
        OSError: If write fails or returns 0 bytes unexpectedly.
    """
    total_written = 0
    data_len = len(data)

    while total_written < data_len:
        try:
            written = os.write(fd, data[total_written:])
            if written == 0:
                raise OSError("os.write() returned 0 bytes unexpectedly")
            total_written += written
        except InterruptedError:
            continue


def atomic_write_bytes(
    final_path: str | Path,
    data: bytes,
    temp_suffix: str = ".tmp",
) -> None:
    """Atomically write bytes to a file.

    Creates missing parent directories. Safe to call when a stale temp
    file exists (the temp file is truncated).

    Args:
        final_path: The target path for the final file.
        data: Bytes to write.
        temp_suffix: Suffix for the temporary file (default: ".tmp").

    Raises:
        OSError: If directory creation, write, or rename fails.
    """
    final_path = Path(final_path)
    temp_path = final_path.with_suffix(final_path.suffix + temp_suffix)

    final_path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    try:
        _write_all(fd, data)
        os.fsync(fd)
    except OSError:
        os.close(fd)
        try:
            os.remove(temp_path)
        except OSError:
            pass  # Best-effort cleanup
        raise
    else:
        os.close(fd)

    os.replace(temp_path, final_path)

    _fsync_directory(final_path.parent)


def dump_document(document: dict[str, Any]) -> str:
    """Serialize a library document the way it is stored on disk.

    Two-space indentation, non-ASCII kept verbatim, trailing newline.
    Key order is preserved so identical input gives identical bytes.
    """
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def atomic_write_json(final_path: str | Path, document: dict[str, Any]) -> int:
    """Atomically publish a JSON document.

    Args:
        final_path: The target path for the document.
        document: JSON-serializable mapping.

    Returns:
        Number of bytes written.
    """
    data = dump_document(document).encode("utf-8")
    atomic_write_bytes(final_path, data)
    return len(data)


def _fsync_directory(dir_path: Path) -> None:
    """Best-effort fsync on a directory.

    Args:
        dir_path: Directory path to sync.
    """
    try:
        fd = os.open(dir_path, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except (OSError, AttributeError):
        # O_DIRECTORY is not available on every platform
        pass
