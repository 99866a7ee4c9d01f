"""SongWalker Library - Canonical path utilities.

Returns canonical Paths for the library tree. Does NOT create directories.
Directory creation is the responsibility of the calling code.

Layout:
    {output}/index.json
    {output}/{library}/index.json
    {output}/{library}/instruments/{category}/{Name}/preset.json
    {output}/{library}/percussion/individual/{Name}/preset.json
"""

import os
import re
from pathlib import Path

from songwalker_library.config import INDEX_FILENAME, PRESET_FILENAME

_NOT_NAME_CHARS = re.compile(r"[^a-zA-Z0-9 ]")
_WHITESPACE = re.compile(r"\s+")
_NOT_LIBRARY_CHARS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(name: str) -> str:
    """Turn a display name into a directory name.

    Drops everything but ASCII letters, digits and spaces, then collapses
    whitespace runs to underscores ("Pad 3 (polysynth)" -> "Pad_3_polysynth").
    """
    return _WHITESPACE.sub("_", _NOT_NAME_CHARS.sub("", name))


def sanitize_library(library: str) -> str:
    """Turn a source library token into a library directory name."""
    return _NOT_LIBRARY_CHARS.sub("_", library)


def library_dir(output_root: str | Path, library: str) -> Path:
    """Get the directory of a library.

    Args:
        output_root: Library tree root.
        library: Sanitized library directory name.

    Returns:
        Path: {output_root}/{library}
    """
    return Path(output_root) / library


def preset_dir(
    output_root: str | Path,
    library: str,
    category: str,
    name: str,
    percussion: bool,
) -> Path:
    """Get the directory holding one preset and its audio blobs.

    Args:
        output_root: Library tree root.
        library: Sanitized library directory name.
        category: Resolved GM family (ignored for percussion).
        name: Display name (sanitized here).
        percussion: Whether the instrument is routed to the percussion tree.

    Returns:
        Path: {library}/percussion/individual/{Name} or
        {library}/instruments/{category}/{Name} under output_root.
    """
    base = library_dir(output_root, library)
    if percussion:
        return base / "percussion" / "individual" / sanitize_name(name)
    return base / "instruments" / category / sanitize_name(name)


def preset_json_path(directory: str | Path) -> Path:
    """Get the preset document path inside a preset directory."""
    return Path(directory) / PRESET_FILENAME


def index_json_path(directory: str | Path) -> Path:
    """Get the index document path of a library (or of the tree root)."""
    return Path(directory) / INDEX_FILENAME


def relative_posix(target: str | Path, start: str | Path) -> str:
    """Relative path from a directory to a target, with forward slashes.

    Index and preset documents are served over HTTP, so stored paths never
    contain platform separators.

    Args:
        target: File the path should resolve to.
        start: Directory the path is relative to.

    Returns:
        Relative path string using "/" separators.
    """
    return Path(os.path.relpath(target, start)).as_posix()
