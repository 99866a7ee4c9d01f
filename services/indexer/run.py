"""SongWalker Library - Indexer.

Scans a library tree organized by source library and regenerates the
per-library and root index documents.

Input:  {root}/{library}/**/preset.json
Output: {root}/{library}/index.json and {root}/index.json

Layout:
    root/
      FluidR3_GM/
        instruments/piano/Acoustic_Grand_Piano/preset.json
        percussion/individual/Percussion_C3_48/preset.json
      _shared/
        effects/Reverb/preset.json

Meant to be re-run whenever the tree changes (e.g. as a pre-commit hook).
Output depends only on the tree, so an unchanged tree yields byte-identical
indexes.

Error codes:
- LIBRARY_DIR_NOT_FOUND: the root directory does not exist (fatal)
- PRESET_UNREADABLE: a preset could not be read or parsed (recorded, run continues)
- INDEX_WRITE_FAILED: an index document could not be published (fatal)
"""

from __future__ import annotations

import argparse
import locale
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from songwalker_library.config import (
    INDEX_FILENAME,
    INDEX_SKIP_DIRS,
    PRESET_FILENAME,
    ROOT_INDEX_DESCRIPTION,
    ROOT_INDEX_NAME,
    SHARED_LIBRARY_DIR,
    SHARED_LIBRARY_DISPLAY_NAME,
    default_library_dir,
)
from songwalker_library.contracts import INDEX_SCHEMA, validate_document
from songwalker_library.errors import IndexerErrorCode
from songwalker_library.gm import GM_PROGRAM_COUNT
from songwalker_library.schemas import (
    IndexDocument,
    KeyRange,
    LibraryEntry,
    PresetDocument,
    PresetEntry,
    iter_zones,
)
from songwalker_library.utils.atomic_io import atomic_write_json
from songwalker_library.utils.paths import index_json_path, relative_posix

logger = logging.getLogger(__name__)

# Category of presets that do not declare one
DEFAULT_CATEGORY = "sampler"


# --- Result Types ---


@dataclass
class PresetFailure:
    """A preset that was excluded from its library index."""

    path: str
    message: str
    error_code: str = IndexerErrorCode.PRESET_UNREADABLE.value


@dataclass
class LibraryIndexResult:
    """One written library index."""

    library: str
    display_name: str
    preset_count: int
    error_count: int
    index_path: str
    size_bytes: int


@dataclass
class IndexerResult:
    """Result of an indexer run."""

    ok: bool
    error_code: str | None = None
    message: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    libraries: list[LibraryIndexResult] = field(default_factory=list)
    failures: list[PresetFailure] = field(default_factory=list)


# --- Discovery ---


def discover_libraries(root: Path) -> list[str]:
    """Top-level library directory names, sorted, tooling dirs excluded."""
    return sorted(
        p.name for p in root.iterdir() if p.is_dir() and p.name not in INDEX_SKIP_DIRS
    )


def find_preset_files(directory: Path) -> list[Path]:
    """Every preset.json below a directory, at any depth, in sorted order."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob(PRESET_FILENAME) if p.is_file())


# --- Preset Summaries ---


def build_preset_entry(preset_path: Path, library_root: Path) -> PresetEntry:
    """Summarize one preset document for its library index.

    Zones are counted across every sampler node of the playback graph,
    including samplers nested in composite nodes.

    Args:
        preset_path: Path to preset.json.
        library_root: Library directory the entry path is relative to.

    Returns:
        PresetEntry for the library index.

    Raises:
        OSError: If the file cannot be read.
        pydantic.ValidationError: If the file is not a preset document.
    """
    preset = PresetDocument.model_validate_json(preset_path.read_bytes())

    zone_count = 0
    key_low, key_high = 127, 0
    for zone in iter_zones(preset.root_node):
        zone_count += 1
        if zone.key_range is not None:
            key_low = min(key_low, zone.key_range.low)
            key_high = max(key_high, zone.key_range.high)

    gm_program = preset.metadata.gm_program if preset.metadata is not None else None
    if gm_program is not None and not 0 <= gm_program < GM_PROGRAM_COUNT:
        gm_program = None

    entry = PresetEntry(
        name=preset.name,
        path=relative_posix(preset_path, library_root),
        category=preset.category or DEFAULT_CATEGORY,
        tags=preset.tags or [],
        gm_program=gm_program,
    )
    if zone_count > 0:
        entry.zone_count = zone_count
        entry.key_range = KeyRange(low=key_low, high=key_high)
    return entry


def _collation_key(entry: PresetEntry) -> tuple[str, str, str, str]:
    # Case-folded keys first, so the C locale still sorts "acoustic" before "Zither"
    return (
        locale.strxfrm(entry.category.casefold()),
        locale.strxfrm(entry.name.casefold()),
        locale.strxfrm(entry.category),
        locale.strxfrm(entry.name),
    )


def sort_entries(entries: list[PresetEntry]) -> list[PresetEntry]:
    """Order entries by category, then name, using locale collation.

    Comparison is case-insensitive first and falls back to the exact strings
    for ties, so the order is total under any collation locale.
    """
    return sorted(entries, key=_collation_key)


# --- Library Index ---


def library_display_name(library: str) -> str:
    if library == SHARED_LIBRARY_DIR:
        return SHARED_LIBRARY_DISPLAY_NAME
    return library.replace("_", " ")


def build_library_index(
    library_root: Path,
    library: str,
) -> tuple[IndexDocument, list[PresetFailure]]:
    """Build the index document of one library.

    Presets that fail to load are logged, recorded and left out.

    Args:
        library_root: Library directory.
        library: Library directory name.

    Returns:
        Tuple of (index document, failures).
    """
    preset_files = find_preset_files(library_root)
    logger.info("  %s: %d presets", library, len(preset_files))

    entries: list[PresetEntry] = []
    failures: list[PresetFailure] = []
    for path in preset_files:
        try:
            entries.append(build_preset_entry(path, library_root))
        except (OSError, ValidationError) as e:
            logger.error("    Error reading %s: %s", path, e)
            failures.append(PresetFailure(path=str(path), message=str(e)))

    entries = sort_entries(entries)

    display_name = library_display_name(library)
    if library == SHARED_LIBRARY_DIR:
        description = f"Built-in oscillator synths and effects — {len(entries)} presets"
    else:
        description = f"{display_name} soundfont — {len(entries)} presets"

    index = IndexDocument(name=display_name, description=description, entries=entries)
    return index, failures


def _root_entry(library: str, preset_count: int) -> LibraryEntry:
    display_name = library_display_name(library)
    if library == SHARED_LIBRARY_DIR:
        description = "Built-in oscillator synths and effects (no samples)"
    else:
        description = f"{display_name} soundfont"
    return LibraryEntry(
        name=display_name,
        path=f"{library}/{INDEX_FILENAME}",
        description=description,
        preset_count=preset_count,
    )


def _publish(path: Path, index: IndexDocument) -> int:
    document = index.to_document()
    validate_document(document, INDEX_SCHEMA)
    return atomic_write_json(path, document)


# --- Main Indexing ---


def run_indexer(library_dir: Path | str) -> IndexerResult:
    """Regenerate every library index and the root index.

    This is the main entry point for the indexer. Entries are ordered with
    the process collation locale (LC_COLLATE); main() initializes it from the
    environment, direct callers get whatever locale is active, with a
    case-insensitive first pass either way.

    Args:
        library_dir: Library tree root.

    Returns:
        IndexerResult with written indexes, metrics and preset failures.
    """
    root = Path(library_dir)

    if not root.is_dir():
        logger.error("Library directory not found: %s", root)
        return IndexerResult(
            ok=False,
            error_code=IndexerErrorCode.LIBRARY_DIR_NOT_FOUND.value,
            message=f"Library directory not found: {root}",
        )

    logger.info("Scanning %s for library directories...", root)
    libraries = discover_libraries(root)
    logger.info("Found %d libraries: %s", len(libraries), ", ".join(libraries))

    results: list[LibraryIndexResult] = []
    failures: list[PresetFailure] = []
    root_entries: list[LibraryEntry] = []

    try:
        for library in libraries:
            library_root = root / library
            index, library_failures = build_library_index(library_root, library)
            index_path = index_json_path(library_root)
            size = _publish(index_path, index)
            logger.info(
                "    Wrote %s/%s (%d entries, %.1f KB)",
                library,
                INDEX_FILENAME,
                len(index.entries),
                size / 1024,
            )

            results.append(
                LibraryIndexResult(
                    library=library,
                    display_name=index.name,
                    preset_count=len(index.entries),
                    error_count=len(library_failures),
                    index_path=str(index_path),
                    size_bytes=size,
                )
            )
            failures.extend(library_failures)
            root_entries.append(_root_entry(library, len(index.entries)))

        root_index = IndexDocument(
            name=ROOT_INDEX_NAME,
            description=ROOT_INDEX_DESCRIPTION,
            entries=root_entries,
        )
        root_size = _publish(index_json_path(root), root_index)
    except OSError as e:
        logger.error("Failed to write index: %s", e)
        return IndexerResult(
            ok=False,
            error_code=IndexerErrorCode.INDEX_WRITE_FAILED.value,
            message=f"Failed to write index: {e}",
            libraries=results,
            failures=failures,
        )

    total_presets = sum(r.preset_count for r in results)
    logger.info(
        "Generated root %s (%d libraries, %.1f KB)",
        INDEX_FILENAME,
        len(root_entries),
        root_size / 1024,
    )
    logger.info("Total: %d presets across %d libraries", total_presets, len(libraries))
    if failures:
        logger.info("Errors: %d", len(failures))

    return IndexerResult(
        ok=True,
        message="Indexes generated",
        metrics={
            "libraries": len(libraries),
            "presets": total_presets,
            "errors": len(failures),
        },
        libraries=results,
        failures=failures,
    )


def _init_collation() -> None:
    """Use the user's collation locale for entry ordering."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Falling back to the C collation locale: %s", e)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="songwalker-index",
        description="Generate songwalker-index documents for a library tree",
    )
    parser.add_argument(
        "library_dir",
        nargs="?",
        type=Path,
        default=default_library_dir(),
        help="Library root directory (default: %(default)s)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
    _init_collation()

    result = run_indexer(args.library_dir)
    if not result.ok:
        print(f"Error: {result.error_code} - {result.message}", file=sys.stderr)
        return 1
    return 0


# --- Standalone Execution ---


if __name__ == "__main__":
    raise SystemExit(main())
