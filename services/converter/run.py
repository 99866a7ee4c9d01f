"""SongWalker Library - Converter.

Converts webaudiofontdata JSON instrument files into the songwalker-preset
format, organized by source library.

Input:  {source}/instrumentNames.json, {source}/i/*.json, {source}/p/*.json
Output: {output}/{library}/instruments/{category}/{Name}/preset.json
        {output}/{library}/percussion/individual/{Name}/preset.json
        one audio blob per unique zone payload, next to the first preset using it
        {output}/{library}/index.json and {output}/index.json

Audio blobs are deduplicated across the whole run by a truncated sha256 of
the decoded bytes. Later zones with the same content reference the first
file through a relative URL instead of writing a copy.

Error codes:
- GM_NAMES_UNAVAILABLE: instrumentNames.json missing or unparseable (fatal)
- INSTRUMENT_FAILED: one instrument file could not be converted (recorded, run continues)
- INDEX_WRITE_FAILED: an index document could not be published (fatal)
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from songwalker_library.config import (
    DEFAULT_LICENSE_NOTE,
    DEFAULT_SAMPLE_RATE,
    GM_NAMES_FILENAME,
    INDEX_FILENAME,
    INSTRUMENT_SUBDIR,
    MELODIC_PROGRESS_INTERVAL,
    PERCUSSION_MIDI_CHANNEL,
    PERCUSSION_PROGRAM,
    PERCUSSION_PROGRESS_INTERVAL,
    PERCUSSION_SUBDIR,
    ROOT_INDEX_DESCRIPTION,
    ROOT_INDEX_NAME,
    default_library_dir,
    default_source_dir,
)
from songwalker_library.contracts import INDEX_SCHEMA, PRESET_SCHEMA, validate_document
from songwalker_library.errors import ConverterErrorCode
from songwalker_library.gm import (
    GM_PROGRAM_COUNT,
    PERCUSSION_CATEGORY,
    GMNames,
    gm_category,
    parse_instrument_filename,
    parse_percussion_filename,
)
from songwalker_library.notes import clamp_midi, midi_to_note_name, normalize_pitch
from songwalker_library.schemas import (
    AudioRef,
    IndexDocument,
    KeyRange,
    LibraryEntry,
    LoopRegion,
    PresetDocument,
    PresetEntry,
    PresetMetadata,
    SamplerConfig,
    SamplerNode,
    Zone,
    ZonePitch,
)
from songwalker_library.utils.atomic_io import atomic_write_bytes, atomic_write_json
from songwalker_library.utils.audio_meta import AudioPayload
from songwalker_library.utils.hashing import content_hash
from songwalker_library.utils.paths import (
    index_json_path,
    library_dir,
    preset_dir,
    preset_json_path,
    relative_posix,
    sanitize_library,
)

logger = logging.getLogger(__name__)


# --- Result Types ---


@dataclass
class InstrumentFailure:
    """One instrument file that could not be converted."""

    filename: str
    message: str
    error_code: str = ConverterErrorCode.INSTRUMENT_FAILED.value


@dataclass
class BlobRecord:
    """A stored audio blob and how many zones resolved to it."""

    path: Path
    codec: str
    count: int = 1


class BlobStore:
    """Content-addressed registry of the audio blobs produced by one run.

    Blobs are staged while an instrument is converted and only get written
    on commit(). A failed instrument is rolled back, so no zone can ever
    reference a blob that was never written.
    """

    def __init__(self) -> None:
        self._records: dict[str, BlobRecord] = {}
        self._claimed: dict[Path, str] = {}
        self._staged: list[tuple[str, bytes]] = []
        self._staged_reuses: list[str] = []
        self.duplicates = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, digest: str) -> bool:
        return digest in self._records

    def get(self, digest: str) -> BlobRecord | None:
        return self._records.get(digest)

    def add(self, payload: AudioPayload, directory: Path, stem: str) -> AudioRef:
        """Register a payload and return the reference a zone should carry.

        Args:
            payload: Decoded zone audio.
            directory: Preset directory of the zone being converted.
            stem: Preferred file stem ("zone_C4").

        Returns:
            AudioRef whose url is relative to `directory`.
        """
        digest = content_hash(payload.data)
        record = self._records.get(digest)
        if record is not None:
            record.count += 1
            self.duplicates += 1
            self._staged_reuses.append(digest)
            return AudioRef(
                url=relative_posix(record.path, directory),
                codec=record.codec,
                sha256=digest,
            )

        codec = payload.codec
        path = self._claim_path(directory, stem, codec, digest)
        self._records[digest] = BlobRecord(path=path, codec=codec)
        self._staged.append((digest, payload.data))
        return AudioRef(url=path.name, codec=codec, sha256=digest)

    def _claim_path(self, directory: Path, stem: str, ext: str, digest: str) -> Path:
        # Two different payloads may want the same zone_{note} name.
        candidate = directory / f"{stem}.{ext}"
        suffix = 2
        while candidate in self._claimed:
            candidate = directory / f"{stem}_{suffix}.{ext}"
            suffix += 1
        self._claimed[candidate] = digest
        return candidate

    def commit(self, write: bool = True) -> int:
        """Publish staged blobs.

        Args:
            write: When False (dry run) blobs are registered but not written.

        Returns:
            Number of new blobs committed.
        """
        committed = len(self._staged)
        if write:
            for digest, data in self._staged:
                atomic_write_bytes(self._records[digest].path, data)
        self._staged = []
        self._staged_reuses = []
        return committed

    def rollback(self) -> None:
        """Forget everything staged since the last commit."""
        for digest in self._staged_reuses:
            self._records[digest].count -= 1
        self.duplicates -= len(self._staged_reuses)
        for digest, _data in self._staged:
            record = self._records.pop(digest)
            self._claimed.pop(record.path, None)
        self._staged = []
        self._staged_reuses = []


@dataclass
class ConversionContext:
    """All state of one converter run. Nothing outlives the run."""

    output_dir: Path
    dry_run: bool = False
    limit: int | None = None
    blobs: BlobStore = field(default_factory=BlobStore)
    entries_by_library: dict[str, list[PresetEntry]] = field(default_factory=dict)
    failures: list[InstrumentFailure] = field(default_factory=list)
    converted: int = 0

    @property
    def error_count(self) -> int:
        return len(self.failures)

    @property
    def limit_reached(self) -> bool:
        return self.limit is not None and self.converted >= self.limit

    def add_entry(self, library: str, entry: PresetEntry) -> None:
        self.entries_by_library.setdefault(library, []).append(entry)
        self.converted += 1


@dataclass
class ConverterResult:
    """Result of a converter run."""

    ok: bool
    error_code: str | None = None
    message: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    failures: list[InstrumentFailure] = field(default_factory=list)
    context: ConversionContext | None = None


# --- Zone Conversion ---


def extract_payload(zone: dict[str, Any]) -> AudioPayload | None:
    """Decode the base64 audio of a zone.

    The compressed container ("file") wins over raw PCM ("sample").

    Returns:
        AudioPayload, or None when the zone carries no audio.

    Raises:
        binascii.Error: If the base64 payload is malformed.
    """
    if zone.get("file"):
        return AudioPayload(data=base64.b64decode(zone["file"]), compressed=True)
    if zone.get("sample"):
        return AudioPayload(data=base64.b64decode(zone["sample"]), compressed=False)
    return None


def _loop_region(zone: dict[str, Any]) -> LoopRegion | None:
    start = zone.get("loopStart")
    end = zone.get("loopEnd")
    if start is None or end is None:
        return None
    if start < 0 or end <= start:
        return None
    return LoopRegion(start=start, end=end)


def convert_zone(blobs: BlobStore, zone: dict[str, Any], directory: Path) -> Zone | None:
    """Convert one webaudiofont zone.

    Key ranges are clamped to 0-127 like the root note; the sample rate is
    passed through unchanged.

    Args:
        blobs: Run-wide blob registry.
        zone: Raw zone from the instrument file.
        directory: Preset directory the zone belongs to.

    Returns:
        Converted Zone, or None when the zone has no audio payload.
    """
    pitch = normalize_pitch(zone)

    payload = extract_payload(zone)
    if payload is None:
        return None

    audio = blobs.add(payload, directory, f"zone_{midi_to_note_name(pitch.root_note)}")

    key_low = zone.get("keyRangeLow")
    key_high = zone.get("keyRangeHigh")
    return Zone(
        key_range=KeyRange(
            low=0 if key_low is None else clamp_midi(key_low),
            high=127 if key_high is None else clamp_midi(key_high),
        ),
        pitch=ZonePitch(root_note=pitch.root_note, fine_tune_cents=pitch.fine_tune_cents),
        sample_rate=zone.get("sampleRate") or DEFAULT_SAMPLE_RATE,
        audio=audio,
        loop=_loop_region(zone),
    )


# --- Instrument Conversion ---


def build_tags(
    *,
    percussion: bool,
    category: str,
    gm_program: int,
    looped: bool,
    midi_note: int | None = None,
) -> list[str]:
    """Tags of a converted instrument.

    Files from the percussion directory carry only "percussion" and their
    MIDI note. Melodic files whose zones sit on the percussion channel keep
    their GM program and loop tags but no category.
    """
    if midi_note is not None:
        return ["percussion", f"midi:{midi_note}"]

    if percussion:
        tags = ["percussion", f"gm:{gm_program}"]
    else:
        tags = ["melodic", category, f"gm:{gm_program}"]
    if looped:
        tags.extend(["sustained", "looped"])
    else:
        tags.append("one-shot")
    return tags


def convert_instrument(
    ctx: ConversionContext,
    source_path: Path,
    *,
    gm_program: int,
    name: str,
    library: str,
    variant: int,
    midi_note: int | None = None,
) -> tuple[str, PresetEntry] | None:
    """Convert one instrument file into a preset.

    Args:
        ctx: Run context.
        source_path: Instrument JSON file.
        gm_program: GM program (128 for percussion files).
        name: Display name.
        library: Library token from the filename.
        variant: Variant digit from the filename.
        midi_note: MIDI note for files from the percussion directory.

    Returns:
        (library directory name, index entry), or None when the
        instrument has no zone with audio.

    Raises:
        Exception: Any parse, decode, validation or I/O failure. The caller
        logs it and moves on to the next file.
    """
    data = json.loads(source_path.read_text(encoding="utf-8"))
    zones = data.get("zones") or []
    if not zones:
        return None

    percussion = midi_note is not None or any(
        z.get("midi") == PERCUSSION_MIDI_CHANNEL for z in zones
    )
    category = PERCUSSION_CATEGORY if percussion else gm_category(gm_program)

    library_name = sanitize_library(library)
    directory = preset_dir(ctx.output_dir, library_name, category, name, percussion)

    converted = []
    for zone in zones:
        z = convert_zone(ctx.blobs, zone, directory)
        if z is not None:
            converted.append(z)

    if not converted:
        return None

    tags = build_tags(
        percussion=percussion,
        category=category,
        gm_program=gm_program,
        looped=any(z.loop is not None for z in converted),
        midi_note=midi_note,
    )
    in_gm_range = 0 <= gm_program < GM_PROGRAM_COUNT

    preset = PresetDocument(
        name=name,
        category=category,
        tags=tags,
        metadata=PresetMetadata(
            gm_program=gm_program if in_gm_range else None,
            gm_category="Percussion" if percussion else category,
            source=library,
            variant=variant,
            license=DEFAULT_LICENSE_NOTE,
        ),
        node=SamplerNode(config=SamplerConfig(one_shot=percussion, zones=converted)),
    )
    document = preset.to_document()
    validate_document(document, PRESET_SCHEMA)

    # Blobs go out before the preset that references them.
    ctx.blobs.commit(write=not ctx.dry_run)
    preset_path = preset_json_path(directory)
    if not ctx.dry_run:
        atomic_write_json(preset_path, document)

    entry = PresetEntry(
        name=name,
        path=relative_posix(preset_path, library_dir(ctx.output_dir, library_name)),
        category=category,
        tags=tags,
        gm_program=gm_program if in_gm_range else None,
        zone_count=len(converted),
        key_range=KeyRange(
            low=min(z.key_range.low for z in converted),
            high=max(z.key_range.high for z in converted),
        ),
    )
    return library_name, entry


def _convert_file(ctx: ConversionContext, path: Path, **kwargs: Any) -> bool:
    """Convert one file, recording failures. Returns True if a preset was produced."""
    try:
        result = convert_instrument(ctx, path, **kwargs)
    except Exception as e:
        ctx.blobs.rollback()
        logger.error("Error converting %s: %s", path.name, e)
        ctx.failures.append(InstrumentFailure(filename=path.name, message=str(e)))
        return False

    if result is None:
        logger.debug("Skipping %s: no zones with audio", path.name)
        return False

    library_name, entry = result
    ctx.add_entry(library_name, entry)
    return True


def _list_json_files(directory: Path) -> list[Path]:
    return sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(".json"))


def convert_melodic_dir(ctx: ConversionContext, names: GMNames, directory: Path) -> int:
    """Convert every melodic instrument file in a directory.

    Returns:
        Number of presets produced.
    """
    if not directory.is_dir():
        logger.info("No instrument directory at %s", directory)
        return 0

    files = _list_json_files(directory)
    logger.info("Found %d instrument files", len(files))

    produced = 0
    for path in files:
        if ctx.limit_reached:
            break

        info = parse_instrument_filename(path.name)
        if info is None or info.gm_program >= GM_PROGRAM_COUNT:
            logger.debug("Skipping %s: not a GM instrument file", path.name)
            continue

        if _convert_file(
            ctx,
            path,
            gm_program=info.gm_program,
            name=names.display_name(info.gm_program),
            library=info.library,
            variant=info.variant,
        ):
            produced += 1
            if ctx.converted % MELODIC_PROGRESS_INTERVAL == 0:
                logger.info("  Converted %d instruments...", ctx.converted)
    return produced


def convert_percussion_dir(ctx: ConversionContext, directory: Path) -> int:
    """Convert every percussion file in a directory.

    Returns:
        Number of presets produced.
    """
    if not directory.is_dir():
        logger.info("No percussion directory at %s", directory)
        return 0

    files = _list_json_files(directory)
    logger.info("Found %d percussion files", len(files))

    produced = 0
    for path in files:
        if ctx.limit_reached:
            break

        info = parse_percussion_filename(path.name)
        if info is None:
            logger.debug("Skipping %s: not a percussion file", path.name)
            continue

        note_name = midi_to_note_name(info.midi_note)
        if _convert_file(
            ctx,
            path,
            gm_program=PERCUSSION_PROGRAM,
            name=f"Percussion_{note_name}_{info.midi_note}",
            library=info.library,
            variant=info.variant,
            midi_note=info.midi_note,
        ):
            produced += 1
            if produced % PERCUSSION_PROGRESS_INTERVAL == 0:
                logger.info("  Converted %d percussion files...", produced)
    return produced


# --- Index Output ---


def write_indexes(ctx: ConversionContext) -> list[LibraryEntry]:
    """Write one index per converted library, then the root index.

    Library entries keep conversion order; libraries keep first-seen order.

    Returns:
        Root index entries.

    Raises:
        OSError: If an index cannot be written.
    """
    root_entries: list[LibraryEntry] = []

    for library_name, entries in ctx.entries_by_library.items():
        display_name = library_name.replace("_", " ")
        index = IndexDocument(
            name=display_name,
            description=f"{library_name} soundfont — {len(entries)} presets",
            entries=entries,
        )
        document = index.to_document()
        validate_document(document, INDEX_SCHEMA)
        if not ctx.dry_run:
            atomic_write_json(index_json_path(library_dir(ctx.output_dir, library_name)), document)
        logger.info("  Wrote %s/%s (%d presets)", library_name, INDEX_FILENAME, len(entries))

        root_entries.append(
            LibraryEntry(
                name=display_name,
                path=f"{library_name}/{INDEX_FILENAME}",
                description=f"{library_name} soundfont",
                preset_count=len(entries),
            )
        )

    root = IndexDocument(
        name=ROOT_INDEX_NAME,
        description=ROOT_INDEX_DESCRIPTION,
        entries=root_entries,
    )
    document = root.to_document()
    validate_document(document, INDEX_SCHEMA)
    if ctx.dry_run:
        logger.info("(Dry run — %d library indexes would be written)", len(root_entries))
    else:
        atomic_write_json(index_json_path(ctx.output_dir), document)
        logger.info("Wrote root %s with %d libraries", INDEX_FILENAME, len(root_entries))

    return root_entries


# --- Main Conversion ---


def _compute_metrics(ctx: ConversionContext) -> dict[str, Any]:
    return {
        "converted": ctx.converted,
        "errors": ctx.error_count,
        "unique_audio_files": len(ctx.blobs),
        "duplicates_skipped": ctx.blobs.duplicates,
        "libraries": len(ctx.entries_by_library),
        "dry_run": ctx.dry_run,
    }


def run_converter(
    source_dir: Path | str,
    output_dir: Path | str,
    *,
    dry_run: bool = False,
    limit: int | None = None,
) -> ConverterResult:
    """Run the converter over a webaudiofontdata tree.

    This is the main entry point for the converter.

    Args:
        source_dir: webaudiofontdata "public" directory.
        output_dir: Library tree root to write into.
        dry_run: Compute and log everything, write nothing.
        limit: Stop after this many converted instruments.

    Returns:
        ConverterResult with status, metrics and per-instrument failures.
    """
    source_dir = Path(source_dir)
    output_dir = Path(output_dir)

    logger.info("SongWalker Preset Converter")
    logger.info("Source:  %s", source_dir)
    logger.info("Output:  %s", output_dir)
    logger.info("Dry run: %s", dry_run)

    # --- GM names are required ---
    names_path = source_dir / GM_NAMES_FILENAME
    try:
        names = GMNames.load(names_path)
    except (OSError, ValueError) as e:
        logger.error("Could not load %s: %s", names_path, e)
        return ConverterResult(
            ok=False,
            error_code=ConverterErrorCode.GM_NAMES_UNAVAILABLE.value,
            message=f"Could not load {GM_NAMES_FILENAME}: {e}",
        )

    if not dry_run:
        output_dir.mkdir(parents=True, exist_ok=True)

    ctx = ConversionContext(output_dir=output_dir, dry_run=dry_run, limit=limit)

    convert_melodic_dir(ctx, names, source_dir / INSTRUMENT_SUBDIR)
    convert_percussion_dir(ctx, source_dir / PERCUSSION_SUBDIR)

    metrics = _compute_metrics(ctx)
    logger.info("Total converted: %d", metrics["converted"])
    logger.info("Errors: %d", metrics["errors"])
    logger.info("Unique audio files: %d", metrics["unique_audio_files"])
    logger.info("Dedup savings: %d duplicates skipped", metrics["duplicates_skipped"])
    logger.info("Libraries: %d", metrics["libraries"])

    try:
        write_indexes(ctx)
    except OSError as e:
        logger.error("Failed to write indexes: %s", e)
        return ConverterResult(
            ok=False,
            error_code=ConverterErrorCode.INDEX_WRITE_FAILED.value,
            message=f"Failed to write indexes: {e}",
            metrics=metrics,
            failures=list(ctx.failures),
            context=ctx,
        )

    return ConverterResult(
        ok=True,
        message="Conversion completed",
        metrics=metrics,
        failures=list(ctx.failures),
        context=ctx,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="songwalker-convert",
        description="Convert webaudiofontdata instruments into songwalker presets",
    )
    parser.add_argument(
        "--source",
        type=Path,
        default=default_source_dir(),
        help="webaudiofontdata public directory (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=default_library_dir(),
        help="Library output directory (default: %(default)s)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the whole pipeline without writing any file",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Stop after converting this many instruments",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)

    result = run_converter(args.source, args.output, dry_run=args.dry_run, limit=args.limit)
    if not result.ok:
        print(f"Error: {result.error_code} - {result.message}", file=sys.stderr)
        return 1
    return 0


# --- Standalone Execution ---


if __name__ == "__main__":
    raise SystemExit(main())
