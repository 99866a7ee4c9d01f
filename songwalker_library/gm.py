"""SongWalker Library - General MIDI tables and source filename parsing.

GM program numbers here are 0-based (0-127), matching MIDI program change.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# The 16 GM instrument families, 8 consecutive programs each.
GM_FAMILIES: tuple[str, ...] = (
    "piano",
    "chromatic-percussion",
    "organ",
    "guitar",
    "bass",
    "strings",
    "ensemble",
    "brass",
    "reed",
    "pipe",
    "synth-lead",
    "synth-pad",
    "synth-effects",
    "ethnic",
    "percussive",
    "sound-effects",
)

PROGRAMS_PER_FAMILY = 8
GM_PROGRAM_COUNT = len(GM_FAMILIES) * PROGRAMS_PER_FAMILY

UNKNOWN_CATEGORY = "unknown"
PERCUSSION_CATEGORY = "percussion"

# {code}_{library}[_sf2][_file].json, code = program * 10 + variant
_INSTRUMENT_RE = re.compile(r"^(\d{4})_(.+?)(?:_sf2(?:_file)?)?\.json$")
# {note}_{variant}_{library}[_sf2][_file].json
_PERCUSSION_RE = re.compile(r"^(\d+)_(\d+)_(.+?)(?:_sf2(?:_file)?)?\.json$")


@dataclass(frozen=True)
class InstrumentFileInfo:
    """Identity decoded from a melodic instrument filename."""

    gm_program: int
    variant: int
    library: str


@dataclass(frozen=True)
class PercussionFileInfo:
    """Identity decoded from a percussion filename."""

    midi_note: int
    variant: int
    library: str


def gm_category(program: int | None) -> str:
    """Map a GM program to its instrument family.

    Returns "unknown" for missing or out-of-range programs.
    """
    if program is None or not 0 <= program < GM_PROGRAM_COUNT:
        return UNKNOWN_CATEGORY
    return GM_FAMILIES[program // PROGRAMS_PER_FAMILY]


def parse_instrument_filename(filename: str) -> InstrumentFileInfo | None:
    """Decode a melodic instrument filename.

    Args:
        filename: Base name such as "0000_FluidR3_GM_sf2_file.json".

    Returns:
        InstrumentFileInfo, or None if the name does not match the pattern.
        Programs >= 128 are returned as-is; callers decide to skip them.
    """
    match = _INSTRUMENT_RE.match(filename)
    if match is None:
        return None
    code = int(match.group(1))
    return InstrumentFileInfo(
        gm_program=code // 10,
        variant=code % 10,
        library=match.group(2),
    )


def parse_percussion_filename(filename: str) -> PercussionFileInfo | None:
    """Decode a percussion filename such as "35_0_FluidR3_GM_sf2_file.json"."""
    match = _PERCUSSION_RE.match(filename)
    if match is None:
        return None
    return PercussionFileInfo(
        midi_note=int(match.group(1)),
        variant=int(match.group(2)),
        library=match.group(3),
    )


class GMNames:
    """Lookup table of GM program display names.

    Accepts the webaudiofont layout (a JSON array indexed by program) as
    well as an object keyed by program number.
    """

    def __init__(self, names: dict[int, str]):
        self._names = names

    @classmethod
    def from_json(cls, data: Any) -> GMNames:
        if isinstance(data, list):
            return cls({i: str(name) for i, name in enumerate(data) if name})
        if isinstance(data, dict):
            return cls({int(k): str(v) for k, v in data.items() if v})
        raise ValueError(f"GM name table must be a list or object, got {type(data).__name__}")

    @classmethod
    def load(cls, path: str | Path) -> GMNames:
        """Load the table from disk.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not valid JSON or has the wrong shape.
        """
        with open(path, encoding="utf-8") as f:
            return cls.from_json(json.load(f))

    def __len__(self) -> int:
        return len(self._names)

    def display_name(self, program: int) -> str:
        """Display name for a program, without its category annotation.

        "Harpsichord: Piano" -> "Harpsichord"; unknown -> "Program {n}".
        """
        name = self._names.get(program) or f"Program {program}"
        return name.split(":")[0].strip()


__all__ = [
    "GM_FAMILIES",
    "GM_PROGRAM_COUNT",
    "GMNames",
    "InstrumentFileInfo",
    "PERCUSSION_CATEGORY",
    "PercussionFileInfo",
    "UNKNOWN_CATEGORY",
    "gm_category",
    "parse_instrument_filename",
    "parse_percussion_filename",
]
