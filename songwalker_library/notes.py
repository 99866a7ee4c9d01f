"""SongWalker Library - Note naming and pitch normalization."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from songwalker_library.config import DEFAULT_ORIGINAL_PITCH

NOTE_NAMES = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")

MIDI_NOTE_MIN = 0
MIDI_NOTE_MAX = 127


@dataclass(frozen=True)
class NormalizedPitch:
    """Root key and fine tuning of a zone."""

    root_note: int
    fine_tune_cents: int | float

    @property
    def base_detune(self) -> int | float:
        """Pitch in cents above MIDI note 0 that re-derives to this value."""
        return self.root_note * 100 + self.fine_tune_cents


def clamp_midi(value: int) -> int:
    """Clamp a key number into the MIDI range 0-127."""
    return max(MIDI_NOTE_MIN, min(MIDI_NOTE_MAX, value))


def midi_to_note_name(midi: int) -> str:
    """Spell a MIDI note with flats, octave = note // 12 - 1 (60 -> "C4")."""
    return f"{NOTE_NAMES[midi % 12]}{midi // 12 - 1}"


def pitch_from_detune(base_detune: int | float) -> NormalizedPitch:
    """Split a base detune (in cents) into a clamped root note and cents.

    The cents part uses floored modulo, so it is always in [0, 100).
    """
    root = math.floor(base_detune / 100)
    return NormalizedPitch(
        root_note=clamp_midi(root),
        fine_tune_cents=base_detune % 100,
    )


def normalize_pitch(zone: dict[str, Any]) -> NormalizedPitch:
    """Derive root note and fine tune from webaudiofont zone pitch fields.

    base_detune = originalPitch - 100 * coarseTune - fineTune, with
    originalPitch defaulting to 6000 and the tunings to 0 when absent.
    """
    original_pitch = zone.get("originalPitch") or DEFAULT_ORIGINAL_PITCH
    coarse_tune = zone.get("coarseTune") or 0
    fine_tune = zone.get("fineTune") or 0
    return pitch_from_detune(original_pitch - 100 * coarse_tune - fine_tune)
