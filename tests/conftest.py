"""Shared pytest fixtures for SongWalker Library tests.

Builds small webaudiofontdata-shaped source trees and library trees in
temporary directories.
"""

import base64
import json
from pathlib import Path

import pytest

# Default zone payload: an ID3 header, so it sniffs as mp3
MP3_ID3_BYTES = b"ID3\x04\x00\x00" + b"\x00" * 26


def encode_audio(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def make_zone(
    payload: bytes | None = MP3_ID3_BYTES,
    *,
    field: str = "file",
    key_low: int | None = 21,
    key_high: int | None = 108,
    original_pitch: int | None = 6000,
    coarse_tune: int = 0,
    fine_tune: int = 0,
    loop: tuple[int, int] | None = None,
    midi: int | None = None,
    sample_rate: int | float | None = 44100,
) -> dict:
    """Build one webaudiofont zone."""
    zone: dict = {"coarseTune": coarse_tune, "fineTune": fine_tune}
    if original_pitch is not None:
        zone["originalPitch"] = original_pitch
    if key_low is not None:
        zone["keyRangeLow"] = key_low
    if key_high is not None:
        zone["keyRangeHigh"] = key_high
    if sample_rate is not None:
        zone["sampleRate"] = sample_rate
    if loop is not None:
        zone["loopStart"], zone["loopEnd"] = loop
    if midi is not None:
        zone["midi"] = midi
    if payload is not None:
        zone[field] = encode_audio(payload)
    return zone


GM_NAMES = ["Acoustic Grand Piano"] + [f"GM Program {n}" for n in range(1, 128)]
GM_NAMES[6] = "Harpsichord: Piano"
GM_NAMES[40] = "Violin: Strings"


@pytest.fixture
def source_dir(tmp_path):
    """Create an empty webaudiofontdata public directory with a GM name table.

    Yields:
        Path: source root containing instrumentNames.json, i/ and p/.
    """
    root = tmp_path / "public"
    (root / "i").mkdir(parents=True)
    (root / "p").mkdir(parents=True)
    (root / "instrumentNames.json").write_text(json.dumps(GM_NAMES), encoding="utf-8")
    yield root


@pytest.fixture
def output_dir(tmp_path):
    """Library output directory (not created)."""
    return tmp_path / "library-output"


@pytest.fixture
def write_instrument(source_dir):
    """Factory writing an instrument JSON file into the source tree.

    Usage: write_instrument("i", "0000_FluidR3_GM_sf2_file.json", [zone, ...])
    """

    def _write(subdir: str, filename: str, zones: list[dict]) -> Path:
        path = source_dir / subdir / filename
        path.write_text(json.dumps({"zones": zones}), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_preset(tmp_path):
    """Factory writing a preset.json into a library tree under tmp_path/lib.

    Usage: write_preset("FluidR3_GM", "instruments/piano/Piano", {...})
    """
    root = tmp_path / "lib"
    root.mkdir(exist_ok=True)

    def _write(library: str, rel_dir: str, document: dict | str) -> Path:
        path = root / library / rel_dir / "preset.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        text = document if isinstance(document, str) else json.dumps(document, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    _write.root = root
    return _write


def sampler_preset(
    name: str,
    *,
    category: str | None = "piano",
    tags: list[str] | None = None,
    key_ranges: list[tuple[int, int]] = ((21, 108),),
    gm_program: int | None = 0,
    node_field: str = "node",
) -> dict:
    """Build a minimal preset document with one sampler node."""
    doc: dict = {
        "format": "songwalker-preset",
        "version": 1,
        "name": name,
        "tags": tags if tags is not None else ["melodic"],
        "metadata": {"source": "Test"},
        node_field: {
            "type": "sampler",
            "config": {
                "oneShot": False,
                "zones": [{"keyRange": {"low": lo, "high": hi}} for lo, hi in key_ranges],
            },
        },
    }
    if category is not None:
        doc["category"] = category
    if gm_program is not None:
        doc["metadata"]["gmProgram"] = gm_program
    return doc


@pytest.fixture
def zone_factory():
    """Factory for webaudiofont zones (see make_zone)."""
    return make_zone


@pytest.fixture
def preset_factory():
    """Factory for single-sampler preset documents (see sampler_preset)."""
    return sampler_preset
