"""Tests for songwalker_library.contracts module."""

import pytest
from jsonschema import Draft202012Validator
from jsonschema.validators import validator_for

from songwalker_library.config import SPECS_DIR
from songwalker_library.contracts import (
    INDEX_SCHEMA,
    PRESET_SCHEMA,
    load_schema,
    validate_document,
)
from songwalker_library.errors import DocumentInvalidError


def _preset(**overrides):
    doc = {
        "format": "songwalker-preset",
        "version": 1,
        "name": "Acoustic Grand Piano",
        "category": "piano",
        "tags": ["melodic", "piano", "gm:0", "one-shot"],
        "metadata": {"gmProgram": 0, "source": "FluidR3_GM", "variant": 0},
        "node": {
            "type": "sampler",
            "config": {
                "oneShot": False,
                "zones": [
                    {
                        "keyRange": {"low": 21, "high": 108},
                        "pitch": {"rootNote": 60, "fineTuneCents": 0},
                        "sampleRate": 44100,
                        "audio": {
                            "type": "external",
                            "url": "zone_C4.mp3",
                            "codec": "mp3",
                            "sha256": "0123456789abcdef",
                        },
                    }
                ],
            },
        },
    }
    doc.update(overrides)
    return doc


def _zone(doc):
    return doc["node"]["config"]["zones"][0]


class TestLoadSchema:
    """Tests for the contract files in specs/."""

    @pytest.mark.parametrize("name", [PRESET_SCHEMA, INDEX_SCHEMA])
    def test_contract_is_draft_2020_12(self, name):
        """Each contract declares Draft 2020-12 and passes its metaschema."""
        schema = load_schema(name)
        assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"
        assert validator_for(schema) is Draft202012Validator
        Draft202012Validator.check_schema(schema)

    def test_only_known_contracts_shipped(self):
        names = sorted(p.name for p in SPECS_DIR.glob("*.schema.json"))
        assert names == ["index.schema.json", "preset.schema.json"]

    def test_loads_both_contracts(self):
        assert load_schema(PRESET_SCHEMA)["title"] == "SongWalker preset"
        assert load_schema(INDEX_SCHEMA)["title"] == "SongWalker index"

    def test_unknown_schema(self):
        with pytest.raises(FileNotFoundError):
            load_schema("does-not-exist")


class TestPresetContract:
    """Tests for the preset document contract."""

    def test_valid_preset(self):
        validate_document(_preset(), PRESET_SCHEMA)

    def test_fine_tune_must_be_below_100(self):
        doc = _preset()
        _zone(doc)["pitch"]["fineTuneCents"] = 100
        with pytest.raises(DocumentInvalidError, match="fineTuneCents"):
            validate_document(doc, PRESET_SCHEMA)

    def test_key_range_bounds(self):
        doc = _preset()
        _zone(doc)["keyRange"]["high"] = 128
        with pytest.raises(DocumentInvalidError):
            validate_document(doc, PRESET_SCHEMA)

    def test_fractional_sample_rate_allowed(self):
        doc = _preset()
        _zone(doc)["sampleRate"] = 22050.5
        validate_document(doc, PRESET_SCHEMA)

    def test_sha256_is_truncated_hex(self):
        doc = _preset()
        _zone(doc)["audio"]["sha256"] = "0123456789ABCDEF"
        with pytest.raises(DocumentInvalidError):
            validate_document(doc, PRESET_SCHEMA)

    def test_unknown_codec(self):
        doc = _preset()
        _zone(doc)["audio"]["codec"] = "flac"
        with pytest.raises(DocumentInvalidError):
            validate_document(doc, PRESET_SCHEMA)

    def test_sampler_needs_a_zone(self):
        doc = _preset()
        doc["node"]["config"]["zones"] = []
        with pytest.raises(DocumentInvalidError):
            validate_document(doc, PRESET_SCHEMA)

    def test_gm_program_range(self):
        with pytest.raises(DocumentInvalidError):
            validate_document(_preset(metadata={"gmProgram": 128, "source": "x"}), PRESET_SCHEMA)

    def test_error_carries_schema_name_and_location(self):
        doc = _preset()
        del doc["tags"]
        with pytest.raises(DocumentInvalidError) as exc_info:
            validate_document(doc, PRESET_SCHEMA)
        assert exc_info.value.schema_name == PRESET_SCHEMA
        assert str(exc_info.value).startswith("preset document invalid: <root>")


class TestIndexContract:
    """Tests for the index document contract."""

    def _index(self, entries):
        return {
            "format": "songwalker-index",
            "version": 1,
            "name": "FluidR3 GM",
            "description": "FluidR3_GM soundfont — 1 presets",
            "entries": entries,
        }

    def test_valid_mixed_entries(self):
        validate_document(
            self._index(
                [
                    {"type": "preset", "name": "A", "path": "a/preset.json", "category": "piano", "tags": []},
                    {"type": "index", "name": "B", "path": "B/index.json", "description": "", "presetCount": 0},
                ]
            ),
            INDEX_SCHEMA,
        )

    def test_zone_count_requires_key_range(self):
        entry = {
            "type": "preset",
            "name": "A",
            "path": "a/preset.json",
            "category": "piano",
            "tags": [],
            "zoneCount": 2,
        }
        with pytest.raises(DocumentInvalidError):
            validate_document(self._index([entry]), INDEX_SCHEMA)

    def test_unknown_entry_type(self):
        with pytest.raises(DocumentInvalidError):
            validate_document(self._index([{"type": "folder", "name": "x", "path": "x"}]), INDEX_SCHEMA)
