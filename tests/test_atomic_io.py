"""Tests for songwalker_library.utils.atomic_io module."""

import json
from pathlib import Path
from unittest import mock

import pytest

from songwalker_library.utils.atomic_io import (
    atomic_write_bytes,
    atomic_write_json,
    dump_document,
)


class TestAtomicWriteBytes:
    """Tests for atomic_write_bytes function."""

    def test_creates_file(self, tmp_path):
        """Should create file with correct content."""
        path = tmp_path / "zone_C4.mp3"
        atomic_write_bytes(path, b"ID3 payload")
        assert path.read_bytes() == b"ID3 payload"

    def test_creates_parent_directories(self, tmp_path):
        """Should create the preset directory if it does not exist."""
        path = tmp_path / "FluidR3_GM" / "instruments" / "piano" / "Piano" / "zone_A0.mp3"
        atomic_write_bytes(path, b"data")
        assert path.read_bytes() == b"data"

    def test_overwrites_existing_file(self, tmp_path):
        """Should atomically replace existing file."""
        path = tmp_path / "preset.json"
        path.write_bytes(b"old content")
        atomic_write_bytes(path, b"new content")
        assert path.read_bytes() == b"new content"

    def test_temp_file_cleaned_up_on_success(self, tmp_path):
        """Temp file should not exist after successful write."""
        path = tmp_path / "zone_C4.raw"
        atomic_write_bytes(path, b"data")
        assert not path.with_suffix(".raw.tmp").exists()

    def test_idempotent_with_existing_temp(self, tmp_path):
        """Should succeed when an interrupted run left a temp file behind."""
        path = tmp_path / "index.json"
        path.with_suffix(".json.tmp").write_bytes(b"orphaned temp data that is longer")
        atomic_write_bytes(path, b"{}")
        assert path.read_bytes() == b"{}"
        assert not path.with_suffix(".json.tmp").exists()

    def test_failed_write_leaves_no_final_file(self, tmp_path):
        """A failing fsync should remove the temp file and never publish."""
        path = tmp_path / "preset.json"
        with mock.patch("songwalker_library.utils.atomic_io.os.fsync", side_effect=OSError("disk")):
            with pytest.raises(OSError):
                atomic_write_bytes(path, b"data")
        assert not path.exists()
        assert not path.with_suffix(".json.tmp").exists()


class TestDumpDocument:
    """Tests for dump_document / atomic_write_json."""

    def test_format(self):
        """Documents use 2-space indentation and end with a newline."""
        text = dump_document({"format": "songwalker-index", "entries": []})
        assert text == '{\n  "format": "songwalker-index",\n  "entries": []\n}\n'

    def test_non_ascii_kept(self):
        """Non-ASCII characters should not be escaped."""
        assert "—" in dump_document({"description": "a — b"})

    def test_key_order_preserved(self):
        """Keys should be written in insertion order, not sorted."""
        text = dump_document({"type": "preset", "name": "A"})
        assert text.index('"type"') < text.index('"name"')

    def test_write_json_round_trip(self, tmp_path):
        """atomic_write_json should return the size of what it wrote."""
        path = Path(tmp_path) / "index.json"
        size = atomic_write_json(path, {"name": "Built-in"})
        assert json.loads(path.read_text(encoding="utf-8")) == {"name": "Built-in"}
        assert size == path.stat().st_size
