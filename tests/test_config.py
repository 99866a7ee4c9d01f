"""Tests for songwalker_library.config module."""

from pathlib import Path

from songwalker_library.config import (
    REPO_ROOT,
    SPECS_DIR,
    default_library_dir,
    default_source_dir,
)


class TestDefaultDirs:
    """Tests for environment-overridable default paths."""

    def test_source_default(self, monkeypatch):
        monkeypatch.delenv("SONGWALKER_SOURCE_DIR", raising=False)
        assert default_source_dir() == Path("../samples/webaudiofontdata/public")

    def test_library_default(self, monkeypatch):
        monkeypatch.delenv("SONGWALKER_LIBRARY_DIR", raising=False)
        assert default_library_dir() == Path("./library-output")

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SONGWALKER_LIBRARY_DIR", str(tmp_path))
        assert default_library_dir() == tmp_path

    def test_blank_env_is_unset(self, monkeypatch):
        monkeypatch.setenv("SONGWALKER_SOURCE_DIR", "   ")
        assert default_source_dir() == Path("../samples/webaudiofontdata/public")


def test_specs_dir_inside_repo():
    assert SPECS_DIR.parent == REPO_ROOT
    assert SPECS_DIR.is_dir()
