"""SongWalker Library - Configuration constants.

Minimal configuration. No external config libraries.
Default CLI paths are relative to the current working directory and can be
overridden through environment variables.
"""

import os
from pathlib import Path

# Repository root (parent of songwalker_library/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Versioned JSON Schema contracts
SPECS_DIR = REPO_ROOT / "specs"


def _get_env_path(name: str, default: str) -> Path:
    """Get a directory path from the environment or use the default.

    Empty values are treated as unset.

    Args:
        name: Environment variable name.
        default: Fallback path string.

    Returns:
        Path from the environment variable, or the default.
    """
    env_val = os.environ.get(name, "").strip()
    if env_val:
        return Path(env_val).expanduser()
    return Path(default)


def default_source_dir() -> Path:
    """Default webaudiofontdata root (override with SONGWALKER_SOURCE_DIR)."""
    return _get_env_path("SONGWALKER_SOURCE_DIR", "../samples/webaudiofontdata/public")


def default_library_dir() -> Path:
    """Default library output root (override with SONGWALKER_LIBRARY_DIR)."""
    return _get_env_path("SONGWALKER_LIBRARY_DIR", "./library-output")


# Document format tags
PRESET_FORMAT = "songwalker-preset"
INDEX_FORMAT = "songwalker-index"
FORMAT_VERSION = 1

# Well-known file names inside the library tree
PRESET_FILENAME = "preset.json"
INDEX_FILENAME = "index.json"

# Root index labels
ROOT_INDEX_NAME = "SongWalker Library"
ROOT_INDEX_DESCRIPTION = "Root index — select a source library to browse its presets"

# Built-in (non-soundfont) library directory
SHARED_LIBRARY_DIR = "_shared"
SHARED_LIBRARY_DISPLAY_NAME = "Built-in"

# Top-level directories that are never libraries
INDEX_SKIP_DIRS = frozenset({".git", ".husky", "scripts", "node_modules", ".github"})

# Source dataset layout (webaudiofontdata/public)
GM_NAMES_FILENAME = "instrumentNames.json"
INSTRUMENT_SUBDIR = "i"
PERCUSSION_SUBDIR = "p"

# Blob identity: first N hex chars of sha256(decoded audio)
CONTENT_HASH_LENGTH = 16

# GM program used for percussion files, and the percussion MIDI channel marker
PERCUSSION_PROGRAM = 128
PERCUSSION_MIDI_CHANNEL = 128

# Zone defaults when the source omits a field
DEFAULT_ORIGINAL_PITCH = 6000
DEFAULT_SAMPLE_RATE = 44100

DEFAULT_LICENSE_NOTE = "See original SF2 license"

# Progress logging intervals (instruments converted)
MELODIC_PROGRESS_INTERVAL = 50
PERCUSSION_PROGRESS_INTERVAL = 100
