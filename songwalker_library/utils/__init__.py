"""SongWalker Library - Utility modules."""

from songwalker_library.utils.atomic_io import (
    atomic_write_bytes,
    atomic_write_json,
    dump_document,
)
from songwalker_library.utils.audio_meta import AudioPayload, sniff_codec
from songwalker_library.utils.hashing import content_hash
from songwalker_library.utils.paths import (
    index_json_path,
    library_dir,
    preset_dir,
    preset_json_path,
    relative_posix,
    sanitize_library,
    sanitize_name,
)

__all__ = [
    # atomic_io
    "atomic_write_bytes",
    "atomic_write_json",
    "dump_document",
    # audio_meta
    "AudioPayload",
    "sniff_codec",
    # hashing
    "content_hash",
    # paths
    "library_dir",
    "preset_dir",
    "preset_json_path",
    "index_json_path",
    "relative_posix",
    "sanitize_name",
    "sanitize_library",
]
