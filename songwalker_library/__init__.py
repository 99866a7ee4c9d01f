"""SongWalker Library - Core modules for the preset library tools.

Provides:
- JSON schemas in /specs (versioned document contracts)
- Pydantic models for preset and index documents
- Core utilities: atomic_io, hashing, paths, audio_meta
"""

__version__ = "0.1.0"
