"""SongWalker Library - Indexer service.

Regenerates library and root index documents from the presets on disk.
"""

__all__: list[str] = []
