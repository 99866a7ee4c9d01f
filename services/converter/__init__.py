"""SongWalker Library - Converter service.

One-shot batch conversion of webaudiofontdata instruments into presets.
"""

__all__: list[str] = []
