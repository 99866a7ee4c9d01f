"""SongWalker Library - Audio payload inspection.

Codec detection looks at content only (magic bytes), never at file names.
No audio dependencies: payloads are stored as-is, never decoded.
"""

from dataclasses import dataclass

CODEC_MP3 = "mp3"
CODEC_OGG = "ogg"
CODEC_WAV = "wav"
CODEC_RAW = "raw"


@dataclass(frozen=True)
class AudioPayload:
    """A decoded zone payload and where it came from.

    compressed is True when the payload came from the container ("file")
    field rather than the raw PCM ("sample") field.
    """

    data: bytes
    compressed: bool

    @property
    def codec(self) -> str:
        """Codec of the payload; raw PCM fields are never sniffed."""
        if not self.compressed:
            return CODEC_RAW
        return sniff_codec(self.data)


def sniff_codec(data: bytes) -> str:
    """Guess the codec of an audio payload from its leading bytes.

    - "ID3" tag or MPEG frame sync (0xFF followed by 0b111xxxxx) -> mp3
    - "OggS" capture pattern -> ogg
    - "RIFF" .... "WAVE" header -> wav
    - anything else -> raw (headerless 16-bit PCM)

    Args:
        data: Decoded payload bytes.

    Returns:
        Codec name, which doubles as the file extension.
    """
    if data[:3] == b"ID3":
        return CODEC_MP3
    if len(data) >= 2 and data[0] == 0xFF and (data[1] & 0xE0) == 0xE0:
        return CODEC_MP3
    if data[:4] == b"OggS":
        return CODEC_OGG
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return CODEC_WAV
    return CODEC_RAW


__all__ = [
    "AudioPayload",
    "CODEC_MP3",
    "CODEC_OGG",
    "CODEC_RAW",
    "CODEC_WAV",
    "sniff_codec",
]
