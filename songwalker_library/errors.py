"""SongWalker Library - Error taxonomy.

Fatal setup errors abort a run; per-item errors are recorded and the run
continues; silent skips never reach this module.
"""

from enum import Enum


class ConverterErrorCode(str, Enum):
    """Error codes for the converter."""

    GM_NAMES_UNAVAILABLE = "GM_NAMES_UNAVAILABLE"
    INSTRUMENT_FAILED = "INSTRUMENT_FAILED"
    INDEX_WRITE_FAILED = "INDEX_WRITE_FAILED"


class IndexerErrorCode(str, Enum):
    """Error codes for the indexer."""

    LIBRARY_DIR_NOT_FOUND = "LIBRARY_DIR_NOT_FOUND"
    PRESET_UNREADABLE = "PRESET_UNREADABLE"
    INDEX_WRITE_FAILED = "INDEX_WRITE_FAILED"


class DocumentInvalidError(ValueError):
    """A generated document does not satisfy its JSON Schema contract."""

    def __init__(self, schema_name: str, message: str):
        super().__init__(f"{schema_name} document invalid: {message}")
        self.schema_name = schema_name


__all__ = [
    "ConverterErrorCode",
    "IndexerErrorCode",
    "DocumentInvalidError",
]
