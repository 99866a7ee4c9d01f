"""SongWalker Library - JSON Schema contracts for published documents.

Every preset and index document is validated against its Draft 2020-12
schema in /specs before it is written.
"""

import json
from functools import lru_cache
from typing import Any

import jsonschema

from songwalker_library.config import SPECS_DIR
from songwalker_library.errors import DocumentInvalidError

PRESET_SCHEMA = "preset"
INDEX_SCHEMA = "index"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the specs directory.

    Args:
        name: Schema name without suffix ("preset", "index").

    Returns:
        Parsed JSON schema dict.

    Raises:
        FileNotFoundError: If schema file not found.
    """
    schema_path = SPECS_DIR / f"{name}.schema.json"
    with open(schema_path, encoding="utf-8") as f:
        return json.load(f)


def validate_document(document: dict[str, Any], schema_name: str) -> None:
    """Validate a document against a named schema.

    Args:
        document: Wire representation of the document.
        schema_name: Schema name ("preset" or "index").

    Raises:
        DocumentInvalidError: If the document violates the schema.
    """
    try:
        jsonschema.validate(document, load_schema(schema_name))
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise DocumentInvalidError(schema_name, f"{location}: {e.message}") from e


__all__ = [
    "INDEX_SCHEMA",
    "PRESET_SCHEMA",
    "load_schema",
    "validate_document",
]
