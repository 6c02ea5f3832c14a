"""field_types.py
Translation of document-store primitive types to Elasticsearch field types.
"""

from __future__ import annotations

DEFAULT_ES_TYPE = "text"

_ES_TYPES: dict[str, str] = {
    "string": "text",
    "number": "float",
    "date": "date",
    "boolean": "boolean",
    "buffer": "binary",
    "binary": "binary",
    "mixed": "object",
    "objectid": "keyword",
    "array": "text",
}


def resolve(primitive_type: str | None) -> str:
    """Return the Elasticsearch type for a store primitive type.

    Unknown, empty or missing types fall back to ``text`` so an unexpected
    schema never blocks mapping compilation.
    """
    if not isinstance(primitive_type, str) or not primitive_type:
        return DEFAULT_ES_TYPE
    return _ES_TYPES.get(primitive_type.lower(), DEFAULT_ES_TYPE)
