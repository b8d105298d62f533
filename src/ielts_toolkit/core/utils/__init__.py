"""
Utils Package

Serialization and JSON file helpers.
"""

from .serialization import (
    serialize_group,
    deserialize_group,
    serialize_document,
    deserialize_document,
    load_document_json,
    save_document_json,
)

__all__ = [
    "serialize_group",
    "deserialize_group",
    "serialize_document",
    "deserialize_document",
    "load_document_json",
    "save_document_json",
]
