"""
scriptdata.exporter - Data Document Output

Sanitizes evaluated values (callables -> placeholder) and writes them as
stable, pretty-printed JSON documents.
"""

from .sanitize import PLACEHOLDER, materialize, contains_callable
from .documents import DocumentExporter, ExportOptions, WrittenDocument, dump_document

__all__ = [
    "PLACEHOLDER",
    "materialize",
    "contains_callable",
    "DocumentExporter",
    "ExportOptions",
    "WrittenDocument",
    "dump_document",
]
