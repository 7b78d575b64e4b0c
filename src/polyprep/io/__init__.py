"""Document I/O layer for polyprep.

This module handles reading and writing JSON polygon documents. Documents
are validated with pydantic models and converted to and from the domain
models.

Key responsibilities:
- Load raw shape documents
- Convert document models to domain models
- Write prepared contour trees and constraint edges

Key classes:
- PolygonReader: Load documents and extract shapes
- PolygonWriter: Save preprocessing results
"""

from polyprep.io.reader import PolygonReader
from polyprep.io.writer import PolygonWriter, write_shape_document

__all__ = [
    "PolygonReader",
    "PolygonWriter",
    "write_shape_document",
]
