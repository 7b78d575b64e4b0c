"""Polygon document reader.

This module provides the PolygonReader class for loading JSON polygon
documents and extracting shapes into domain models.
"""

from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from polyprep.domain import Shape
from polyprep.exceptions import DocumentLoadError
from polyprep.io.converter import model_to_shape
from polyprep.io.models import PolygonDocument


class PolygonReader:
    """Loads polygon documents and extracts shapes.

    Example:
        reader = PolygonReader(Path("shapes.json"))
        reader.load()
        for shape in reader.iter_shapes():
            print(shape.name)
    """

    def __init__(self, document_path: Path) -> None:
        """Initialize the reader.

        Args:
            document_path: Path to the JSON document
        """
        self._document_path = document_path
        self._document: PolygonDocument | None = None

    def load(self) -> None:
        """Load and validate the document.

        Raises:
            FileNotFoundError: If the document does not exist
            DocumentLoadError: If the document is not valid JSON or does not
                match the expected structure
        """
        if not self._document_path.exists():
            raise FileNotFoundError(f"Document not found: {self._document_path}")

        try:
            text = self._document_path.read_text(encoding="utf-8")
            self._document = PolygonDocument.model_validate_json(text)
        except ValidationError as e:
            raise DocumentLoadError(str(self._document_path), str(e)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentLoadError(str(self._document_path), str(e)) from e

    def _require_document(self) -> PolygonDocument:
        if self._document is None:
            raise RuntimeError("Document not loaded. Call load() first.")
        return self._document

    @property
    def shape_count(self) -> int:
        """Return the number of shapes in the document.

        Raises:
            RuntimeError: If the document has not been loaded yet
        """
        return len(self._require_document().shapes)

    def iter_shapes(self) -> Iterator[Shape]:
        """Iterate over all shapes in document order.

        Raises:
            RuntimeError: If the document has not been loaded yet
        """
        for model in self._require_document().shapes:
            yield model_to_shape(model)

    def get_shape(self, name: str) -> Shape | None:
        """Get a shape by name, or None if there is none.

        Raises:
            RuntimeError: If the document has not been loaded yet
        """
        for model in self._require_document().shapes:
            if model.name == name:
                return model_to_shape(model)
        return None

    def close(self) -> None:
        """Drop the loaded document."""
        self._document = None

    def __enter__(self) -> "PolygonReader":
        """Context manager entry."""
        self.load()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
