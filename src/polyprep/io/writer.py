"""Polygon document writers.

This module provides the PolygonWriter class for saving preprocessing
results, and a helper for writing raw shape documents.
"""

from pathlib import Path

from polyprep import __version__
from polyprep.core.processor import PreparedPolygon
from polyprep.domain import Shape
from polyprep.exceptions import DocumentSaveError
from polyprep.io.converter import prepared_to_model, shape_to_model
from polyprep.io.models import PolygonDocument, PreparedDocument


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise DocumentSaveError(str(path), str(e)) from e


def write_shape_document(shapes: list[Shape], output_path: Path) -> None:
    """Save shapes as an input document that PolygonReader can load.

    Raises:
        DocumentSaveError: If the file cannot be written
    """
    document = PolygonDocument(shapes=[shape_to_model(shape) for shape in shapes])
    _write_text(output_path, document.model_dump_json(indent=2))


class PolygonWriter:
    """Writes preprocessing results as a JSON document.

    Example:
        writer = PolygonWriter(Path("shapes-prepared.json"))
        writer.add(prepared)
        writer.save()
    """

    def __init__(self, output_path: Path) -> None:
        """Initialize the writer.

        Args:
            output_path: Path where the document will be saved
        """
        self._output_path = output_path
        self._shapes: list[PreparedPolygon] = []

    @property
    def output_path(self) -> Path:
        return self._output_path

    def add(self, prepared: PreparedPolygon) -> None:
        """Queue a prepared shape for writing."""
        self._shapes.append(prepared)

    def save(self) -> None:
        """Save all queued shapes.

        Raises:
            DocumentSaveError: If the file cannot be written
        """
        document = PreparedDocument(
            version=__version__,
            shapes=[prepared_to_model(prepared) for prepared in self._shapes],
        )
        _write_text(self._output_path, document.model_dump_json(indent=2))

    @staticmethod
    def get_prepared_path(input_path: Path) -> Path:
        """Generate the default output path.

        Converts: shapes.json -> shapes-prepared.json

        Args:
            input_path: Input document path

        Returns:
            Path with -prepared suffix before the extension
        """
        return input_path.parent / f"{input_path.stem}-prepared{input_path.suffix}"
