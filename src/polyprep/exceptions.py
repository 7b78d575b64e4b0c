"""Exception hierarchy for Polyprep."""


class PolyprepError(Exception):
    """Base exception for all Polyprep errors."""

    pass


class ConfigurationError(PolyprepError):
    """Invalid or inconsistent configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class DocumentError(PolyprepError):
    """Errors related to loading or saving polygon documents."""

    pass


class DocumentLoadError(DocumentError):
    """Error loading a polygon document."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load document '{path}': {reason}")


class DocumentSaveError(DocumentError):
    """Error saving a polygon document."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save document '{path}': {reason}")


class GeometryError(PolyprepError):
    """Errors in geometric calculations."""

    pass


class RingError(GeometryError):
    """Invalid use of a point ring."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class SplitGraphError(GeometryError):
    """The split graph reached a state that cannot yield a polygon."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Self-intersection split failed: {message}")


class OperationContextError(GeometryError):
    """A boolean operation could not be set up or completed."""

    def __init__(self, error_name: str, reason: str) -> None:
        self.error_name = error_name
        self.reason = reason
        super().__init__(f"Boolean operation failed ({error_name}): {reason}")


class HoleResolutionError(GeometryError):
    """Holes of a contour could not be resolved."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Hole resolution failed: {reason}")
