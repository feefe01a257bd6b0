# justgold/core/exceptions.py


class CatalogError(Exception):
    """Base exception for catalog domain errors."""
    pass


class ColorPanelError(CatalogError):
    """Raised when a variant colour panel fails validation."""
    pass


class FormDecodeError(CatalogError):
    """Raised when a multipart form field cannot be decoded."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
