"""Exception types raised to integrators (never recorded as document diagnostics)."""


class BomCheckError(Exception):
    """Base error for bomcheck."""


class IntegrationError(BomCheckError):
    """Raised when the validation API or a schema is misused."""


class SchemaCatalogueError(IntegrationError):
    """Raised when a schema catalogue file is malformed."""


class DocumentError(BomCheckError):
    """Raised when a document cannot be read or decoded."""


class UnsupportedSpecVersion(DocumentError):
    """Raised when no schema catalogue exists for a specVersion."""
