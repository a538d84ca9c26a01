# -*- coding: utf-8 -*-
"""
bomcheck: validate decoded CycloneDX SBOM documents against versioned
schema catalogues, collecting path-qualified errors and warnings.
"""

from .checks import (
    Validator, SchemaNode, literal_match, pattern_match, enum_match,
    any_string, non_empty_string, object_schema, array_of, one_of,
)
from .catalogue import Catalogue, load_catalogue, available_versions
from .config import ValidatorConfig
from .context import Diagnostic, DiagnosticKind, Severity, ValidationContext
from .driver import ComponentList, ValidationReport, validate, validate_object
from .logging import log, set_verbosity
from .errors import (
    BomCheckError, IntegrationError, SchemaCatalogueError, DocumentError, UnsupportedSpecVersion,
)
from .parser import BomParser

__version__ = "0.1.0"

__all__ = [
    "Validator", "SchemaNode", "literal_match", "pattern_match", "enum_match",
    "any_string", "non_empty_string", "object_schema", "array_of", "one_of",
    "Catalogue", "load_catalogue", "available_versions",
    "ValidatorConfig",
    "Diagnostic", "DiagnosticKind", "Severity", "ValidationContext",
    "ComponentList", "ValidationReport", "validate", "validate_object",
    "BomCheckError", "IntegrationError", "SchemaCatalogueError", "DocumentError", "UnsupportedSpecVersion",
    "BomParser",
    "log", "set_verbosity",
]
