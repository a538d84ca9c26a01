"""
Parser facade for CycloneDX SBOMs.

Loads a document from a file, a JSON string or already-decoded data, picks
the schema catalogue matching its specVersion and validates it straight away.

    parser = BomParser(json_path="bom.json")
    if parser.is_valid():
        data = parser.sbom_data
    else:
        for error in parser.errors():
            ...
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, List, Optional

from .catalogue import Catalogue, load_catalogue
from .config import ValidatorConfig
from .driver import ValidationReport, validate
from .errors import DocumentError, IntegrationError
from .io import decode_json, read_text
from .logging import log


class BomParser:
    """Validates one SBOM against the catalogue for its specVersion"""

    def __init__(self, json_path: Optional[Path] = None, json_string: Optional[str] = None,
                 data: Any = None, config: Optional[ValidatorConfig] = None):
        sources = [s for s in (json_path, json_string, data) if s is not None]
        if len(sources) != 1:
            raise IntegrationError("You must specify exactly one of 'json_path', 'json_string' and 'data' when constructing a BomParser")

        self.config = config or ValidatorConfig()
        self.filename: Optional[Path] = Path(json_path) if json_path is not None else None
        if self.filename is not None:
            json_string = read_text(self.filename)
        # decoded data is serialized on first access to .json
        self._json: Optional[str] = json_string
        if json_string is not None:
            self._data = decode_json(json_string, source=str(self.filename or "<string>"))
        else:
            self._data = data

        if not isinstance(self._data, dict) or "specVersion" not in self._data:
            raise DocumentError(f"No specVersion specified in {self.filename or 'document'}")
        self.spec_version = self._data["specVersion"]
        self.catalogue: Catalogue = load_catalogue(self.spec_version, self.config.schema_dir)
        self.report: ValidationReport = self.validate()

    def validate(self) -> ValidationReport:
        """Validate sbom_data again (it is mutable) and log any warnings"""
        self.report = validate(self._data, self.catalogue.root, self.config)
        if self.report.warnings:
            log().warning("Warnings for %s:", self.filename or "SBOM")
            for warning in self.report.warnings:
                log().warning("  %s", warning)
        return self.report

    @property
    def sbom_data(self) -> Any:
        return self._data

    @property
    def json(self) -> str:
        if self._json is None:
            try:
                self._json = json.dumps(self._data, ensure_ascii=False)
            except (RecursionError, TypeError, ValueError) as e:
                raise DocumentError(f"Can't serialize {self.filename or 'document'} as JSON: {e}")
        return self._json

    def is_valid(self) -> bool:
        return self.report.valid

    def errors(self) -> List[str]:
        return list(self.report.errors)

    def warnings(self) -> List[str]:
        return list(self.report.warnings)

    def has_warnings(self) -> bool:
        return self.report.has_warnings
