# -*- coding: utf-8 -*-
"""
Schema catalogues: per-version field definitions kept as YAML data.

A catalogue file (schemas/cyclonedx-<version>.yml) declares a root node and
optional named definitions. Each node has a `kind` and compiles to one
validator from bomcheck.checks / bomcheck.driver. Named definitions are
referenced with `kind: ref`, which is how component lists contain
component lists.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from .checks import (
    Ref, Validator, any_string, array_of, enum_match, literal_match,
    non_empty_string, object_schema, one_of, pattern_match,
)
from .config import DEFAULT_SCHEMA_DIR
from .driver import ComponentList
from .errors import IntegrationError, SchemaCatalogueError, UnsupportedSpecVersion
from .io import read_yaml
from .logging import log

# Structure of a catalogue file; node semantics are checked while compiling
_CATALOGUE_SCHEMA: Dict[str, Any] = {
  "title": "bomcheck schema catalogue",
  "type": "object",
  "required": ["spec_version", "root"],
  "additionalProperties": False,
  "properties": {
    "format": {"type": "string"},
    "spec_version": {"type": "string", "pattern": "^[0-9]+\\.[0-9]+$"},
    "description": {"type": "string"},
    "definitions": {"type": "object", "additionalProperties": {"$ref": "#/$defs/node"}},
    "root": {"$ref": "#/$defs/node"}
  },
  "$defs": {
    "node": {
      "type": "object",
      "required": ["kind"],
      "properties": {
        "kind": {"enum": ["literal", "pattern", "enum", "any_string", "non_empty_string",
                          "object", "array_of", "one_of", "ref", "component_list"]}
      },
      # each kind accepts only its own keys, so a misspelt key is an error
      "allOf": [
        {"if": {"properties": {"kind": {"const": "literal"}}},
         "then": {"required": ["value"], "additionalProperties": False,
                  "properties": {"kind": True, "value": {"type": "string"}}}},
        {"if": {"properties": {"kind": {"const": "pattern"}}},
         "then": {"required": ["pattern"], "additionalProperties": False,
                  "properties": {"kind": True, "pattern": {"type": "string", "minLength": 1}}}},
        {"if": {"properties": {"kind": {"const": "enum"}}},
         "then": {"required": ["values"], "additionalProperties": False,
                  "properties": {"kind": True,
                                 "values": {"type": "array", "minItems": 1, "items": {"type": "string"}}}}},
        {"if": {"properties": {"kind": {"enum": ["any_string", "non_empty_string"]}}},
         "then": {"additionalProperties": False, "properties": {"kind": True}}},
        {"if": {"properties": {"kind": {"const": "object"}}},
         "then": {"additionalProperties": False, "properties": {
           "kind": True,
           "fields": {"type": "object", "additionalProperties": {"$ref": "#/$defs/node"}},
           "required": {"type": "array", "items": {"type": "string"}, "uniqueItems": True}}}},
        {"if": {"properties": {"kind": {"const": "array_of"}}},
         "then": {"required": ["items"], "additionalProperties": False,
                  "properties": {"kind": True, "items": {"$ref": "#/$defs/node"}}}},
        {"if": {"properties": {"kind": {"const": "one_of"}}},
         "then": {"required": ["alternatives"], "additionalProperties": False,
                  "properties": {"kind": True,
                                 "alternatives": {"type": "array", "minItems": 2, "items": {"$ref": "#/$defs/node"}}}}},
        {"if": {"properties": {"kind": {"const": "ref"}}},
         "then": {"required": ["name"], "additionalProperties": False,
                  "properties": {"kind": True, "name": {"type": "string"}}}},
        {"if": {"properties": {"kind": {"const": "component_list"}}},
         "then": {"required": ["element"], "additionalProperties": False, "properties": {
           "kind": True,
           "element": {"$ref": "#/$defs/node"},
           "identifier": {"type": "string"},
           "deprecated": {"type": "array", "items": {"type": "string"}}}}}
      ]
    }
  }
}

_VERSION_RE = re.compile(r"^[0-9]+\.[0-9]+$")

_CACHE: Dict[str, "Catalogue"] = {}


@dataclass
class Catalogue:
    spec_version: str
    root: Validator
    format: str = "CycloneDX"
    definitions: Dict[str, Validator] = field(default_factory=dict)
    source: Optional[Path] = None


def catalogue_path(version: str, schema_dir: Optional[Path] = None) -> Path:
    return Path(schema_dir or DEFAULT_SCHEMA_DIR) / f"cyclonedx-{version}.yml"

def available_versions(schema_dir: Optional[Path] = None) -> List[str]:
    """Spec versions with a catalogue file in schema_dir"""
    out = []
    for p in sorted(Path(schema_dir or DEFAULT_SCHEMA_DIR).glob("cyclonedx-*.yml")):
        version = p.stem[len("cyclonedx-"):]
        if _VERSION_RE.match(version):
            out.append(version)
    return out

def load_catalogue(version: str, schema_dir: Optional[Path] = None) -> Catalogue:
    """Load (and cache) the catalogue for a specVersion."""
    if not isinstance(version, str) or not _VERSION_RE.match(version):
        raise UnsupportedSpecVersion(f"Unsupported specVersion: {version!r}")
    path = catalogue_path(version, schema_dir).resolve()
    key = str(path)
    if key in _CACHE:
        return _CACHE[key]
    if not path.exists():
        known = ", ".join(available_versions(schema_dir)) or "none"
        raise UnsupportedSpecVersion(f"No schema catalogue for specVersion {version} (available: {known})")

    log().debug("Loading schema catalogue %s", path)
    catalogue = parse_catalogue(read_yaml(path), source=path)
    if catalogue.spec_version != version:
        raise SchemaCatalogueError(f"{path}: declares spec_version {catalogue.spec_version}, expected {version}")
    _CACHE[key] = catalogue
    return catalogue

def clear_cache() -> None:
    _CACHE.clear()

def parse_catalogue(raw: Any, source: Optional[Path] = None) -> Catalogue:
    """Check a decoded catalogue document and compile it to validators"""
    where = str(source) if source else "<catalogue>"
    validator = Draft202012Validator(_CATALOGUE_SCHEMA)
    problems = sorted(validator.iter_errors(raw), key=lambda e: [str(p) for p in e.absolute_path])
    if problems:
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}" for e in problems
        )
        raise SchemaCatalogueError(f"{where}: invalid catalogue: {details}")

    definitions: Dict[str, Validator] = {}
    refs: List[str] = []
    for name, node in (raw.get("definitions") or {}).items():
        definitions[name] = compile_node(node, definitions, refs, f"definitions.{name}")
    root = compile_node(raw["root"], definitions, refs, "root")

    missing = sorted(set(refs) - set(definitions))
    if missing:
        raise SchemaCatalogueError(f"{where}: unresolved references: {', '.join(missing)}")

    return Catalogue(
        spec_version=raw["spec_version"],
        format=raw.get("format", "CycloneDX"),
        root=root,
        definitions=definitions,
        source=source,
    )

def compile_node(node: Dict[str, Any], definitions: Dict[str, Validator],
                 refs: Optional[List[str]] = None, where: str = "root") -> Validator:
    """Build the validator for one catalogue node"""
    if refs is None:
        refs = []
    kind = node.get("kind")
    try:
        if kind == "literal":
            return literal_match(node["value"])
        elif kind == "pattern":
            return pattern_match(node["pattern"])
        elif kind == "enum":
            return enum_match(node["values"])
        elif kind == "any_string":
            return any_string()
        elif kind == "non_empty_string":
            return non_empty_string()
        elif kind == "object":
            fields = {
                name: compile_node(child, definitions, refs, f"{where}.{name}")
                for name, child in (node.get("fields") or {}).items()
            }
            return object_schema(fields, node.get("required") or ())
        elif kind == "array_of":
            return array_of(compile_node(node["items"], definitions, refs, f"{where}.items"))
        elif kind == "one_of":
            return one_of(*[
                compile_node(alt, definitions, refs, f"{where}.{i}")
                for i, alt in enumerate(node["alternatives"])
            ])
        elif kind == "ref":
            refs.append(node["name"])
            return Ref(node["name"], definitions)
        elif kind == "component_list":
            element = compile_node(node["element"], definitions, refs, f"{where}.element")
            return ComponentList(
                element,
                identifier=node.get("identifier", "bom-ref"),
                deprecated=node.get("deprecated", ("modified",)),
            )
    except SchemaCatalogueError:
        raise
    except IntegrationError as e:
        raise SchemaCatalogueError(f"{where}: {e}")
    raise SchemaCatalogueError(f"{where}: unknown node kind: {kind}")
