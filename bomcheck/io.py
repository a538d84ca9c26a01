from __future__ import annotations
import json
from pathlib import Path
from typing import Any

import yaml

from .errors import DocumentError, SchemaCatalogueError

def read_text(p: Path) -> str:
    try:
        return Path(p).read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Can't open {p} for reading: {e}")

def decode_json(text: str, source: str = "<string>") -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON in {source}: {e}")
    except RecursionError:
        raise DocumentError(f"Invalid JSON in {source}: nesting is too deep to decode")

def read_yaml(p: Path) -> Any:
    try:
        return yaml.safe_load(Path(p).read_text(encoding="utf-8"))
    except OSError as e:
        raise SchemaCatalogueError(f"Can't open catalogue {p}: {e}")
    except yaml.YAMLError as e:
        raise SchemaCatalogueError(f"Invalid YAML in {p}: {e}")
