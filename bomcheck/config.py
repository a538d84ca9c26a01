from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

DEFAULT_MAX_DEPTH = 128
DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}

def load_env(project_root: Optional[Path] = None) -> None:
    """Load environment variables from a .env file if it exists."""
    root = project_root or Path.cwd()
    dotenv_path = root / ".env"
    # never override variables already set in the environment
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)

def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{key} must be a boolean, got '{raw}'")

def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'")

@dataclass
class ValidatorConfig:
    """Knobs for a validation run.

    max_depth bounds how many path segments deep the driver descends before
    giving up on a subtree. nested_speculation allows one_of blocks to nest
    inside other one_of blocks; by default only one speculative snapshot may
    be outstanding at a time.
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    nested_speculation: bool = False
    schema_dir: Path = field(default_factory=lambda: DEFAULT_SCHEMA_DIR)

    def __post_init__(self) -> None:
        if not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {self.max_depth!r}")
        self.schema_dir = Path(self.schema_dir)

    @staticmethod
    def from_env(load_dotenv_file: bool = True) -> "ValidatorConfig":
        if load_dotenv_file:
            load_env()
        schema_dir = os.environ.get("BOMCHECK_SCHEMA_DIR")
        return ValidatorConfig(
            max_depth=_env_int("BOMCHECK_MAX_DEPTH", DEFAULT_MAX_DEPTH),
            nested_speculation=_env_bool("BOMCHECK_NESTED_SPECULATION", False),
            schema_dir=Path(schema_dir) if schema_dir else DEFAULT_SCHEMA_DIR,
        )

    def as_dict(self) -> Dict[str, str]:
        return {
            "max_depth": str(self.max_depth),
            "nested_speculation": str(self.nested_speculation).lower(),
            "schema_dir": str(self.schema_dir),
        }
