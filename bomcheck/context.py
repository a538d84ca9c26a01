"""
Run-scoped validation state: where we are in the document, what has gone
wrong so far, and which identifiers have already been declared.

A ValidationContext is created once per top-level validate() call and is
passed explicitly to every check. Nothing here is shared between runs.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Set, Tuple, Union

from .config import ValidatorConfig
from .errors import IntegrationError
from .logging import log

Segment = Union[str, int]

UNKNOWN_PATH = "<unknown>"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(str, Enum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    SHAPE_MISMATCH = "shape_mismatch"
    VALUE_MISMATCH = "value_mismatch"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    NO_ALTERNATIVE_MATCHED = "no_alternative_matched"
    DEPRECATED_FIELD = "deprecated_field"
    DEPTH_EXCEEDED = "depth_exceeded"


@dataclass(frozen=True)
class Diagnostic:
    path: str
    message: str
    severity: Severity
    kind: DiagnosticKind
    # position in the order the sink first recorded diagnostics
    seq: int = field(default=0, compare=False, repr=False)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Frame:
    """Error and warning counts of a sink at one point in time."""
    errors: int
    warnings: int
    path: str = UNKNOWN_PATH


def render_path(segments: Iterable[Segment]) -> str:
    rendered = ".".join(str(s) for s in segments)
    return rendered or UNKNOWN_PATH


class PathTracker:
    def __init__(self) -> None:
        self._segments: List[Segment] = []

    def push(self, segment: Segment) -> None:
        if isinstance(segment, bool) or not isinstance(segment, (str, int)):
            raise IntegrationError(f"Path segments must be field names or indices, not {segment!r}")
        if isinstance(segment, int) and segment < 0:
            raise IntegrationError(f"Path index must be non-negative, not {segment}")
        self._segments.append(segment)

    def pop(self) -> Segment:
        if not self._segments:
            raise IntegrationError("Can't pop an empty path")
        return self._segments.pop()

    def current(self) -> str:
        return render_path(self._segments)

    @property
    def depth(self) -> int:
        return len(self._segments)

    def segments(self) -> Tuple[Segment, ...]:
        return tuple(self._segments)


class DiagnosticSink:
    """Ordered errors and warnings with snapshot/restore for speculative checks.

    By default a single snapshot may be outstanding at a time; taking a second
    one before restoring the first raises IntegrationError. With nested=True
    snapshots form a stack and must be restored innermost first.
    """

    def __init__(self, nested: bool = False) -> None:
        self._errors: List[Diagnostic] = []
        self._warnings: List[Diagnostic] = []
        # errors and warnings together, in the order they entered the sink
        self._log: List[Diagnostic] = []
        self._frames: List[Frame] = []
        self._nested = nested
        self._seq = 0

    def _record(self, message: str, path: str, severity: Severity, kind: DiagnosticKind) -> Diagnostic:
        self._seq += 1
        return Diagnostic(path=path, message=message, severity=severity, kind=kind, seq=self._seq)

    def add_error(self, message: str, path: str = UNKNOWN_PATH,
                  kind: DiagnosticKind = DiagnosticKind.VALUE_MISMATCH) -> Diagnostic:
        diag = self._record(message, path, Severity.ERROR, kind)
        self._errors.append(diag)
        self._log.append(diag)
        return diag

    def add_warning(self, message: str, path: str = UNKNOWN_PATH,
                    kind: DiagnosticKind = DiagnosticKind.DEPRECATED_FIELD) -> Diagnostic:
        diag = self._record(message, path, Severity.WARNING, kind)
        self._warnings.append(diag)
        self._log.append(diag)
        return diag

    def errors(self) -> List[str]:
        return [d.message for d in self._errors]

    def warnings(self) -> List[str]:
        return [d.message for d in self._warnings]

    def error_diagnostics(self) -> List[Diagnostic]:
        return list(self._errors)

    def warning_diagnostics(self) -> List[Diagnostic]:
        return list(self._warnings)

    def diagnostics(self) -> List[Diagnostic]:
        """Errors and warnings interleaved in the order they entered the sink."""
        return list(self._log)

    def is_valid(self) -> bool:
        return not self._errors

    @property
    def error_count(self) -> int:
        return len(self._errors)

    @property
    def outstanding(self) -> int:
        return len(self._frames)

    def mark(self, path: str = UNKNOWN_PATH) -> Frame:
        """Current counts, without taking the speculative slot."""
        return Frame(errors=len(self._errors), warnings=len(self._warnings), path=path)

    def snapshot(self, path: str = UNKNOWN_PATH) -> Frame:
        if self._frames and not self._nested:
            raise IntegrationError(
                f"Can't snapshot diagnostics at {path}: a snapshot taken at {self._frames[-1].path} is still outstanding"
            )
        frame = self.mark(path)
        self._frames.append(frame)
        log().debug("Snapshot diagnostics at %s (%d errors, %d warnings)", path, frame.errors, frame.warnings)
        return frame

    def restore(self, frame: Frame) -> Tuple[List[Diagnostic], List[Diagnostic]]:
        """Truncate back to frame and return what was added since it was taken."""
        if not self._frames:
            raise IntegrationError("Can't restore diagnostics when no snapshot is outstanding")
        if self._frames[-1] is not frame:
            raise IntegrationError(f"Can't restore snapshot taken at {frame.path}: it is not the innermost snapshot")
        self._frames.pop()
        added_errors = self._errors[frame.errors:]
        added_warnings = self._warnings[frame.warnings:]
        del self._errors[frame.errors:]
        del self._warnings[frame.warnings:]
        # everything added since the frame sits at the tail of the log
        del self._log[frame.errors + frame.warnings:]
        log().debug("Restored diagnostics at %s (discarded %d errors, %d warnings)",
                    frame.path, len(added_errors), len(added_warnings))
        return added_errors, added_warnings

    def replay(self, errors: Iterable[Diagnostic] = (), warnings: Iterable[Diagnostic] = ()) -> None:
        """Re-add diagnostics returned by restore, keeping their relative order."""
        errors, warnings = list(errors), list(warnings)
        self._errors.extend(errors)
        self._warnings.extend(warnings)
        self._log.extend(sorted(errors + warnings, key=lambda d: d.seq))


class ValidationContext:
    def __init__(self, config: Optional[ValidatorConfig] = None) -> None:
        self.config = config or ValidatorConfig()
        self.path = PathTracker()
        self.sink = DiagnosticSink(nested=self.config.nested_speculation)
        self.identifiers: Set[str] = set()

    @property
    def name(self) -> str:
        return self.path.current()

    def error(self, message: str, kind: DiagnosticKind = DiagnosticKind.VALUE_MISMATCH) -> Diagnostic:
        return self.sink.add_error(message, path=self.path.current(), kind=kind)

    def warning(self, message: str, kind: DiagnosticKind = DiagnosticKind.DEPRECATED_FIELD) -> Diagnostic:
        return self.sink.add_warning(message, path=self.path.current(), kind=kind)

    @contextmanager
    def descend(self, segment: Segment) -> Iterator[str]:
        self.path.push(segment)
        try:
            yield self.path.current()
        finally:
            self.path.pop()

    def snapshot(self) -> Frame:
        return self.sink.snapshot(self.path.current())

    def exceeds_depth(self) -> bool:
        """Record an error and return True when nesting passes config.max_depth."""
        if self.path.depth <= self.config.max_depth:
            return False
        self.error(
            f"Invalid {self.name}. Nesting exceeds the maximum depth of {self.config.max_depth}",
            DiagnosticKind.DEPTH_EXCEEDED,
        )
        return True

    def seen_identifier(self, value: str) -> bool:
        """Register value; return True if it was already registered in this run."""
        if value in self.identifiers:
            return True
        self.identifiers.add(value)
        return False
