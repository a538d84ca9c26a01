"""
Validation driver: recursive descent of a document against a schema.

validate() owns one ValidationContext per call. validate_object() applies a
SchemaNode to a mapping at the context's current path, and ComponentList is
the self-referential validator for CycloneDX component arrays, including the
document-wide bom-ref uniqueness rule and deprecated-field warnings.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .checks import ObjectSchema, SchemaNode, Validator, shape_of
from .config import ValidatorConfig
from .context import Diagnostic, DiagnosticKind, ValidationContext
from .errors import IntegrationError
from .logging import log


@dataclass
class ValidationReport:
    """Result of one validation run"""
    valid: bool
    errors: List[str]
    warnings: List[str]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            lines.extend(f"  {e}" for e in self.errors)
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            lines.extend(f"  {w}" for w in self.warnings)
        if not lines:
            lines.append("OK")
        return "\n".join(lines)


def validate_object(ctx: ValidationContext, node: SchemaNode, source: Mapping[str, Any]) -> bool:
    """Apply node to source at the current path; True iff no new errors were added."""
    before = ctx.sink.mark(ctx.name)
    if ctx.exceeds_depth():
        return False
    for key in node.field_names():
        with ctx.descend(key) as name:
            if key not in source:
                if key in node.required:
                    ctx.error(f"Missing required field '{name}'", DiagnosticKind.MISSING_REQUIRED_FIELD)
                continue
            node.fields[key].check(ctx, source[key])
    return ctx.sink.error_count == before.errors


class ComponentList(Validator):
    """A list of component objects, each validated against element.

    The element schema may refer back to this validator (components inside
    components). Every component carrying an identifier field must use a
    value unseen anywhere else in the document.
    """

    def __init__(self, element: ObjectSchema, identifier: str = "bom-ref",
                 deprecated: Iterable[str] = ("modified",)):
        if not isinstance(element, ObjectSchema):
            raise IntegrationError(f"component_list needs an object schema, not {element!r}")
        self.element = element
        self.identifier = identifier
        self.deprecated: Tuple[str, ...] = tuple(deprecated)

    def check(self, ctx: ValidationContext, value: Any) -> bool:
        before = ctx.sink.mark(ctx.name)
        if not isinstance(value, (list, tuple)):
            ctx.error(f"Value {ctx.name} must be an arrayref, not a {shape_of(value)}", DiagnosticKind.SHAPE_MISMATCH)
            return False
        if ctx.exceeds_depth():
            return False
        for i, component in enumerate(value):
            with ctx.descend(i) as name:
                self.element.check(ctx, component)
                if not isinstance(component, Mapping):
                    continue
                # registered after nested components, so a child sharing its
                # parent's identifier is seen first and the parent is flagged
                self._check_identifier(ctx, name, component)
                for key in self.deprecated:
                    if key in component:
                        ctx.warning(f"{name}.{key} is deprecated and should not be used.")
        return ctx.sink.error_count == before.errors

    def _check_identifier(self, ctx: ValidationContext, name: str, component: Mapping[str, Any]) -> None:
        if self.identifier not in component:
            return
        ref = component[self.identifier]
        if not isinstance(ref, str):
            return
        if ctx.seen_identifier(ref):
            ctx.error(f"{name}.{self.identifier}: Duplicate {self.identifier} '{ref}'",
                      DiagnosticKind.DUPLICATE_IDENTIFIER)

    def __repr__(self) -> str:
        return f"ComponentList({self.element!r})"


def validate(document: Any, root: Validator, config: Optional[ValidatorConfig] = None) -> ValidationReport:
    """Validate document against root in a fresh context."""
    if not isinstance(root, Validator):
        raise IntegrationError(f"Root schema must be a validator, not {root!r}")
    ctx = ValidationContext(config)
    log().debug("Validating %s document against %r", shape_of(document), root)
    root.check(ctx, document)
    if ctx.sink.outstanding:
        raise IntegrationError(f"{ctx.sink.outstanding} diagnostic snapshot(s) left unrestored")
    report = ValidationReport(
        valid=ctx.sink.is_valid(),
        errors=ctx.sink.errors(),
        warnings=ctx.sink.warnings(),
        diagnostics=ctx.sink.diagnostics(),
    )
    log().debug("Validation finished: %d error(s), %d warning(s)", len(report.errors), len(report.warnings))
    return report
