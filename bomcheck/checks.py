"""
Validators for document values.

Every validator exposes check(ctx, value) -> bool. A failing check records
one or more diagnostics at ctx's current path and returns False; it never
raises for problems in the document. Problems in the schema itself (a string
check handed a number, a one_of with a single alternative, a field mapped to
something that is not a validator) raise IntegrationError immediately.
"""

from __future__ import annotations
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Tuple, Union

from .context import DiagnosticKind, ValidationContext
from .errors import IntegrationError
from .logging import log

NO_MATCH = "Does not match any of the specified checks"


def shape_of(value: Any) -> str:
    """JSON-ish name of a value's runtime shape, for diagnostics."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


class Validator(ABC):
    @abstractmethod
    def check(self, ctx: ValidationContext, value: Any) -> bool:
        ...


def _require_validator(candidate: Any, where: str) -> "Validator":
    if not isinstance(candidate, Validator):
        raise IntegrationError(f"Invalid validator for {where}: {candidate!r}")
    return candidate


# ============================================================================
# Primitive checks
# ============================================================================

class StringCheck(Validator):
    def check(self, ctx: ValidationContext, value: Any) -> bool:
        if not isinstance(value, str):
            raise IntegrationError(f"Value {ctx.name} must be a string, not a {shape_of(value)}")
        if self.matches(value):
            return True
        ctx.error(f"Invalid {ctx.name}. {self.describe()}, not '{value}'", DiagnosticKind.VALUE_MISMATCH)
        return False

    @abstractmethod
    def matches(self, value: str) -> bool:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...


class LiteralMatch(StringCheck):
    def __init__(self, expected: str):
        if not isinstance(expected, str):
            raise IntegrationError(f"literal_match needs a string, not {expected!r}")
        self.expected = expected

    def matches(self, value: str) -> bool:
        return value == self.expected

    def describe(self) -> str:
        return f"Must be '{self.expected}'"

    def __repr__(self) -> str:
        return f"LiteralMatch({self.expected!r})"


class PatternMatch(StringCheck):
    def __init__(self, pattern: Union[str, re.Pattern]):
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise IntegrationError(f"pattern_match given an invalid pattern '{pattern}': {e}")
        elif not isinstance(pattern, re.Pattern):
            raise IntegrationError(f"pattern_match needs a string or compiled pattern, not {pattern!r}")
        self.pattern = pattern

    def matches(self, value: str) -> bool:
        return self.pattern.search(value) is not None

    def describe(self) -> str:
        return f"Must match '{self.pattern.pattern}'"

    def __repr__(self) -> str:
        return f"PatternMatch({self.pattern.pattern!r})"


class EnumMatch(StringCheck):
    def __init__(self, members: Iterable[str]):
        if isinstance(members, str):
            raise IntegrationError(f"enum_match needs a collection of strings, not the string '{members}'")
        members = list(members)
        if not members or not all(isinstance(m, str) for m in members):
            raise IntegrationError(f"enum_match needs a non-empty collection of strings, not {members!r}")
        # sorted so error text is deterministic
        self.members: Tuple[str, ...] = tuple(sorted(set(members)))

    def matches(self, value: str) -> bool:
        return value in self.members

    def describe(self) -> str:
        return f"Must be one of '{' '.join(self.members)}'"

    def __repr__(self) -> str:
        return f"EnumMatch({list(self.members)!r})"


def literal_match(expected: str) -> LiteralMatch:
    return LiteralMatch(expected)

def pattern_match(pattern: Union[str, re.Pattern]) -> PatternMatch:
    return PatternMatch(pattern)

def enum_match(members: Iterable[str]) -> EnumMatch:
    return EnumMatch(members)

def any_string() -> PatternMatch:
    """Any string with at least one character."""
    return PatternMatch(".")

def non_empty_string() -> PatternMatch:
    """A string with at least one non-whitespace character."""
    return PatternMatch(r"\S")


# ============================================================================
# Composite checks
# ============================================================================

@dataclass(frozen=True)
class SchemaNode:
    """Field name -> validator, plus the names that must be present."""
    fields: Mapping[str, Validator]
    required: frozenset = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.fields, Mapping):
            raise IntegrationError(f"Schema fields must be a mapping, not {self.fields!r}")
        for name, validator in self.fields.items():
            _require_validator(validator, f"field '{name}'")
        required = frozenset(self.required)
        unknown = sorted(required - set(self.fields))
        if unknown:
            raise IntegrationError(f"Required fields not declared in schema: {', '.join(unknown)}")
        object.__setattr__(self, "fields", dict(self.fields))
        object.__setattr__(self, "required", required)

    def field_names(self) -> List[str]:
        return sorted(self.fields)


class ObjectSchema(Validator):
    def __init__(self, node: SchemaNode):
        self.node = node

    def check(self, ctx: ValidationContext, value: Any) -> bool:
        if not isinstance(value, Mapping):
            ctx.error(f"Value {ctx.name} must be an object, not a {shape_of(value)}", DiagnosticKind.SHAPE_MISMATCH)
            return False
        # imported here to avoid a cycle; the driver builds on these checks
        from .driver import validate_object
        return validate_object(ctx, self.node, value)

    def __repr__(self) -> str:
        return f"ObjectSchema({self.node.field_names()!r})"


class ArrayOf(Validator):
    def __init__(self, element: Validator):
        self.element = _require_validator(element, "array_of")

    def check(self, ctx: ValidationContext, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            ctx.error(f"Value {ctx.name} must be an arrayref, not a {shape_of(value)}", DiagnosticKind.SHAPE_MISMATCH)
            return False
        if ctx.exceeds_depth():
            return False
        ok = True
        for i, item in enumerate(value):
            with ctx.descend(i):
                if not self.element.check(ctx, item):
                    ok = False
        if not ok:
            ctx.error(f"Invalid {ctx.name}. {NO_MATCH}", DiagnosticKind.NO_ALTERNATIVE_MATCHED)
        return ok

    def __repr__(self) -> str:
        return f"ArrayOf({self.element!r})"


class OneOf(Validator):
    """Succeeds if any alternative does; the first success wins.

    Each attempt runs inside a sink snapshot. Diagnostics from failed attempts
    only surface when every alternative fails, replayed in attempt order and
    followed by one summary error. Identifiers registered by a failed attempt
    are forgotten.
    """

    def __init__(self, *alternatives: Validator):
        if len(alternatives) < 2:
            raise IntegrationError(f"one_of needs at least two alternatives, got {len(alternatives)}")
        self.alternatives = tuple(_require_validator(a, "one_of") for a in alternatives)

    def check(self, ctx: ValidationContext, value: Any) -> bool:
        attempts = []
        registered = set(ctx.identifiers)
        for index, alternative in enumerate(self.alternatives):
            ctx.identifiers = set(registered)
            frame = ctx.snapshot()
            ok = alternative.check(ctx, value)
            errors, warnings = ctx.sink.restore(frame)
            if ok:
                log().debug("%s matched alternative %d of %d", ctx.name, index + 1, len(self.alternatives))
                ctx.sink.replay(errors, warnings)
                return True
            attempts.append((errors, warnings))

        ctx.identifiers = registered
        for errors, warnings in attempts:
            ctx.sink.replay(errors, warnings)
        ctx.error(f"Invalid {ctx.name}. {NO_MATCH}", DiagnosticKind.NO_ALTERNATIVE_MATCHED)
        return False

    def __repr__(self) -> str:
        return f"OneOf{self.alternatives!r}"


class Ref(Validator):
    """A named validator looked up when first checked, so schemas can refer to themselves."""

    def __init__(self, name: str, definitions: Mapping[str, Validator]):
        self.name = name
        self.definitions = definitions

    def resolve(self) -> Validator:
        target = self.definitions.get(self.name)
        if target is None:
            raise IntegrationError(f"Unresolved schema reference '{self.name}'")
        return _require_validator(target, f"reference '{self.name}'")

    def check(self, ctx: ValidationContext, value: Any) -> bool:
        return self.resolve().check(ctx, value)

    def __repr__(self) -> str:
        return f"Ref({self.name!r})"


def object_schema(fields: Mapping[str, Validator], required: Iterable[str] = ()) -> ObjectSchema:
    return ObjectSchema(SchemaNode(fields=fields, required=frozenset(required)))

def array_of(element: Validator) -> ArrayOf:
    return ArrayOf(element)

def one_of(*alternatives: Validator) -> OneOf:
    return OneOf(*alternatives)
