import pytest

from bomcheck.config import ValidatorConfig
from bomcheck.context import (
    DiagnosticKind, DiagnosticSink, PathTracker, Severity, ValidationContext, UNKNOWN_PATH,
)
from bomcheck.errors import IntegrationError


class TestPathTracker:
    def test_empty_path_renders_unknown(self):
        assert PathTracker().current() == UNKNOWN_PATH == "<unknown>"

    def test_push_and_pop_render_dotted(self):
        path = PathTracker()
        path.push("components")
        path.push(0)
        path.push("bom-ref")
        assert path.current() == "components.0.bom-ref"
        assert path.depth == 3
        assert path.pop() == "bom-ref"
        assert path.current() == "components.0"
        assert path.segments() == ("components", 0)

    def test_pop_empty_is_integration_error(self):
        with pytest.raises(IntegrationError):
            PathTracker().pop()

    @pytest.mark.parametrize("segment", [-1, 1.5, None, True])
    def test_rejects_bad_segments(self, segment):
        with pytest.raises(IntegrationError):
            PathTracker().push(segment)


class TestDiagnosticSink:
    def test_warnings_do_not_affect_validity(self):
        sink = DiagnosticSink()
        sink.add_warning("careful")
        assert sink.is_valid()
        assert sink.warnings() == ["careful"]
        sink.add_error("broken", path="a.b", kind=DiagnosticKind.SHAPE_MISMATCH)
        assert not sink.is_valid()
        diag = sink.error_diagnostics()[0]
        assert diag.path == "a.b"
        assert diag.severity is Severity.ERROR
        assert diag.kind is DiagnosticKind.SHAPE_MISMATCH
        assert str(diag) == "broken"

    def test_restore_truncates_and_returns_additions(self):
        sink = DiagnosticSink()
        sink.add_error("before")
        frame = sink.snapshot("x")
        sink.add_error("during 1")
        sink.add_warning("during warning")
        sink.add_error("during 2")
        errors, warnings = sink.restore(frame)
        assert [d.message for d in errors] == ["during 1", "during 2"]
        assert [d.message for d in warnings] == ["during warning"]
        assert sink.errors() == ["before"]
        assert sink.warnings() == []
        assert sink.outstanding == 0

    def test_replay_appends_in_order(self):
        sink = DiagnosticSink()
        frame = sink.snapshot()
        sink.add_error("one")
        sink.add_error("two")
        errors, warnings = sink.restore(frame)
        sink.add_error("zero")
        sink.replay(errors, warnings)
        assert sink.errors() == ["zero", "one", "two"]

    def test_diagnostics_interleave_errors_and_warnings(self):
        sink = DiagnosticSink()
        sink.add_warning("w1")
        sink.add_error("e1")
        frame = sink.snapshot()
        sink.add_error("e2")
        sink.add_warning("w2")
        sink.add_error("e3")
        errors, warnings = sink.restore(frame)
        assert [d.message for d in sink.diagnostics()] == ["w1", "e1"]
        sink.add_warning("w3")
        sink.replay(errors, warnings)
        assert [d.message for d in sink.diagnostics()] == ["w1", "e1", "w3", "e2", "w2", "e3"]
        assert sink.errors() == ["e1", "e2", "e3"]
        assert sink.warnings() == ["w1", "w3", "w2"]

    def test_second_snapshot_is_fatal_by_default(self):
        sink = DiagnosticSink()
        sink.snapshot("outer")
        with pytest.raises(IntegrationError, match="outer"):
            sink.snapshot("inner")

    def test_restore_without_snapshot_is_fatal(self):
        sink = DiagnosticSink()
        frame = sink.mark()
        with pytest.raises(IntegrationError):
            sink.restore(frame)

    def test_nested_snapshots_restore_innermost_first(self):
        sink = DiagnosticSink(nested=True)
        outer = sink.snapshot("outer")
        sink.add_error("outer error")
        inner = sink.snapshot("inner")
        sink.add_error("inner error")
        with pytest.raises(IntegrationError):
            sink.restore(outer)
        errors, _ = sink.restore(inner)
        assert [d.message for d in errors] == ["inner error"]
        errors, _ = sink.restore(outer)
        assert [d.message for d in errors] == ["outer error"]
        assert sink.errors() == []

    def test_mark_does_not_take_the_slot(self):
        sink = DiagnosticSink()
        sink.mark()
        sink.snapshot()
        assert sink.outstanding == 1


class TestValidationContext:
    def test_diagnostics_carry_current_path(self):
        ctx = ValidationContext()
        with ctx.descend("metadata"):
            with ctx.descend("authors") as name:
                assert name == "metadata.authors"
                ctx.error("bad")
        ctx.warning("meh")
        assert [d.path for d in ctx.sink.error_diagnostics()] == ["metadata.authors"]
        assert [d.path for d in ctx.sink.warning_diagnostics()] == ["<unknown>"]

    def test_descend_pops_on_exception(self):
        ctx = ValidationContext()
        with pytest.raises(RuntimeError):
            with ctx.descend("a"):
                raise RuntimeError("boom")
        assert ctx.path.depth == 0

    def test_identifier_registry(self):
        ctx = ValidationContext()
        assert ctx.seen_identifier("x") is False
        assert ctx.seen_identifier("y") is False
        assert ctx.seen_identifier("x") is True

    def test_depth_bound(self):
        ctx = ValidationContext(ValidatorConfig(max_depth=2))
        ctx.path.push("a")
        ctx.path.push("b")
        assert ctx.exceeds_depth() is False
        ctx.path.push("c")
        assert ctx.exceeds_depth() is True
        diag = ctx.sink.error_diagnostics()[0]
        assert diag.message == "Invalid a.b.c. Nesting exceeds the maximum depth of 2"
        assert diag.kind is DiagnosticKind.DEPTH_EXCEEDED

    def test_nested_speculation_follows_config(self):
        ctx = ValidationContext(ValidatorConfig(nested_speculation=True))
        ctx.snapshot()
        ctx.snapshot()
        assert ctx.sink.outstanding == 2
