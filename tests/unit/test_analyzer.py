"""
End-to-end tests through the TupleAnalyzer facade: annotations in, results and
reported failures out.
"""

from tuplety.shared.errors import FailureKind
from tuplety.shared.types import IterableType, INT, STR, FLOAT, BYTES, UNKNOWN, make_union
from tuplety.shapes.destructure import DestructurePattern
from tuplety.shapes.model import LiteralEntry, ShapeDescription, homogeneous_tuple, tuple_of
from tuplety.shapes.parameters import Parameter, ParameterCategory


class TestTupleAnalyzer:
    def test_index_reports_with_node(self, analyzer):
        pair = analyzer.lower_annotation("tuple[int, str]")
        result = analyzer.index(pair, 2, node="a[2]")
        assert result.type == make_union([INT, STR])
        reported = analyzer.tcx.reporter.reported
        assert [(r.failure.kind, r.node) for r in reported] == [(FailureKind.INDEX_OUT_OF_RANGE, "a[2]")]

    def test_mixed_annotation_index(self, analyzer):
        mixed = analyzer.lower_annotation("tuple[int, *tuple[str, ...], float]")
        assert analyzer.index(mixed, 0).type == INT
        assert analyzer.index(mixed, -1).type == make_union([INT, STR, FLOAT])
        assert not analyzer.tcx.reporter.has_errors()

    def test_assign_from_annotations(self, analyzer):
        source = analyzer.lower_annotation("tuple[str, int, int]")
        target = analyzer.lower_annotation("tuple[str, ...]")
        result = analyzer.assign(source, target, node="stmt")
        assert [f.position for f in result.failures] == [1, 2]
        assert len(analyzer.tcx.reporter.failures) == 2

    def test_destructure_then_assign_rest(self, analyzer):
        triple = analyzer.lower_annotation("tuple[int, int, int]")
        result = analyzer.destructure(DestructurePattern.of("c", "*d"), triple)
        assert result.binding("d") == IterableType("list", INT)
        # a collect-rest binding is a list, never a scalar
        mismatch = analyzer.assign(result.binding("d"), INT)
        assert [f.kind for f in mismatch.failures] == [FailureKind.ELEMENT_TYPE_MISMATCH]

    def test_malformed_annotation(self, analyzer):
        assert analyzer.lower_annotation("tuple[*tuple[int, ...], *tuple[str, ...]]", node="ann") is UNKNOWN
        assert len(analyzer.tcx.reporter.failures_of(FailureKind.MALFORMED_SHAPE)) == 1

    def test_malformed_description(self, analyzer):
        description = ShapeDescription(
            (homogeneous_tuple(INT), homogeneous_tuple(STR)), (True, True)
        )
        assert analyzer.lower_annotation(description) is UNKNOWN
        assert analyzer.tcx.reporter.has_errors()

    def test_specialize_from_annotations(self, analyzer):
        params = analyzer.lower_annotation("tuple[*Ts]").shape
        returns = analyzer.lower_annotation("tuple[int, *Ts]")
        result = analyzer.specialize(params, returns, tuple_of(STR, BYTES, FLOAT))
        assert result.type == tuple_of(INT, STR, BYTES, FLOAT)

    def test_call_with_unpacked_args(self, analyzer, T, Ts):
        params = [
            Parameter("x", T),
            Parameter("args", analyzer.lower_annotation("tuple[*Ts]"), ParameterCategory.ARGS_LIST, unpacked=True),
        ]
        returns = analyzer.lower_annotation("tuple[*Ts, T]")
        result = analyzer.call(params, returns, tuple_of(INT, STR, FLOAT))
        assert result.ok
        assert result.type == tuple_of(STR, FLOAT, INT)

    def test_call_with_too_few_arguments(self, analyzer, T, U):
        params = [Parameter("x", T), Parameter("y", U)]
        result = analyzer.call(params, T, tuple_of(INT), node="f(1)")
        assert [f.kind for f in result.failures] == [FailureKind.SIZE_MISMATCH]
        assert analyzer.tcx.reporter.reported[0].node == "f(1)"

    def test_call_with_malformed_args_annotation(self, analyzer):
        """*args: *int cannot form a shape; the call goes Unknown instead of raising"""
        params = [Parameter("args", INT, ParameterCategory.ARGS_LIST, unpacked=True)]
        result = analyzer.call(params, INT, tuple_of(INT), node="f(1)")
        assert result.type is UNKNOWN
        assert result.bindings.is_empty()
        assert [f.kind for f in result.failures] == [FailureKind.MALFORMED_SHAPE]
        reported = analyzer.tcx.reporter.reported
        assert [(r.failure.kind, r.node) for r in reported] == [(FailureKind.MALFORMED_SHAPE, "f(1)")]

    def test_literal_and_tuple_call(self, analyzer):
        literal = analyzer.literal([
            LiteralEntry(INT),
            LiteralEntry(IterableType("list", STR), unpacked=True),
        ])
        assert str(literal) == "tuple[int, *tuple[str, ...]]"
        assert analyzer.from_iterable(IterableType("list", INT)) == homogeneous_tuple(INT)
