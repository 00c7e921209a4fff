"""
Tests for the lark annotation frontend.
"""

import pytest

from tuplety.shared.errors import AnnotationSyntaxError, FailureKind, MalformedShapeError
from tuplety.shared.types import (
    IterableType, INT, STR, FLOAT, NONE, NEVER, UNKNOWN, make_union,
)
from tuplety.shapes.model import OpenSegment, TupleShape, TupleType, homogeneous_tuple, tuple_of


class TestTupleAnnotations:
    """tuple[...] forms"""

    @pytest.mark.parametrize("text,expected", [
        ("tuple[int, str]", tuple_of(INT, STR)),
        ("Tuple[int, str]", tuple_of(INT, STR)),
        ("tuple[int]", tuple_of(INT)),
        ("tuple[int, ...]", homogeneous_tuple(INT)),
        ("tuple[()]", TupleType(TupleShape.empty())),
        ("tuple", homogeneous_tuple(UNKNOWN)),
        ("typing.Tuple[int, float]", tuple_of(INT, FLOAT)),
    ])
    def test_parse(self, session_parser, text, expected):
        assert session_parser.parse(text) == expected

    def test_unpacked_middle(self, session_parser):
        ty = session_parser.parse("tuple[int, *tuple[str, ...], float]")
        assert ty.shape == TupleShape((INT,), OpenSegment(STR), (FLOAT,))

    def test_unpack_spelling(self, parser, Ts):
        ty = parser.parse("Tuple[int, Unpack[Ts]]")
        assert ty.shape == TupleShape((INT,), OpenSegment(Ts))

    def test_star_type_var_tuple(self, parser, Ts):
        ty = parser.parse("tuple[*Ts, float]")
        assert ty.shape == TupleShape((), OpenSegment(Ts), (FLOAT,))

    def test_unpacked_exact_tuple_is_spliced(self, session_parser):
        assert session_parser.parse("tuple[int, *tuple[str, float]]") == tuple_of(INT, STR, FLOAT)

    def test_nested_tuple(self, session_parser):
        assert session_parser.parse("tuple[tuple[int], str]") == tuple_of(tuple_of(INT), STR)


class TestOtherAnnotations:
    def test_union_operator(self, session_parser):
        assert session_parser.parse("int | None") == make_union([INT, NONE])

    def test_optional(self, session_parser):
        assert session_parser.parse("Optional[tuple[int]]") == make_union([tuple_of(INT), NONE])

    def test_union_subscript(self, session_parser):
        assert session_parser.parse("Union[int, str, int]") == make_union([INT, STR])

    @pytest.mark.parametrize("text,expected", [
        ("list[int]", IterableType("list", INT)),
        ("typing.List[str]", IterableType("list", STR)),
        ("Sequence[int | str]", IterableType("Sequence", make_union([INT, STR]))),
        ("Iterable", IterableType("Iterable", UNKNOWN)),
    ])
    def test_iterables(self, session_parser, text, expected):
        assert session_parser.parse(text) == expected

    def test_special_names(self, session_parser):
        assert session_parser.parse("Any") is UNKNOWN
        assert session_parser.parse("Never") is NEVER

    def test_type_var(self, parser, T):
        assert parser.parse("tuple[T, T]") == tuple_of(T, T)


class TestMalformedAnnotations:
    """Shape errors raise from parse and become Unknown through lower"""

    @pytest.mark.parametrize("text", [
        "tuple[*tuple[int, ...], *tuple[str, ...]]",
        "tuple[int, ..., str]",
        "tuple[..., int]",
        "tuple[int, int, ...]",
        "tuple[*int]",
        "list[*tuple[int, ...]]",
    ])
    def test_parse_raises(self, session_parser, text):
        with pytest.raises(MalformedShapeError) as exc_info:
            session_parser.parse(text)
        assert exc_info.value.failure.kind == FailureKind.MALFORMED_SHAPE

    def test_type_var_tuple_not_unpacked(self, parser):
        with pytest.raises(MalformedShapeError):
            parser.parse("tuple[Ts]")

    def test_lower_reports_failure(self, parser, tcx):
        ty = parser.lower("tuple[*tuple[int, ...], *Ts]", tcx, node="x: ...")
        assert ty is UNKNOWN
        failures = tcx.reporter.failures_of(FailureKind.MALFORMED_SHAPE)
        assert len(failures) == 1
        assert tcx.reporter.reported[0].node == "x: ..."

    def test_lower_valid(self, parser, tcx):
        assert parser.lower("tuple[int]", tcx) == tuple_of(INT)
        assert not tcx.reporter.has_errors()


class TestSyntaxErrors:
    @pytest.mark.parametrize("text", ["tuple[int", "tuple[int]]", "int |", "[int]"])
    def test_grammar_rejects(self, session_parser, text):
        with pytest.raises(AnnotationSyntaxError):
            session_parser.parse(text)

    def test_unknown_name(self, session_parser):
        with pytest.raises(AnnotationSyntaxError) as exc_info:
            session_parser.parse("tuple[frobnicate]")
        assert exc_info.value.line == 1
        assert exc_info.value.column == 7

    def test_unknown_name_is_not_shape_error(self, session_parser):
        with pytest.raises(AnnotationSyntaxError):
            session_parser.lower("frobnicate", tcx=None)
