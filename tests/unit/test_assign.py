"""
Tests for tuple assignability.
"""

import pytest

from tuplety.context import TyCtxt
from tuplety.shared.errors import FailureKind
from tuplety.shared.types import (
    IterableType, BOOL, INT, STR, FLOAT, NONE, UNKNOWN, make_union,
)
from tuplety.shapes.assign import AssignabilityChecker
from tuplety.shapes.model import OpenSegment, TupleShape, TupleType, homogeneous_tuple, tuple_of


@pytest.fixture
def checker(tcx):
    return AssignabilityChecker(tcx)


class TestExactAssignability:
    """Exact source to exact target"""

    def test_identical(self, checker):
        assert checker.check(tuple_of(INT, STR), tuple_of(INT, STR)).ok

    def test_element_mismatch_reports_position(self, checker):
        result = checker.check(tuple_of(INT, INT, INT), tuple_of(INT, INT, STR))
        assert [(f.kind, f.position) for f in result.failures] == [
            (FailureKind.ELEMENT_TYPE_MISMATCH, 2),
        ]
        assert result.failures[0].source == INT
        assert result.failures[0].target == STR

    def test_size_mismatch(self, checker):
        result = checker.check(tuple_of(INT, STR), tuple_of(INT, STR, FLOAT))
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.kind == FailureKind.SIZE_MISMATCH
        assert (failure.expected, failure.received) == (3, 2)

    def test_numeric_promotion(self, checker):
        assert checker.check(tuple_of(BOOL, INT), tuple_of(INT, FLOAT)).ok


class TestVariadicAssignability:
    """Shapes with open segments on either side"""

    def test_exact_into_homogeneous(self, checker):
        result = checker.check(tuple_of(STR, INT, INT), homogeneous_tuple(STR))
        assert [f.position for f in result.failures] == [1, 2]

    def test_single_into_homogeneous(self, checker):
        result = checker.check(tuple_of(INT), homogeneous_tuple(STR))
        assert [f.position for f in result.failures] == [0]

    def test_homogeneous_into_exact(self, checker):
        result = checker.check(homogeneous_tuple(STR), tuple_of(STR))
        assert [f.kind for f in result.failures] == [FailureKind.SIZE_MISMATCH]
        assert result.failures[0].received_at_least

    def test_gradual_into_exact(self, checker):
        assert checker.check(homogeneous_tuple(UNKNOWN), tuple_of(INT, STR)).ok

    def test_exact_into_mixed(self, checker):
        target = TupleType(TupleShape((INT,), OpenSegment(STR), (FLOAT,)))
        assert checker.check(tuple_of(INT, FLOAT), target).ok
        assert checker.check(tuple_of(INT, STR, STR, FLOAT), target).ok

    def test_too_short_for_mixed(self, checker):
        target = TupleType(TupleShape((INT,), OpenSegment(STR), (FLOAT,)))
        result = checker.check(tuple_of(INT), target)
        assert result.failures[0].kind == FailureKind.SIZE_MISMATCH
        assert result.failures[0].expected_at_least
        assert result.failures[0].expected == 2

    def test_mixed_into_homogeneous(self, checker):
        source = TupleType(TupleShape((INT,), OpenSegment(BOOL)))
        assert checker.check(source, homogeneous_tuple(INT)).ok

    def test_mixed_open_element_mismatch(self, checker):
        source = TupleType(TupleShape((INT,), OpenSegment(STR)))
        result = checker.check(source, homogeneous_tuple(INT))
        assert [(f.kind, f.position) for f in result.failures] == [
            (FailureKind.ELEMENT_TYPE_MISMATCH, None),
        ]

    def test_open_source_covers_longer_target_prefix(self, checker):
        """The source's open segment stretches into target prefix slots it has no fixed element for"""
        source = TupleType(TupleShape((INT,), OpenSegment(INT)))
        target = TupleType(TupleShape((INT, INT), OpenSegment(INT)))
        assert checker.check(source, target).ok

    def test_open_source_covers_longer_target_suffix(self, checker):
        source = TupleType(TupleShape((), OpenSegment(INT), (INT,)))
        target = TupleType(TupleShape((), OpenSegment(INT), (INT, INT)))
        assert checker.check(source, target).ok

    def test_open_source_does_not_cover_target_prefix(self, checker):
        source = TupleType(TupleShape((INT,), OpenSegment(STR)))
        target = TupleType(TupleShape((INT, INT), OpenSegment(STR)))
        result = checker.check(source, target)
        assert [(f.kind, f.position) for f in result.failures] == [
            (FailureKind.ELEMENT_TYPE_MISMATCH, 1),
        ]
        assert result.failures[0].source == STR
        assert result.failures[0].target == INT

    def test_sliding_suffix_element_must_fit_stretched_slot(self, checker):
        """A stretched slot may hold a suffix element that slid forward"""
        source = TupleType(TupleShape((INT,), OpenSegment(BOOL), (STR,)))
        target = TupleType(TupleShape((INT, INT), OpenSegment(make_union([INT, STR]))))
        result = checker.check(source, target)
        assert [(f.kind, f.position) for f in result.failures] == [
            (FailureKind.ELEMENT_TYPE_MISMATCH, 1),
        ]

    def test_gradual_open_source_covers_target_prefix(self, checker):
        source = homogeneous_tuple(UNKNOWN)
        target = TupleType(TupleShape((INT, STR), OpenSegment(FLOAT)))
        assert checker.check(source, target).ok

    def test_homogeneous_widening(self, checker):
        assert checker.check(homogeneous_tuple(INT), homogeneous_tuple(FLOAT)).ok

    def test_type_var_tuple_segment(self, checker, Ts):
        target = TupleType(TupleShape(variadic=OpenSegment(Ts)))
        assert checker.check(target, target).ok
        assert not checker.check(tuple_of(INT), target).ok


class TestIterableTargets:
    """Tuples flowing into non-tuple containers"""

    def test_tuple_into_sequence(self, checker):
        assert checker.check(tuple_of(INT, BOOL), IterableType("Sequence", INT)).ok

    def test_tuple_into_sequence_mismatch(self, checker):
        result = checker.check(tuple_of(INT, STR), IterableType("Iterable", INT))
        assert [f.position for f in result.failures] == [1]

    def test_tuple_is_not_a_list(self, checker):
        result = checker.check(tuple_of(INT), IterableType("list", INT))
        assert [f.kind for f in result.failures] == [FailureKind.ELEMENT_TYPE_MISMATCH]

    def test_rest_list_into_scalar(self, checker):
        result = checker.check(IterableType("list", INT), INT)
        assert [f.kind for f in result.failures] == [FailureKind.ELEMENT_TYPE_MISMATCH]


class TestUnionAssignability:
    """Union sources fan out; union targets accept any member"""

    def test_union_source_tags_alternative(self, checker):
        source = make_union([tuple_of(INT), tuple_of(STR)])
        result = checker.check(source, tuple_of(INT))
        assert [f.alternative for f in result.failures] == [1]

    def test_optional_target(self, checker):
        target = make_union([tuple_of(INT), NONE])
        assert checker.check(tuple_of(INT), target).ok
        assert checker.check(NONE, target).ok

    def test_optional_target_reports_tuple_member(self, checker):
        result = checker.check(tuple_of(INT), make_union([tuple_of(STR), NONE]))
        assert [(f.kind, f.position) for f in result.failures] == [
            (FailureKind.ELEMENT_TYPE_MISMATCH, 0),
        ]


class TestElementPredicate:
    """The injected predicate decides non-tuple elements"""

    def test_custom_predicate(self):
        checker = AssignabilityChecker(TyCtxt(lambda source, target: True))
        assert checker.check(tuple_of(INT), tuple_of(STR)).ok

    def test_custom_predicate_does_not_fix_arity(self):
        checker = AssignabilityChecker(TyCtxt(lambda source, target: True))
        assert not checker.check(tuple_of(INT), tuple_of(STR, STR)).ok

    def test_results_are_cached(self, tcx, checker):
        checker.check(tuple_of(INT), tuple_of(STR))
        checker.check(tuple_of(INT), tuple_of(STR))
        assert tcx.assign_cache.hits >= 1
