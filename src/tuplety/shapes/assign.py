"""
Assignability Checker

Decides whether a value of one type can be stored where another tuple (or
iterable) type is declared. Tuple-to-tuple checks align the two shapes part by
part; everything that is not a tuple is handed to the context's element
predicate.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from ..context import TyCtxt
from ..shared.errors import Failure, FailureKind
from ..shared.types import (
    Type, IterableType, UnionType, TypeVarTupleElement, OBJECT, is_unknown, make_union,
)
from ..utils.config import LIST_TYPE_NAME
from .index import reachable_types
from .model import OpenSegment, TupleShape, TupleType

logger = logging.getLogger("tuplety.shapes.assign")


@dataclass(frozen=True)
class AssignResult:
    failures: Tuple[Failure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


_OK = AssignResult()


class AssignabilityChecker:
    def __init__(self, tcx: TyCtxt):
        self.tcx = tcx

    def check(self, source: Type, target: Type) -> AssignResult:
        return self.tcx.assign_cache.get_or_compute(
            (source, target),
            lambda: self._check(source, target),
        )

    def check_shapes(self, source: TupleShape, target: TupleShape) -> AssignResult:
        return self.check(TupleType(source), TupleType(target))

    def is_assignable(self, source: Type, target: Type) -> bool:
        return self.check(source, target).ok

    def _check(self, source: Type, target: Type) -> AssignResult:
        if is_unknown(source) or is_unknown(target) or source == target:
            return _OK

        if isinstance(source, UnionType):
            failures: List[Failure] = []
            for alternative, member in enumerate(source.members):
                result = self.check(member, target)
                failures.extend(f.for_alternative(alternative) for f in result.failures)
            return AssignResult(tuple(failures))

        if isinstance(target, UnionType):
            if any(self.check(source, member).ok for member in target.members):
                return _OK
            tuple_members = [m for m in target.members if isinstance(m, TupleType)]
            if isinstance(source, TupleType) and len(tuple_members) == 1:
                return self.check(source, tuple_members[0])
            return self._mismatch(source, target)

        if isinstance(source, TupleType):
            if isinstance(target, TupleType):
                failures = self._check_shapes(source.shape, target.shape)
                if failures:
                    logger.debug(f"{source} -> {target}: {len(failures)} failure(s)")
                return AssignResult(tuple(failures))
            if isinstance(target, IterableType) and target.name != LIST_TYPE_NAME:
                return AssignResult(tuple(self._check_iterable(source.shape, target)))

        if self.tcx.assignable(source, target):
            return _OK
        return self._mismatch(source, target)

    @staticmethod
    def _mismatch(source: Type, target: Type, position=None) -> AssignResult:
        return AssignResult((Failure(
            kind=FailureKind.ELEMENT_TYPE_MISMATCH,
            position=position,
            source=source,
            target=target,
        ),))

    def _check_element(self, source: Type, target: Type, position, failures: List[Failure]) -> None:
        if not self.check(source, target).ok:
            failures.append(Failure(
                kind=FailureKind.ELEMENT_TYPE_MISMATCH,
                position=position,
                source=source,
                target=target,
            ))

    # ------------------------------------------------------------------
    # Shape rules
    # ------------------------------------------------------------------

    def _check_shapes(self, src: TupleShape, tgt: TupleShape) -> List[Failure]:
        if tgt.variadic is None:
            if src.variadic is None:
                return self._exact_to_exact(src, tgt)
            return self._open_to_exact(src, tgt)
        if src.variadic is None:
            return self._exact_to_open(src, tgt)
        return self._open_to_open(src, tgt)

    def _exact_to_exact(self, src: TupleShape, tgt: TupleShape) -> List[Failure]:
        if len(src.prefix) != len(tgt.prefix):
            return [Failure(
                kind=FailureKind.SIZE_MISMATCH,
                expected=len(tgt.prefix),
                received=len(src.prefix),
                source=TupleType(src),
                target=TupleType(tgt),
            )]
        failures: List[Failure] = []
        for position, (s, t) in enumerate(zip(src.prefix, tgt.prefix)):
            self._check_element(s, t, position, failures)
        return failures

    def _open_to_exact(self, src: TupleShape, tgt: TupleShape) -> List[Failure]:
        size_failure = Failure(
            kind=FailureKind.SIZE_MISMATCH,
            expected=len(tgt.prefix),
            received=src.min_length,
            received_at_least=True,
            source=TupleType(src),
            target=TupleType(tgt),
        )
        # tuple[Any, ...] style sources can stretch to any arity
        if not is_unknown(src.variadic.element_type) or len(tgt.prefix) < src.min_length:
            return [size_failure]

        failures: List[Failure] = []
        for position, s in enumerate(src.prefix):
            self._check_element(s, tgt.prefix[position], position, failures)
        for offset, s in enumerate(reversed(src.suffix), start=1):
            self._check_element(s, tgt.prefix[-offset], -offset, failures)
        return failures

    def _exact_to_open(self, src: TupleShape, tgt: TupleShape) -> List[Failure]:
        elements = src.prefix
        length = len(elements)
        if length < tgt.min_length:
            return [Failure(
                kind=FailureKind.SIZE_MISMATCH,
                expected=tgt.min_length,
                expected_at_least=True,
                received=length,
                source=TupleType(src),
                target=TupleType(tgt),
            )]

        failures: List[Failure] = []
        for position, t in enumerate(tgt.prefix):
            self._check_element(elements[position], t, position, failures)
        middle_end = length - len(tgt.suffix)
        for offset, t in enumerate(tgt.suffix):
            self._check_element(elements[middle_end + offset], t, middle_end + offset, failures)

        middle = list(enumerate(elements[len(tgt.prefix):middle_end], start=len(tgt.prefix)))
        if tgt.variadic.is_param_ref:
            # an exact tuple never satisfies an unsolved *Ts
            return failures + list(self._mismatch(TupleType(src), TupleType(tgt)).failures)
        for position, s in middle:
            self._check_element(s, tgt.variadic.element_type, position, failures)
        return failures

    def _open_to_open(self, src: TupleShape, tgt: TupleShape) -> List[Failure]:
        failures: List[Failure] = []
        common_prefix = min(len(src.prefix), len(tgt.prefix))
        common_suffix = min(len(src.suffix), len(tgt.suffix))
        for position in range(common_prefix):
            self._check_element(src.prefix[position], tgt.prefix[position], position, failures)
        for offset in range(1, common_suffix + 1):
            self._check_element(src.suffix[-offset], tgt.suffix[-offset], -offset, failures)

        # fixed source elements with no fixed counterpart in the target
        extra_prefix = list(enumerate(src.prefix[common_prefix:], start=common_prefix))
        extra_suffix = list(enumerate(src.suffix[:len(src.suffix) - common_suffix], start=-len(src.suffix)))
        # fixed target positions the source can only fill from its open segment
        uncovered = (
            list(range(common_prefix, len(tgt.prefix)))
            + list(range(-len(tgt.suffix), -common_suffix))
        )

        if tgt.variadic.is_param_ref:
            if src.variadic != tgt.variadic or extra_prefix or extra_suffix or uncovered:
                failures.extend(self._mismatch(TupleType(src), TupleType(tgt)).failures)
            return failures

        for position in uncovered:
            target_element = tgt.prefix[position] if position >= 0 else tgt.suffix[position]
            self._check_element(_sliding_type(src, position), target_element, position, failures)

        open_target = tgt.variadic.element_type
        for position, s in extra_prefix + extra_suffix:
            self._check_element(s, open_target, position, failures)
        self._check_element(_open_element(src.variadic), open_target, None, failures)
        return failures

    def _check_iterable(self, shape: TupleShape, target: IterableType) -> List[Failure]:
        failures: List[Failure] = []
        for position, s in enumerate(shape.prefix):
            self._check_element(s, target.element_type, position, failures)
        if shape.variadic is not None:
            self._check_element(_open_element(shape.variadic), target.element_type, None, failures)
        for offset, s in enumerate(shape.suffix, start=-len(shape.suffix)):
            self._check_element(s, target.element_type, offset, failures)
        return failures


def _open_element(segment: OpenSegment) -> Type:
    # elements of an unsolved *Ts are only known to be objects
    return OBJECT if segment.is_param_ref else segment.element_type


def _sliding_type(shape: TupleShape, position: int) -> Type:
    """Every type that can sit at ``position`` once the open segment stretches."""
    return make_union(
        OBJECT if isinstance(t, TypeVarTupleElement) else t
        for t in reachable_types(shape, position)
    )
