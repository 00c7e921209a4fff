"""
Index Resolver

Element type of ``t[i]`` for a literal integer ``i`` (possibly negative).

Exact shapes are bounds-checked. Shapes with an open segment never fail: a
position that cannot be pinned to the prefix is *ambiguous* and resolves to a
union wide enough to cover every type that may occur there. Two widths are
available:

* wide (default): the union of every element type of the shape
* narrow (``TyCtxt.narrow_ambiguous_index``): negative indices that land in
  the suffix are exact, and ambiguous positions resolve to the open segment
  plus only the fixed elements that can actually slide into that position
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

from ..context import TyCtxt
from ..shared.errors import Failure, FailureKind
from ..shared.types import Type, UnionType, UNKNOWN, make_union
from .model import TupleShape, TupleType

logger = logging.getLogger("tuplety.shapes.index")


@dataclass(frozen=True)
class IndexResult:
    """Resolved type plus one failure per failing shape (empty when OK)."""
    type: Type
    failures: Tuple[Failure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


class IndexResolver:
    def __init__(self, tcx: TyCtxt):
        self.tcx = tcx

    def resolve(self, subject: Union[Type, TupleShape], index: int) -> IndexResult:
        """
        Index a shape, a tuple type or a union of tuple types.

        Unions fan out: the result is the union of the alternatives that
        resolve, and each failing alternative adds one failure tagged with its
        position in the union. Non-tuple subjects resolve to Unknown.
        """
        if isinstance(subject, TupleShape):
            return self.resolve_shape(subject, index)
        if isinstance(subject, TupleType):
            return self.resolve_shape(subject.shape, index)
        if isinstance(subject, UnionType):
            return self._resolve_union(subject, index)
        return IndexResult(UNKNOWN)

    def resolve_shape(self, shape: TupleShape, index: int) -> IndexResult:
        narrow = self.tcx.narrow_ambiguous_index
        return self.tcx.index_cache.get_or_compute(
            (shape, index, narrow),
            lambda: self._compute(shape, index, narrow),
        )

    def _resolve_union(self, subject: UnionType, index: int) -> IndexResult:
        resolved: List[Type] = []
        placeholders: List[Type] = []
        failures: List[Failure] = []
        for alternative, member in enumerate(subject.members):
            if isinstance(member, TupleType):
                result = self.resolve_shape(member.shape, index)
            else:
                result = IndexResult(UNKNOWN)
            if result.ok:
                resolved.append(result.type)
            else:
                placeholders.append(result.type)
                failures.extend(f.for_alternative(alternative) for f in result.failures)

        if failures:
            logger.debug(f"index {index} failed on {len(failures)} of {len(subject.members)} alternatives")
        result_type = make_union(resolved) if resolved else make_union(placeholders)
        return IndexResult(result_type, tuple(failures))

    def _compute(self, shape: TupleShape, index: int, narrow: bool) -> IndexResult:
        prefix, variadic, suffix = shape.element_sequence()

        if variadic is None:
            length = len(prefix)
            if -length <= index < length:
                return IndexResult(prefix[index])
            # out of range: keep going with what tuple.__getitem__ would return
            placeholder = shape.combined_element_type() if length else UNKNOWN
            failure = Failure(
                kind=FailureKind.INDEX_OUT_OF_RANGE,
                position=index,
                expected=length,
                source=TupleType(shape),
            )
            return IndexResult(placeholder, (failure,))

        if 0 <= index < len(prefix):
            return IndexResult(prefix[index])
        if not narrow:
            return IndexResult(shape.combined_element_type())

        if index < 0 and -index <= len(suffix):
            return IndexResult(suffix[len(suffix) + index])
        return IndexResult(make_union(reachable_types(shape, index)))


def reachable_types(shape: TupleShape, index: int) -> List[Type]:
    """
    Types that can sit at an ambiguous ``index`` of a shape with an open segment.

    With the open segment holding ``k >= 0`` elements, a non-negative index
    past the prefix lands either in the segment or on ``suffix[j]`` for
    ``j <= index - len(prefix)``; a negative index past the suffix lands in
    the segment or on one of the last ``m - len(suffix) + 1`` prefix elements,
    where ``m = -index - 1``.
    """
    prefix, variadic, suffix = shape.element_sequence()
    contribution = variadic.contribution
    if index >= 0:
        reach = min(len(suffix), index - len(prefix) + 1)
        return [contribution] + list(suffix[:reach])
    from_end = -index - 1
    start = max(0, len(prefix) - 1 - (from_end - len(suffix)))
    return list(prefix[start:]) + [contribution]
