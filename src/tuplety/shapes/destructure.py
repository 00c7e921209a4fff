"""
Destructuring Assigner

Binds the targets of ``a, b, *rest = source`` to types.

At most one target collects the rest. Exact sources are size-checked; shapes
with an open segment stretch it to fit; plain iterables only know their
element type and are never size-checked.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from ..context import TyCtxt
from ..shared.errors import Failure, FailureKind, PatternError
from ..shared.types import (
    Type, IterableType, UnionType, UNKNOWN, make_union,
)
from ..utils.config import REST_CONTAINER_NAME
from .index import reachable_types
from .model import TupleShape, TupleType

logger = logging.getLogger("tuplety.shapes.destructure")


@dataclass(frozen=True)
class BindingTarget:
    name: str
    collect_rest: bool = False

    def __str__(self) -> str:
        return f"*{self.name}" if self.collect_rest else self.name


@dataclass(frozen=True)
class DestructurePattern:
    """Ordered assignment targets; at most one collects the rest."""
    targets: Tuple[BindingTarget, ...]

    def __post_init__(self):
        object.__setattr__(self, 'targets', tuple(self.targets))
        rest_count = sum(1 for t in self.targets if t.collect_rest)
        if rest_count > 1:
            raise PatternError(f"multiple starred targets in assignment ({rest_count})")

    @classmethod
    def of(cls, *names: str) -> 'DestructurePattern':
        """``DestructurePattern.of("c", "*d")`` for ``c, *d = ...``"""
        return cls(tuple(
            BindingTarget(name[1:], collect_rest=True) if name.startswith("*") else BindingTarget(name)
            for name in names
        ))

    @property
    def rest_index(self) -> Optional[int]:
        for position, target in enumerate(self.targets):
            if target.collect_rest:
                return position
        return None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.targets)

    def __len__(self) -> int:
        return len(self.targets)


@dataclass(frozen=True)
class DestructureResult:
    pattern: DestructurePattern
    bindings: Tuple[Type, ...]
    failures: Tuple[Failure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def binding(self, name: str) -> Type:
        return self.bindings[self.pattern.names.index(name)]

    def as_dict(self):
        return dict(zip(self.pattern.names, self.bindings))


def rest_sequence(element_type: Type) -> IterableType:
    return IterableType(REST_CONTAINER_NAME, element_type)


class DestructuringAssigner:
    def __init__(self, tcx: TyCtxt):
        self.tcx = tcx

    def bind(self, pattern: DestructurePattern, source: Union[Type, TupleShape]) -> DestructureResult:
        if isinstance(source, TupleShape):
            return self._bind_shape(pattern, source)
        if isinstance(source, TupleType):
            return self._bind_shape(pattern, source.shape)
        if isinstance(source, IterableType):
            return self._bind_iterable(pattern, source.element_type)
        if isinstance(source, UnionType):
            return self._bind_union(pattern, source)
        return self._unknown(pattern)

    def _unknown(self, pattern: DestructurePattern, failures: Sequence[Failure] = ()) -> DestructureResult:
        return DestructureResult(pattern, (UNKNOWN,) * len(pattern), tuple(failures))

    def _bind_iterable(self, pattern: DestructurePattern, element_type: Type) -> DestructureResult:
        bindings = tuple(
            rest_sequence(element_type) if target.collect_rest else element_type
            for target in pattern.targets
        )
        return DestructureResult(pattern, bindings)

    def _bind_union(self, pattern: DestructurePattern, source: UnionType) -> DestructureResult:
        per_target: List[List[Type]] = [[] for _ in pattern.targets]
        failures: List[Failure] = []
        for alternative, member in enumerate(source.members):
            result = self.bind(pattern, member)
            if not result.ok:
                failures.extend(f.for_alternative(alternative) for f in result.failures)
                continue
            for position, ty in enumerate(result.bindings):
                per_target[position].append(ty)

        if not per_target or not per_target[0]:
            return self._unknown(pattern, failures)
        return DestructureResult(
            pattern,
            tuple(_join_bindings(types) for types in per_target),
            tuple(failures),
        )

    def _bind_shape(self, pattern: DestructurePattern, shape: TupleShape) -> DestructureResult:
        rest_index = pattern.rest_index
        if rest_index is None:
            bindings, failure = self._bind_positional(len(pattern), shape)
        else:
            bindings, failure = self._bind_with_rest(len(pattern), rest_index, shape)

        if failure is not None:
            logger.debug(f"cannot destructure {shape} into {len(pattern)} targets: {failure.kind.value}")
            return self._unknown(pattern, (failure,))
        return DestructureResult(pattern, tuple(bindings))

    @staticmethod
    def _bind_positional(count: int, shape: TupleShape):
        prefix, variadic, suffix = shape.element_sequence()
        if variadic is None:
            if len(prefix) != count:
                return None, Failure(
                    kind=FailureKind.SIZE_MISMATCH,
                    expected=count,
                    received=len(prefix),
                    source=TupleType(shape),
                )
            return list(prefix), None

        if shape.min_length > count:
            return None, Failure(
                kind=FailureKind.SIZE_MISMATCH,
                expected=count,
                received=shape.min_length,
                received_at_least=True,
                source=TupleType(shape),
            )
        # the open segment stretches to exactly fill the gap
        suffix_start = count - len(suffix)
        bindings: List[Type] = []
        for position in range(count):
            if position < len(prefix):
                bindings.append(prefix[position])
            elif position >= suffix_start:
                bindings.append(suffix[position - suffix_start])
            else:
                bindings.append(variadic.contribution)
        return bindings, None

    @staticmethod
    def _bind_with_rest(count: int, rest_index: int, shape: TupleShape):
        prefix, variadic, suffix = shape.element_sequence()
        required = count - 1
        trailing = required - rest_index

        if variadic is None:
            length = len(prefix)
            if length < required:
                return None, Failure(
                    kind=FailureKind.SIZE_MISMATCH,
                    expected=required,
                    expected_at_least=True,
                    received=length,
                    source=TupleType(shape),
                )
            middle_end = length - trailing
            return (
                list(prefix[:rest_index])
                + [rest_sequence(make_union(prefix[rest_index:middle_end]))]
                + list(prefix[middle_end:])
            ), None

        leading_types = [
            prefix[position] if position < len(prefix) else make_union(reachable_types(shape, position))
            for position in range(rest_index)
        ]
        trailing_types = []
        for offset in range(trailing, 0, -1):
            if offset <= len(suffix):
                trailing_types.append(suffix[-offset])
            else:
                trailing_types.append(make_union(reachable_types(shape, -offset)))
        middle = (
            list(prefix[rest_index:])
            + [variadic.contribution]
            + list(suffix[:max(0, len(suffix) - trailing)])
        )
        return leading_types + [rest_sequence(make_union(middle))] + trailing_types, None


def _join_bindings(types: List[Type]) -> Type:
    """Union per target; rest sequences join element-wise."""
    if types and all(isinstance(t, IterableType) and t.name == REST_CONTAINER_NAME for t in types):
        return rest_sequence(make_union(t.element_type for t in types))
    return make_union(types)
