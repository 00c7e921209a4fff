"""
Specializer

Solves the type parameters of a declared parameter shape against the shape of
the supplied arguments, then substitutes the solution into the declared return
type.

Scalar parameters (``T``) bind to one type. Variadic parameters (``*Ts``) bind
to a whole captured ``TupleShape``, which is spliced flat into any shape that
mentions ``*Ts`` when the solution is applied.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from ..context import TyCtxt
from ..shared.errors import Failure, FailureKind
from ..shared.types import (
    Type, ClassType, IterableType, UnionType, TypeVarType, TypeVarTupleType,
    TypeVarTupleElement, TypeVisitor, UNKNOWN, is_unknown, make_union,
)
from .model import OpenSegment, ShapePart, TupleShape, TupleType, assemble

logger = logging.getLogger("tuplety.shapes.specialize")


@dataclass
class TypeVarBindings:
    """Solution of a call: scalar parameter -> type, variadic parameter -> shape."""
    scalars: Dict[TypeVarType, Type] = field(default_factory=dict)
    variadics: Dict[TypeVarTupleType, TupleShape] = field(default_factory=dict)

    def bind_scalar(self, param: TypeVarType, ty: Type) -> None:
        previous = self.scalars.get(param)
        self.scalars[param] = ty if previous is None else make_union([previous, ty])

    def bind_variadic(self, param: TypeVarTupleType, shape: TupleShape) -> None:
        previous = self.variadics.get(param)
        if previous is None or previous == shape:
            self.variadics[param] = shape
        elif previous.is_exact() and shape.is_exact() and len(previous.prefix) == len(shape.prefix):
            self.variadics[param] = TupleShape.exact(
                make_union([a, b]) for a, b in zip(previous.prefix, shape.prefix)
            )
        else:
            # captures of different lengths only agree on their element types
            self.variadics[param] = TupleShape.homogeneous(
                make_union(previous.element_types() + shape.element_types())
            )

    def scalar(self, param: TypeVarType) -> Optional[Type]:
        return self.scalars.get(param)

    def variadic(self, param: TypeVarTupleType) -> Optional[TupleShape]:
        return self.variadics.get(param)

    def is_empty(self) -> bool:
        return not self.scalars and not self.variadics


@dataclass(frozen=True)
class SolveResult:
    bindings: TypeVarBindings
    failures: tuple = ()

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class Specialization:
    """Concrete return type plus the solution that produced it."""
    type: Type
    bindings: TypeVarBindings
    failures: tuple = ()

    @property
    def ok(self) -> bool:
        return not self.failures


class Specializer:
    def __init__(self, tcx: TyCtxt):
        self.tcx = tcx

    def solve(self, declared: TupleShape, actual: Union[Type, TupleShape]) -> SolveResult:
        bindings = TypeVarBindings()
        failures: List[Failure] = []
        self._unify_shapes(declared, _as_shape(actual), bindings, failures, None)
        logger.debug(
            f"solved {declared} against {_as_shape(actual)}: "
            f"{len(bindings.scalars)} scalar, {len(bindings.variadics)} variadic"
        )
        return SolveResult(bindings, tuple(failures))

    def apply(self, ty: Type, bindings: TypeVarBindings, unsolved_as_unknown: bool = False) -> Type:
        return ty.accept(Substitutor(bindings, unsolved_as_unknown))

    def apply_shape(self, shape: TupleShape, bindings: TypeVarBindings) -> TupleShape:
        return self.apply(TupleType(shape), bindings).shape  # type: ignore[attr-defined]

    def specialize(
        self,
        declared_params: TupleShape,
        declared_return: Type,
        argument_shape: Union[Type, TupleShape],
    ) -> Specialization:
        """
        Solve ``declared_params`` against the arguments and substitute into
        ``declared_return``. Parameters left unsolved become Unknown.
        """
        solved = self.solve(declared_params, argument_shape)
        if not free_parameters(declared_return):
            return Specialization(declared_return, solved.bindings, solved.failures)
        result = self.apply(declared_return, solved.bindings, unsolved_as_unknown=True)
        return Specialization(result, solved.bindings, solved.failures)

    # ------------------------------------------------------------------
    # Unification
    # ------------------------------------------------------------------

    def _unify_shapes(
        self,
        declared: TupleShape,
        actual: TupleShape,
        bindings: TypeVarBindings,
        failures: List[Failure],
        position: Optional[int],
    ) -> None:
        d_prefix, d_open, d_suffix = declared.element_sequence()
        a_prefix, a_open, a_suffix = actual.element_sequence()

        if d_open is None:
            if a_open is not None and is_unknown(a_open.element_type) and declared.min_length >= actual.min_length:
                # tuple[Any, ...] fills every declared position
                for d in d_prefix:
                    self._unify(d, UNKNOWN, bindings, failures, position)
                return
            if a_open is not None or len(a_prefix) != len(d_prefix):
                failures.append(Failure(
                    kind=FailureKind.SIZE_MISMATCH,
                    position=position,
                    expected=len(d_prefix),
                    received=actual.min_length,
                    received_at_least=a_open is not None,
                    source=TupleType(actual),
                    target=TupleType(declared),
                ))
                return
            for d, a in zip(d_prefix, a_prefix):
                self._unify(d, a, bindings, failures, position)
            return

        if a_open is None:
            if len(a_prefix) < declared.min_length:
                failures.append(self._too_short(declared, actual, position))
                return
            middle_end = len(a_prefix) - len(d_suffix)
            for d, a in zip(d_prefix, a_prefix):
                self._unify(d, a, bindings, failures, position)
            for d, a in zip(d_suffix, a_prefix[middle_end:]):
                self._unify(d, a, bindings, failures, position)
            remainder = TupleShape.exact(a_prefix[len(d_prefix):middle_end])
        else:
            if len(a_prefix) < len(d_prefix) or len(a_suffix) < len(d_suffix):
                failures.append(self._too_short(declared, actual, position))
                return
            suffix_start = len(a_suffix) - len(d_suffix)
            for d, a in zip(d_prefix, a_prefix):
                self._unify(d, a, bindings, failures, position)
            for d, a in zip(d_suffix, a_suffix[suffix_start:]):
                self._unify(d, a, bindings, failures, position)
            # the caller passed an open segment through
            remainder = TupleShape(a_prefix[len(d_prefix):], a_open, a_suffix[:suffix_start])

        if d_open.is_param_ref:
            bindings.bind_variadic(d_open.param, remainder)
        else:
            for a in remainder.element_types():
                self._unify(d_open.element_type, a, bindings, failures, position)

    @staticmethod
    def _too_short(declared: TupleShape, actual: TupleShape, position: Optional[int]) -> Failure:
        return Failure(
            kind=FailureKind.SIZE_MISMATCH,
            position=position,
            expected=declared.min_length,
            expected_at_least=True,
            received=actual.min_length,
            received_at_least=not actual.is_exact(),
            source=TupleType(actual),
            target=TupleType(declared),
        )

    def _unify(
        self,
        declared: Type,
        actual: Type,
        bindings: TypeVarBindings,
        failures: List[Failure],
        position: Optional[int],
    ) -> None:
        if isinstance(declared, TypeVarType):
            bindings.bind_scalar(declared, actual)
            return
        if not free_parameters(declared):
            return

        if isinstance(declared, TupleType):
            if isinstance(actual, TupleType):
                self._unify_shapes(declared.shape, actual.shape, bindings, failures, position)
            elif isinstance(actual, IterableType) or is_unknown(actual):
                self._unify_shapes(declared.shape, TupleShape.from_iterable(actual), bindings, failures, position)
            return

        if isinstance(declared, IterableType):
            if isinstance(actual, IterableType):
                self._unify(declared.element_type, actual.element_type, bindings, failures, position)
            elif isinstance(actual, TupleType):
                self._unify(declared.element_type, actual.shape.combined_element_type(), bindings, failures, position)
            elif is_unknown(actual):
                self._unify(declared.element_type, UNKNOWN, bindings, failures, position)
            return

        if isinstance(declared, UnionType):
            # only ``T | None`` style unions with a single generic member are solved
            generic = [m for m in declared.members if free_parameters(m)]
            concrete = [m for m in declared.members if not free_parameters(m)]
            if len(generic) == 1:
                remaining = [m for m in (actual.members if isinstance(actual, UnionType) else (actual,))
                             if m not in concrete]
                if remaining:
                    self._unify(generic[0], make_union(remaining), bindings, failures, position)


def _as_shape(actual: Union[Type, TupleShape]) -> TupleShape:
    if isinstance(actual, TupleShape):
        return actual
    return TupleShape.from_iterable(actual)


class Substitutor(TypeVisitor[Type]):
    """Replaces bound parameters; bound ``*Ts`` segments splice flat."""

    def __init__(self, bindings: TypeVarBindings, unsolved_as_unknown: bool = False):
        self.bindings = bindings
        self.unsolved_as_unknown = unsolved_as_unknown

    def visit_class_type(self, ty: ClassType) -> Type:
        return ty

    def visit_union_type(self, ty: UnionType) -> Type:
        return make_union(m.accept(self) for m in ty.members)

    def visit_tuple_type(self, ty: TupleType) -> Type:
        parts: List[ShapePart] = []
        for part in ty.shape.parts():
            if not isinstance(part, OpenSegment):
                parts.append(part.accept(self))
                continue
            param = part.param
            if param is None:
                parts.append(OpenSegment(part.element_type.accept(self)))
                continue
            captured = self.bindings.variadic(param)
            if captured is not None:
                parts.extend(captured.parts())
            elif self.unsolved_as_unknown:
                parts.append(OpenSegment(UNKNOWN))
            else:
                parts.append(part)
        return TupleType(assemble(parts))

    def visit_iterable_type(self, ty: IterableType) -> Type:
        return IterableType(ty.name, ty.element_type.accept(self))

    def visit_type_var(self, ty: TypeVarType) -> Type:
        bound = self.bindings.scalar(ty)
        if bound is not None:
            return bound
        return UNKNOWN if self.unsolved_as_unknown else ty

    def visit_type_var_tuple(self, ty: TypeVarTupleType) -> Type:
        captured = self.bindings.variadic(ty)
        if captured is not None:
            return TupleType(captured)
        return ty

    def visit_type_var_tuple_element(self, ty: TypeVarTupleElement) -> Type:
        captured = self.bindings.variadic(ty.param)
        if captured is not None:
            return captured.combined_element_type()
        return UNKNOWN if self.unsolved_as_unknown else ty

    def visit_never_type(self, ty: Type) -> Type:
        return ty

    def visit_unknown_type(self, ty: Type) -> Type:
        return ty


class ParameterCollector(TypeVisitor[None]):
    """Collects the type parameters mentioned anywhere inside a type."""

    def __init__(self):
        self.params: Set[Type] = set()

    def visit_class_type(self, ty: ClassType) -> None:
        pass

    def visit_union_type(self, ty: UnionType) -> None:
        for member in ty.members:
            member.accept(self)

    def visit_tuple_type(self, ty: TupleType) -> None:
        for part in ty.shape.parts():
            if isinstance(part, OpenSegment):
                part.element_type.accept(self)
            else:
                part.accept(self)

    def visit_iterable_type(self, ty: IterableType) -> None:
        ty.element_type.accept(self)

    def visit_type_var(self, ty: TypeVarType) -> None:
        self.params.add(ty)

    def visit_type_var_tuple(self, ty: TypeVarTupleType) -> None:
        self.params.add(ty)

    def visit_type_var_tuple_element(self, ty: TypeVarTupleElement) -> None:
        self.params.add(ty.param)

    def visit_never_type(self, ty: Type) -> None:
        pass

    def visit_unknown_type(self, ty: Type) -> None:
        pass


def free_parameters(ty: Type) -> Set[Type]:
    collector = ParameterCollector()
    ty.accept(collector)
    return collector.params
