"""
Tuple Type Model

A tuple type is a closed three-part structure rather than a recursive list:

    tuple[P1, ..., Pn, *V, S1, ..., Sm]

* ``prefix``   P1..Pn, fixed leading element types
* ``variadic`` optional open segment V: a repeating element type
  (``*tuple[T, ...]``) or a variadic parameter reference (``*Ts``)
* ``suffix``   S1..Sm, fixed trailing element types (only with an open segment)

Shapes are immutable values; equality and hashing are structural, so they can
key memo tables directly.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
from typing_extensions import TypeAlias

from ..shared.errors import (
    Failure, FailureKind, MalformedShapeError, TupletyImplementationError,
)
from ..shared.types import (
    Type, TypeKind, IterableType, TypeVarTupleType, TypeVarTupleElement,
    UNKNOWN, make_union, union_members,
)

if TYPE_CHECKING:
    from ..context import TyCtxt

logger = logging.getLogger("tuplety.shapes.model")


@dataclass(frozen=True)
class OpenSegment:
    """
    The unbounded part of a shape.

    ``element_type`` is either the repeating element type or, for a variadic
    parameter reference, the ``TypeVarTupleType`` itself.
    """
    element_type: Type

    @property
    def param(self) -> Optional[TypeVarTupleType]:
        if isinstance(self.element_type, TypeVarTupleType):
            return self.element_type
        return None

    @property
    def is_param_ref(self) -> bool:
        return self.param is not None

    @property
    def contribution(self) -> Type:
        """Type of one element drawn from this segment."""
        param = self.param
        if param is not None:
            return TypeVarTupleElement(param)
        return self.element_type

    def __str__(self) -> str:
        if self.is_param_ref:
            return str(self.element_type)
        return f"*tuple[{self.element_type}, ...]"


@dataclass(frozen=True)
class Arity:
    """Exact element count, or a minimum when ``at_least`` is set."""
    count: int
    at_least: bool = False

    def __str__(self) -> str:
        return f"{self.count} or more" if self.at_least else str(self.count)


# Building block for assembling shapes: a fixed element type or an open segment
ShapePart: TypeAlias = Union[Type, OpenSegment]


@dataclass(frozen=True)
class TupleShape:
    prefix: Tuple[Type, ...] = ()
    variadic: Optional[OpenSegment] = None
    suffix: Tuple[Type, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'prefix', tuple(self.prefix))
        object.__setattr__(self, 'suffix', tuple(self.suffix))
        if self.variadic is None and self.suffix:
            raise TupletyImplementationError(
                f"tuple shape without an open segment cannot have a suffix: {self.suffix!r}"
            )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls) -> 'TupleShape':
        return cls()

    @classmethod
    def exact(cls, element_types: Sequence[Type]) -> 'TupleShape':
        return cls(prefix=tuple(element_types))

    @classmethod
    def homogeneous(cls, element_type: Type) -> 'TupleShape':
        return cls(variadic=OpenSegment(element_type))

    @classmethod
    def from_iterable(cls, source: Type) -> 'TupleShape':
        """Shape produced by ``tuple(source)``."""
        if isinstance(source, TupleType):
            return source.shape
        if isinstance(source, IterableType):
            return cls.homogeneous(source.element_type)
        return cls.homogeneous(UNKNOWN)

    @classmethod
    def from_literal(cls, entries: Sequence['LiteralEntry']) -> 'TupleShape':
        """
        Shape of a tuple display such as ``(a, *b, c)``.

        Unpacked entries splice: tuples contribute their own parts, iterables
        and ``*Ts`` open a segment. Literals never fail; several open segments
        collapse into one.
        """
        parts: List[ShapePart] = []
        for entry in entries:
            if not entry.unpacked:
                parts.append(entry.type)
            else:
                parts.extend(_unpacked_literal_parts(entry.type))
        return assemble(parts)

    @classmethod
    def from_annotation(cls, description: 'ShapeDescription') -> 'TupleShape':
        """
        Shape of a ``tuple[...]`` annotation.

        Raises ``MalformedShapeError`` for more than one unpack marker, a
        misplaced ellipsis, or an unpack marker on something that is neither a
        tuple nor a ``TypeVarTuple``.
        """
        elements = description.elements
        if description.ellipsis:
            if len(elements) != 1 or any(description.unpacked):
                raise MalformedShapeError(
                    "'...' is allowed only as the second of two tuple arguments",
                    Failure(kind=FailureKind.MALFORMED_SHAPE, expected=1, received=len(elements)),
                )
            if isinstance(elements[0], TypeVarTupleType):
                raise MalformedShapeError(
                    f"'{elements[0].name}' must be unpacked",
                    Failure(kind=FailureKind.MALFORMED_SHAPE, position=0, source=elements[0]),
                )
            return cls.homogeneous(elements[0])

        markers = [i for i, unpacked in enumerate(description.unpacked) if unpacked]
        if len(markers) > 1:
            raise MalformedShapeError(
                f"tuple annotation has {len(markers)} unpacked entries; at most one is allowed",
                Failure(
                    kind=FailureKind.MALFORMED_SHAPE,
                    position=markers[1],
                    expected=1,
                    received=len(markers),
                ),
            )

        parts: List[ShapePart] = []
        for position, (element, unpacked) in enumerate(zip(elements, description.unpacked)):
            if not unpacked:
                if isinstance(element, TypeVarTupleType):
                    raise MalformedShapeError(
                        f"'{element.name}' must be unpacked",
                        Failure(kind=FailureKind.MALFORMED_SHAPE, position=position, source=element),
                    )
                parts.append(element)
            elif isinstance(element, TypeVarTupleType):
                parts.append(OpenSegment(element))
            elif isinstance(element, TupleType):
                parts.extend(element.shape.parts())
            else:
                raise MalformedShapeError(
                    f"cannot unpack '{element}' inside a tuple annotation",
                    Failure(kind=FailureKind.MALFORMED_SHAPE, position=position, source=element),
                )
        return assemble(parts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def min_length(self) -> int:
        return len(self.prefix) + len(self.suffix)

    def arity(self) -> Arity:
        return Arity(self.min_length, at_least=self.variadic is not None)

    def is_exact(self) -> bool:
        return self.variadic is None

    def is_empty(self) -> bool:
        return self.is_exact() and not self.prefix

    def is_homogeneous(self) -> bool:
        return (
            self.variadic is not None
            and not self.variadic.is_param_ref
            and not self.prefix
            and not self.suffix
        )

    def element_sequence(self) -> Tuple[Tuple[Type, ...], Optional[OpenSegment], Tuple[Type, ...]]:
        return self.prefix, self.variadic, self.suffix

    def parts(self) -> List[ShapePart]:
        parts: List[ShapePart] = list(self.prefix)
        if self.variadic is not None:
            parts.append(self.variadic)
        parts.extend(self.suffix)
        return parts

    def element_types(self) -> List[Type]:
        """Every type an element of this tuple can have, in declaration order."""
        types = list(self.prefix)
        if self.variadic is not None:
            types.append(self.variadic.contribution)
        types.extend(self.suffix)
        return types

    def combined_element_type(self) -> Type:
        return make_union(self.element_types())

    def concat(self, other: 'TupleShape') -> 'TupleShape':
        return assemble(self.parts() + other.parts())

    def __str__(self) -> str:
        if self.is_empty():
            return "tuple[()]"
        if self.is_homogeneous():
            return f"tuple[{self.variadic.element_type}, ...]"
        return "tuple[" + ", ".join(str(p) for p in self.parts()) + "]"


@dataclass(frozen=True)
class TupleType(Type):
    """Tuple type: a ``TupleShape`` usable wherever a ``Type`` is expected."""
    shape: TupleShape

    def __init__(self, shape: TupleShape):
        super().__init__(kind=TypeKind.TUPLE)
        object.__setattr__(self, 'shape', shape)

    def __str__(self) -> str:
        return str(self.shape)

    def __repr__(self) -> str:
        return str(self.shape)


def tuple_of(*element_types: Type) -> TupleType:
    """Exact tuple type, ``tuple_of(INT, STR)`` is ``tuple[int, str]``."""
    return TupleType(TupleShape.exact(element_types))


def homogeneous_tuple(element_type: Type) -> TupleType:
    return TupleType(TupleShape.homogeneous(element_type))


@dataclass(frozen=True)
class ShapeDescription:
    """
    Already-tokenized ``tuple[...]`` annotation.

    ``unpacked[i]`` marks ``elements[i]`` as written ``*X`` / ``Unpack[X]``;
    ``ellipsis`` marks the ``tuple[T, ...]`` form.
    """
    elements: Tuple[Type, ...] = ()
    unpacked: Tuple[bool, ...] = ()
    ellipsis: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'elements', tuple(self.elements))
        unpacked = tuple(self.unpacked) or (False,) * len(self.elements)
        if len(unpacked) != len(self.elements):
            raise TupletyImplementationError(
                f"unpack markers ({len(unpacked)}) do not match elements ({len(self.elements)})"
            )
        object.__setattr__(self, 'unpacked', unpacked)


@dataclass(frozen=True)
class LiteralEntry:
    """One entry of a tuple display; ``unpacked`` for ``*expr``."""
    type: Type
    unpacked: bool = False


def assemble(parts: Sequence[ShapePart]) -> TupleShape:
    """
    Build a shape from fixed types and open segments in order.

    Everything from the first to the last open segment collapses into a single
    homogeneous segment whose element is the union of what it covers.
    """
    open_positions = [i for i, part in enumerate(parts) if isinstance(part, OpenSegment)]
    if not open_positions:
        return TupleShape(prefix=tuple(parts))

    first, last = open_positions[0], open_positions[-1]
    prefix = tuple(parts[:first])
    suffix = tuple(parts[last + 1:])
    if first == last:
        return TupleShape(prefix=prefix, variadic=parts[first], suffix=suffix)

    covered = [
        part.contribution if isinstance(part, OpenSegment) else part
        for part in parts[first:last + 1]
    ]
    logger.debug(f"collapsing {len(open_positions)} open segments into one")
    return TupleShape(prefix=prefix, variadic=OpenSegment(make_union(covered)), suffix=suffix)


def _unpacked_literal_parts(ty: Type) -> List[ShapePart]:
    if isinstance(ty, TupleType):
        return ty.shape.parts()
    if isinstance(ty, IterableType):
        return [OpenSegment(ty.element_type)]
    if isinstance(ty, TypeVarTupleType):
        return [OpenSegment(ty)]
    if ty.kind == TypeKind.UNION:
        contributions = []
        for member in union_members(ty):
            if isinstance(member, TupleType):
                contributions.append(member.shape.combined_element_type())
            elif isinstance(member, IterableType):
                contributions.append(member.element_type)
            else:
                contributions.append(UNKNOWN)
        return [OpenSegment(make_union(contributions))]
    return [OpenSegment(UNKNOWN)]


def lower_annotation(description: ShapeDescription, tcx: 'TyCtxt', node=None) -> Type:
    """
    Lower an annotation to a tuple type, or to Unknown when it is malformed.

    The failure is reported on the context; analysis of the rest of the
    program is unaffected.
    """
    try:
        return TupleType(TupleShape.from_annotation(description))
    except MalformedShapeError as e:
        logger.warning(f"malformed tuple annotation lowered to Unknown: {e.message}")
        tcx.reporter.report(e.failure, node)
        return UNKNOWN
