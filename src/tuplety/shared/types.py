"""
Element Type Model

Every type a tuple position can hold: class types, unions, iterables, type
parameters and the two special types Unknown (gradual, error placeholder) and
Never (bottom). Tuple types themselves live in ``tuplety.shapes.model`` because
they wrap a ``TupleShape``.

All types are immutable (frozen dataclasses) and hashable so that shapes built
from them can be compared and cached structurally.
"""

from dataclasses import dataclass
from typing import Tuple, Generic, TypeVar, Iterable, List
from abc import ABC, abstractmethod
from enum import Enum

from ..utils.config import UNKNOWN_DISPLAY, NEVER_DISPLAY


class TypeKind(Enum):
    """Type kind tag used for visitor dispatch."""
    CLASS = "class"              # int, str, float, None, ...
    UNION = "union"
    TUPLE = "tuple"
    ITERABLE = "iterable"        # list[T], Sequence[T], Iterable[T]
    TYPE_VAR = "type_var"
    TYPE_VAR_TUPLE = "type_var_tuple"
    TYPE_VAR_TUPLE_ELEMENT = "type_var_tuple_element"
    NEVER = "never"
    UNKNOWN = "unknown"


class ParameterKind(Enum):
    """Kind of a declared type parameter."""
    SCALAR = "scalar"                  # binds to a single type
    VARIADIC_TUPLE = "variadic_tuple"  # binds to a captured tuple shape


T = TypeVar('T')


@dataclass(frozen=True)
class Type:
    """
    Type representation.

    Immutable; dispatches to a ``TypeVisitor`` by ``kind`` so callers never
    need isinstance chains to walk a type.
    """
    kind: TypeKind

    def accept(self, visitor: 'TypeVisitor[T]') -> T:
        # Dictionary dispatch for type visitor (replaces if/elif chain)
        _type_visitor_dispatch = {
            TypeKind.CLASS: lambda: visitor.visit_class_type(self),  # type: ignore
            TypeKind.UNION: lambda: visitor.visit_union_type(self),  # type: ignore
            TypeKind.TUPLE: lambda: visitor.visit_tuple_type(self),  # type: ignore
            TypeKind.ITERABLE: lambda: visitor.visit_iterable_type(self),  # type: ignore
            TypeKind.TYPE_VAR: lambda: visitor.visit_type_var(self),  # type: ignore
            TypeKind.TYPE_VAR_TUPLE: lambda: visitor.visit_type_var_tuple(self),  # type: ignore
            TypeKind.TYPE_VAR_TUPLE_ELEMENT: lambda: visitor.visit_type_var_tuple_element(self),  # type: ignore
            TypeKind.NEVER: lambda: visitor.visit_never_type(self),
        }

        handler = _type_visitor_dispatch.get(self.kind)
        if handler:
            return handler()
        else:
            return visitor.visit_unknown_type(self)

    def __str__(self) -> str:
        if self.kind == TypeKind.NEVER:
            return NEVER_DISPLAY
        return UNKNOWN_DISPLAY

    def __repr__(self) -> str:
        return str(self)


@dataclass(frozen=True)
class ClassType(Type):
    """Nominal class type (int, str, float, None, ...)"""
    name: str

    def __init__(self, name: str):
        super().__init__(kind=TypeKind.CLASS)
        object.__setattr__(self, 'name', name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return self.name

    def __eq__(self, other):
        if not isinstance(other, ClassType):
            return False
        return self.name == other.name

    def __hash__(self):
        return hash(('ClassType', self.name))


@dataclass(frozen=True)
class UnionType(Type):
    """
    Union of two or more distinct types.

    Build through ``make_union`` so nested unions are flattened and duplicates
    removed. Member order is kept for display; equality ignores it.
    """
    members: Tuple[Type, ...]

    def __init__(self, members: Tuple[Type, ...]):
        super().__init__(kind=TypeKind.UNION)
        object.__setattr__(self, 'members', tuple(members))

    def __str__(self) -> str:
        return " | ".join(str(m) for m in self.members)

    def __repr__(self) -> str:
        return str(self)

    def __eq__(self, other):
        if not isinstance(other, UnionType):
            return False
        return frozenset(self.members) == frozenset(other.members)

    def __hash__(self):
        return hash(('UnionType', frozenset(self.members)))


@dataclass(frozen=True)
class IterableType(Type):
    """
    Non-tuple homogeneous container: list[T], Sequence[T], Iterable[T].

    The type of a collect-rest binding, and the generic-iterable fallback
    source for destructuring.
    """
    name: str
    element_type: Type

    def __init__(self, name: str, element_type: Type):
        super().__init__(kind=TypeKind.ITERABLE)
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'element_type', element_type)

    def __str__(self) -> str:
        return f"{self.name}[{self.element_type}]"

    def __repr__(self) -> str:
        return str(self)


@dataclass(frozen=True)
class TypeVarType(Type):
    """Scalar type parameter (``T = TypeVar("T")``)"""
    name: str

    def __init__(self, name: str):
        super().__init__(kind=TypeKind.TYPE_VAR)
        object.__setattr__(self, 'name', name)

    @property
    def param_kind(self) -> ParameterKind:
        return ParameterKind.SCALAR

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TypeVarTupleType(Type):
    """
    Variadic type parameter (``Ts = TypeVarTuple("Ts")``).

    Never a type on its own: it only appears as the open segment of a tuple
    shape, and once bound it is replaced by a whole captured shape.
    """
    name: str

    def __init__(self, name: str):
        super().__init__(kind=TypeKind.TYPE_VAR_TUPLE)
        object.__setattr__(self, 'name', name)

    @property
    def param_kind(self) -> ParameterKind:
        return ParameterKind.VARIADIC_TUPLE

    def __str__(self) -> str:
        return f"*{self.name}"

    def __repr__(self) -> str:
        return str(self)


@dataclass(frozen=True)
class TypeVarTupleElement(Type):
    """The (unknown) type of a single element drawn from an unbound ``*Ts``."""
    param: TypeVarTupleType

    def __init__(self, param: TypeVarTupleType):
        super().__init__(kind=TypeKind.TYPE_VAR_TUPLE_ELEMENT)
        object.__setattr__(self, 'param', param)

    def __str__(self) -> str:
        return f"Union[*{self.param.name}]"

    def __repr__(self) -> str:
        return str(self)


class TypeVisitor(ABC, Generic[T]):
    """Type visitor; one method per ``TypeKind``."""

    @abstractmethod
    def visit_class_type(self, ty: ClassType) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_union_type(self, ty: UnionType) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_tuple_type(self, ty: Type) -> T:
        """Visit tuple type (``tuplety.shapes.model.TupleType``)"""
        raise NotImplementedError

    @abstractmethod
    def visit_iterable_type(self, ty: IterableType) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_type_var(self, ty: TypeVarType) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_type_var_tuple(self, ty: TypeVarTupleType) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_type_var_tuple_element(self, ty: TypeVarTupleElement) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_never_type(self, ty: Type) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_unknown_type(self, ty: Type) -> T:
        raise NotImplementedError


# Common class types
INT = ClassType("int")
STR = ClassType("str")
FLOAT = ClassType("float")
BOOL = ClassType("bool")
BYTES = ClassType("bytes")
COMPLEX = ClassType("complex")
OBJECT = ClassType("object")
NONE = ClassType("None")
UNKNOWN = Type(kind=TypeKind.UNKNOWN)
NEVER = Type(kind=TypeKind.NEVER)


def is_unknown(ty: Type) -> bool:
    return ty.kind == TypeKind.UNKNOWN


def make_union(types: Iterable[Type]) -> Type:
    """
    Combine types into a union.

    Nested unions are flattened, duplicates dropped (first occurrence wins the
    display position) and Never absorbed. Zero members give Never, a single
    member is returned as-is.
    """
    members: List[Type] = []
    for ty in types:
        parts = ty.members if isinstance(ty, UnionType) else (ty,)
        for part in parts:
            if part.kind == TypeKind.NEVER:
                continue
            if part not in members:
                members.append(part)
    if not members:
        return NEVER
    if len(members) == 1:
        return members[0]
    return UnionType(tuple(members))


def union_members(ty: Type) -> Tuple[Type, ...]:
    """Members of a union, or the type itself as a one-member tuple."""
    if isinstance(ty, UnionType):
        return ty.members
    return (ty,)
