"""
Parameter lists

Builds the virtual positional parameter list of a signature. ``*args`` with an
unpacked tuple annotation is expanded into one synthesized parameter per tuple
entry (``args[0]``, ``args[1]``, ...), so that

    def f(x: int, *args: *tuple[str, *Ts, float]) -> ...

takes positional arguments shaped ``tuple[int, str, *Ts, float]``. That shape
is what the Specializer solves against the call's argument shape.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..shared.errors import Failure, FailureKind, MalformedShapeError
from ..shared.types import Type, TypeVarTupleType
from .model import OpenSegment, ShapePart, TupleShape, TupleType, assemble


class ParameterCategory(Enum):
    SIMPLE = "simple"        # x: T
    ARGS_LIST = "args_list"  # *args: T


@dataclass(frozen=True)
class Parameter:
    """
    Declared positional parameter.

    ``unpacked`` marks ``*args: *tuple[...]`` / ``*args: *Ts``; it is only
    meaningful for ``ARGS_LIST`` parameters.
    """
    name: str
    type: Type
    category: ParameterCategory = ParameterCategory.SIMPLE
    unpacked: bool = False


@dataclass(frozen=True)
class VirtualParameter:
    name: str
    type: Type
    category: ParameterCategory
    index: int                      # position of the declaring parameter
    synthesized: bool = False


@dataclass(frozen=True)
class ParameterListDetails:
    params: Tuple[VirtualParameter, ...]
    positional_shape: TupleShape
    args_index: Optional[int] = None
    has_unpacked_variadic: bool = False

    @property
    def positional_count(self) -> int:
        return sum(1 for p in self.params if p.category == ParameterCategory.SIMPLE)


def expand_parameters(params: Sequence[Parameter]) -> ParameterListDetails:
    virtual: List[VirtualParameter] = []
    parts: List[ShapePart] = []
    args_index: Optional[int] = None
    has_unpacked_variadic = False

    for index, param in enumerate(params):
        if param.unpacked and param.category != ParameterCategory.ARGS_LIST:
            raise MalformedShapeError(
                f"only *{param.name} can take an unpacked annotation",
                Failure(kind=FailureKind.MALFORMED_SHAPE, position=index, source=param.type),
            )

        if param.category == ParameterCategory.SIMPLE:
            virtual.append(VirtualParameter(param.name, param.type, param.category, index))
            parts.append(param.type)
            continue

        if param.unpacked and isinstance(param.type, TupleType):
            for entry, part in enumerate(param.type.shape.parts()):
                if isinstance(part, OpenSegment):
                    args_index = len(virtual)
                    has_unpacked_variadic = has_unpacked_variadic or part.is_param_ref
                    virtual.append(VirtualParameter(
                        f"{param.name}[{entry}]", part.element_type, ParameterCategory.ARGS_LIST,
                        index, synthesized=True,
                    ))
                else:
                    virtual.append(VirtualParameter(
                        f"{param.name}[{entry}]", part, ParameterCategory.SIMPLE,
                        index, synthesized=True,
                    ))
                parts.append(part)
            continue

        if param.unpacked and not isinstance(param.type, TypeVarTupleType):
            raise MalformedShapeError(
                f"cannot unpack '{param.type}' in the annotation of *{param.name}",
                Failure(kind=FailureKind.MALFORMED_SHAPE, position=index, source=param.type),
            )
        if isinstance(param.type, TypeVarTupleType):
            if not param.unpacked:
                raise MalformedShapeError(
                    f"'{param.type.name}' must be unpacked",
                    Failure(kind=FailureKind.MALFORMED_SHAPE, position=index, source=param.type),
                )
            has_unpacked_variadic = True
        if args_index is None:
            args_index = len(virtual)
        virtual.append(VirtualParameter(param.name, param.type, param.category, index))
        parts.append(OpenSegment(param.type))

    return ParameterListDetails(
        params=tuple(virtual),
        positional_shape=assemble(parts),
        args_index=args_index,
        has_unpacked_variadic=has_unpacked_variadic,
    )
