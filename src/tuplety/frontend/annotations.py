"""
Annotation Frontend

Parses annotation text such as ``tuple[int, *tuple[str, ...], float]`` into
types. ``tuple[...]`` subscripts are collected into a ``ShapeDescription`` and
lowered through ``TupleShape.from_annotation``, so malformed tuple annotations
surface as ``MalformedShapeError`` exactly as they do for programmatic input.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union
from typing_extensions import TypeAlias

from lark import Lark, Transformer, v_args
from lark.exceptions import (
    UnexpectedToken, UnexpectedCharacters, UnexpectedEOF, VisitError, ParseError as LarkParseError,
)

from ..context import TyCtxt
from ..shared.errors import (
    AnnotationSyntaxError, Failure, FailureKind, MalformedShapeError, TupletyError,
)
from ..shared.types import (
    Type, ClassType, IterableType, TypeVarType, TypeVarTupleType,
    NONE, NEVER, UNKNOWN, make_union,
)
from ..shapes.model import ShapeDescription, TupleShape, TupleType, homogeneous_tuple
from ..utils.config import (
    ANNOTATION_GRAMMAR_FILE, ANNOTATION_START_RULE, BUILTIN_CLASS_NAMES, GRADUAL_NAMES,
    ITERABLE_ALIASES, ITERABLE_NAMES, MODULE_PREFIXES, NEVER_NAMES, NONE_TYPE_NAME,
    OPTIONAL_NAMES, TUPLE_NAMES, UNION_NAMES, UNPACK_NAMES,
)

logger = logging.getLogger("tuplety.frontend.annotations")


@dataclass(frozen=True)
class _Unpacked:
    """``*X`` or ``Unpack[X]``; only valid as a tuple argument."""
    type: Type


class _Ellipsis:
    pass


class _EmptyTuple:
    pass


ELLIPSIS = _Ellipsis()
EMPTY_TUPLE = _EmptyTuple()

# What a transformer callback can hand to its parent
AnnotationValue: TypeAlias = Union[Type, _Unpacked, _Ellipsis, _EmptyTuple]


def default_namespace() -> Dict[str, Type]:
    namespace: Dict[str, Type] = {name: ClassType(name) for name in BUILTIN_CLASS_NAMES}
    namespace[NONE_TYPE_NAME] = NONE
    for name in GRADUAL_NAMES:
        namespace[name] = UNKNOWN
    for name in NEVER_NAMES:
        namespace[name] = NEVER
    return namespace


def _strip_module(name: str) -> str:
    for prefix in MODULE_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


@v_args(inline=True)
class AnnotationTransformer(Transformer):
    """Lowers the annotation parse tree to tuplety types."""

    def __init__(self, namespace: Dict[str, Type]):
        super().__init__()
        self.namespace = namespace

    def name(self, token):
        name = _strip_module(str(token))
        if name in self.namespace:
            return self.namespace[name]
        # bare generics mean "parameterized with Any"
        if name in TUPLE_NAMES:
            return homogeneous_tuple(UNKNOWN)
        name = ITERABLE_ALIASES.get(name, name)
        if name in ITERABLE_NAMES:
            return IterableType(name, UNKNOWN)
        raise AnnotationSyntaxError(
            f"unknown type name '{token}'", str(token), token.line, token.column,
        )

    def union_expr(self, left, right):
        return make_union([self._plain(left), self._plain(right)])

    def empty_tuple(self):
        return EMPTY_TUPLE

    def ellipsis(self):
        return ELLIPSIS

    def unpacked(self, target):
        return _Unpacked(self._plain(target))

    def arguments(self, *args):
        return list(args)

    def subscript(self, token, args):
        name = _strip_module(str(token))
        if name in TUPLE_NAMES:
            return self._tuple(args)
        if name in UNPACK_NAMES:
            if len(args) != 1:
                raise AnnotationSyntaxError(f"{name} takes exactly one argument", str(token), token.line, token.column)
            return _Unpacked(self._plain(args[0]))

        plain = [self._plain(a) for a in args]
        if name in UNION_NAMES:
            return make_union(plain)
        if name in OPTIONAL_NAMES:
            if len(plain) != 1:
                raise AnnotationSyntaxError(f"{name} takes exactly one argument", str(token), token.line, token.column)
            return make_union([plain[0], NONE])

        name = ITERABLE_ALIASES.get(name, name)
        if name in ITERABLE_NAMES:
            if len(plain) != 1:
                raise AnnotationSyntaxError(f"{name} takes exactly one argument", str(token), token.line, token.column)
            return IterableType(name, plain[0])
        raise AnnotationSyntaxError(f"'{token}' is not subscriptable", str(token), token.line, token.column)

    def _tuple(self, args) -> Type:
        if len(args) == 1 and args[0] is EMPTY_TUPLE:
            return TupleType(TupleShape.empty())

        ellipsis_positions = [i for i, a in enumerate(args) if a is ELLIPSIS]
        if ellipsis_positions:
            if ellipsis_positions != [1] or len(args) != 2:
                raise MalformedShapeError(
                    "'...' is allowed only as the second of two tuple arguments",
                    Failure(kind=FailureKind.MALFORMED_SHAPE, position=ellipsis_positions[0]),
                )
            element = args[0]
            unpacked = isinstance(element, _Unpacked)
            description = ShapeDescription(
                elements=(element.type if unpacked else self._plain(element),),
                unpacked=(unpacked,),
                ellipsis=True,
            )
            return TupleType(TupleShape.from_annotation(description))

        elements: List[Type] = []
        markers: List[bool] = []
        for arg in args:
            if isinstance(arg, _Unpacked):
                elements.append(arg.type)
                markers.append(True)
            else:
                elements.append(self._plain(arg))
                markers.append(False)
        description = ShapeDescription(tuple(elements), tuple(markers))
        return TupleType(TupleShape.from_annotation(description))

    @staticmethod
    def _plain(value: AnnotationValue) -> Type:
        if isinstance(value, _Unpacked):
            raise MalformedShapeError(
                f"unpacked '{value.type}' is only allowed inside tuple[...]",
                Failure(kind=FailureKind.MALFORMED_SHAPE, source=value.type),
            )
        if value is ELLIPSIS:
            raise MalformedShapeError(
                "'...' is only allowed inside tuple[...]",
                Failure(kind=FailureKind.MALFORMED_SHAPE),
            )
        if value is EMPTY_TUPLE:
            raise MalformedShapeError(
                "'()' is only allowed as tuple[()]",
                Failure(kind=FailureKind.MALFORMED_SHAPE),
            )
        return value


class AnnotationParser:
    """
    Annotation text to ``Type``.

    Type parameters must be registered before they are referenced:

        parser = AnnotationParser()
        parser.declare_type_var_tuple("Ts")
        parser.parse("tuple[int, *Ts]")
    """

    def __init__(self, namespace: Optional[Dict[str, Type]] = None):
        grammar_path = Path(__file__).parent / ANNOTATION_GRAMMAR_FILE
        self.parser = Lark.open(
            grammar_path,
            start=ANNOTATION_START_RULE,
            parser='lalr',
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self.namespace: Dict[str, Type] = default_namespace()
        if namespace:
            self.namespace.update(namespace)

    def declare(self, name: str, ty: Type) -> Type:
        self.namespace[name] = ty
        return ty

    def declare_type_var(self, name: str) -> TypeVarType:
        return self.declare(name, TypeVarType(name))  # type: ignore[return-value]

    def declare_type_var_tuple(self, name: str) -> TypeVarTupleType:
        return self.declare(name, TypeVarTupleType(name))  # type: ignore[return-value]

    def parse(self, text: str) -> Type:
        """
        Parse and lower an annotation.

        Raises ``AnnotationSyntaxError`` for text the grammar rejects and
        ``MalformedShapeError`` for tuple annotations that cannot form a shape.
        """
        try:
            tree = self.parser.parse(text)
            return AnnotationTransformer(self.namespace).transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, TupletyError):
                raise e.orig_exc from None
            raise
        except (UnexpectedToken, UnexpectedCharacters, UnexpectedEOF, LarkParseError) as e:
            line = getattr(e, 'line', None)
            column = getattr(e, 'column', None)
            raise AnnotationSyntaxError(f"Parse error: {e}", text, line, column) from e

    def lower(self, text: str, tcx: TyCtxt, node=None) -> Type:
        """
        Like ``parse``, but a malformed tuple annotation becomes Unknown and its
        failure is reported on ``tcx``. Syntax errors still raise.
        """
        try:
            return self.parse(text)
        except MalformedShapeError as e:
            logger.warning(f"malformed tuple annotation '{text}' lowered to Unknown: {e.message}")
            tcx.reporter.report(e.failure, node)
            return UNKNOWN
