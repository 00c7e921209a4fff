"""
tuplety: tuple type representation and inference for a static type checker.
"""

from .context import TyCtxt
from .analyzer import TupleAnalyzer
from .frontend import AnnotationParser
from .shared import (
    Failure, FailureKind, ErrorReporter,
    TupletyError, MalformedShapeError, PatternError, AnnotationSyntaxError, TupletyImplementationError,
    Type, TypeKind, ClassType, UnionType, IterableType, TypeVarType, TypeVarTupleType, TypeVarTupleElement,
    INT, STR, FLOAT, BOOL, BYTES, OBJECT, NONE, UNKNOWN, NEVER, make_union,
)
from .shapes import (
    TupleShape, TupleType, OpenSegment, ShapeDescription, LiteralEntry, tuple_of, homogeneous_tuple,
    BindingTarget, DestructurePattern, Parameter, ParameterCategory,
)

__version__ = "0.1.0"
