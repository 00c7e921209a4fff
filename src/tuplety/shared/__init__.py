"""
Shared components: element types and failure reporting.
"""

from .errors import (
    Failure, FailureKind, ErrorReporter, ReportedFailure,
    TupletyError, MalformedShapeError, PatternError, AnnotationSyntaxError, TupletyImplementationError,
)
from .types import (
    Type, TypeKind, ParameterKind, ClassType, UnionType, IterableType,
    TypeVarType, TypeVarTupleType, TypeVarTupleElement, TypeVisitor,
    INT, STR, FLOAT, BOOL, BYTES, COMPLEX, OBJECT, NONE, UNKNOWN, NEVER,
    is_unknown, make_union, union_members,
)
