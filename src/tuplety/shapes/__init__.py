"""
Tuple shapes and the operations over them.
"""

from .model import (
    TupleShape, TupleType, OpenSegment, Arity, ShapeDescription, LiteralEntry,
    assemble, lower_annotation, tuple_of, homogeneous_tuple,
)
from .relations import default_assignable
from .index import IndexResolver, IndexResult, reachable_types
from .assign import AssignabilityChecker, AssignResult
from .destructure import (
    BindingTarget, DestructurePattern, DestructureResult, DestructuringAssigner,
)
from .specialize import (
    Specializer, Specialization, SolveResult, TypeVarBindings, free_parameters,
)
from .parameters import (
    Parameter, ParameterCategory, VirtualParameter, ParameterListDetails, expand_parameters,
)
