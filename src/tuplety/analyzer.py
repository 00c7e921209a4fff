"""
Tuple Analyzer

Single entry point for a surrounding checker. Wraps the shape components
around one ``TyCtxt`` and forwards every failure to ``tcx.reporter`` together
with the caller's node reference.
"""

import logging
from typing import Any, Optional, Sequence, Union

from .context import TyCtxt
from .frontend.annotations import AnnotationParser
from .shared.errors import MalformedShapeError
from .shared.types import Type, UNKNOWN
from .shapes.assign import AssignabilityChecker, AssignResult
from .shapes.destructure import DestructurePattern, DestructureResult, DestructuringAssigner
from .shapes.index import IndexResolver, IndexResult
from .shapes.model import LiteralEntry, ShapeDescription, TupleShape, TupleType, lower_annotation
from .shapes.parameters import Parameter, expand_parameters
from .shapes.specialize import Specialization, Specializer, TypeVarBindings

logger = logging.getLogger("tuplety.analyzer")


class TupleAnalyzer:
    def __init__(self, tcx: Optional[TyCtxt] = None, parser: Optional[AnnotationParser] = None):
        self.tcx = tcx or TyCtxt()
        self.parser = parser or AnnotationParser()
        self.indexer = IndexResolver(self.tcx)
        self.checker = AssignabilityChecker(self.tcx)
        self.assigner = DestructuringAssigner(self.tcx)
        self.specializer = Specializer(self.tcx)

    def index(self, subject: Union[Type, TupleShape], index: int, node: Any = None) -> IndexResult:
        result = self.indexer.resolve(subject, index)
        self.tcx.reporter.report_all(result.failures, node)
        return result

    def assign(self, source: Type, target: Type, node: Any = None) -> AssignResult:
        result = self.checker.check(source, target)
        self.tcx.reporter.report_all(result.failures, node)
        return result

    def destructure(self, pattern: DestructurePattern, source: Union[Type, TupleShape], node: Any = None) -> DestructureResult:
        result = self.assigner.bind(pattern, source)
        self.tcx.reporter.report_all(result.failures, node)
        return result

    def specialize(
        self,
        declared_params: TupleShape,
        declared_return: Type,
        argument_shape: Union[Type, TupleShape],
        node: Any = None,
    ) -> Specialization:
        result = self.specializer.specialize(declared_params, declared_return, argument_shape)
        self.tcx.reporter.report_all(result.failures, node)
        return result

    def call(
        self,
        params: Sequence[Parameter],
        declared_return: Type,
        argument_shape: Union[Type, TupleShape],
        node: Any = None,
    ) -> Specialization:
        """
        Specialize a call against a declared positional parameter list.

        A malformed *args annotation makes the call Unknown and is reported.
        """
        try:
            details = expand_parameters(params)
        except MalformedShapeError as e:
            logger.warning(f"malformed parameter list lowered to Unknown: {e.message}")
            self.tcx.reporter.report(e.failure, node)
            return Specialization(UNKNOWN, TypeVarBindings(), (e.failure,))
        logger.debug(f"call positional shape {details.positional_shape}")
        return self.specialize(details.positional_shape, declared_return, argument_shape, node)

    def lower_annotation(self, annotation: Union[str, ShapeDescription], node: Any = None) -> Type:
        if isinstance(annotation, ShapeDescription):
            return lower_annotation(annotation, self.tcx, node)
        return self.parser.lower(annotation, self.tcx, node)

    def literal(self, entries: Sequence[LiteralEntry]) -> TupleType:
        return TupleType(TupleShape.from_literal(entries))

    def from_iterable(self, source: Type) -> TupleType:
        return TupleType(TupleShape.from_iterable(source))
