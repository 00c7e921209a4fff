"""
Failure Reporting

The engine never renders diagnostic text. Every problem is a ``Failure``: a
``FailureKind`` tag plus the structured data (positions, counts, types) a
caller needs to build its own message.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Type


class FailureKind(Enum):
    """Failure tag handed to the surrounding checker."""
    MALFORMED_SHAPE = "malformed-shape"              # more than one open segment declared
    SIZE_MISMATCH = "size-mismatch"                  # arity mismatch
    ELEMENT_TYPE_MISMATCH = "element-type-mismatch"  # position-specific incompatibility
    INDEX_OUT_OF_RANGE = "index-out-of-range"        # literal index outside an exact shape


@dataclass(frozen=True)
class Failure:
    """
    Structured, non-fatal failure.

    ``position`` is a source element index (negative when counted from the end
    of a variadic source). ``expected``/``received`` are counts, and the
    matching ``*_at_least`` flag marks a count as a minimum length.
    ``alternative`` is the index of the failing member when the input was a
    union of shapes.
    """
    kind: FailureKind
    position: Optional[int] = None
    expected: Optional[int] = None
    received: Optional[int] = None
    expected_at_least: bool = False
    received_at_least: bool = False
    source: Optional['Type'] = None
    target: Optional['Type'] = None
    alternative: Optional[int] = None

    def for_alternative(self, alternative: int) -> 'Failure':
        return replace(self, alternative=alternative)


@dataclass
class ReportedFailure:
    failure: Failure
    node: Any = None


class ErrorReporter:
    """
    Collects failures for the surrounding checker.

    ``node`` is opaque: whatever expression/pattern reference the caller wants
    back when it renders the message.
    """

    def __init__(self) -> None:
        self.reported: List[ReportedFailure] = []

    def report(self, failure: Failure, node: Any = None) -> None:
        self.reported.append(ReportedFailure(failure=failure, node=node))

    def report_all(self, failures: Tuple[Failure, ...], node: Any = None) -> None:
        for failure in failures:
            self.report(failure, node)

    @property
    def failures(self) -> List[Failure]:
        return [r.failure for r in self.reported]

    def failures_of(self, kind: FailureKind) -> List[Failure]:
        return [f for f in self.failures if f.kind == kind]

    def has_errors(self) -> bool:
        return len(self.reported) > 0

    def clear(self) -> None:
        self.reported.clear()


# ============================================================================
# Exception Classes
# ============================================================================

class TupletyError(Exception):
    """Base exception for problems in the analysed program's types"""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedShapeError(TupletyError):
    """
    A declared tuple annotation cannot form a shape (e.g. two unpack markers).

    Local to the annotation: callers lower it to Unknown and carry on.
    """
    def __init__(self, message: str, failure: Optional[Failure] = None):
        super().__init__(message)
        self.failure = failure or Failure(kind=FailureKind.MALFORMED_SHAPE)


class PatternError(TupletyError):
    """Destructuring pattern with more than one collect-rest target."""


class AnnotationSyntaxError(TupletyError):
    """Annotation text that the frontend grammar rejects."""
    def __init__(self, message: str, text: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.text = text
        self.line = line
        self.column = column

    def __str__(self):
        if self.line is not None:
            return f"{self.message} at {self.line}:{self.column}"
        return self.message


class TupletyImplementationError(Exception):
    """
    Error in tuplety itself (broken internal invariant), never in the
    analysed program. Use the TupletyError family for those.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
