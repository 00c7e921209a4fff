"""
Default element-assignability predicate.

A small stand-in for the surrounding checker's general ``assignable(T, U)``
rule. It knows gradual types, unions, the builtin numeric promotions,
``object`` as top, and covariant read-only iterables. Callers with a real
type system pass their own predicate to ``TyCtxt``.
"""

from ..shared.types import (
    Type, TypeKind, ClassType, IterableType, UnionType, is_unknown,
)
from ..utils.config import ITERABLE_NAMES, LIST_TYPE_NAME, NUMERIC_PROMOTIONS, OBJECT_TYPE_NAME


def default_assignable(source: Type, target: Type) -> bool:
    """Is a value of type ``source`` acceptable where ``target`` is declared?"""
    if source == target:
        return True
    if is_unknown(source) or is_unknown(target):
        return True
    if source.kind == TypeKind.NEVER:
        return True
    if isinstance(target, ClassType) and target.name == OBJECT_TYPE_NAME:
        return True

    if isinstance(source, UnionType):
        return all(default_assignable(member, target) for member in source.members)
    if isinstance(target, UnionType):
        return any(default_assignable(source, member) for member in target.members)

    if isinstance(source, ClassType) and isinstance(target, ClassType):
        return target.name in NUMERIC_PROMOTIONS.get(source.name, ())

    if isinstance(target, IterableType):
        if isinstance(source, IterableType):
            return _iterable_assignable(source, target)
        if source.kind == TypeKind.TUPLE:
            if target.name == LIST_TYPE_NAME:
                return False
            return default_assignable(source.shape.combined_element_type(), target.element_type)  # type: ignore[attr-defined]
    return False


def _iterable_assignable(source: IterableType, target: IterableType) -> bool:
    if target.name == LIST_TYPE_NAME:
        # list is invariant
        return (
            source.name == LIST_TYPE_NAME
            and default_assignable(source.element_type, target.element_type)
            and default_assignable(target.element_type, source.element_type)
        )
    if _iterable_rank(source.name) > _iterable_rank(target.name):
        return False
    return default_assignable(source.element_type, target.element_type)


def _iterable_rank(name: str) -> int:
    if name in ITERABLE_NAMES:
        return ITERABLE_NAMES.index(name)
    return len(ITERABLE_NAMES)
