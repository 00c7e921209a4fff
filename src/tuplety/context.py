"""
Type Context

Single source of truth handed to every tuple component: the injected
element-assignability predicate, mode switches, memo tables and the failure
reporter.
"""

import logging
from typing import Callable, Optional
from typing_extensions import TypeAlias

from .shared.errors import ErrorReporter
from .shared.types import Type
from .utils.cache import ShapeCache
from .utils.config import CACHE_ENV_VAR, NARROW_INDEX_ENV_VAR, env_flag

logger = logging.getLogger("tuplety.context")

AssignablePredicate: TypeAlias = Callable[[Type, Type], bool]


class TyCtxt:
    """
    Type context.

    ``assignable(source, target)`` is the surrounding checker's general rule
    for non-tuple element types; it defaults to
    ``tuplety.shapes.relations.default_assignable``. ``narrow_ambiguous_index``
    and ``cache_enabled`` fall back to the environment when not given.

    The index and assign caches are unbounded. A context that outlives one
    analysis run should call ``clear_caches()`` before the next.
    """

    def __init__(
        self,
        assignable: Optional[AssignablePredicate] = None,
        *,
        narrow_ambiguous_index: Optional[bool] = None,
        cache_enabled: Optional[bool] = None,
    ):
        if assignable is None:
            from .shapes.relations import default_assignable
            assignable = default_assignable
        self.assignable: AssignablePredicate = assignable

        if narrow_ambiguous_index is None:
            narrow_ambiguous_index = env_flag(NARROW_INDEX_ENV_VAR, False)
        self.narrow_ambiguous_index: bool = narrow_ambiguous_index

        if cache_enabled is None:
            cache_enabled = env_flag(CACHE_ENV_VAR, True)
        self.index_cache = ShapeCache("index", enabled=cache_enabled)
        self.assign_cache = ShapeCache("assign", enabled=cache_enabled)

        self.reporter: ErrorReporter = ErrorReporter()
        logger.debug(
            f"TyCtxt created (narrow_ambiguous_index={narrow_ambiguous_index}, "
            f"cache_enabled={cache_enabled})"
        )

    @property
    def cache_enabled(self) -> bool:
        return self.index_cache.enabled

    def clear_caches(self) -> None:
        self.index_cache.clear()
        self.assign_cache.clear()
