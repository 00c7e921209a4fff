"""
tuplety utilities package
"""

from .cache import ShapeCache
from .config import env_flag

__all__ = ["ShapeCache", "env_flag"]
