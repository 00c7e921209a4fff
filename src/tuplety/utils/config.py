"""
Configuration constants to replace magic strings throughout tuplety
"""

import os

# Environment switches (read when a TyCtxt is created)
CACHE_ENV_VAR = "TUPLETY_CACHE"
NARROW_INDEX_ENV_VAR = "TUPLETY_NARROW_INDEX"
FALSE_ENV_VALUES = ("0", "false", "no", "never", "off")
TRUE_ENV_VALUES = ("1", "true", "yes", "always", "on")

# Container produced for a collect-rest destructuring target
REST_CONTAINER_NAME = "list"

# Builtin class names known to the default namespace
BUILTIN_CLASS_NAMES = ("int", "str", "float", "bool", "bytes", "complex", "object")
NONE_TYPE_NAME = "None"
OBJECT_TYPE_NAME = "object"

# Iterable-like generic names and their widening order (narrowest first)
LIST_TYPE_NAME = "list"
ITERABLE_NAMES = ("list", "Sequence", "Iterable")
ITERABLE_ALIASES = {"List": "list"}

# Implicit numeric promotions accepted by the default element predicate
NUMERIC_PROMOTIONS = {
    "bool": ("int", "float", "complex"),
    "int": ("float", "complex"),
    "float": ("complex",),
}

# Annotation spellings
ANNOTATION_GRAMMAR_FILE = "annotation.lark"
ANNOTATION_START_RULE = "annotation"
MODULE_PREFIXES = ("typing.", "typing_extensions.", "builtins.")
TUPLE_NAMES = ("tuple", "Tuple")
UNPACK_NAMES = ("Unpack",)
UNION_NAMES = ("Union",)
OPTIONAL_NAMES = ("Optional",)
GRADUAL_NAMES = ("Any", "Unknown")
NEVER_NAMES = ("Never", "NoReturn")

# Text used when rendering types
UNKNOWN_DISPLAY = "Unknown"
NEVER_DISPLAY = "Never"


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean switch from the environment."""
    raw = os.environ.get(name, "").strip().lower()
    if raw in FALSE_ENV_VALUES:
        return False
    if raw in TRUE_ENV_VALUES:
        return True
    return default
