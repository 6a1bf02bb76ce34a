from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from .exceptions import ConfigError


class Category(str, Enum):
    """
    Canonical data categories every attribute falls into.

    Filter kinds and comparison vocabularies are chosen per category, never per
    raw storage type.
    """
    STRING = "string"
    BINARY = "binary"
    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"


# Storage type name -> canonical category. Canonical names map to themselves.
ALIASES: Dict[str, Category] = {
    "string": Category.STRING,
    "text": Category.STRING,
    "char": Category.STRING,
    "clob": Category.STRING,
    "binary": Category.BINARY,
    "blob": Category.BINARY,
    "numeric": Category.NUMERIC,
    "integer": Category.NUMERIC,
    "int": Category.NUMERIC,
    "float": Category.NUMERIC,
    "double": Category.NUMERIC,
    "decimal": Category.NUMERIC,
    "number": Category.NUMERIC,
    "temporal": Category.TEMPORAL,
    "date": Category.TEMPORAL,
    "datetime": Category.TEMPORAL,
    "time": Category.TEMPORAL,
    "timestamp": Category.TEMPORAL,
    "boolean": Category.BOOLEAN,
    "bool": Category.BOOLEAN,
}

# Richer types that change how raw input is normalised, so they are kept
# alongside the category instead of being collapsed into it.
FIRST_CLASS = frozenset(
    {"text", "integer", "float", "decimal", "date", "datetime", "time", "timestamp"}
)


def resolve_type(raw: object) -> Tuple[str, Category]:
    """
    Resolve a storage type name (or Category) into ``(type, category)``.

    ``type`` is the first-class alias when one was given, otherwise the
    canonical category name.

    :raises ConfigError: if the name is not in the alias table
    """
    if isinstance(raw, Category):
        return raw.value, raw
    if not isinstance(raw, str):
        raise ConfigError(f"invalid type for category: {type(raw).__name__}")

    key = raw.strip().lower()
    try:
        category = ALIASES[key]
    except KeyError:
        raise ConfigError(f"unknown category or type alias: {raw!r}")

    type_name = key if key in FIRST_CLASS else category.value
    return type_name, category


def category_of(raw: object) -> Category:
    return resolve_type(raw)[1]
