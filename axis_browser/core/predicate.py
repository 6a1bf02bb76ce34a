"""
Store-agnostic description of a query: predicates and ordering.

Filters compile to these trees and store adapters evaluate them; nothing in
this module touches data.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple, Union


class Op(str, Enum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    BETWEEN = "between"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"
    MATCHES = "matches"
    NOT_MATCHES = "not_matches"


# Operator each comparison turns into when its filter is negated
NEGATIONS = {
    Op.EQ: Op.NE,
    Op.NE: Op.EQ,
    Op.LT: Op.GE,
    Op.GE: Op.LT,
    Op.GT: Op.LE,
    Op.LE: Op.GT,
    Op.IS_NULL: Op.NOT_NULL,
    Op.NOT_NULL: Op.IS_NULL,
    Op.MATCHES: Op.NOT_MATCHES,
    Op.NOT_MATCHES: Op.MATCHES,
}


@dataclass(frozen=True)
class Comparison:
    """
    One field compared against a value.

    ``value`` is a ``(low, high)`` tuple for BETWEEN, a LIKE-style pattern
    (``%``/``_`` wildcards, doubled to escape) for MATCHES and unused for the
    null checks.
    """
    field: str
    op: Op
    value: Any = None


@dataclass(frozen=True)
class And:
    terms: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    terms: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Not:
    term: "Predicate"


Predicate = Union[Comparison, And, Or, Not]


@dataclass(frozen=True)
class OrderTerm:
    field: str
    descending: bool = False


def all_of(terms: Sequence[Optional[Predicate]]) -> Optional[Predicate]:
    """AND the given terms, skipping None; a single term is returned as-is."""
    kept = tuple(t for t in terms if t is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return And(kept)


def any_of(terms: Sequence[Optional[Predicate]]) -> Optional[Predicate]:
    """OR the given terms, skipping None; a single term is returned as-is."""
    kept = tuple(t for t in terms if t is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Or(kept)


def escape_pattern(value: str) -> str:
    """Escape LIKE wildcards by doubling them."""
    return value.replace("%", "%%").replace("_", "__")
