"""
State machines for the six filter kinds.

Each kind registers a FilterHandler in HANDLERS:

- new_state:  build a Filter State with kind-appropriate initial values
- update:     apply raw, user-submitted changes in place (bad input is ignored)
- applies:    whether the state currently constrains anything
- effective:  hashable value of what the state matches, used to detect
              material changes
- compile:    predicate for one backing field, honouring negation

``mutate`` wraps the handlers and reports whether a change was material.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional

from .attribute import Attribute
from .exceptions import ConfigError
from .filter_definition import (
    IS_BLANK,
    IS_EMPTY,
    IS_UNSET,
    PSEUDO_COMPARISONS,
    SET_BLANK,
    SET_EMPTY,
    SET_UNSET,
    FilterDefinition,
    FilterKind,
)
from .filter_state import (
    BooleanFilterState,
    DefaultFilterState,
    FilterState,
    NullFilterState,
    PatternFilterState,
    RangeFilterState,
    SetFilterState,
)
from .normalize import blank, to_boolean, to_category_value, to_integer
from .predicate import (
    NEGATIONS,
    And,
    Comparison,
    Not,
    Op,
    Or,
    Predicate,
    all_of,
    any_of,
    escape_pattern,
)
from .types import Category

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class FilterHandler:
    new_state: Callable[[FilterDefinition, str], FilterState]
    update: Callable[[FilterDefinition, Any, Mapping[str, Any]], None]
    applies: Callable[[Any], bool]
    effective: Callable[[Any], Hashable]
    compile: Callable[[FilterDefinition, Any, str, bool], Optional[Predicate]]


def negate(predicate: Predicate) -> Predicate:
    """Push a negation down to the comparisons (De Morgan)."""
    if isinstance(predicate, Comparison):
        if predicate.op in NEGATIONS:
            return Comparison(predicate.field, NEGATIONS[predicate.op], predicate.value)
        return Not(predicate)
    if isinstance(predicate, Or):
        return And(tuple(negate(t) for t in predicate.terms))
    if isinstance(predicate, And):
        return Or(tuple(negate(t) for t in predicate.terms))
    return predicate.term


def _blank_predicate(field: str) -> Predicate:
    return Or((Comparison(field, Op.IS_NULL), Comparison(field, Op.EQ, "")))


def _empty_predicate(field: str) -> Predicate:
    return Comparison(field, Op.EQ, "")


def _null_predicate(field: str) -> Predicate:
    return Comparison(field, Op.IS_NULL)


def _parse(definition: FilterDefinition, raw: Any) -> Any:
    """Normalise a raw value for the definition's category; ValueError if bad."""
    return to_category_value(raw, definition.category, definition.type_name)


# -----------------------------------------------------------------------------
# Default
# -----------------------------------------------------------------------------
_DEFAULT_OPS = {
    "equals": Op.EQ,
    "less": Op.LT,
    "before": Op.LT,
    "greater": Op.GT,
    "after": Op.GT,
    "less_or_equal": Op.LE,
    "before_or_on": Op.LE,
    "greater_or_equal": Op.GE,
    "after_or_on": Op.GE,
}

_DEFAULT_PATTERNS = {
    "begins": "{}%",
    "ends": "%{}",
    "contains": "%{}%",
}


def _default_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return DefaultFilterState(attribute=attribute)


def _default_update(
        definition: FilterDefinition, state: DefaultFilterState, changes: Mapping[str, Any]
) -> None:
    raw_comparison = changes.get("comparison", _MISSING)
    if raw_comparison is not _MISSING:
        if blank(raw_comparison):
            state.comparison = None
            state.value = None
        elif isinstance(raw_comparison, str) and raw_comparison.strip() in definition.comparisons():
            state.comparison = raw_comparison.strip()
        else:
            logger.debug("Ignoring unknown comparison", extra={"comparison": repr(raw_comparison)})

    if state.comparison in PSEUDO_COMPARISONS:
        state.value = None
        return
    if definition.category is Category.BOOLEAN:
        state.value = None if state.comparison is None else state.comparison == "true"
        return

    raw_value = changes.get("value", _MISSING)
    if raw_value is _MISSING:
        return
    if blank(raw_value):
        state.value = None
        return
    try:
        value = _parse(definition, raw_value)
    except ValueError:
        logger.debug("Ignoring malformed filter value", extra={"value": repr(raw_value)})
        return
    state.value = None if value == "" else value


def _default_applies(state: DefaultFilterState) -> bool:
    if not state.comparison:
        return False
    return (
        state.value is not None
        or state.comparison in PSEUDO_COMPARISONS
        or state.comparison in ("true", "false")
    )


def _default_effective(state: DefaultFilterState) -> Hashable:
    return state.comparison, state.value


def _default_compile(
        definition: FilterDefinition, state: DefaultFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    comparison = state.comparison
    if comparison == IS_UNSET:
        term = _null_predicate(field)
    elif comparison == IS_EMPTY:
        term = _empty_predicate(field)
    elif comparison == IS_BLANK:
        term = _blank_predicate(field)
    elif comparison in ("true", "false"):
        term = Comparison(field, Op.EQ, comparison == "true")
    elif comparison in _DEFAULT_OPS:
        term = Comparison(field, _DEFAULT_OPS[comparison], state.value)
    elif comparison in _DEFAULT_PATTERNS:
        pattern = _DEFAULT_PATTERNS[comparison].format(escape_pattern(str(state.value)))
        term = Comparison(field, Op.MATCHES, pattern)
    else:
        return None
    return negate(term) if negated else term


# -----------------------------------------------------------------------------
# Set
# -----------------------------------------------------------------------------
def _set_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return SetFilterState(attribute=attribute)


def _set_update(
        definition: FilterDefinition, state: SetFilterState, changes: Mapping[str, Any]
) -> None:
    raw = changes.get("selected", _MISSING)
    if raw is _MISSING:
        return

    items = raw if isinstance(raw, (list, tuple)) else [raw]
    items = [i for i in items if not blank(i)]
    if not items:
        state.selected = None
        return

    try:
        indices = sorted({to_integer(i) for i in items})
    except ValueError:
        logger.debug("Ignoring malformed set selection", extra={"selected": repr(raw)})
        return
    if not all(definition.valid_set_index(i) for i in indices):
        logger.debug("Ignoring out-of-range set selection", extra={"selected": indices})
        return

    if definition.multiple:
        state.selected = indices
    elif len(indices) == 1:
        state.selected = indices[0]
    else:
        logger.debug("Ignoring several selections on a single set filter")


def _selected_indices(state: SetFilterState) -> List[int]:
    if state.selected is None:
        return []
    if isinstance(state.selected, list):
        return list(state.selected)
    return [state.selected]


def _set_applies(state: SetFilterState) -> bool:
    return bool(_selected_indices(state))


def _set_effective(state: SetFilterState) -> Hashable:
    return tuple(_selected_indices(state))


def _set_compile(
        definition: FilterDefinition, state: SetFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    terms: List[Predicate] = []
    for index in _selected_indices(state):
        if index == SET_UNSET:
            terms.append(_null_predicate(field))
        elif index == SET_BLANK:
            terms.append(_blank_predicate(field))
        elif index == SET_EMPTY:
            terms.append(_empty_predicate(field))
        elif 0 <= index < len(definition.values):
            terms.append(Comparison(field, Op.EQ, definition.values[index][1]))
    term = any_of(terms)
    if term is None:
        return None
    return negate(term) if negated else term


# -----------------------------------------------------------------------------
# Null / Boolean (tri-state)
# -----------------------------------------------------------------------------
def _tristate_update(definition: FilterDefinition, state: Any, changes: Mapping[str, Any]) -> None:
    raw = changes.get("value", _MISSING)
    if raw is _MISSING:
        # an unchecked checkbox is simply not submitted
        if definition.checkbox:
            state.value = False
        return
    if blank(raw):
        state.value = False if definition.checkbox else None
        return
    try:
        state.value = to_boolean(raw)
    except ValueError:
        logger.debug("Ignoring malformed boolean value", extra={"value": repr(raw)})


def _tristate_applies(state: Any) -> bool:
    return state.value is not None


def _tristate_effective(state: Any) -> Hashable:
    return state.value


def _null_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return NullFilterState(attribute=attribute, value=False if definition.checkbox else None)


def _null_compile(
        definition: FilterDefinition, state: NullFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    if state.value is None:
        return None
    if definition.include_blank:
        term = _blank_predicate(field)
    elif definition.include_empty:
        term = _empty_predicate(field)
    else:
        term = _null_predicate(field)
    return term if state.value != negated else negate(term)


def _boolean_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return BooleanFilterState(attribute=attribute, value=False if definition.checkbox else None)


def _boolean_compile(
        definition: FilterDefinition, state: BooleanFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    if state.value is None:
        return None
    wanted = state.value != negated
    if definition.non_true:
        return Comparison(field, Op.EQ if wanted else Op.NE, True)
    return Comparison(field, Op.EQ, wanted)


# -----------------------------------------------------------------------------
# Range
# -----------------------------------------------------------------------------
def _range_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return RangeFilterState(attribute=attribute)


def _range_update(
        definition: FilterDefinition, state: RangeFilterState, changes: Mapping[str, Any]
) -> None:
    for key in ("first", "last"):
        raw = changes.get(key, _MISSING)
        if raw is _MISSING:
            continue
        if blank(raw):
            setattr(state, key, None)
            continue
        try:
            setattr(state, key, _parse(definition, raw))
        except ValueError:
            logger.debug("Ignoring malformed range bound", extra={"bound": key, "value": repr(raw)})


def _range_applies(state: RangeFilterState) -> bool:
    return state.first is not None and state.last is not None


def _range_effective(state: RangeFilterState) -> Hashable:
    return state.first, state.last


def _range_compile(
        definition: FilterDefinition, state: RangeFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    if negated:
        # outside the bounds, so nulls stay excluded like any ordered comparison
        return Or((Comparison(field, Op.LT, state.first), Comparison(field, Op.GT, state.last)))
    return Comparison(field, Op.BETWEEN, (state.first, state.last))


# -----------------------------------------------------------------------------
# Pattern
# -----------------------------------------------------------------------------
_STARS_RE = re.compile(r"\*{1,2}")


def unalias_pattern(value: str) -> str:
    """
    Turn user wildcard syntax into a LIKE pattern: ``*`` matches anything and
    ``**`` is a literal star. LIKE's own wildcards are escaped first.
    """
    escaped = escape_pattern(value)
    return _STARS_RE.sub(lambda m: "%" if m.group(0) == "*" else "*", escaped)


def _pattern_new(definition: FilterDefinition, attribute: str) -> FilterState:
    return PatternFilterState(attribute=attribute)


def _pattern_update(
        definition: FilterDefinition, state: PatternFilterState, changes: Mapping[str, Any]
) -> None:
    raw = changes.get("value", _MISSING)
    if raw is _MISSING:
        return
    if blank(raw):
        state.value = None
    elif isinstance(raw, str):
        state.value = raw.strip()
    else:
        logger.debug("Ignoring non-string pattern", extra={"value": repr(raw)})


def _pattern_applies(state: PatternFilterState) -> bool:
    return bool(state.value)


def _pattern_effective(state: PatternFilterState) -> Hashable:
    return state.value


def _pattern_compile(
        definition: FilterDefinition, state: PatternFilterState, field: str, negated: bool
) -> Optional[Predicate]:
    op = Op.NOT_MATCHES if negated else Op.MATCHES
    return Comparison(field, op, unalias_pattern(state.value))


HANDLERS: Dict[FilterKind, FilterHandler] = {
    FilterKind.DEFAULT: FilterHandler(
        _default_new, _default_update, _default_applies, _default_effective, _default_compile
    ),
    FilterKind.SET: FilterHandler(
        _set_new, _set_update, _set_applies, _set_effective, _set_compile
    ),
    FilterKind.NULL: FilterHandler(
        _null_new, _tristate_update, _tristate_applies, _tristate_effective, _null_compile
    ),
    FilterKind.BOOLEAN: FilterHandler(
        _boolean_new, _tristate_update, _tristate_applies, _tristate_effective, _boolean_compile
    ),
    FilterKind.RANGE: FilterHandler(
        _range_new, _range_update, _range_applies, _range_effective, _range_compile
    ),
    FilterKind.PATTERN: FilterHandler(
        _pattern_new, _pattern_update, _pattern_applies, _pattern_effective, _pattern_compile
    ),
}


# -----------------------------------------------------------------------------
# Public entry points
# -----------------------------------------------------------------------------
def _definition(attribute: Attribute) -> FilterDefinition:
    if attribute.filter is None:
        raise ConfigError(f"attribute {attribute.name!r} is not searchable")
    return attribute.filter


def _check_kind(definition: FilterDefinition, state: FilterState) -> None:
    if state.kind is not definition.kind:
        raise ConfigError(
            f"{state.kind.value} filter state used with {definition.kind.value} filter"
        )


def new_filter_state(attribute: Attribute) -> FilterState:
    definition = _definition(attribute)
    return HANDLERS[definition.kind].new_state(definition, attribute.name)


def applies(attribute: Attribute, state: FilterState) -> bool:
    definition = _definition(attribute)
    _check_kind(definition, state)
    return HANDLERS[definition.kind].applies(state)


def is_negated(attribute: Attribute, state: FilterState) -> bool:
    return bool(state.negated and attribute.filter is not None and attribute.filter.negatable)


def _signature(attribute: Attribute, state: FilterState) -> Optional[Hashable]:
    handler = HANDLERS[attribute.filter.kind]
    if not handler.applies(state):
        return None
    return handler.effective(state), is_negated(attribute, state)


def mutate(attribute: Attribute, state: FilterState, changes: Mapping[str, Any]) -> bool:
    """
    Apply raw changes to ``state``; True when what the filter matches changed.

    ``negated`` (alias ``not``) behaves like a checkbox: when absent it is
    cleared. It is ignored unless the filter definition is negatable.
    """
    definition = _definition(attribute)
    _check_kind(definition, state)
    if not isinstance(changes, Mapping):
        logger.debug("Ignoring non-mapping filter changes", extra={"changes": repr(changes)})
        return False

    before = _signature(attribute, state)
    HANDLERS[definition.kind].update(definition, state, changes)

    if definition.negatable:
        raw = changes.get("negated", changes.get("not", _MISSING))
        if raw is _MISSING or blank(raw):
            state.negated = False
        else:
            try:
                state.negated = to_boolean(raw)
            except ValueError:
                logger.debug("Ignoring malformed negation flag", extra={"value": repr(raw)})

    return before != _signature(attribute, state)


def compile_field(
        attribute: Attribute, state: FilterState, field: str, negated: bool
) -> Optional[Predicate]:
    """Predicate for a single backing field; None when the filter does not apply."""
    definition = _definition(attribute)
    _check_kind(definition, state)
    handler = HANDLERS[definition.kind]
    if not handler.applies(state):
        return None
    return handler.compile(definition, state, field, negated)


def compile_filter(attribute: Attribute, state: FilterState) -> Optional[Predicate]:
    """
    Predicate for the whole attribute: backing fields are ORed, or ANDed when
    the filter is negated.
    """
    negated = is_negated(attribute, state)
    terms = [compile_field(attribute, state, f, negated) for f in attribute.fields]
    return all_of(terms) if negated else any_of(terms)
