from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .exceptions import ConfigError
from .types import Category


class FilterKind(str, Enum):
    DEFAULT = "default"
    SET = "set"
    NULL = "null"
    BOOLEAN = "boolean"
    RANGE = "range"
    PATTERN = "pattern"


# Pseudo comparisons available on default filters when enabled
IS_UNSET = "is_unset"
IS_BLANK = "is_blank"
IS_EMPTY = "is_empty"
PSEUDO_COMPARISONS = (IS_UNSET, IS_BLANK, IS_EMPTY)

# Category -> ordered (comparison, label) vocabulary for default filters
COMPARISONS: Dict[Category, Tuple[Tuple[str, str], ...]] = {
    Category.STRING: (
        ("equals", "equals"),
        ("begins", "begins with"),
        ("ends", "ends with"),
        ("contains", "contains"),
    ),
    Category.NUMERIC: (
        ("equals", "equals"),
        ("less", "less than"),
        ("greater", "greater than"),
        ("less_or_equal", "less than or equal to"),
        ("greater_or_equal", "greater than or equal to"),
    ),
    Category.TEMPORAL: (
        ("equals", "equals"),
        ("before", "before"),
        ("after", "after"),
        ("before_or_on", "before or on"),
        ("after_or_on", "after or on"),
    ),
    Category.BOOLEAN: (
        ("true", "is true"),
        ("false", "is false"),
    ),
}

PSEUDO_LABELS = {
    IS_UNSET: "is not set",
    IS_BLANK: "is blank",
    IS_EMPTY: "is empty",
}

# Reserved selection indices for set filter pseudo-members
SET_UNSET = -1
SET_BLANK = -2
SET_EMPTY = -3

COMMON_OPTIONS: FrozenSet[str] = frozenset({"negatable", "not", "display"})

LEGAL_OPTIONS: Dict[FilterKind, FrozenSet[str]] = {
    FilterKind.DEFAULT: frozenset({"null", "blank", "empty"}),
    FilterKind.SET: frozenset({"values", "multiple", "multi", "null", "blank", "empty"}),
    FilterKind.NULL: frozenset({"radio", "checkbox", "blank", "empty"}),
    FilterKind.BOOLEAN: frozenset({"radio", "checkbox", "non_true"}),
    FilterKind.RANGE: frozenset(),
    FilterKind.PATTERN: frozenset(),
}

LEGAL_CATEGORIES: Dict[FilterKind, FrozenSet[Category]] = {
    FilterKind.DEFAULT: frozenset(
        {Category.STRING, Category.NUMERIC, Category.TEMPORAL, Category.BOOLEAN}
    ),
    FilterKind.SET: frozenset({Category.STRING, Category.NUMERIC, Category.TEMPORAL}),
    FilterKind.NULL: frozenset(Category),
    FilterKind.BOOLEAN: frozenset({Category.BOOLEAN}),
    FilterKind.RANGE: frozenset({Category.NUMERIC, Category.TEMPORAL}),
    FilterKind.PATTERN: frozenset({Category.STRING}),
}


@dataclass(frozen=True)
class FilterDefinition:
    """
    Configuration-time description of how one attribute may be searched.

    Only the fields relevant to ``kind`` are meaningful; the rest keep their
    defaults. Instances are immutable once created.
    """
    kind: FilterKind
    category: Category
    type_name: str
    display: str
    negatable: bool = False
    include_null: bool = False
    include_blank: bool = False
    include_empty: bool = False
    values: Tuple[Tuple[str, Any], ...] = ()
    multiple: bool = False
    radio: bool = False
    non_true: bool = False

    @property
    def checkbox(self) -> bool:
        return not self.radio

    def comparison_options(self) -> List[Tuple[str, str]]:
        """Ordered (comparison, label) pairs a default filter accepts."""
        if self.kind is not FilterKind.DEFAULT:
            return []
        options = list(COMPARISONS[self.category])
        if self.include_null:
            options.append((IS_UNSET, PSEUDO_LABELS[IS_UNSET]))
        if self.include_blank:
            options.append((IS_BLANK, PSEUDO_LABELS[IS_BLANK]))
        if self.include_empty:
            options.append((IS_EMPTY, PSEUDO_LABELS[IS_EMPTY]))
        return options

    def comparisons(self) -> List[str]:
        return [value for value, _ in self.comparison_options()]

    def set_options(self) -> List[Tuple[int, str]]:
        """Ordered (index, label) pairs a set filter accepts, sentinels last."""
        if self.kind is not FilterKind.SET:
            return []
        options = [(i, label) for i, (label, _) in enumerate(self.values)]
        if self.include_null:
            options.append((SET_UNSET, PSEUDO_LABELS[IS_UNSET]))
        if self.include_blank:
            options.append((SET_BLANK, PSEUDO_LABELS[IS_BLANK]))
        if self.include_empty:
            options.append((SET_EMPTY, PSEUDO_LABELS[IS_EMPTY]))
        return options

    def valid_set_index(self, index: int) -> bool:
        if 0 <= index < len(self.values):
            return True
        return (
            (index == SET_UNSET and self.include_null)
            or (index == SET_BLANK and self.include_blank)
            or (index == SET_EMPTY and self.include_empty)
        )


def _parse_kind(kind: Any) -> FilterKind:
    if isinstance(kind, FilterKind):
        return kind
    try:
        return FilterKind(str(kind).strip().lower())
    except ValueError:
        raise ConfigError(f"unknown filter kind: {kind!r}")


def _parse_values(raw: Any) -> Tuple[Tuple[str, Any], ...]:
    if isinstance(raw, Mapping):
        pairs = tuple((str(label), value) for label, value in raw.items())
    elif isinstance(raw, (list, tuple)):
        pairs = tuple((str(value), value) for value in raw)
    else:
        raise ConfigError(f"invalid type for set 'values' option: {type(raw).__name__}")
    if not pairs:
        raise ConfigError("set filter 'values' option must not be empty")
    return pairs


def create_filter_definition(
        kind: Any,
        category: Category,
        type_name: str,
        options: Optional[Mapping[str, Any]] = None,
        *,
        default_display: str = "",
) -> FilterDefinition:
    """
    Validate ``options`` for ``(kind, category)`` and build a FilterDefinition.

    :raises ConfigError: unknown kind, kind not usable for the category, an
        option not legal for the kind, a string-only option on another
        category, a missing required option or conflicting options
    """
    kind = _parse_kind(kind)
    opts: Dict[str, Any] = dict(options or {})

    if category not in LEGAL_CATEGORIES[kind]:
        raise ConfigError(f"{kind.value} filter not allowed on {category.value} attributes")

    illegal = sorted(set(opts) - LEGAL_OPTIONS[kind] - COMMON_OPTIONS)
    if illegal:
        raise ConfigError(
            f"unrecognized options for {kind.value} filter: {', '.join(illegal)}"
        )

    for key in ("blank", "empty"):
        if opts.get(key) and category is not Category.STRING:
            raise ConfigError(f"'{key}' option is only legal on string attributes")

    if "negatable" in opts and "not" in opts:
        raise ConfigError("specify only one of 'negatable' and 'not'")
    negatable = bool(opts.get("negatable", opts.get("not", False)))

    display = opts.get("display") or default_display
    if not isinstance(display, str):
        raise ConfigError(f"invalid type for 'display' option: {type(display).__name__}")

    fields: Dict[str, Any] = {}

    if kind in (FilterKind.DEFAULT, FilterKind.SET, FilterKind.NULL):
        fields["include_blank"] = bool(opts.get("blank", False))
        fields["include_empty"] = bool(opts.get("empty", False))

    if kind in (FilterKind.DEFAULT, FilterKind.SET):
        fields["include_null"] = bool(opts.get("null", False))

    if kind is FilterKind.SET:
        if "values" not in opts:
            raise ConfigError("set filter requires a 'values' option")
        if "multiple" in opts and "multi" in opts:
            raise ConfigError("specify only one of 'multiple' and 'multi'")
        fields["values"] = _parse_values(opts["values"])
        fields["multiple"] = bool(opts.get("multiple", opts.get("multi", False)))

    if kind is FilterKind.NULL and fields["include_blank"] and fields["include_empty"]:
        raise ConfigError("cannot specify 'blank' and 'empty' options together")

    if kind in (FilterKind.NULL, FilterKind.BOOLEAN):
        if opts.get("radio") and opts.get("checkbox"):
            raise ConfigError("cannot specify 'radio' and 'checkbox' options together")
        fields["radio"] = bool(opts.get("radio", False))

    if kind is FilterKind.BOOLEAN:
        fields["non_true"] = bool(opts.get("non_true", False))

    return FilterDefinition(
        kind=kind,
        category=category,
        type_name=type_name,
        display=display.strip(),
        negatable=negatable,
        **fields,
    )
