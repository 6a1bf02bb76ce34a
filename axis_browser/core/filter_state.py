from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, List, Optional, Type, Union

import pandas as pd

from .filter_definition import FilterKind


def encode_value(value: Any) -> Any:
    """Make a filter value JSON-safe; timestamps become tagged ISO strings."""
    if isinstance(value, (pd.Timestamp, dt.datetime, dt.date)):
        return {"__temporal__": pd.Timestamp(value).isoformat()}
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict) and "__temporal__" in value:
        return pd.Timestamp(value["__temporal__"])
    return value


@dataclass
class FilterState:
    """
    Per-session value of one active filter instance.

    Subclasses add the fields of one filter kind. ``negated`` is only honoured
    when the attribute's filter definition is negatable.
    """
    kind: ClassVar[FilterKind]

    attribute: str
    negated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value}
        for f in fields(self):
            data[f.name] = encode_value(getattr(self, f.name))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FilterState:
        kind = FilterKind(data["kind"])
        state_cls = STATE_TYPES[kind]
        names = {f.name for f in fields(state_cls)}
        values = {k: decode_value(v) for k, v in data.items() if k in names}
        state = state_cls(**values)
        if isinstance(state, SetFilterState) and isinstance(state.selected, list):
            state.selected = [int(i) for i in state.selected]
        return state


@dataclass
class DefaultFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.DEFAULT

    comparison: Optional[str] = None
    value: Any = None


@dataclass
class SetFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.SET

    # single index, sorted list of indices (multiple), or None
    selected: Union[int, List[int], None] = None


@dataclass
class NullFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.NULL

    value: Optional[bool] = None


@dataclass
class BooleanFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.BOOLEAN

    value: Optional[bool] = None


@dataclass
class RangeFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.RANGE

    first: Any = None
    last: Any = None


@dataclass
class PatternFilterState(FilterState):
    kind: ClassVar[FilterKind] = FilterKind.PATTERN

    value: Optional[str] = None


STATE_TYPES: Dict[FilterKind, Type[FilterState]] = {
    FilterKind.DEFAULT: DefaultFilterState,
    FilterKind.SET: SetFilterState,
    FilterKind.NULL: NullFilterState,
    FilterKind.BOOLEAN: BooleanFilterState,
    FilterKind.RANGE: RangeFilterState,
    FilterKind.PATTERN: PatternFilterState,
}
