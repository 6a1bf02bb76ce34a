"""
Parsing of raw (usually string) user input into typed filter values.

Every parser raises ValueError on malformed input; callers in the filter state
machines catch it and keep the prior value.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Union

import pandas as pd

from .types import Category

Number = Union[int, float]

_TRUE_RE = re.compile(r"^(t|true|y|yes|on|1|-1)$", re.IGNORECASE)
_FALSE_RE = re.compile(r"^(f|false|n|no|off|0)$", re.IGNORECASE)
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def to_integer(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError("booleans are not integers")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError(f"not an integer: {raw!r}")
        return int(raw)
    if isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if _INTEGER_RE.match(text):
            return int(text)
    raise ValueError(f"not an integer: {raw!r}")


def to_numeric(raw: Any) -> Number:
    """
    Parse a number, tolerating currency signs, thousands separators and a
    trailing percent sign (``"12.5%"`` -> ``0.125``).
    """
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip().replace("$", "").replace(",", "").strip()
        percent = text.endswith("%")
        if percent:
            text = text[:-1].strip()
        if not text:
            raise ValueError(f"not a number: {raw!r}")
        value = float(text)
        if percent:
            value /= 100.0
    else:
        raise ValueError(f"not a number: {raw!r}")

    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"not a finite number: {raw!r}")
    return int(value) if value.is_integer() else value


def to_temporal(raw: Any, type_name: str = "datetime") -> pd.Timestamp:
    """Parse a timestamp; ``date`` typed attributes are truncated to midnight."""
    if blank(raw):
        raise ValueError("blank temporal value")
    if isinstance(raw, (bool, int, float)):
        raise ValueError(f"not a temporal value: {raw!r}")
    if not isinstance(raw, (str, dt.date, pd.Timestamp)):
        raise ValueError(f"not a temporal value: {raw!r}")
    try:
        value = pd.Timestamp(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"not a temporal value: {raw!r}") from e
    if pd.isna(value):
        raise ValueError(f"not a temporal value: {raw!r}")
    if type_name == "date":
        value = value.normalize()
    return value


def to_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1, -1):
        return raw != 0
    if isinstance(raw, str):
        text = raw.strip()
        if _TRUE_RE.match(text):
            return True
        if _FALSE_RE.match(text):
            return False
    raise ValueError(f"not a boolean: {raw!r}")


def to_category_value(raw: Any, category: Category, type_name: str) -> Any:
    """Dispatch to the parser matching an attribute's category."""
    if category is Category.NUMERIC:
        if type_name == "integer":
            return to_integer(raw)
        return to_numeric(raw)
    if category is Category.TEMPORAL:
        return to_temporal(raw, type_name)
    if category is Category.BOOLEAN:
        return to_boolean(raw)
    if isinstance(raw, str):
        return raw.strip()
    if raw is None or isinstance(raw, (dict, list, tuple, set)):
        raise ValueError(f"not a scalar value: {raw!r}")
    return str(raw)
