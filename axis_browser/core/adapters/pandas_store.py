from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from axis_browser.core.entity import EntityClass, Record
from axis_browser.core.predicate import And, Comparison, Not, Op, Or, OrderTerm, Predicate
from axis_browser.core.store import StoreAdapter

logger = logging.getLogger(__name__)


def infer_field_type(series: pd.Series) -> str:
    """Map a pandas dtype onto a storage type name from the alias table."""
    dtype = series.dtype
    if ptypes.is_bool_dtype(dtype):
        return "boolean"
    if ptypes.is_integer_dtype(dtype):
        return "integer"
    if ptypes.is_float_dtype(dtype):
        return "float"
    if ptypes.is_datetime64_any_dtype(dtype):
        return "datetime"
    if ptypes.is_timedelta64_dtype(dtype):
        return "numeric"
    return "string"


class FrameEntity(EntityClass):
    """
    Entity backed by an in-memory DataFrame; each row is a record.

    Field types are inferred from dtypes unless given explicitly (useful for
    object columns holding dates or booleans with gaps).
    """

    def __init__(
            self,
            name: str,
            frame: pd.DataFrame,
            field_types: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.frame = frame
        inferred = {str(col): infer_field_type(frame[col]) for col in frame.columns}
        inferred.update(field_types or {})
        self._field_types = inferred

    def field_types(self) -> Dict[str, str]:
        return dict(self._field_types)

    def all(self) -> FrameCollection:
        return FrameCollection(self, self.frame)

    def where(self, **equals: Any) -> FrameCollection:
        """Collection of rows whose fields equal the given values."""
        mask = np.ones(len(self.frame), dtype=bool)
        for field_name, value in equals.items():
            mask &= (self.frame[field_name] == value).to_numpy(dtype=bool)
        return FrameCollection(self, self.frame[mask])


@dataclass(frozen=True)
class FrameCollection:
    entity: FrameEntity
    frame: pd.DataFrame

    def __len__(self) -> int:
        return len(self.frame)


def like_to_regex(pattern: str) -> str:
    """
    Translate a LIKE pattern into a regex: ``%`` is any run of characters,
    ``_`` any single character, and a doubled wildcard is its literal form.
    """
    out = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char in "%_":
            if i + 1 < len(pattern) and pattern[i + 1] == char:
                out.append(re.escape(char))
                i += 2
                continue
            out.append(".*" if char == "%" else ".")
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


def _comparable(series: pd.Series, value: Any) -> pd.Series:
    """
    Coerce a temporal column stored as objects (``datetime.date`` values) so it
    compares with Timestamps; unparseable entries become NaT and never match.
    """
    values = value if isinstance(value, tuple) else (value,)
    if ptypes.is_datetime64_any_dtype(series.dtype):
        return series
    if not any(isinstance(v, pd.Timestamp) for v in values):
        return series
    return pd.to_datetime(series, errors="coerce")


def _ordered(series: pd.Series, op: Op, value: Any) -> np.ndarray:
    """Ordered comparison where nulls never match."""
    result = np.zeros(len(series), dtype=bool)
    present = series.notna().to_numpy(dtype=bool)
    if not present.any():
        return result
    values = series[present]
    if op is Op.LT:
        hit = values < value
    elif op is Op.LE:
        hit = values <= value
    elif op is Op.GT:
        hit = values > value
    elif op is Op.GE:
        hit = values >= value
    else:
        low, high = value
        hit = (values >= low) & (values <= high)
    result[present] = np.asarray(hit, dtype=bool)
    return result


def _equals(series: pd.Series, value: Any) -> np.ndarray:
    return (series == value).fillna(False).to_numpy(dtype=bool)


def _matches(series: pd.Series, pattern: str) -> np.ndarray:
    result = np.zeros(len(series), dtype=bool)
    present = series.notna().to_numpy(dtype=bool)
    if not present.any():
        return result
    regex = like_to_regex(pattern)
    hit = series[present].astype(str).str.fullmatch(regex, case=False, flags=re.DOTALL)
    result[present] = hit.to_numpy(dtype=bool)
    return result


def evaluate(frame: pd.DataFrame, predicate: Predicate) -> np.ndarray:
    """Boolean row mask for ``predicate`` over ``frame``."""
    if isinstance(predicate, And):
        mask = np.ones(len(frame), dtype=bool)
        for term in predicate.terms:
            mask &= evaluate(frame, term)
        return mask
    if isinstance(predicate, Or):
        mask = np.zeros(len(frame), dtype=bool)
        for term in predicate.terms:
            mask |= evaluate(frame, term)
        return mask
    if isinstance(predicate, Not):
        return ~evaluate(frame, predicate.term)
    if not isinstance(predicate, Comparison):
        raise TypeError(f"unsupported predicate: {predicate!r}")

    series = frame[predicate.field]
    op = predicate.op
    if op is Op.EQ:
        return _equals(_comparable(series, predicate.value), predicate.value)
    if op is Op.NE:
        return ~_equals(_comparable(series, predicate.value), predicate.value)
    if op in (Op.LT, Op.LE, Op.GT, Op.GE, Op.BETWEEN):
        return _ordered(_comparable(series, predicate.value), op, predicate.value)
    if op is Op.IS_NULL:
        return series.isna().to_numpy(dtype=bool)
    if op is Op.NOT_NULL:
        return series.notna().to_numpy(dtype=bool)
    if op is Op.MATCHES:
        return _matches(series, predicate.value)
    if op is Op.NOT_MATCHES:
        return ~_matches(series, predicate.value)
    raise ValueError(f"unsupported operator: {op!r}")


def _to_records(frame: pd.DataFrame) -> List[Record]:
    cleaned = frame.astype(object).where(frame.notna(), None)
    return cleaned.to_dict(orient="records")


class PandasStore(StoreAdapter):
    """StoreAdapter over FrameCollections."""

    def _filter(self, collection: Any, predicate: Optional[Predicate]) -> pd.DataFrame:
        if collection is None:
            return pd.DataFrame()
        if not isinstance(collection, FrameCollection):
            raise TypeError(f"expected FrameCollection, got {type(collection).__name__}")
        frame = collection.frame
        if predicate is None:
            return frame
        return frame[evaluate(frame, predicate)]

    def count(self, collection: Any, predicate: Optional[Predicate]) -> int:
        return int(len(self._filter(collection, predicate)))

    def fetch(
            self,
            collection: Any,
            predicate: Optional[Predicate],
            ordering: Sequence[OrderTerm],
            offset: int,
            limit: int,
    ) -> List[Record]:
        frame = self._filter(collection, predicate)
        if ordering and len(frame):
            frame = frame.sort_values(
                by=[t.field for t in ordering],
                ascending=[not t.descending for t in ordering],
                kind="mergesort",
                na_position="last",
            )
        window = frame.iloc[offset:offset + limit]
        logger.debug(
            "Fetched window",
            extra={"offset": offset, "limit": limit, "n_rows": len(window)},
        )
        return _to_records(window)

    def single(self, entity: EntityClass, record: Optional[Record]) -> FrameCollection:
        if not isinstance(entity, FrameEntity):
            raise TypeError(f"expected FrameEntity, got {type(entity).__name__}")
        if record is None:
            return FrameCollection(entity, entity.frame.iloc[0:0])
        return FrameCollection(entity, pd.DataFrame([record], columns=entity.frame.columns))
