from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .filter_state import FilterState


@dataclass
class SortState:
    attribute: str
    descending: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"attribute": self.attribute, "descending": self.descending}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SortState:
        return cls(attribute=data["attribute"], descending=bool(data.get("descending", False)))


class RuntimeState:
    """
    Mutable, persisted search state of one binding for one session.

    Pagination is stored as ``page``/``selected`` (both 1-based, 0 meaning
    "nothing selected") with ``offset`` derived from them:

        page     = offset // per_page + 1
        selected = offset %  per_page + 1

    Whenever ``total > 0`` and something is selected, ``0 <= offset < total``.
    """

    def __init__(
            self,
            binding_id: int,
            per_page: int = 10,
            *,
            min_per_page: int = 1,
            max_per_page: int = 1000,
            max_sorts: int = 3,
    ) -> None:
        self.binding_id = binding_id
        self.min_per_page = min_per_page
        self.max_per_page = max_per_page
        self.max_sorts = max_sorts
        self._per_page = self._clamp_per_page(per_page)
        self._total = 0
        self.page = 0
        self.selected = 0
        self.filters: List[FilterState] = []
        self.sorts: List[SortState] = []

    def _clamp_per_page(self, value: int) -> int:
        return max(self.min_per_page, min(self.max_per_page, int(value)))

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------
    @property
    def per_page(self) -> int:
        return self._per_page

    @per_page.setter
    def per_page(self, value: int) -> None:
        """Change page size while keeping the selected record's absolute offset."""
        offset = self.offset
        self._per_page = self._clamp_per_page(value)
        self.offset = offset

    @property
    def total(self) -> int:
        return self._total

    @total.setter
    def total(self, value: int) -> None:
        self._total = max(0, int(value))
        if self._total == 0:
            self.page = 0
            self.selected = 0
        elif self.offset is not None and self.offset >= self._total:
            self.offset = self._total - 1

    @property
    def offset(self) -> Optional[int]:
        if self.page < 1 or self.selected < 1:
            return None
        return self._per_page * (self.page - 1) + self.selected - 1

    @offset.setter
    def offset(self, value: Optional[int]) -> None:
        if value is None or self._total == 0:
            self.page = 0
            self.selected = 0
            return
        value = max(0, min(int(value), self._total - 1))
        self.page = value // self._per_page + 1
        self.selected = value % self._per_page + 1

    @property
    def pages(self) -> int:
        return -(-self._total // self._per_page)

    @property
    def page_offset(self) -> int:
        """Absolute offset of the first record on the current page."""
        return self._per_page * (self.page - 1) if self.page > 0 else 0

    @property
    def page_total(self) -> int:
        """Number of records on the current page."""
        if self.page < 1:
            return 0
        return max(0, min(self._per_page, self._total - self.page_offset))

    # -------------------------------------------------------------------------
    # Resets
    # -------------------------------------------------------------------------
    def reset_selection(self, reset_total: bool = False) -> None:
        """
        Select the first record again. With ``reset_total`` the total is
        zeroed too, so nothing is selected until it is recounted.
        """
        if reset_total:
            self.total = 0
        else:
            self.offset = 0 if self._total > 0 else None

    def reset_filters(self) -> None:
        self.filters = []

    def reset_sorts(self) -> None:
        self.sorts = []

    # -------------------------------------------------------------------------
    # Sorting
    # -------------------------------------------------------------------------
    def sort_for(self, attribute: str) -> Optional[SortState]:
        return next((s for s in self.sorts if s.attribute == attribute), None)

    def sort_by(self, attribute: str, descending: bool = False) -> SortState:
        """Promote ``attribute`` to top priority, evicting beyond ``max_sorts``."""
        sort = SortState(attribute=attribute, descending=descending)
        self.sorts = [sort] + [s for s in self.sorts if s.attribute != attribute]
        del self.sorts[self.max_sorts:]
        return sort

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "binding_id": self.binding_id,
            "per_page": self._per_page,
            "total": self._total,
            "page": self.page,
            "selected": self.selected,
            "filters": [f.to_dict() for f in self.filters],
            "sorts": [s.to_dict() for s in self.sorts],
        }

    @classmethod
    def from_dict(
            cls,
            data: Dict[str, Any],
            *,
            min_per_page: int = 1,
            max_per_page: int = 1000,
            max_sorts: int = 3,
    ) -> RuntimeState:
        state = cls(
            binding_id=int(data["binding_id"]),
            per_page=int(data.get("per_page", 10)),
            min_per_page=min_per_page,
            max_per_page=max_per_page,
            max_sorts=max_sorts,
        )
        state._total = max(0, int(data.get("total", 0)))
        if state._total > 0:
            page = int(data.get("page", 0))
            selected = int(data.get("selected", 0))
            if page > 0 and 0 < selected <= state._per_page:
                state.offset = state._per_page * (page - 1) + selected - 1
        state.filters = [FilterState.from_dict(f) for f in data.get("filters", [])]
        state.sorts = [SortState.from_dict(s) for s in data.get("sorts", [])][:max_sorts]
        return state

    def __repr__(self) -> str:
        return (
            f"<RuntimeState binding={self.binding_id} per_page={self._per_page} "
            f"total={self._total} page={self.page} selected={self.selected}>"
        )
