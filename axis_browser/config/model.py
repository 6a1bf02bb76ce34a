from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict

from axis_browser.core.exceptions import ConfigError


@dataclass(frozen=True)
class PaginationSettings:
    """
    Page-number windowing knobs for navigation controls.

    - minimum_in_group: size of the main window around the current page
    - minimum_at_beginning / minimum_at_end: pages always listed at each end
    - include_*: whether a navigation link is rendered at all
    - always_show_*: render the link even when no skipped pages call for it
    """
    minimum_in_group: int = 9
    minimum_at_beginning: int = 2
    minimum_at_end: int = 2

    include_first: bool = True
    include_rewind: bool = True
    include_prev: bool = True
    include_next: bool = True
    include_forward: bool = True
    include_last: bool = True

    always_show_first: bool = True
    always_show_rewind: bool = True
    always_show_prev: bool = True
    always_show_next: bool = True
    always_show_forward: bool = True
    always_show_last: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PaginationSettings:
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"unrecognized pagination settings: {', '.join(unknown)}")
        values: Dict[str, Any] = {}
        for key, raw in data.items():
            if known[key].type in ("int", int):
                if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
                    raise ConfigError(f"pagination setting {key} must be a non-negative integer")
            elif not isinstance(raw, bool):
                raise ConfigError(f"pagination setting {key} must be a boolean")
            values[key] = raw
        settings = cls(**values)
        if settings.minimum_in_group < 1:
            raise ConfigError("pagination setting minimum_in_group must be at least 1")
        return settings


@dataclass(frozen=True)
class Settings:
    """
    Global engine settings, normally read from global.json.
    """
    per_page: int = 10
    min_per_page: int = 1
    max_per_page: int = 1000
    max_sorts: int = 3
    pagination: PaginationSettings = field(default_factory=PaginationSettings)

    def __post_init__(self) -> None:
        if not (1 <= self.min_per_page <= self.per_page <= self.max_per_page):
            raise ConfigError(
                "per_page settings must satisfy 1 <= min_per_page <= per_page <= max_per_page"
            )
        if self.max_sorts < 1:
            raise ConfigError("max_sorts must be at least 1")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Settings:
        data = dict(data or {})
        pagination = PaginationSettings.from_dict(data.pop("pagination", None) or {})
        known = {f.name for f in fields(cls)} - {"pagination"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unrecognized settings: {', '.join(unknown)}")
        for key in ("per_page", "min_per_page", "max_per_page", "max_sorts"):
            if key in data and (isinstance(data[key], bool) or not isinstance(data[key], int)):
                raise ConfigError(f"setting {key} must be an integer")
        return cls(pagination=pagination, **data)
