from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional


Record = Dict[str, Any]


class EntityClass(ABC):
    """
    Introspection contract for a tabular entity.

    Subclasses describe their physical fields and expose two kinds of named,
    zero-argument accessors:

    - scopes: class-level, return a collection handle (used by root bindings)
    - accessors: instance-level, take a record and return either a single
      record or a collection handle (used by child bindings)

    Collection handles are opaque here; only the store adapter interprets them.
    """

    name: str = ""

    def __init__(self) -> None:
        self.scopes: Dict[str, Callable[[], Any]] = {}
        self.accessors: Dict[str, Callable[[Record], Any]] = {}

    @abstractmethod
    def field_types(self) -> Dict[str, str]:
        """Physical field name -> storage type name (any known alias)."""
        raise NotImplementedError

    @abstractmethod
    def all(self) -> Any:
        """Collection handle over every record of the entity."""
        raise NotImplementedError

    def add_scope(self, name: str, fn: Callable[[], Any]) -> None:
        self.scopes[name] = fn

    def add_accessor(self, name: str, fn: Callable[[Record], Any]) -> None:
        self.accessors[name] = fn

    def scope(self, name: str) -> Optional[Callable[[], Any]]:
        return self.scopes.get(name)

    def accessor(self, name: str) -> Optional[Callable[[Record], Any]]:
        return self.accessors.get(name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
