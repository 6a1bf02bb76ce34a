from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from .entity import EntityClass, Record
from .predicate import OrderTerm, Predicate


class StoreAdapter(ABC):
    """
    Executes predicate/ordering descriptions against a backing store.

    ``count`` and ``fetch`` are independent reads. Failures raised here are not
    caught by the query composer.
    """

    @abstractmethod
    def count(self, collection: Any, predicate: Optional[Predicate]) -> int:
        pass

    @abstractmethod
    def fetch(
            self,
            collection: Any,
            predicate: Optional[Predicate],
            ordering: Sequence[OrderTerm],
            offset: int,
            limit: int,
    ) -> List[Record]:
        pass

    @abstractmethod
    def single(self, entity: EntityClass, record: Optional[Record]) -> Any:
        """Wrap one record (or None) as a collection handle of at most one row."""
        pass
