from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from . import filters as filter_machines
from .attribute import Attribute
from .binding import Binding
from .catalog import Catalog
from .entity import Record
from .filter_state import FilterState
from .normalize import blank, to_integer
from .pagination import PageWindow, page_window
from .predicate import OrderTerm, Predicate, all_of
from .state import RuntimeState, SortState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Query:
    """A base collection plus the predicate and ordering to run against it."""
    collection: Any
    predicate: Optional[Predicate] = None
    ordering: List[OrderTerm] = field(default_factory=list)


def resolve_base_collection(
        catalog: Catalog,
        binding: Binding,
        parent_record: Optional[Record] = None,
) -> Any:
    """
    Unfiltered collection a binding draws from.

    Children call their accessor on the parent's selected record and get None
    when nothing is selected upstream. Roots use their scope, or every record.
    """
    entity = binding.entity
    if binding.parent is not None:
        if parent_record is None:
            return None
        result = binding.parent.entity.accessor(binding.accessor)(parent_record)
    elif binding.accessor is not None:
        result = entity.scope(binding.accessor)()
    else:
        result = entity.all()

    if result is None or isinstance(result, Mapping):
        return catalog.store.single(entity, result)
    return result


def _parse_position(raw: Any, minimum: int) -> Optional[int]:
    if raw is None or blank(raw):
        return None
    try:
        value = to_integer(raw)
    except ValueError:
        logger.debug("Ignoring malformed position", extra={"value": repr(raw)})
        return None
    return value if value >= minimum else None


class Form:
    """
    Query composer for one binding during one interaction.

    Combines the binding's metadata, its runtime state and the parent form's
    selected record into a filtered, sorted, paginated window of records.
    The window is fetched by ``reload`` and kept until the next reload.
    """

    def __init__(
            self,
            catalog: Catalog,
            binding: Binding,
            state: RuntimeState,
            parent: Optional[Form] = None,
    ) -> None:
        if (parent is None) != (binding.parent is None):
            raise ValueError("parent form must match the binding's parent")
        self.catalog = catalog
        self.binding = binding
        self.state = state
        self.parent = parent
        self.records: List[Record] = []
        self.record: Optional[Record] = None
        self._absolute_total: Optional[int] = None

    @property
    def id(self) -> int:
        return self.binding.id

    @property
    def handle(self) -> str:
        return self.binding.handle

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------
    def displayables(self) -> Dict[str, Attribute]:
        return self.catalog.attributes.displayables(self.binding.entity)

    def sortables(self) -> Dict[str, Attribute]:
        return self.catalog.attributes.sortables(self.binding.entity)

    def searchables(self) -> Dict[str, Attribute]:
        return self.catalog.attributes.searchables(self.binding.entity)

    def available_filters(self) -> List[Attribute]:
        """Searchable attributes a new filter can be added for."""
        return list(self.searchables().values())

    def sort_for(self, name: str) -> Optional[SortState]:
        return self.state.sort_for(name)

    def sort_priority(self, name: str) -> Optional[int]:
        """1-based priority of the sort on ``name``; None when not sorted."""
        for i, sort in enumerate(self.state.sorts):
            if sort.attribute == name:
                return i + 1
        return None

    def filter_attribute(self, state: FilterState) -> Optional[Attribute]:
        attribute = self.searchables().get(state.attribute)
        if attribute is None or attribute.filter.kind is not state.kind:
            return None
        return attribute

    # -------------------------------------------------------------------------
    # Query composition
    # -------------------------------------------------------------------------
    def base_collection(self) -> Any:
        parent_record = self.parent.record if self.parent is not None else None
        return resolve_base_collection(self.catalog, self.binding, parent_record)

    def predicate(self) -> Optional[Predicate]:
        terms = []
        for state in self.state.filters:
            attribute = self.filter_attribute(state)
            if attribute is None:
                logger.warning(
                    "Skipping filter on unknown attribute",
                    extra={"binding_id": self.id, "attribute": state.attribute},
                )
                continue
            terms.append(filter_machines.compile_filter(attribute, state))
        return all_of(terms)

    def ordering(self) -> List[OrderTerm]:
        sortables = self.sortables()
        terms: List[OrderTerm] = []
        for sort in self.state.sorts:
            attribute = sortables.get(sort.attribute)
            if attribute is None:
                logger.warning(
                    "Skipping sort on unknown attribute",
                    extra={"binding_id": self.id, "attribute": sort.attribute},
                )
                continue
            terms.extend(attribute.order_terms(sort.descending))
        return terms

    def filtered_collection(self) -> Query:
        return Query(self.base_collection(), self.predicate(), self.ordering())

    def update_total(self) -> int:
        query = self.filtered_collection()
        if query.collection is None:
            self.state.total = 0
        else:
            self.state.total = self.catalog.store.count(query.collection, query.predicate)
        return self.state.total

    def absolute_total(self) -> int:
        """Number of records in the base collection, ignoring filters."""
        if self._absolute_total is None:
            base = self.base_collection()
            self._absolute_total = 0 if base is None else self.catalog.store.count(base, None)
        return self._absolute_total

    def reload(self) -> None:
        """
        Recount and fetch the current page. Selects the first record when
        something matches and nothing was selected yet.
        """
        self._absolute_total = None
        self.update_total()
        state = self.state
        if state.total > 0:
            if state.offset is None:
                state.offset = 0
            query = self.filtered_collection()
            self.records = self.catalog.store.fetch(
                query.collection,
                query.predicate,
                query.ordering,
                state.page_offset,
                state.per_page,
            )
            index = state.selected - 1
            self.record = self.records[index] if 0 <= index < len(self.records) else None
        else:
            self.records = []
            self.record = None

    def page_window(self) -> PageWindow:
        return page_window(self.state.page, self.state.pages, self.catalog.settings.pagination)

    # -------------------------------------------------------------------------
    # Interaction
    # -------------------------------------------------------------------------
    def update(self, raw: Any, command: Optional[str] = None) -> Form:
        """
        Apply one interaction's parameters, then reload.

        ``raw`` is either the string "reset", an absolute record offset, or a
        mapping with any of: ``del``, ``add``, ``form``/``filter`` (with
        ``command`` "update" or "reset"), ``per``, ``sort``, ``page``,
        ``selection`` and ``offset``. Bad values are ignored.
        """
        command = command.strip().lower() if isinstance(command, str) else None

        if isinstance(raw, Mapping):
            self._delete_filter(raw.get("del"))
            self._add_filter(raw.get("add"))
            if raw.get("form") == "search":
                if command == "update":
                    self._update_filters(raw.get("filter"))
                elif command == "reset":
                    self._reset_filters()
            self._update_per_page(raw.get("per"))
            self._update_sort(raw.get("sort"))
            self._update_position(raw.get("page"), raw.get("selection"), raw.get("offset"))
        elif raw is not None:
            self._update_shorthand(raw)

        self.reload()
        return self

    def _update_shorthand(self, raw: Any) -> None:
        if isinstance(raw, str) and raw.strip().lower() == "reset":
            self.state.reset_filters()
            self.state.reset_sorts()
            self.state.reset_selection(reset_total=True)
            return
        offset = _parse_position(raw, 0)
        if offset is not None:
            self.update_total()
            if offset < self.state.total:
                self.state.offset = offset

    def _any_filter_applies(self, states: List[FilterState]) -> bool:
        for state in states:
            attribute = self.filter_attribute(state)
            if attribute is not None and filter_machines.applies(attribute, state):
                return True
        return False

    def _delete_filter(self, raw: Any) -> None:
        if raw is None or blank(raw):
            return
        if isinstance(raw, str) and raw.strip().lower() == "all":
            self._reset_filters()
            return
        try:
            index = to_integer(raw)
        except ValueError:
            logger.debug("Ignoring malformed filter index", extra={"value": repr(raw)})
            return
        if not 0 <= index < len(self.state.filters):
            return
        removed = self.state.filters.pop(index)
        if self._any_filter_applies([removed]):
            self.state.reset_selection(reset_total=True)

    def _add_filter(self, raw: Any) -> None:
        if not isinstance(raw, str) or not raw.strip():
            return
        attribute = self.searchables().get(raw.strip().lower().replace("-", "_"))
        if attribute is None:
            logger.debug("Ignoring filter on non-searchable attribute", extra={"attribute": raw})
            return
        state = filter_machines.new_filter_state(attribute)
        self.state.filters.append(state)
        if filter_machines.applies(attribute, state):
            self.state.reset_selection(reset_total=True)

    def _update_filters(self, raw: Any) -> None:
        changes = raw if isinstance(raw, Mapping) else {}
        changed = False
        for i, state in enumerate(self.state.filters):
            attribute = self.filter_attribute(state)
            if attribute is None:
                continue
            submitted = changes.get(str(i), changes.get(i, {}))
            if not isinstance(submitted, Mapping):
                submitted = {}
            if filter_machines.mutate(attribute, state, submitted):
                changed = True
        if changed:
            self.state.reset_selection(reset_total=True)

    def _reset_filters(self) -> None:
        if not self.state.filters:
            return
        material = self._any_filter_applies(self.state.filters)
        self.state.reset_filters()
        if material:
            self.state.reset_selection(reset_total=True)

    def _update_per_page(self, raw: Any) -> None:
        per = _parse_position(raw, self.state.min_per_page)
        if per is None or per > self.state.max_per_page:
            return
        if per != self.state.per_page:
            self.state.per_page = per

    def _update_sort(self, raw: Any) -> None:
        if not isinstance(raw, str) or not raw.strip():
            return
        name = raw.strip().lower().replace("-", "_")
        attribute = self.sortables().get(name)
        if attribute is None:
            logger.debug("Ignoring sort on non-sortable attribute", extra={"attribute": raw})
            return
        existing = self.state.sorts[0] if self.state.sorts else None
        if existing is not None and existing.attribute == name:
            if attribute.unidirectional:
                return
            existing.descending = not existing.descending
        else:
            self.state.sort_by(name)
        self.state.reset_selection()

    def _update_position(self, raw_page: Any, raw_selection: Any, raw_offset: Any) -> None:
        page = _parse_position(raw_page, 1)
        selection = _parse_position(raw_selection, 1)
        offset = _parse_position(raw_offset, 0)
        if offset is not None:
            page = selection = None
        if page is None and selection is None and offset is None:
            return

        self.update_total()
        state = self.state
        if offset is not None:
            if offset < state.total:
                state.offset = offset
            return

        if page is not None and page <= state.pages:
            state.page = page
            if state.selected < 1:
                state.selected = 1
            state.selected = min(state.selected, state.page_total)
        if selection is not None and state.page > 0 and selection <= state.page_total:
            state.selected = selection
