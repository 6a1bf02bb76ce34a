from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from .catalog import Catalog
from .form import Form
from .state import RuntimeState

logger = logging.getLogger(__name__)


class SearchSession:
    """
    Processes one interaction for every binding of an endpoint.

    Forms are built breadth-first so a child form always sees the record its
    parent selected during this same interaction. Missing states are created
    lazily from the catalog settings.

    :param states: persisted ``{binding_id: RuntimeState}`` for this session
    """

    def __init__(
            self,
            catalog: Catalog,
            endpoint: str,
            states: Optional[Dict[int, RuntimeState]] = None,
    ) -> None:
        self.catalog = catalog
        self.endpoint = endpoint
        self.states: Dict[int, RuntimeState] = dict(states or {})
        self.forms: Dict[int, Form] = {}

    def state_for(self, binding_id: int) -> RuntimeState:
        state = self.states.get(binding_id)
        if state is None:
            settings = self.catalog.settings
            state = RuntimeState(
                binding_id,
                settings.per_page,
                min_per_page=settings.min_per_page,
                max_per_page=settings.max_per_page,
                max_sorts=settings.max_sorts,
            )
            self.states[binding_id] = state
        return state

    def process(
            self,
            params: Optional[Mapping[Any, Any]] = None,
            command: Optional[str] = None,
    ) -> List[Form]:
        """
        Build and update every form of the endpoint.

        ``params`` maps binding ids (int or numeric string) to that form's raw
        parameters; forms without params are simply reloaded.
        """
        params = params if isinstance(params, Mapping) else {}
        self.forms = {}
        ordered: List[Form] = []
        for binding in self.catalog.bindings.walk(self.endpoint):
            parent = self.forms.get(binding.parent.id) if binding.parent is not None else None
            form = Form(self.catalog, binding, self.state_for(binding.id), parent)
            raw = params.get(binding.id, params.get(str(binding.id)))
            form.update(raw, command)
            self.forms[binding.id] = form
            ordered.append(form)

        logger.debug(
            "Search session processed",
            extra={"endpoint": self.endpoint, "n_forms": len(ordered)},
        )
        return ordered

    def form(self, *selectors: Any) -> Optional[Form]:
        binding = self.catalog.bindings.lookup(self.endpoint, *selectors)
        if binding is None:
            return None
        return self.forms.get(binding.id)

    def dump(self) -> Dict[int, RuntimeState]:
        """States of the bindings touched by this endpoint, for persistence."""
        return {bid: self.states[bid] for bid in self.forms}
