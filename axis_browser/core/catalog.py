from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from axis_browser.config.model import Settings

from .attribute import AttributeRegistry
from .binding import BindingRegistry
from .entity import EntityClass
from .store import StoreAdapter


@dataclass
class Catalog:
    """
    Everything built at configuration time, handed by reference to the
    per-interaction code (forms, sessions).
    """
    store: StoreAdapter
    settings: Settings = field(default_factory=Settings)
    attributes: AttributeRegistry = field(default_factory=AttributeRegistry)
    bindings: BindingRegistry = field(default_factory=BindingRegistry)
    entities: Dict[str, EntityClass] = field(default_factory=dict)

    def register_entity(self, entity: EntityClass) -> EntityClass:
        self.entities[entity.name] = entity
        return entity

    def entity(self, name: str) -> Optional[EntityClass]:
        return self.entities.get(name)
