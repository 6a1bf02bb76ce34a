from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from axis_browser.config.model import Settings
from axis_browser.core.catalog import Catalog
from axis_browser.core.entity import EntityClass
from axis_browser.core.exceptions import ConfigError
from axis_browser.core.store import StoreAdapter

logger = logging.getLogger(__name__)

ATTRIBUTE_KEYS = frozenset(
    {"name", "fields", "category", "caption", "join", "displayable", "sortable", "searchable"}
)


def _read_json(path: Path) -> Any:
    try:
        with path.open() as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e


def load_settings(root: Path) -> Settings:
    """
    Load engine settings from ``root/global.json``; defaults when absent.

    :raises ConfigError: if the file holds unknown or invalid settings
    """
    global_path = Path(root) / "global.json"
    if not global_path.is_file():
        logger.info("No global.json found, using default settings", extra={"config_root": str(root)})
        return Settings()
    raw = _read_json(global_path)
    if not isinstance(raw, dict):
        raise ConfigError(f"{global_path} must hold a JSON object")
    return Settings.from_dict(raw)


def _joiner(separator: str) -> Callable[..., str]:
    def render(*values: Any) -> str:
        return separator.join(str(v) for v in values if v is not None)
    return render


def _define_attribute(catalog: Catalog, entity: EntityClass, raw: Dict[str, Any], source: Path) -> None:
    if not isinstance(raw, dict) or "name" not in raw:
        raise ConfigError(f"attribute entries need a 'name' ({source})")
    unknown = sorted(set(raw) - ATTRIBUTE_KEYS)
    if unknown:
        raise ConfigError(f"unrecognized attribute keys in {source}: {', '.join(unknown)}")

    registry = catalog.attributes
    attribute = registry.define(entity, raw["name"], raw.get("fields"), raw.get("category"))

    displayable = raw.get("displayable", True)
    if displayable or raw.get("sortable"):
        render = _joiner(raw["join"]) if "join" in raw else None
        registry.displayable(entity, attribute.name, raw.get("caption"), render)

    sortable = raw.get("sortable")
    if sortable:
        registry.sortable(entity, attribute.name, sortable)

    searchable = raw.get("searchable")
    if searchable:
        options = {} if searchable is True else dict(searchable)
        kind = options.pop("kind", "default")
        registry.searchable(entity, attribute.name, kind, **options)


def _resolve_entities(raw: Any, entities: Dict[str, EntityClass], source: Path) -> Any:
    """Replace entity names in binding options with the registered entities."""
    if isinstance(raw, list):
        return [_resolve_entities(r, entities, source) for r in raw]
    if not isinstance(raw, dict):
        raise ConfigError(f"invalid binding options in {source}: {raw!r}")
    resolved = dict(raw)
    name = resolved.get("entity")
    if name not in entities:
        raise ConfigError(f"unknown entity {name!r} in {source}")
    resolved["entity"] = entities[name]
    for key in ("child", "children"):
        if key in resolved:
            resolved[key] = _resolve_entities(resolved[key], entities, source)
    return resolved


def load_catalog(
        root: Path,
        entities: Iterable[EntityClass],
        store: StoreAdapter,
        settings: Optional[Settings] = None,
) -> Catalog:
    """
    Build a Catalog from a config directory using the multi-file layout.

    Expected structure:

        root/
            global.json            (optional engine settings)
            attributes/
                people.json        {"entity": "people", "attributes": [...]}
            bindings/
                directory.json     {"endpoint": "directory", "bindings": [...]}

    Attribute entries take ``name``, ``fields``, ``category``, ``caption``,
    ``join`` (separator for multi-field display), ``displayable``,
    ``sortable`` (true, a mode, or field -> mode) and ``searchable`` (true or
    ``{"kind": ..., **options}``). Binding entries are the options accepted by
    BindingRegistry.bind with entities referenced by name.

    Configuration errors are never skipped: the app cannot serve a view whose
    metadata is broken, so they propagate as ConfigError.
    """
    root = Path(root)
    logger.info("Loading catalog", extra={"config_root": str(root)})

    catalog = Catalog(store=store, settings=settings or load_settings(root))
    for entity in entities:
        catalog.register_entity(entity)

    attributes_dir = root / "attributes"
    n_attributes = 0
    if attributes_dir.is_dir():
        for config_file in sorted(attributes_dir.glob("*.json")):
            raw = _read_json(config_file)
            entity = catalog.entity(raw.get("entity")) if isinstance(raw, dict) else None
            if entity is None:
                raise ConfigError(f"unknown or missing entity in {config_file}")
            for entry in raw.get("attributes", []):
                _define_attribute(catalog, entity, entry, config_file)
                n_attributes += 1

    bindings_dir = root / "bindings"
    endpoints: List[str] = []
    if bindings_dir.is_dir():
        for config_file in sorted(bindings_dir.glob("*.json")):
            raw = _read_json(config_file)
            if not isinstance(raw, dict) or not raw.get("endpoint"):
                raise ConfigError(f"missing endpoint in {config_file}")
            bindings = raw.get("bindings", [])
            if isinstance(bindings, dict):
                bindings = [bindings]
            for options in _resolve_entities(bindings, catalog.entities, config_file):
                catalog.bindings.bind(raw["endpoint"], options)
            endpoints.append(raw["endpoint"])

    logger.info(
        "Catalog loaded from config root",
        extra={
            "config_root": str(root),
            "n_entities": len(catalog.entities),
            "n_attributes": n_attributes,
            "n_bindings": len(catalog.bindings),
            "endpoints": endpoints,
        },
    )
    return catalog
