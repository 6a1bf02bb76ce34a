from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .entity import EntityClass, Record
from .exceptions import ConfigError
from .filter_definition import FilterDefinition, create_filter_definition
from .predicate import OrderTerm
from .types import Category, resolve_type

logger = logging.getLogger(__name__)

NAME_RE = re.compile(r"^[a-z0-9_-]+$", re.IGNORECASE)


class SortMode(str, Enum):
    """
    How one backing field sorts relative to the requested direction.

    DEFAULT follows it, REVERSE inverts it, ASCENDING/DESCENDING ignore it.
    """
    DEFAULT = "default"
    REVERSE = "reverse"
    ASCENDING = "ascending"
    DESCENDING = "descending"


SORT_ALIASES: Dict[str, SortMode] = {
    "default": SortMode.DEFAULT,
    "reverse": SortMode.REVERSE,
    "ascending": SortMode.ASCENDING,
    "descending": SortMode.DESCENDING,
    "true": SortMode.DEFAULT,
    "def": SortMode.DEFAULT,
    "rev": SortMode.REVERSE,
    "asc": SortMode.ASCENDING,
    "desc": SortMode.DESCENDING,
}


def parse_sort_mode(raw: Any) -> SortMode:
    if isinstance(raw, SortMode):
        return raw
    if raw is True:
        return SortMode.DEFAULT
    if isinstance(raw, str) and raw.strip().lower() in SORT_ALIASES:
        return SORT_ALIASES[raw.strip().lower()]
    raise ConfigError(f"invalid sort mode: {raw!r}")


@dataclass(frozen=True)
class SortRule:
    field: str
    mode: SortMode = SortMode.DEFAULT

    @property
    def unidirectional(self) -> bool:
        return self.mode in (SortMode.ASCENDING, SortMode.DESCENDING)

    def order_term(self, descending: bool) -> OrderTerm:
        if self.mode is SortMode.ASCENDING:
            return OrderTerm(self.field, False)
        if self.mode is SortMode.DESCENDING:
            return OrderTerm(self.field, True)
        if self.mode is SortMode.REVERSE:
            return OrderTerm(self.field, not descending)
        return OrderTerm(self.field, descending)


def normalize_name(name: Any) -> str:
    """Validate an attribute name and fold it to lower case / underscores."""
    if not isinstance(name, str):
        raise ConfigError(f"invalid type for attribute name: {type(name).__name__}")
    text = name.strip()
    if not NAME_RE.match(text):
        raise ConfigError(f"invalid attribute name: {name!r}")
    return text.lower().replace("-", "_")


def humanize(name: str) -> str:
    return name.replace("_", " ").strip().capitalize()


@dataclass
class Attribute:
    """
    One logical field of an entity.

    Literal attributes have a single backing field named like the attribute;
    everything else is logical. Capabilities (display, sort, search) are
    attached by the registry during configuration and never change afterwards.
    """
    entity: EntityClass
    name: str
    fields: Tuple[str, ...]
    category: Category
    type_name: str
    caption: Optional[str] = None
    render_fn: Optional[Callable[..., Any]] = None
    sort_rules: Tuple[SortRule, ...] = ()
    filter: Optional[FilterDefinition] = None
    _displayable: bool = field(default=False, repr=False)

    @property
    def literal(self) -> bool:
        return self.fields == (self.name,)

    @property
    def displayable(self) -> bool:
        return self._displayable

    @property
    def sortable(self) -> bool:
        return bool(self.sort_rules)

    @property
    def searchable(self) -> bool:
        return self.filter is not None

    @property
    def unidirectional(self) -> bool:
        """True when no requested direction can change this attribute's order."""
        return self.sortable and all(r.unidirectional for r in self.sort_rules)

    @property
    def label(self) -> str:
        return self.caption or humanize(self.name)

    def render(self, record: Optional[Record]) -> Any:
        if record is None:
            return None
        values = [record.get(f) for f in self.fields]
        if self.render_fn is not None:
            return self.render_fn(*values)
        return values[0]

    def order_terms(self, descending: bool) -> List[OrderTerm]:
        return [rule.order_term(descending) for rule in self.sort_rules]


class AttributeRegistry:
    """
    Per-entity mapping from attribute name to Attribute.

    Built once during configuration; lookups afterwards are read-only and
    ``all`` hands out copies so callers cannot mutate the registry.
    """

    def __init__(self) -> None:
        self._attributes: Dict[EntityClass, Dict[str, Attribute]] = {}

    def define(
            self,
            entity: EntityClass,
            name: str,
            fields: Optional[Union[str, Sequence[str]]] = None,
            category: Optional[Any] = None,
    ) -> Attribute:
        """
        Find or create an attribute.

        Re-declaring with identical fields returns the existing attribute.

        :raises ConfigError: bad name, empty/unknown fields, unknown category,
            missing category on a logical attribute, category mismatch on a
            literal one, or a redefinition with different fields
        """
        name = normalize_name(name)
        if fields is None:
            fields = [name]
        elif isinstance(fields, str):
            fields = [fields]
        field_names = tuple(str(f).strip() for f in fields)
        if not field_names or any(not f for f in field_names):
            raise ConfigError(f"attribute {name!r} needs at least one backing field")

        known = entity.field_types()
        unknown = [f for f in field_names if f not in known]
        if unknown:
            raise ConfigError(
                f"unknown fields for {entity.name}.{name}: {', '.join(unknown)}"
            )

        explicit = resolve_type(category) if category is not None else None

        existing = self.lookup(entity, name)
        if existing is not None:
            if existing.fields != field_names:
                raise ConfigError(
                    f"attribute {entity.name}.{name} already defined with fields "
                    f"{list(existing.fields)}"
                )
            if explicit is not None and explicit[1] is not existing.category:
                raise ConfigError(
                    f"attribute {entity.name}.{name} already defined as {existing.category.value}"
                )
            return existing

        if field_names == (name,):
            type_name, inferred = resolve_type(known[name])
            if explicit is not None and explicit[1] is not inferred:
                raise ConfigError(
                    f"category {explicit[1].value} does not match {inferred.value} "
                    f"field {entity.name}.{name}"
                )
        else:
            if explicit is None:
                raise ConfigError(f"logical attribute {entity.name}.{name} requires a category")
            type_name, inferred = explicit

        attribute = Attribute(
            entity=entity,
            name=name,
            fields=field_names,
            category=inferred,
            type_name=type_name,
        )
        self._attributes.setdefault(entity, {})[name] = attribute
        logger.debug(
            "Attribute defined",
            extra={"entity": entity.name, "attribute": name, "category": inferred.value},
        )
        return attribute

    def lookup(self, entity: EntityClass, name: str) -> Optional[Attribute]:
        try:
            key = normalize_name(name)
        except ConfigError:
            return None
        return self._attributes.get(entity, {}).get(key)

    def require(self, entity: EntityClass, name: str) -> Attribute:
        attribute = self.lookup(entity, name)
        if attribute is None:
            raise ConfigError(f"unknown attribute {entity.name}.{name}")
        return attribute

    def all(self, entity: EntityClass) -> Dict[str, Attribute]:
        return dict(self._attributes.get(entity, {}))

    def displayables(self, entity: EntityClass) -> Dict[str, Attribute]:
        return {k: a for k, a in self.all(entity).items() if a.displayable}

    def sortables(self, entity: EntityClass) -> Dict[str, Attribute]:
        return {k: a for k, a in self.all(entity).items() if a.sortable}

    def searchables(self, entity: EntityClass) -> Dict[str, Attribute]:
        return {k: a for k, a in self.all(entity).items() if a.searchable}

    # -------------------------------------------------------------------------
    # Capabilities
    # -------------------------------------------------------------------------
    def displayable(
            self,
            entity: EntityClass,
            name: str,
            caption: Optional[str] = None,
            render: Optional[Callable[..., Any]] = None,
    ) -> Attribute:
        attribute = self.require(entity, name)
        if caption is not None and (not isinstance(caption, str) or not caption.strip()):
            raise ConfigError(f"invalid caption for {entity.name}.{attribute.name}")
        if render is None and len(attribute.fields) > 1:
            raise ConfigError(
                f"attribute {entity.name}.{attribute.name} spans several fields "
                "and needs a render function"
            )
        attribute.caption = caption.strip() if caption else humanize(attribute.name)
        attribute.render_fn = render
        attribute._displayable = True
        return attribute

    def sortable(
            self,
            entity: EntityClass,
            name: str,
            rules: Any = True,
    ) -> Attribute:
        """
        Make an attribute sortable.

        ``rules`` may be True (every backing field, default mode), a mode name
        applied to every backing field, a mapping field -> mode, or a sequence
        of field names and/or (field, mode) pairs.
        """
        attribute = self.require(entity, name)
        if not attribute.displayable:
            raise ConfigError(
                f"attribute {entity.name}.{attribute.name} must be displayable before sortable"
            )
        parsed = self._parse_sort_rules(entity, attribute, rules)
        if not parsed:
            raise ConfigError(f"no sort rules for {entity.name}.{attribute.name}")
        attribute.sort_rules = parsed
        return attribute

    def searchable(
            self,
            entity: EntityClass,
            name: str,
            kind: Any = "default",
            **options: Any,
    ) -> Attribute:
        attribute = self.require(entity, name)
        if attribute.filter is not None:
            raise ConfigError(f"attribute {entity.name}.{attribute.name} is already searchable")
        attribute.filter = create_filter_definition(
            kind,
            attribute.category,
            attribute.type_name,
            options,
            default_display=attribute.label,
        )
        return attribute

    @staticmethod
    def _parse_sort_rules(
            entity: EntityClass, attribute: Attribute, rules: Any
    ) -> Tuple[SortRule, ...]:
        if rules is True or isinstance(rules, (str, SortMode)):
            mode = parse_sort_mode(rules)
            pairs: List[Tuple[str, Any]] = [(f, mode) for f in attribute.fields]
        elif isinstance(rules, Mapping):
            pairs = list(rules.items())
        elif isinstance(rules, (list, tuple)):
            pairs = []
            for entry in rules:
                if isinstance(entry, str):
                    pairs.append((entry, SortMode.DEFAULT))
                elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                    pairs.append((entry[0], entry[1]))
                else:
                    raise ConfigError(f"invalid sort rule: {entry!r}")
        else:
            raise ConfigError(f"invalid sort rules: {rules!r}")

        known = entity.field_types()
        result = []
        for field_name, mode in pairs:
            if field_name not in known:
                raise ConfigError(f"unknown sort field {entity.name}.{field_name}")
            result.append(SortRule(field_name, parse_sort_mode(mode)))
        return tuple(result)
