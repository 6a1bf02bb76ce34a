from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .entity import EntityClass
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

HANDLE_RE = re.compile(r"^[a-z][a-z0-9_]*$")

BIND_OPTIONS = frozenset({"entity", "kind", "accessor", "handle", "child", "children"})


class BindingKind(str, Enum):
    SINGLE = "single"
    SET = "set"


@dataclass(eq=False)
class Binding:
    """
    Node of a per-endpoint tree linking a view to an entity.

    Root accessors are class-level scopes of ``entity``; child accessors are
    instance-level accessors called on the parent's selected record.
    """
    id: int
    endpoint: str
    entity: EntityClass
    kind: BindingKind
    handle: str
    accessor: Optional[str] = None
    parent: Optional["Binding"] = None
    children: List["Binding"] = field(default_factory=list)

    @property
    def root(self) -> bool:
        return self.parent is None

    def path(self) -> List["Binding"]:
        """Bindings from the root down to this one."""
        chain = []
        node: Optional[Binding] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return list(reversed(chain))

    def matches(self, selector: Any) -> bool:
        if isinstance(selector, bool):
            return False
        if isinstance(selector, int):
            return self.id == selector
        if isinstance(selector, EntityClass):
            return self.entity is selector
        if isinstance(selector, str):
            key = selector.strip()
            if key.isdigit():
                return self.id == int(key)
            normalized = key.lower().replace("-", "_")
            return self.handle == normalized or self.entity.name.lower() == key.lower()
        return False

    def __repr__(self) -> str:
        return f"<Binding {self.id} {self.endpoint}:{self.handle} {self.kind.value}>"


def normalize_handle(raw: Any) -> str:
    if not isinstance(raw, str):
        raise ConfigError(f"invalid type for handle: {type(raw).__name__}")
    handle = raw.strip().lower().replace("-", "_")
    if not HANDLE_RE.match(handle):
        raise ConfigError(f"invalid handle: {raw!r}")
    return handle


class BindingRegistry:
    """
    Append-only collection of every Binding, grouped per endpoint.

    A binding's ``id`` is its insertion index and stays stable for the life
    of the registry.
    """

    def __init__(self) -> None:
        self._bindings: List[Binding] = []
        self._roots: Dict[str, List[Binding]] = {}

    def bind(self, endpoint: str, options: Mapping[str, Any]) -> Binding:
        """
        Create a root binding for ``endpoint`` and, recursively, the bindings
        described by its ``child``/``children`` options.

        :raises ConfigError: unknown options, missing entity, bad kind or
            handle, duplicate sibling handle, or an accessor that does not
            resolve on the relevant entity
        """
        if not isinstance(endpoint, str) or not endpoint.strip():
            raise ConfigError(f"invalid endpoint: {endpoint!r}")
        return self._bind(endpoint.strip(), options, parent=None)

    def _bind(
            self,
            endpoint: str,
            options: Mapping[str, Any],
            parent: Optional[Binding],
    ) -> Binding:
        if not isinstance(options, Mapping):
            raise ConfigError(f"invalid binding options: {options!r}")
        unknown = sorted(set(options) - BIND_OPTIONS)
        if unknown:
            raise ConfigError(f"unrecognized binding options: {', '.join(unknown)}")
        if "child" in options and "children" in options:
            raise ConfigError("specify only one of 'child' and 'children'")

        entity = options.get("entity")
        if not isinstance(entity, EntityClass):
            raise ConfigError(f"binding requires an entity, got {entity!r}")

        default_kind = BindingKind.SET if parent is None else BindingKind.SINGLE
        try:
            kind = BindingKind(options.get("kind", default_kind))
        except ValueError:
            raise ConfigError(f"invalid binding kind: {options.get('kind')!r}")

        accessor = options.get("accessor")
        if parent is None:
            if accessor is not None and entity.scope(accessor) is None:
                raise ConfigError(f"unknown scope {entity.name}.{accessor}")
        else:
            if accessor is None:
                raise ConfigError(
                    f"child binding of {parent.entity.name} requires an accessor"
                )
            if parent.entity.accessor(accessor) is None:
                raise ConfigError(f"unknown accessor {parent.entity.name}#{accessor}")

        handle = normalize_handle(options.get("handle") or accessor or entity.name)
        siblings = parent.children if parent is not None else self._roots.get(endpoint, [])
        if any(s.handle == handle for s in siblings):
            raise ConfigError(f"duplicate binding handle {handle!r} under {endpoint}")

        binding = Binding(
            id=len(self._bindings),
            endpoint=endpoint,
            entity=entity,
            kind=kind,
            handle=handle,
            accessor=accessor,
            parent=parent,
        )
        self._bindings.append(binding)
        if parent is None:
            self._roots.setdefault(endpoint, []).append(binding)
        else:
            parent.children.append(binding)

        logger.debug(
            "Binding registered",
            extra={
                "endpoint": endpoint,
                "binding_id": binding.id,
                "handle": handle,
                "entity": entity.name,
            },
        )

        children = options.get("children")
        if children is None and "child" in options:
            children = [options["child"]]
        if isinstance(children, Mapping):
            children = [children]
        for child in children or []:
            self._bind(endpoint, child, parent=binding)

        return binding

    def get(self, binding_id: int) -> Optional[Binding]:
        if 0 <= binding_id < len(self._bindings):
            return self._bindings[binding_id]
        return None

    def roots(self, endpoint: str) -> List[Binding]:
        return list(self._roots.get(endpoint, []))

    def endpoints(self) -> List[str]:
        return list(self._roots)

    def walk(self, endpoint: str) -> Iterator[Binding]:
        """Breadth-first over the endpoint's tree; parents come before children."""
        queue = self.roots(endpoint)
        while queue:
            node = queue.pop(0)
            yield node
            queue.extend(node.children)

    def lookup(self, endpoint: str, *selectors: Any) -> Optional[Binding]:
        """
        Resolve one tree level per selector (handle, id or entity).

        Returns None when any level has zero or several matches. Without
        selectors the endpoint's only root is returned, if it has just one.
        """
        candidates = self.roots(endpoint)
        if not selectors:
            return candidates[0] if len(candidates) == 1 else None

        found: Optional[Binding] = None
        for selector in selectors:
            matched = [b for b in candidates if b.matches(selector)]
            if len(matched) != 1:
                return None
            found = matched[0]
            candidates = found.children
        return found

    def __len__(self) -> int:
        return len(self._bindings)
