import pandas as pd
import pytest

from axis_browser.core.adapters.pandas_store import FrameEntity
from axis_browser.core.attribute import AttributeRegistry, SortMode, SortRule
from axis_browser.core.exceptions import ConfigError
from axis_browser.core.filter_definition import FilterKind
from axis_browser.core.predicate import OrderTerm
from axis_browser.core.types import Category


def _make_people():
    frame = pd.DataFrame(
        {
            "first_name": ["Ada", "Alan"],
            "last_name": ["Lovelace", "Turing"],
            "age": [36, 41],
            "born": pd.to_datetime(["1815-12-10", "1912-06-23"]),
            "active": [True, False],
        }
    )
    return FrameEntity("people", frame, field_types={"born": "date"})


def test_literal_attribute_infers_category():
    people = _make_people()
    registry = AttributeRegistry()

    age = registry.define(people, "age")
    born = registry.define(people, "born")
    active = registry.define(people, "active")

    assert age.literal
    assert age.category is Category.NUMERIC
    assert age.type_name == "integer"
    assert born.category is Category.TEMPORAL
    assert born.type_name == "date"
    assert active.category is Category.BOOLEAN


def test_literal_attribute_rejects_mismatched_category():
    registry = AttributeRegistry()
    with pytest.raises(ConfigError):
        registry.define(_make_people(), "age", category="string")


def test_literal_attribute_accepts_matching_alias():
    registry = AttributeRegistry()
    age = registry.define(_make_people(), "age", category="float")
    assert age.category is Category.NUMERIC


def test_logical_attribute_requires_category():
    people = _make_people()
    registry = AttributeRegistry()
    with pytest.raises(ConfigError):
        registry.define(people, "name", ["first_name", "last_name"])

    name = registry.define(people, "name", ["first_name", "last_name"], "string")
    assert not name.literal
    assert name.fields == ("first_name", "last_name")


def test_define_is_idempotent_and_rejects_conflicts():
    people = _make_people()
    registry = AttributeRegistry()
    first = registry.define(people, "name", ["first_name", "last_name"], "string")
    assert registry.define(people, "name", ["first_name", "last_name"]) is first
    with pytest.raises(ConfigError):
        registry.define(people, "name", ["last_name"], "string")


def test_names_are_validated_and_folded():
    people = _make_people()
    registry = AttributeRegistry()
    attr = registry.define(people, "Full-Name", ["first_name"], "string")
    assert attr.name == "full_name"
    assert registry.lookup(people, "full-name") is attr

    with pytest.raises(ConfigError):
        registry.define(people, "bad name", ["first_name"], "string")
    with pytest.raises(ConfigError):
        registry.define(people, "x", ["missing_field"], "string")
    with pytest.raises(ConfigError):
        registry.define(people, "x", [], "string")


def test_all_returns_a_copy():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "age")
    snapshot = registry.all(people)
    snapshot.clear()
    assert "age" in registry.all(people)


def test_sortable_requires_displayable():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "age")
    with pytest.raises(ConfigError):
        registry.sortable(people, "age")

    registry.displayable(people, "age")
    attr = registry.sortable(people, "age")
    assert attr.sort_rules == (SortRule("age", SortMode.DEFAULT),)
    assert attr.label == "Age"


def test_sort_rules_resolve_direction():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "name", ["last_name", "first_name"], "string")
    registry.displayable(people, "name", "Name", render=lambda last, first: f"{last}, {first}")
    attr = registry.sortable(people, "name", [("last_name", "rev"), ("first_name", "asc")])

    assert attr.order_terms(False) == [OrderTerm("last_name", True), OrderTerm("first_name", False)]
    assert attr.order_terms(True) == [OrderTerm("last_name", False), OrderTerm("first_name", False)]
    assert not attr.unidirectional
    assert attr.render({"first_name": "Ada", "last_name": "Lovelace"}) == "Lovelace, Ada"


def test_multi_field_display_needs_render():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "name", ["first_name", "last_name"], "string")
    with pytest.raises(ConfigError):
        registry.displayable(people, "name")


def test_unidirectional_attribute():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "age")
    registry.displayable(people, "age")
    attr = registry.sortable(people, "age", "desc")
    assert attr.unidirectional


def test_searchable_builds_filter_definition():
    people = _make_people()
    registry = AttributeRegistry()
    registry.define(people, "age")
    registry.displayable(people, "age", "Age (years)")
    attr = registry.searchable(people, "age", "range")

    assert attr.searchable
    assert attr.filter.kind is FilterKind.RANGE
    assert attr.filter.display == "Age (years)"
    assert set(registry.searchables(people)) == {"age"}

    with pytest.raises(ConfigError):
        registry.searchable(people, "age")
    with pytest.raises(ConfigError):
        registry.searchable(people, "unknown")
