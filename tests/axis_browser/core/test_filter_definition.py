import pytest

from axis_browser.core.exceptions import ConfigError
from axis_browser.core.filter_definition import (
    SET_BLANK,
    SET_UNSET,
    FilterKind,
    create_filter_definition,
)
from axis_browser.core.types import Category


def test_default_definition_with_pseudo_comparisons():
    definition = create_filter_definition(
        "default", Category.STRING, "string", {"null": True, "blank": True, "not": True}
    )
    assert definition.kind is FilterKind.DEFAULT
    assert definition.negatable
    assert definition.comparisons() == [
        "equals", "begins", "ends", "contains", "is_unset", "is_blank",
    ]


def test_blank_and_empty_are_string_only():
    with pytest.raises(ConfigError):
        create_filter_definition("default", Category.NUMERIC, "numeric", {"blank": True})
    with pytest.raises(ConfigError):
        create_filter_definition("set", Category.NUMERIC, "numeric", {"values": [1], "empty": True})


def test_unknown_option_is_rejected():
    with pytest.raises(ConfigError):
        create_filter_definition("range", Category.NUMERIC, "numeric", {"multiple": True})
    with pytest.raises(ConfigError):
        create_filter_definition("pattern", Category.STRING, "string", {"null": True})
    with pytest.raises(ConfigError):
        create_filter_definition("nonsense", Category.STRING, "string", {})


def test_kind_category_restrictions():
    with pytest.raises(ConfigError):
        create_filter_definition("boolean", Category.STRING, "string", {})
    with pytest.raises(ConfigError):
        create_filter_definition("range", Category.STRING, "string", {})
    with pytest.raises(ConfigError):
        create_filter_definition("pattern", Category.NUMERIC, "numeric", {})
    with pytest.raises(ConfigError):
        create_filter_definition("default", Category.BINARY, "binary", {})
    with pytest.raises(ConfigError):
        create_filter_definition("set", Category.BOOLEAN, "boolean", {"values": [True]})


def test_set_definition_values():
    definition = create_filter_definition(
        "set", Category.STRING, "string",
        {"values": {"Red": "r", "Green": "g"}, "multi": True, "null": True},
    )
    assert definition.multiple
    assert definition.values == (("Red", "r"), ("Green", "g"))
    assert definition.set_options() == [(0, "Red"), (1, "Green"), (SET_UNSET, "is not set")]
    assert definition.valid_set_index(SET_UNSET)
    assert not definition.valid_set_index(SET_BLANK)
    assert not definition.valid_set_index(2)


def test_set_definition_requires_values():
    with pytest.raises(ConfigError):
        create_filter_definition("set", Category.STRING, "string", {})
    with pytest.raises(ConfigError):
        create_filter_definition("set", Category.STRING, "string", {"values": []})


def test_null_definition_options():
    definition = create_filter_definition("null", Category.STRING, "string", {"radio": True})
    assert definition.radio and not definition.checkbox
    assert create_filter_definition("null", Category.NUMERIC, "numeric", {}).checkbox
    with pytest.raises(ConfigError):
        create_filter_definition("null", Category.STRING, "string", {"blank": True, "empty": True})


def test_boolean_definition_non_true():
    definition = create_filter_definition("boolean", Category.BOOLEAN, "boolean", {"non_true": True})
    assert definition.non_true
    assert definition.display == ""
