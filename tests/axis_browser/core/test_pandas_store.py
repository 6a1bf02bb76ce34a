from datetime import date

import pandas as pd

from axis_browser.core.adapters.pandas_store import FrameEntity, PandasStore, like_to_regex
from axis_browser.core.predicate import And, Comparison, Not, Op, Or, OrderTerm


def _make_entity():
    frame = pd.DataFrame(
        {
            "name": ["Ada", "alan", "Grace", "Linus", None],
            "age": [36, 41, 85, None, 29],
            "team": ["red", "red", "blue", "blue", "red"],
            "active": [True, False, True, True, False],
            "joined": pd.to_datetime(["2020-01-01", "2021-06-01", "2019-03-15", "2022-11-30", "2020-07-04"]),
        }
    )
    return FrameEntity("people", frame)


def _names(records):
    return [r["name"] for r in records]


def test_field_types_are_inferred():
    entity = _make_entity()
    assert entity.field_types() == {
        "name": "string",
        "age": "float",
        "team": "string",
        "active": "boolean",
        "joined": "datetime",
    }


def test_like_to_regex():
    assert like_to_regex("a%") == "a.*"
    assert like_to_regex("a_c") == "a.c"
    assert like_to_regex("50%%") == "50%"
    assert like_to_regex("a__b") == "a_b"
    assert like_to_regex("x.y") == "x\\.y"


def test_count_and_fetch_with_predicate():
    store = PandasStore()
    entity = _make_entity()
    predicate = And((Comparison("team", Op.EQ, "red"), Comparison("age", Op.GT, 30)))

    assert store.count(entity.all(), predicate) == 2
    assert _names(store.fetch(entity.all(), predicate, [], 0, 10)) == ["Ada", "alan"]


def test_ordered_comparisons_skip_nulls():
    store = PandasStore()
    entity = _make_entity()
    assert store.count(entity.all(), Comparison("age", Op.LE, 100)) == 4
    assert store.count(entity.all(), Comparison("age", Op.BETWEEN, (30, 50))) == 2
    assert store.count(entity.all(), Not(Comparison("age", Op.BETWEEN, (30, 50)))) == 3


def test_null_checks_and_not_equal():
    store = PandasStore()
    entity = _make_entity()
    assert store.count(entity.all(), Comparison("name", Op.IS_NULL)) == 1
    assert store.count(entity.all(), Comparison("name", Op.NOT_NULL)) == 4
    # not-equal keeps null rows
    assert store.count(entity.all(), Comparison("name", Op.NE, "Ada")) == 4


def test_matches_is_case_insensitive():
    store = PandasStore()
    entity = _make_entity()
    assert _names(store.fetch(entity.all(), Comparison("name", Op.MATCHES, "a%"), [], 0, 10)) == ["Ada", "alan"]
    assert store.count(entity.all(), Comparison("name", Op.NOT_MATCHES, "a%")) == 3


def test_or_and_temporal():
    store = PandasStore()
    entity = _make_entity()
    predicate = Or(
        (
            Comparison("joined", Op.LT, pd.Timestamp("2020-01-01")),
            Comparison("active", Op.EQ, False),
        )
    )
    assert set(_names(store.fetch(entity.all(), predicate, [], 0, 10))) == {"Grace", "alan", None}
    assert store.count(entity.all(), predicate) == 3


def test_ordering_and_window():
    store = PandasStore()
    entity = _make_entity()
    ordering = [OrderTerm("team", False), OrderTerm("age", True)]

    records = store.fetch(entity.all(), None, ordering, 0, 10)
    assert _names(records) == ["Grace", "Linus", "alan", "Ada", None]

    window = store.fetch(entity.all(), None, ordering, 1, 2)
    assert _names(window) == ["Linus", "alan"]
    assert window[0]["age"] is None


def test_single_wraps_a_record():
    store = PandasStore()
    entity = _make_entity()
    collection = store.single(entity, {"name": "Ada", "age": 36, "team": "red", "active": True, "joined": None})
    assert store.count(collection, None) == 1
    assert store.count(store.single(entity, None), None) == 0
    assert store.count(None, None) == 0


def test_object_date_column_compares_with_timestamps():
    store = PandasStore()
    frame = pd.DataFrame({"born": [date(2000, 1, 1), date(2010, 1, 1), None]})
    entity = FrameEntity("people", frame, field_types={"born": "date"})
    cutoff = pd.Timestamp("2005-01-01")

    assert store.count(entity.all(), Comparison("born", Op.LT, cutoff)) == 1
    assert store.count(entity.all(), Comparison("born", Op.GE, cutoff)) == 1
    assert store.count(entity.all(), Comparison("born", Op.EQ, pd.Timestamp("2010-01-01"))) == 1
    window = (pd.Timestamp("1999-01-01"), pd.Timestamp("2001-01-01"))
    assert store.count(entity.all(), Comparison("born", Op.BETWEEN, window)) == 1
