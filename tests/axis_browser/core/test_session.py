import pandas as pd

from axis_browser.core.adapters.pandas_store import FrameEntity, PandasStore
from axis_browser.core.catalog import Catalog
from axis_browser.core.session import SearchSession


def _make_catalog():
    teams = FrameEntity("teams", pd.DataFrame({"id": [1, 2], "name": ["Red", "Blue"]}))
    people = FrameEntity(
        "people",
        pd.DataFrame({"id": [1, 2, 3], "team_id": [1, 2, 2], "name": ["Ada", "Alan", "Grace"]}),
    )
    teams.add_accessor("members", lambda team: people.where(team_id=team["id"]))

    catalog = Catalog(store=PandasStore())
    catalog.register_entity(teams)
    catalog.register_entity(people)
    catalog.bindings.bind(
        "directory",
        {"entity": teams, "child": {"entity": people, "accessor": "members", "kind": "set"}},
    )
    return catalog


def test_process_builds_forms_parents_first():
    session = SearchSession(_make_catalog(), "directory")
    forms = session.process()

    assert [f.id for f in forms] == [0, 1]
    assert forms[1].parent is forms[0]
    assert forms[0].record["name"] == "Red"
    assert [r["name"] for r in forms[1].records] == ["Ada"]


def test_parent_selection_flows_to_child_in_same_interaction():
    session = SearchSession(_make_catalog(), "directory")
    session.process({"0": {"offset": "1"}})

    assert session.form("teams").record["name"] == "Blue"
    assert session.form("teams", "members").state.total == 2


def test_states_survive_between_interactions():
    catalog = _make_catalog()
    first = SearchSession(catalog, "directory")
    first.process({0: 1})
    states = first.dump()

    second = SearchSession(catalog, "directory", states)
    second.process()
    assert second.form(0).state.offset == 1
    assert set(states) == {0, 1}


def test_unknown_form_lookup():
    session = SearchSession(_make_catalog(), "directory")
    session.process()
    assert session.form("nope") is None
