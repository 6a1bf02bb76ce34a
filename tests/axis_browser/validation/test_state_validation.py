import pytest

from axis_browser.validation.errors import ValidationError
from axis_browser.validation.state_validation import validate_state_dict


def _make_blob(**overrides):
    blob = {
        "binding_id": 0,
        "per_page": 10,
        "total": 3,
        "page": 1,
        "selected": 2,
        "filters": [{"kind": "set", "attribute": "colour", "negated": False, "selected": [0, 1]}],
        "sorts": [{"attribute": "name", "descending": True}],
    }
    blob.update(overrides)
    return blob


def test_valid_blob_passes():
    validate_state_dict(_make_blob())


def test_non_object_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_state_dict(["nope"])
    assert exc.value.issues[0].code == "STATE_TYPE"


def test_collects_every_issue():
    blob = _make_blob(
        binding_id=-1,
        per_page=0,
        total="3",
        filters=[{"kind": "mystery"}, "x", {"kind": "set", "attribute": "c", "selected": ["a"]}],
        sorts=[{"attribute": "", "descending": "yes"}],
    )
    with pytest.raises(ValidationError) as exc:
        validate_state_dict(blob)

    codes = {i.code for i in exc.value.issues}
    assert codes == {
        "STATE_BINDING_ID",
        "STATE_PER_PAGE",
        "STATE_TOTAL",
        "FILTER_KIND",
        "FILTER_ATTRIBUTE",
        "FILTER_TYPE",
        "FILTER_SELECTED",
        "SORT_ATTRIBUTE",
        "SORT_DESCENDING",
    }
    assert "STATE_PER_PAGE" in str(exc.value)
