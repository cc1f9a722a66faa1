import pytest

from gfx.scene.bindings import (
    RecordSet,
    apply_formatter,
    get_nested_value,
    resolve_bindings,
    resolve_template_bindings,
)
from gfx.scene.errors import BindingMissError
from gfx.scene.sdk import Binding
from gfx.scene.timeline import evaluate_phase

ROSTER = RecordSet(
    "roster",
    (
        {"players": [{"name": "ada lovelace", "goals": 3}]},
        {"players": [{"name": "grace hopper", "goals": 0}]},
    ),
    fetched_at=1.0,
)


def test_binding_overrides_content(lower_third):
    overlay = resolve_template_bindings(lower_third, [ROSTER])
    assert overlay.value_for("name", "content.text") == "ADA LOVELACE"
    assert overlay.misses == ()
    snap = evaluate_phase(lower_third, "in", 600, overlay)
    assert snap.get("name")["content"]["text"] == "ADA LOVELACE"
    # entity model untouched
    assert lower_third.find_element("name").content.text == "Name"


def test_selection_picks_record(lower_third):
    overlay = resolve_template_bindings(lower_third, [ROSTER], selection={"roster": 1})
    assert overlay.value_for("name", "content.text") == "GRACE HOPPER"


def test_missing_path_keeps_authored_content_and_reports_once(lower_third):
    data = [RecordSet("roster", ({"players": []},))]
    overlay = resolve_template_bindings(lower_third, data)
    assert len(overlay.misses) == 1
    miss = overlay.misses[0]
    assert isinstance(miss, BindingMissError)
    assert miss.binding_id == "b-name"
    assert miss.field == "players[0].name"
    snap = evaluate_phase(lower_third, "in", 600, overlay)
    assert snap.get("name")["content"]["text"] == "Name"
    assert len(snap.misses) == 1


def test_miss_keeps_last_known_value(lower_third):
    first = resolve_template_bindings(lower_third, [ROSTER])
    second = resolve_template_bindings(lower_third, [], previous=first)
    assert second.value_for("name", "content.text") == "ADA LOVELACE"
    assert len(second.misses) == 1


def test_record_index_out_of_range_is_a_miss():
    b = Binding(id="b", element_id="t", source="roster", field_path="players[0].name", record_index=5)
    overlay = resolve_bindings([b], [ROSTER])
    assert "out of range" in overlay.misses[0].message


def test_hide_on_zero_and_null():
    goals = Binding(
        id="g", element_id="goals", source="roster", field_path="players.0.goals", formatter_options={"hideOnZero": True}
    )
    assert not resolve_bindings([goals], [ROSTER]).is_hidden("goals")
    assert resolve_bindings([goals], [ROSTER], selection={"roster": 1}).is_hidden("goals")

    nick = Binding(id="n", element_id="nick", source="s", field_path="nick", formatter_options={"hideOnNull": True})
    assert resolve_bindings([nick], {"s": [{"nick": None}]}).is_hidden("nick")


def test_null_uses_default_value():
    b = Binding(id="n", element_id="nick", source="s", field_path="nick", default_value="TBC")
    assert resolve_bindings([b], {"s": [{"nick": None}]}).value_for("nick", "content.text") == "TBC"


def test_style_target():
    b = Binding(id="c", element_id="bar", source="team", field_path="colour", target_property="style.backgroundColor")
    overlay = resolve_bindings([b], {"team": [{"colour": "#ff0000"}]})
    assert overlay.style_for("bar") == {"backgroundColor": "#ff0000"}


def test_nested_path_lookup():
    record = {"home": {"players": [{"name": "A"}, {"name": "B"}]}}
    assert get_nested_value(record, "home.players[1].name") == "B"
    assert get_nested_value(record, "home.players.0.name") == "A"


@pytest.mark.parametrize(
    "value,formatter,options,expected",
    [
        (1234567, "number", None, "1,234,567"),
        (1234.5, "number", {"decimals": 2}, "1,234.50"),
        (1234.5, "currency", None, "$1,234.50"),
        (-3, "currency", {"currency": "EUR"}, "-€3.00"),
        (45.678, "percentage", None, "45.7%"),
        (45.678, "percentage", {"decimals": 0}, "46%"),
        ("hello", "uppercase", None, "HELLO"),
        ("HeLLo", "lowercase", None, "hello"),
        ("hELLO world", "capitalize", None, "Hello world"),
        ("abcdefghij", "truncate", {"maxLength": 6}, "abc..."),
        ("short", "truncate", None, "short"),
        (3, None, {"prefix": "+", "suffix": " pts"}, "+3 pts"),
        ("not a number", "currency", None, "not a number"),
    ],
)
def test_formatters(value, formatter, options, expected):
    assert apply_formatter(value, formatter, options) == expected


def test_record_set_normalizes_records():
    rs = RecordSet("s", [{"a": 1}])
    assert rs.records == ({"a": 1},)
