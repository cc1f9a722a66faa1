import pytest

from conftest import make_animation, make_element
from gfx.scene.bindings import BindingOverlay
from gfx.scene.phase_state import ElementPhase, PhaseState, PhaseStatus
from gfx.scene.sdk import Animation, Element, GroupContent, Keyframe, Phase, Template
from gfx.scene.timeline import evaluate, evaluate_animation, evaluate_phase, resting_values


def _opacity(snapshot, element_id="box"):
    return snapshot.get(element_id)["opacity"]


def test_first_and_last_keyframe_at_bounds(fade_template):
    assert _opacity(evaluate_phase(fade_template, "in", 0)) == 0.0
    assert _opacity(evaluate_phase(fade_template, "in", 500)) == 1.0


def test_midpoint_and_hold_after_end(fade_template):
    assert _opacity(evaluate_phase(fade_template, "in", 250)) == pytest.approx(0.5)
    assert _opacity(evaluate_phase(fade_template, "in", 600)) == 1.0


def test_zero_duration_jumps_to_final_values():
    box = make_element("box")
    anim = make_animation("box", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 0.3})], duration=0)
    template = Template(id="t", elements=(box,), animations=(anim,))
    for t in (0, 10, 1000):
        assert _opacity(evaluate_phase(template, "in", t)) == pytest.approx(0.3)


def test_zero_duration_shows_first_keyframe_during_delay():
    box = make_element("box")
    anim = make_animation("box", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 0.3})], duration=0, delay=200)
    template = Template(id="t", elements=(box,), animations=(anim,))
    assert _opacity(evaluate_phase(template, "in", 100)) == 0.0
    assert _opacity(evaluate_phase(template, "in", 200)) == pytest.approx(0.3)


def test_snapshot_is_read_only(fade_template):
    snapshot = evaluate_phase(fade_template, "in", 250)
    box = snapshot.get("box")
    with pytest.raises(TypeError):
        box["opacity"] = 1.0
    with pytest.raises(TypeError):
        box["style"]["color"] = "red"
    with pytest.raises(TypeError):
        snapshot.elements["other"] = {}
    plain = snapshot.to_dict()["elements"][0]
    assert isinstance(plain, dict) and isinstance(plain["style"], dict)


def test_repeated_evaluation_is_idempotent(lower_third):
    a = evaluate_phase(lower_third, "in", 321)
    b = evaluate_phase(lower_third, "in", 321)
    assert a.elements == b.elements


def test_untouched_properties_keep_resting_values(lower_third):
    bar = evaluate_phase(lower_third, "in", 250).get("bar")
    assert bar["position_x"] == pytest.approx(50.0)
    assert bar["width"] == 800
    assert bar["scale_x"] == 1.0
    assert bar["style"] == {"backgroundColor": "#000000"}


def test_missing_start_keyframe_starts_from_resting():
    box = make_element("box", position_x=0)
    anim = make_animation("box", "in", [(100, {"position_x": 200.0})])
    template = Template(id="t", elements=(box,), animations=(anim,))
    assert evaluate_phase(template, "in", 250).get("box")["position_x"] == pytest.approx(100.0)


def test_delay_shifts_local_time(lower_third):
    assert _opacity(evaluate_phase(lower_third, "in", 100), "name") == 0.0
    assert _opacity(evaluate_phase(lower_third, "in", 350), "name") == pytest.approx(0.5)


def test_rotation_takes_shortest_path():
    box = make_element("box", rotation=350)
    anim = make_animation("box", "in", [(0, {"rotation": 350.0}), (100, {"rotation": 10.0})])
    template = Template(id="t", elements=(box,), animations=(anim,))
    assert evaluate_phase(template, "in", 250).get("box")["rotation"] == pytest.approx(360.0)
    assert evaluate_phase(template, "in", 500).get("box")["rotation"] == 10.0


def test_colors_units_and_transforms_interpolate():
    box = make_element("box", style={"color": "#000000"})
    anim = make_animation(
        "box",
        "in",
        [
            (0, {"color": "#000000", "fontSize": "10px", "transform": "translateX(-100px)", "fontFamily": "Arial"}),
            (100, {"color": "#ffffff", "fontSize": "30px", "transform": "translateX(0px)", "fontFamily": "Helvetica"}),
        ],
    )
    template = Template(id="t", elements=(box,), animations=(anim,))

    early = evaluate_phase(template, "in", 200).get("box")
    assert early["style"]["fontFamily"] == "Arial"

    mid = evaluate_phase(template, "in", 250).get("box")
    assert mid["style"]["color"] == "rgb(128, 128, 128)"
    assert mid["style"]["fontSize"] == "20px"
    assert mid["transform"] == "translateX(-50px)"
    assert mid["style"]["fontFamily"] == "Helvetica"


def test_opacity_is_clamped_under_overshooting_easing():
    box = make_element("box")
    anim = make_animation("box", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})], easing="elastic-out")
    template = Template(id="t", elements=(box,), animations=(anim,))
    assert _opacity(evaluate_phase(template, "in", 100)) == 1.0


def test_malformed_animation_is_isolated():
    box = make_element("box")
    other = make_element("other")
    bad = Animation.model_construct(
        id="bad",
        element_id="box",
        phase=Phase.IN,
        duration=500.0,
        delay=0.0,
        easing="linear",
        keyframes=(
            Keyframe(position=80, properties={"opacity": 0.2}),
            Keyframe(position=20, properties={"opacity": 0.9}),
        ),
    )
    good = make_animation("other", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})])
    template = Template(id="t", elements=(box, other), animations=(bad, good))

    snap = evaluate_phase(template, "in", 250)
    assert len(snap.errors) == 1
    assert snap.errors[0].element_id == "box"
    assert snap.errors[0].animation_id == "bad"
    assert _opacity(snap, "box") == 1.0
    assert _opacity(snap, "other") == pytest.approx(0.5)


def test_group_children_reported_by_id():
    child = make_element("child", position_x=5)
    group = Element(id="g", type="group", content=GroupContent(children=(child,)))
    template = Template(id="t", elements=(group,))
    snap = evaluate_phase(template, "in", 0)
    assert snap.order() == ["g", "child"]
    assert snap.get("child")["parent_id"] == "g"
    assert "children" not in snap.get("g")["content"]


def test_resting_values_apply_overlay():
    text = make_element("t", type="text", content={"type": "text", "text": "Authored"})
    overlay = BindingOverlay({"t": {"content.text": "Bound", "style.color": "red"}}, frozenset({"t"}))
    rest = resting_values(text, overlay)
    assert rest["content"]["text"] == "Bound"
    assert rest["style"]["color"] == "red"
    assert rest["visible"] is False
    assert text.content.text == "Authored"


def test_evaluate_animation_returns_full_base():
    anim = make_animation("box", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})])
    out = evaluate_animation(anim, {"opacity": 1.0, "width": 10.0}, 250)
    assert out == {"opacity": 0.5, "width": 10.0}


def test_evaluate_uses_phase_local_time(fade_template):
    state = PhaseState({"box": ElementPhase("box", PhaseStatus.ENTERING, started_at=1000.0)})
    snap = evaluate(fade_template, state, 1250.0)
    assert _opacity(snap) == pytest.approx(0.5)
    assert snap.get("box")["status"] == "entering"


def test_idle_elements_rest(fade_template):
    snap = evaluate(fade_template, PhaseState.idle(["box"]), 250.0)
    assert _opacity(snap) == 1.0
    assert snap.get("box")["status"] == "idle"


def test_snapshot_to_dict_is_json_ready(lower_third):
    data = evaluate_phase(lower_third, "in", 100).to_dict()
    assert [e["id"] for e in data["elements"]] == ["bar", "name"]
    assert data["errors"] == []
