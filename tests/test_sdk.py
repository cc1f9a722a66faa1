import unittest

import pytest

from conftest import make_animation, make_element
from gfx.scene.errors import ValidationError
from gfx.scene.sdk import (
    MAX_GROUP_DEPTH,
    Animation,
    Binding,
    Element,
    ElementType,
    GroupContent,
    Keyframe,
    Layer,
    Phase,
    Project,
    ShapeContent,
    Template,
    TextContent,
    instantiate_template,
    validate_template,
    walk_elements,
)


class TestElement(unittest.TestCase):
    def test_defaults_content_from_type(self):
        el = Element(id="t", type="text")
        self.assertIsInstance(el.content, TextContent)
        self.assertEqual(el.type, ElementType.TEXT)
        self.assertEqual(el.opacity, 1.0)

    def test_opacity_out_of_range_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            Element(id="e", type="shape", opacity=1.5)
        self.assertEqual(ctx.exception.field, "opacity")
        self.assertEqual(ctx.exception.entity, "Element")

    def test_negative_width_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            Element(id="e", type="shape", width=-1)
        self.assertEqual(ctx.exception.field, "width")

    def test_non_finite_geometry_is_rejected(self):
        with self.assertRaises(ValidationError):
            Element(id="e", type="shape", position_x=float("inf"))

    def test_content_must_match_type(self):
        with self.assertRaises(ValidationError) as ctx:
            Element(id="e", type="text", content=ShapeContent())
        self.assertEqual(ctx.exception.field, "content")

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(ValidationError):
            Element(id="e", type="shape", colour="red")

    def test_frozen(self):
        el = make_element("e")
        with pytest.raises(Exception):
            el.position_x = 5

    def test_evolve_shares_untouched_values(self):
        el = make_element("e", style={"color": "#fff"})
        moved = el.evolve(position_x=42)
        self.assertEqual(moved.position_x, 42)
        self.assertEqual(el.position_x, 0)
        self.assertIs(moved.content, el.content)

    def test_evolve_validates(self):
        with self.assertRaises(ValidationError):
            make_element("e").evolve(opacity=-0.1)


def _nested(depth):
    el = make_element("leaf")
    for i in range(depth):
        el = Element(id=f"g{i}", type="group", content=GroupContent(children=(el,)))
    return el


def test_group_depth_limit():
    _nested(MAX_GROUP_DEPTH)
    with pytest.raises(ValidationError):
        _nested(MAX_GROUP_DEPTH + 1)


def test_group_cannot_contain_itself():
    child = make_element("g")
    with pytest.raises(ValidationError) as ei:
        Element(id="g", type="group", content=GroupContent(children=(child,)))
    assert ei.value.field == "content.children"


def test_ids_unique_across_tree():
    group = Element(id="g", type="group", content=GroupContent(children=(make_element("a"),)))
    with pytest.raises(ValidationError) as ei:
        Template(id="t", elements=(group, make_element("a")))
    assert "duplicate element id 'a'" in str(ei.value)


def test_keyframes_must_be_ordered():
    with pytest.raises(ValidationError) as ei:
        Animation(
            id="a",
            element_id="e",
            phase="in",
            keyframes=(Keyframe(position=60), Keyframe(position=40)),
        )
    assert ei.value.field == "keyframes.1.position"


def test_keyframe_position_range():
    with pytest.raises(ValidationError):
        Keyframe(position=101)


def test_keyframe_opacity_range():
    with pytest.raises(ValidationError) as ei:
        Keyframe(position=0, properties={"opacity": 2.0})
    assert ei.value.field == "properties.opacity"


def test_unknown_easing_rejected_but_bezier_accepted():
    Animation(id="a", element_id="e", phase="in", easing="cubic-bezier(0.4, 0, 0.2, 1)")
    with pytest.raises(ValidationError) as ei:
        Animation(id="a", element_id="e", phase="in", easing="wobble")
    assert ei.value.field == "easing"


def test_one_animation_per_element_and_phase():
    el = make_element("e")
    a1 = make_animation("e", "in", [(0, {"opacity": 0.0})], animation_id="a1")
    a2 = make_animation("e", "in", [(0, {"opacity": 1.0})], animation_id="a2")
    with pytest.raises(ValidationError) as ei:
        Template(id="t", elements=(el,), animations=(a1, a2))
    assert ei.value.field == "animations.1.phase"


def test_animation_must_reference_element():
    anim = make_animation("ghost", "in", [(0, {"opacity": 0.0})])
    with pytest.raises(ValidationError) as ei:
        Template(id="t", elements=(make_element("e"),), animations=(anim,))
    assert ei.value.field == "animations.0.element_id"


def test_binding_target_must_exist_on_content():
    el = make_element("img", type="image")
    ok = Binding(id="b1", element_id="img", source="s", field_path="logo")
    Template(id="t", elements=(el,), bindings=(ok,))
    bad = Binding(id="b2", element_id="img", source="s", field_path="x", target_property="content.text")
    with pytest.raises(ValidationError):
        Template(id="t", elements=(el,), bindings=(bad,))


def test_binding_rejects_unknown_formatter():
    with pytest.raises(ValidationError) as ei:
        Binding(id="b", element_id="e", source="s", field_path="x", formatter="roman")
    assert ei.value.field == "formatter"


def test_round_trip_through_dict(lower_third):
    data = lower_third.to_dict()
    assert data["elements"][1]["content"] == {"type": "text", "text": "Name"}
    assert Template.from_dict(data) == lower_third


def test_from_dict_reports_nested_field():
    data = {"id": "t", "elements": [{"id": "e", "type": "shape", "opacity": 3}]}
    with pytest.raises(ValidationError) as ei:
        Template.from_dict(data)
    assert ei.value.field == "elements.0.opacity"


def test_instantiate_is_independent_copy(lower_third):
    inst = instantiate_template(lower_third, "lt-1")
    assert inst.source_id == "lower-third"
    changed = inst.evolve(name="Changed")
    assert lower_third.name == "Lower third"
    assert changed.elements == lower_third.elements


def test_project_and_layer_ids_unique(lower_third):
    layer = Layer(id="l1", templates=(lower_third,))
    with pytest.raises(ValidationError):
        Layer(id="l2", templates=(lower_third, lower_third))
    with pytest.raises(ValidationError):
        Project(id="p", layers=(layer, layer))
    with pytest.raises(ValidationError):
        Project(id="p", frame_rate=0)
    assert Project(id="p", layers=(layer,)).find_template("lower-third") is lower_third


def test_walk_elements_paint_order():
    group = Element(id="g", type="group", content=GroupContent(children=(make_element("a"), make_element("b"))))
    template = Template(id="t", elements=(make_element("bg"), group))
    assert [(el.id, parent, depth) for el, parent, depth in walk_elements(template.elements)] == [
        ("bg", None, 0),
        ("g", None, 0),
        ("a", "g", 1),
        ("b", "g", 1),
    ]


def test_validate_template_accepts_dict_or_model(lower_third):
    assert validate_template(lower_third) is lower_third
    assert validate_template(lower_third.to_dict()) == lower_third
    with pytest.raises(TypeError):
        validate_template("nope")


def test_animation_lookup(lower_third):
    assert lower_third.animation_for("bar", Phase.LOOP).duration == 1000
    assert lower_third.animation_for("name", "out") is None
    assert set(lower_third.animations_for("bar")) == {Phase.IN, Phase.LOOP, Phase.OUT}


def test_style_and_keyframe_properties_are_read_only():
    source = {"color": "red"}
    el = make_element("box", style=source)
    source["color"] = "blue"
    assert el.style["color"] == "red"
    with pytest.raises(TypeError):
        el.style["color"] = "green"

    kf = Keyframe(position=0, properties={"opacity": 0.5})
    with pytest.raises(TypeError):
        kf.properties["opacity"] = 1.0

    assert el.to_dict()["style"] == {"color": "red"}
    assert kf.to_dict()["properties"] == {"opacity": 0.5}
    assert el.evolve(name="renamed").style == {"color": "red"}
    assert Element.from_dict(el.to_dict()).style == el.style
