import unittest

import pytest

from gfx.scene.easing import apply_easing, get_easing, is_known_easing
from gfx.scene.errors import ValidationError
from gfx.scene.interpolate import (
    interpolate_transform,
    interpolate_value,
    lerp_angle,
    parse_color,
    parse_css_value,
)
from gfx.scene.presets import create_default_animation, preset_names
from gfx.scene.sdk import Phase
from gfx.scene.timecode import format_time, frames_to_ms, ms_to_frames


class TestEasing(unittest.TestCase):
    def test_named_curves_hit_endpoints(self):
        for name in ("linear", "ease-in", "ease-out", "ease-in-out", "cubic-in-out", "bounce-out", "elastic-out"):
            self.assertAlmostEqual(apply_easing(0.0, name), 0.0, places=6)
            self.assertAlmostEqual(apply_easing(1.0, name), 1.0, places=6)

    def test_unknown_falls_back_to_linear(self):
        self.assertEqual(get_easing("nope")(0.3), 0.3)
        self.assertFalse(is_known_easing("nope"))

    def test_input_is_clamped(self):
        self.assertEqual(apply_easing(2.0, "linear"), 1.0)
        self.assertEqual(apply_easing(-1.0, "ease-in"), 0.0)

    def test_cubic_bezier(self):
        self.assertTrue(is_known_easing("cubic-bezier(0.25, 0.1, 0.25, 1)"))
        self.assertFalse(is_known_easing("cubic-bezier(1.5, 0, 0, 1)"))
        linear = get_easing("cubic-bezier(0, 0, 1, 1)")
        self.assertAlmostEqual(linear(0.37), 0.37, places=4)


def test_parse_color_forms():
    assert parse_color("#fff") == (255, 255, 255, 1.0)
    assert parse_color("rgba(10, 20, 30, 0.5)") == (10, 20, 30, 0.5)
    assert parse_color("Navy") == (0, 0, 128, 1.0)
    assert parse_color("12px") is None


def test_css_values():
    assert parse_css_value("12.5px") == (12.5, "px")
    assert parse_css_value(3) == (3.0, "")
    assert parse_css_value("auto") is None
    # unit mismatch steps instead of blending
    assert interpolate_value("width", "10px", "50%", 0.4) == "10px"
    assert interpolate_value("width", "10px", "50%", 0.6) == "50%"


def test_transform_missing_function_uses_identity():
    assert interpolate_transform("scale(0.5)", "translateX(10px)", 0.5) == "scale(0.75) translateX(5px)"


def test_lerp_angle_wraps():
    assert lerp_angle(10, 350, 0.5) == pytest.approx(0.0)
    assert lerp_angle(0, 90, 0.5) == pytest.approx(45.0)


@pytest.mark.parametrize("preset", ["fade", "slide-left", "scale"])
def test_entrance_and_exit_presets_mirror(preset):
    enter = create_default_animation("box", "in", preset)
    leave = create_default_animation("box", "out", preset)
    assert enter.duration == 500 and leave.duration == 300
    assert enter.easing == "ease-out"
    assert enter.keyframes[-1].properties == leave.keyframes[0].properties
    assert enter.keyframes[0].properties == leave.keyframes[-1].properties


def test_slide_up_exits_upwards():
    leave = create_default_animation("box", Phase.OUT, "slide-up")
    assert leave.keyframes[-1].properties["transform"] == "translateY(-50px)"


def test_loop_presets_are_seamless():
    for name in preset_names("loop"):
        anim = create_default_animation("box", "loop", name)
        assert anim.duration == 1500
        assert anim.keyframes[0].properties == anim.keyframes[-1].properties


def test_unknown_preset():
    with pytest.raises(ValidationError):
        create_default_animation("box", "loop", "fade")


def test_timecode():
    assert ms_to_frames(500) == 15
    assert frames_to_ms(15) == pytest.approx(500.0)
    assert ms_to_frames(1000, fps=25) == 25
    assert format_time(1500) == "1.5s"
    assert format_time(61_500) == "1:01.5"
    assert format_time(1500, show_frames=True) == "00:01:15"
