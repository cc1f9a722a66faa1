"""
Test configuration and fixtures for the scene & timeline engine.

Provides small hand-built templates so each test states exactly which
elements, animations and bindings it depends on.
"""

import os
import sys

import pytest

# Ensure repo root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gfx.config.schemas import EngineConfig
from gfx.scene.sdk import Animation, Binding, Element, Keyframe, Template


def make_element(element_id, type="shape", **fields):
    return Element(id=element_id, type=type, **fields)


def make_animation(element_id, phase, frames, duration=500.0, easing="linear", delay=0.0, animation_id=None):
    return Animation(
        id=animation_id or f"{element_id}-{phase}",
        element_id=element_id,
        phase=phase,
        duration=duration,
        delay=delay,
        easing=easing,
        keyframes=tuple(Keyframe(position=pos, properties=props) for pos, props in frames),
    )


@pytest.fixture
def engine_config():
    """Defaults only; no YAML or environment involved."""
    return EngineConfig()


@pytest.fixture
def fade_template():
    """One box fading in over 500 ms (linear), no loop or out."""
    box = make_element("box", opacity=1.0)
    fade = make_animation("box", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})])
    return Template(id="fade", elements=(box,), animations=(fade,))


@pytest.fixture
def lower_third():
    """Name strap: background bar plus a bound name text, with in/loop/out phases."""
    bar = make_element("bar", position_x=100, position_y=800, width=800, height=120, style={"backgroundColor": "#000000"})
    name = make_element(
        "name", type="text", position_x=120, position_y=820, width=600, height=60, content={"type": "text", "text": "Name"}
    )
    animations = (
        make_animation("bar", "in", [(0, {"opacity": 0.0, "position_x": 0.0}), (100, {"opacity": 1.0, "position_x": 100.0})]),
        make_animation("bar", "loop", [(0, {"scale_x": 1.0}), (50, {"scale_x": 1.1}), (100, {"scale_x": 1.0})], duration=1000),
        make_animation("bar", "out", [(100, {"opacity": 0.0})], duration=300),
        make_animation("name", "in", [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})], delay=100),
    )
    bindings = (
        Binding(id="b-name", element_id="name", source="roster", field_path="players[0].name", formatter="uppercase"),
    )
    return Template(id="lower-third", name="Lower third", elements=(bar, name), animations=animations, bindings=bindings)
