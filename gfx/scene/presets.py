"""
Stock animations offered when an operator adds an in/loop/out phase.

Entrance presets end at the element's resting look and exit presets start
from it; loop presets begin and end on the same values so they repeat
without a seam.
"""

from typing import Dict, List, Optional, Tuple, Union

from .errors import ValidationError
from .sdk import Animation, Keyframe, Phase

# phase -> default duration (ms) / easing
DEFAULT_DURATIONS = {Phase.IN: 500.0, Phase.LOOP: 1500.0, Phase.OUT: 300.0}
DEFAULT_EASINGS = {Phase.IN: "ease-out", Phase.LOOP: "ease-in-out", Phase.OUT: "ease-out"}

Frames = List[Tuple[float, Dict[str, Union[float, str]]]]

# entrance keyframes; the exit mirrors them in reverse unless listed in _EXIT
_ENTRANCE: Dict[str, Frames] = {
    "fade": [(0, {"opacity": 0.0}), (100, {"opacity": 1.0})],
    "slide-left": [
        (0, {"opacity": 0.0, "transform": "translateX(-100px)"}),
        (100, {"opacity": 1.0, "transform": "translateX(0px)"}),
    ],
    "slide-right": [
        (0, {"opacity": 0.0, "transform": "translateX(100px)"}),
        (100, {"opacity": 1.0, "transform": "translateX(0px)"}),
    ],
    "slide-up": [
        (0, {"opacity": 0.0, "transform": "translateY(50px)"}),
        (100, {"opacity": 1.0, "transform": "translateY(0px)"}),
    ],
    "slide-down": [
        (0, {"opacity": 0.0, "transform": "translateY(-50px)"}),
        (100, {"opacity": 1.0, "transform": "translateY(0px)"}),
    ],
    "scale": [
        (0, {"opacity": 0.0, "transform": "scale(0.8)"}),
        (100, {"opacity": 1.0, "transform": "scale(1)"}),
    ],
}

# slides leave in the direction they are named after
_EXIT: Dict[str, Frames] = {
    "slide-up": [
        (0, {"opacity": 1.0, "transform": "translateY(0px)"}),
        (100, {"opacity": 0.0, "transform": "translateY(-50px)"}),
    ],
    "slide-down": [
        (0, {"opacity": 1.0, "transform": "translateY(0px)"}),
        (100, {"opacity": 0.0, "transform": "translateY(50px)"}),
    ],
}

_LOOP: Dict[str, Frames] = {
    "pulse": [
        (0, {"transform": "scale(1)"}),
        (50, {"transform": "scale(1.05)"}),
        (100, {"transform": "scale(1)"}),
    ],
    "side-to-side": [
        (0, {"transform": "translateX(0px)"}),
        (25, {"transform": "translateX(-10px)"}),
        (75, {"transform": "translateX(10px)"}),
        (100, {"transform": "translateX(0px)"}),
    ],
    "up-and-down": [
        (0, {"transform": "translateY(0px)"}),
        (25, {"transform": "translateY(-8px)"}),
        (75, {"transform": "translateY(8px)"}),
        (100, {"transform": "translateY(0px)"}),
    ],
    "gentle-twist": [
        (0, {"transform": "rotate(0deg)"}),
        (25, {"transform": "rotate(-2deg)"}),
        (75, {"transform": "rotate(2deg)"}),
        (100, {"transform": "rotate(0deg)"}),
    ],
}


def preset_names(phase: Union[Phase, str]) -> List[str]:
    phase = Phase(phase)
    return sorted(_LOOP) if phase == Phase.LOOP else sorted(_ENTRANCE)


def _frames(phase: Phase, preset: str) -> Frames:
    if phase == Phase.LOOP:
        return _LOOP.get(preset)
    frames = _ENTRANCE.get(preset)
    if frames is None or phase == Phase.IN:
        return frames
    if preset in _EXIT:
        return _EXIT[preset]
    return [(100 - pos, props) for pos, props in reversed(frames)]


def create_default_animation(
    element_id: str,
    phase: Union[Phase, str],
    preset: str = "fade",
    *,
    animation_id: Optional[str] = None,
    duration: Optional[float] = None,
    easing: Optional[str] = None,
) -> Animation:
    """Build a stock animation for ``element_id``; loop phases take loop presets."""
    phase = Phase(phase)
    frames = _frames(phase, preset)
    if frames is None:
        raise ValidationError(
            f"unknown {phase.value} preset '{preset}' (choose from {', '.join(preset_names(phase))})",
            field="preset",
            element_id=element_id,
        )
    return Animation(
        id=animation_id or f"{element_id}-{phase.value}",
        element_id=element_id,
        phase=phase,
        duration=DEFAULT_DURATIONS[phase] if duration is None else duration,
        easing=easing or DEFAULT_EASINGS[phase],
        keyframes=tuple(Keyframe(position=pos, properties=dict(props)) for pos, props in frames),
    )
