"""
Broadcast Graphics Engine - Scene Package

Entity model, timeline evaluation and binding resolution for on-air templates.
"""

from .bindings import BindingOverlay, RecordSet, apply_formatter, resolve_bindings, resolve_template_bindings
from .easing import apply_easing, get_easing, is_known_easing
from .errors import BindingMissError, EngineError, EvaluationError, ValidationError
from .phase_state import ElementPhase, PhaseState, PhaseStatus
from .presets import create_default_animation, preset_names
from .sdk import (  # Constants; Enums; Models; Helper functions
    CANVAS_H,
    CANVAS_W,
    FPS,
    MAX_GROUP_DEPTH,
    Animation,
    Binding,
    Element,
    ElementType,
    GroupContent,
    ImageContent,
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
from .timecode import format_time, frames_to_ms, ms_to_frames
from .timeline import FrameSnapshot, evaluate, evaluate_animation, evaluate_phase, resting_values

__version__ = "0.1.0"
__all__ = [
    "CANVAS_W",
    "CANVAS_H",
    "FPS",
    "MAX_GROUP_DEPTH",
    "ElementType",
    "Phase",
    "TextContent",
    "ShapeContent",
    "ImageContent",
    "GroupContent",
    "Element",
    "Keyframe",
    "Animation",
    "Binding",
    "Template",
    "Layer",
    "Project",
    "walk_elements",
    "instantiate_template",
    "validate_template",
    "EngineError",
    "ValidationError",
    "BindingMissError",
    "EvaluationError",
    "apply_easing",
    "get_easing",
    "is_known_easing",
    "PhaseStatus",
    "ElementPhase",
    "PhaseState",
    "FrameSnapshot",
    "evaluate",
    "evaluate_phase",
    "evaluate_animation",
    "resting_values",
    "RecordSet",
    "BindingOverlay",
    "apply_formatter",
    "resolve_bindings",
    "resolve_template_bindings",
    "create_default_animation",
    "preset_names",
    "ms_to_frames",
    "frames_to_ms",
    "format_time",
]
