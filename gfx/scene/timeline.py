"""
Timeline evaluation: template + phase snapshot + time -> resolved frame.

Every function here is pure. Values are evaluated per property track (the
keyframes of one animation that set that property); a property the animation
never mentions keeps its resting value.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from gfx.utils.logs import get_logger

from .bindings import EMPTY_OVERLAY, BindingOverlay
from .easing import get_easing
from .errors import BindingMissError, EvaluationError
from .interpolate import interpolate_value, parse_css_value
from .phase_state import ElementPhase, PhaseState, PhaseStatus
from .sdk import GEOMETRY_KEYS, TRANSFORM_KEY, Animation, Element, Phase, Template, walk_elements

log = get_logger("timeline")

Values = Dict[str, Any]


@dataclass(frozen=True)
class FrameSnapshot:
    """Resolved state of every element for one instant, in paint order."""

    time: float
    elements: Mapping[str, Values] = field(default_factory=dict)
    errors: Tuple[EvaluationError, ...] = ()
    misses: Tuple[BindingMissError, ...] = ()

    def get(self, element_id: str) -> Optional[Values]:
        return self.elements.get(element_id)

    def order(self) -> List[str]:
        return list(self.elements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "elements": [_thaw(v) for v in self.elements.values()],
            "errors": [e.to_dict() for e in self.errors],
            "misses": [m.to_dict() for m in self.misses],
        }


def _freeze(values: Values) -> Mapping[str, Any]:
    return MappingProxyType(
        {k: MappingProxyType(dict(v)) if isinstance(v, dict) else v for k, v in values.items()}
    )


def _thaw(values: Mapping[str, Any]) -> Values:
    return {k: dict(v) if isinstance(v, Mapping) else v for k, v in values.items()}


# ----------------------------------------------------------------------------
# Resting values
# ----------------------------------------------------------------------------


def _base_tracks(element: Element, overlay: BindingOverlay) -> Values:
    """Flat track values an animation starts from: geometry, transform, style."""
    values: Values = element.geometry()
    style = dict(element.style)
    style.update(overlay.style_for(element.id))
    values[TRANSFORM_KEY] = style.pop(TRANSFORM_KEY, "")
    values.update(style)
    return values


def _content(element: Element, overlay: BindingOverlay) -> Values:
    content = element.content.model_dump(mode="json", exclude={"children"})
    content.update(overlay.content_for(element.id))
    return content


def _assemble(
    element: Element,
    tracks: Values,
    overlay: BindingOverlay,
    parent_id: Optional[str],
    status: PhaseStatus,
) -> Values:
    out: Values = {
        "id": element.id,
        "type": element.type.value,
        "parent_id": parent_id,
        "status": status.value,
        "visible": element.visible and not overlay.is_hidden(element.id),
    }
    style = {}
    for key, value in tracks.items():
        if key in GEOMETRY_KEYS or key == TRANSFORM_KEY:
            out[key] = value
        else:
            style[key] = value
    out["opacity"] = min(1.0, max(0.0, float(out["opacity"])))
    out["style"] = style
    out["content"] = _content(element, overlay)
    return out


def resting_values(
    element: Element,
    overlay: Optional[BindingOverlay] = None,
    parent_id: Optional[str] = None,
) -> Values:
    """Authored, non-animated state of ``element`` with binding overrides applied."""
    overlay = overlay or EMPTY_OVERLAY
    return _assemble(element, _base_tracks(element, overlay), overlay, parent_id, PhaseStatus.IDLE)


# ----------------------------------------------------------------------------
# Single animation
# ----------------------------------------------------------------------------


def _tracks(animation: Animation) -> Dict[str, List[Tuple[float, Any]]]:
    tracks: Dict[str, List[Tuple[float, Any]]] = {}
    last = -math.inf
    for kf in animation.keyframes:
        pos = kf.position
        if not isinstance(pos, (int, float)) or not math.isfinite(pos):
            raise EvaluationError(
                f"keyframe position {pos!r} is not a finite number",
                element_id=animation.element_id, field="keyframes", animation_id=animation.id,
            )
        if pos < last:
            raise EvaluationError(
                f"keyframe positions out of order ({last} then {pos})",
                element_id=animation.element_id, field="keyframes", animation_id=animation.id,
            )
        last = pos
        for prop, value in kf.properties.items():
            tracks.setdefault(prop, []).append((float(pos), value))
    return tracks


def _sample(prop: str, track: List[Tuple[float, Any]], resting: Any, p: float, ease) -> Any:
    if resting is not None and track[0][0] > 0.0:
        track = [(0.0, resting)] + track
    if p <= track[0][0]:
        return track[0][1]
    if p >= track[-1][0]:
        return track[-1][1]
    for (lo_pos, lo_val), (hi_pos, hi_val) in zip(track, track[1:]):
        if lo_pos <= p <= hi_pos:
            f = 0.0 if hi_pos == lo_pos else (p - lo_pos) / (hi_pos - lo_pos)
            return interpolate_value(prop, lo_val, hi_val, ease(f))
    return track[-1][1]


def _coerce_geometry(animation: Animation, prop: str, value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        out = float(value)
    else:
        css = parse_css_value(value)
        if css is None:
            raise EvaluationError(
                f"'{prop}' resolved to non-numeric value {value!r}",
                element_id=animation.element_id, field=prop, animation_id=animation.id,
            )
        out = css[0]
    if not math.isfinite(out):
        raise EvaluationError(
            f"'{prop}' resolved to a non-finite value",
            element_id=animation.element_id, field=prop, animation_id=animation.id,
        )
    return out


def animation_progress(animation: Animation, t: float) -> float:
    """
    Percent position (0..100) reached at animation-local time ``t`` (ms).

    Until the delay has passed every animation sits at position 0, including
    zero-length ones, which jump to 100 once it has.
    """
    if t < animation.delay:
        return 0.0
    if animation.duration <= 0:
        return 100.0
    local = min(max(t - animation.delay, 0.0), animation.duration)
    return 100.0 * local / animation.duration


def evaluate_animation(animation: Animation, base: Values, t: float) -> Values:
    """
    Evaluate one animation at local time ``t`` over the flat ``base`` values.

    Returns a copy of ``base`` with every animated property replaced.
    """
    p = animation_progress(animation, t)
    ease = get_easing(animation.easing)
    out = dict(base)
    for prop, track in _tracks(animation).items():
        value = _sample(prop, track, base.get(prop), p, ease)
        if prop in GEOMETRY_KEYS:
            value = _coerce_geometry(animation, prop, value)
        out[prop] = value
    return out


# ----------------------------------------------------------------------------
# Whole template
# ----------------------------------------------------------------------------


def track_values(
    template: Template,
    element: Element,
    ep: ElementPhase,
    now: float,
    overlay: Optional[BindingOverlay] = None,
) -> Values:
    """Flat animated values of one element at clock time ``now`` given its phase."""
    overlay = overlay or EMPTY_OVERLAY
    base = _base_tracks(element, overlay)
    status = ep.status
    if status == PhaseStatus.IDLE:
        return base

    local = ep.local_time(now)
    if status == PhaseStatus.ENTERING:
        anim = template.animation_for(element.id, Phase.IN)
        return evaluate_animation(anim, base, local) if anim else base

    if status == PhaseStatus.LOOPING:
        loop = template.animation_for(element.id, Phase.LOOP)
        if loop is not None:
            if loop.duration > 0 and local >= loop.span:
                # the delay only precedes the first cycle
                local = loop.delay + (local - loop.delay) % loop.duration
            return evaluate_animation(loop, base, local)
        entrance = template.animation_for(element.id, Phase.IN)
        # no loop: hold where the entrance finished
        return evaluate_animation(entrance, base, entrance.span) if entrance else base

    exit_base = dict(base)
    exit_base.update(ep.start_values)
    out = template.animation_for(element.id, Phase.OUT)
    return evaluate_animation(out, exit_base, local) if out else exit_base


def _resolve(
    element: Element,
    parent_id: Optional[str],
    status: PhaseStatus,
    compute,
    overlay: BindingOverlay,
    errors: List[EvaluationError],
) -> Values:
    try:
        tracks = compute()
    except EvaluationError as e:
        errors.append(e)
        log.error(f"[{element.id}] {e.message}; showing resting state")
        return resting_values(element, overlay, parent_id)
    except (TypeError, ValueError) as e:
        err = EvaluationError(f"malformed animation data: {e}", element_id=element.id)
        errors.append(err)
        log.error(f"[{element.id}] {err.message}; showing resting state")
        return resting_values(element, overlay, parent_id)
    return _assemble(element, tracks, overlay, parent_id, status)


def _freeze_all(resolved: Dict[str, Values]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({eid: _freeze(values) for eid, values in resolved.items()})


def evaluate(
    template: Template,
    phase_state: PhaseState,
    t: float,
    overlay: Optional[BindingOverlay] = None,
) -> FrameSnapshot:
    """Resolve every element of ``template`` at clock time ``t``."""
    overlay = overlay or EMPTY_OVERLAY
    resolved: Dict[str, Values] = {}
    errors: List[EvaluationError] = []
    for element, parent_id, _depth in walk_elements(template.elements):
        ep = phase_state.get(element.id)
        resolved[element.id] = _resolve(
            element,
            parent_id,
            ep.status,
            lambda: track_values(template, element, ep, t, overlay),
            overlay,
            errors,
        )
    return FrameSnapshot(t, _freeze_all(resolved), tuple(errors), overlay.misses)


def evaluate_phase(
    template: Template,
    phase: Union[Phase, str],
    t: float,
    overlay: Optional[BindingOverlay] = None,
) -> FrameSnapshot:
    """Scrub every element through one phase at local time ``t`` (editor preview)."""
    phase = Phase(phase)
    status = {Phase.IN: PhaseStatus.ENTERING, Phase.LOOP: PhaseStatus.LOOPING, Phase.OUT: PhaseStatus.EXITING}[phase]
    overlay = overlay or EMPTY_OVERLAY
    resolved: Dict[str, Values] = {}
    errors: List[EvaluationError] = []
    for element, parent_id, _depth in walk_elements(template.elements):
        anim = template.animation_for(element.id, phase)
        if anim is None:
            resolved[element.id] = resting_values(element, overlay, parent_id)
            continue
        resolved[element.id] = _resolve(
            element,
            parent_id,
            status,
            lambda: evaluate_animation(anim, _base_tracks(element, overlay), t),
            overlay,
            errors,
        )
    return FrameSnapshot(t, _freeze_all(resolved), tuple(errors), overlay.misses)
