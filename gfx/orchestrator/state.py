from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from gfx.scene.bindings import BindingOverlay
from gfx.scene.phase_state import ElementPhase, PhaseState, PhaseStatus
from gfx.scene.sdk import Phase, Template, walk_elements
from gfx.scene.timeline import track_values
from gfx.utils.logs import get_logger

log = get_logger("state")


def _log_transition(before: ElementPhase, after: ElementPhase) -> None:
    if before.status != after.status:
        log.info(
            f"[{after.element_id}] {before.status.value} -> {after.status.value} @ {after.started_at:.1f}ms"
        )


def advance_element(template: Template, ep: ElementPhase, now: float) -> ElementPhase:
    """
    Apply every automatic transition due by ``now``.

    Phase boundaries are computed from the animation spans, not from the tick
    that noticed them, so a late tick never shifts the following phase.
    """
    while True:
        if ep.status == PhaseStatus.ENTERING:
            entrance = template.animation_for(ep.element_id, Phase.IN)
            end = ep.started_at + (entrance.span if entrance else 0.0)
            if now < end:
                return ep
            ep = ep.with_status(PhaseStatus.LOOPING, end, loop_count=0)
            continue

        if ep.status == PhaseStatus.LOOPING:
            loop = template.animation_for(ep.element_id, Phase.LOOP)
            if loop is None or loop.duration <= 0:
                return ep
            # the delay runs once; later cycles repeat only the duration
            elapsed = now - ep.started_at - loop.delay
            if elapsed < loop.duration:
                return ep
            cycles = int(elapsed // loop.duration)
            return replace(
                ep,
                started_at=ep.started_at + cycles * loop.duration,
                loop_count=ep.loop_count + cycles,
            )

        if ep.status == PhaseStatus.EXITING:
            exit_anim = template.animation_for(ep.element_id, Phase.OUT)
            end = ep.started_at + (exit_anim.span if exit_anim else 0.0)
            if now < end:
                return ep
            return ElementPhase(ep.element_id, PhaseStatus.IDLE, end)

        return ep


def _targets(template: Template, element_ids: Optional[Iterable[str]]) -> List[str]:
    known = [el.id for el, _parent, _depth in walk_elements(template.elements)]
    if element_ids is None:
        return known
    ids = list(element_ids)
    unknown = sorted(set(ids) - set(known))
    if unknown:
        raise ValueError(f"unknown element id(s): {', '.join(unknown)}")
    return ids


def activate_phases(
    template: Template, state: PhaseState, now: float, element_ids: Optional[Iterable[str]] = None
) -> PhaseState:
    changed: Dict[str, ElementPhase] = {}
    for eid in _targets(template, element_ids):
        before = state.get(eid)
        if before.status in (PhaseStatus.ENTERING, PhaseStatus.LOOPING):
            continue
        # an element caught mid-exit restarts its entrance
        after = advance_element(template, ElementPhase(eid, PhaseStatus.ENTERING, now), now)
        _log_transition(before, after)
        changed[eid] = after
    return state.with_elements(changed, now) if changed else state


def advance_phases(template: Template, state: PhaseState, now: float) -> PhaseState:
    changed: Dict[str, ElementPhase] = {}
    for eid, before in state.elements.items():
        after = advance_element(template, before, now)
        if after != before:
            _log_transition(before, after)
            changed[eid] = after
    return state.with_elements(changed, now) if changed else state


def deactivate_phases(
    template: Template,
    state: PhaseState,
    now: float,
    element_ids: Optional[Iterable[str]] = None,
    overlay: Optional[BindingOverlay] = None,
) -> PhaseState:
    index = template.element_index()
    changed: Dict[str, ElementPhase] = {}
    for eid in _targets(template, element_ids):
        before = advance_element(template, state.get(eid), now)
        if before.status not in (PhaseStatus.ENTERING, PhaseStatus.LOOPING):
            if before != state.get(eid):
                changed[eid] = before
            continue
        # the exit starts from whatever is on screen right now
        snapshot = track_values(template, index[eid], before, now, overlay)
        after = advance_element(
            template, ElementPhase(eid, PhaseStatus.EXITING, now, start_values=snapshot), now
        )
        _log_transition(before, after)
        changed[eid] = after
    return state.with_elements(changed, now) if changed else state


class PhaseMachine:
    """
    Holds the current ``PhaseState`` for one template and swaps in a new
    snapshot on every transition. Elements move independently:
    idle -> entering -> looping -> exiting -> idle.
    """

    def __init__(self, template: Template, state: Optional[PhaseState] = None):
        self.template = template
        self.state = state or PhaseState.idle(el.id for el, _p, _d in walk_elements(template.elements))

    def activate(self, now: float, element_ids: Optional[Iterable[str]] = None) -> PhaseState:
        self.state = activate_phases(self.template, self.state, now, element_ids)
        return self.state

    def advance(self, now: float) -> PhaseState:
        self.state = advance_phases(self.template, self.state, now)
        return self.state

    def deactivate(
        self,
        now: float,
        element_ids: Optional[Iterable[str]] = None,
        overlay: Optional[BindingOverlay] = None,
    ) -> PhaseState:
        self.state = deactivate_phases(self.template, self.state, now, element_ids, overlay)
        return self.state

    def set_template(self, template: Template) -> None:
        """Swap the template, keeping phases of elements that still exist."""
        ids = [el.id for el, _p, _d in walk_elements(template.elements)]
        kept = {eid: self.state.get(eid) for eid in ids}
        self.template = template
        self.state = PhaseState(kept, updated_at=self.state.updated_at)

    def status(self, element_id: str) -> PhaseStatus:
        return self.state.status_of(element_id)

    @property
    def on_air(self) -> bool:
        return self.state.active
