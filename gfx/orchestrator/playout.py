from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional

from gfx.config.schemas import EngineConfig
from gfx.orchestrator.state import PhaseMachine
from gfx.scene.bindings import EMPTY_OVERLAY, BindingOverlay, RecordSet, resolve_template_bindings
from gfx.scene.phase_state import PhaseState
from gfx.scene.sdk import Template
from gfx.scene.timecode import frames_to_ms, ms_to_frames
from gfx.scene.timeline import FrameSnapshot, evaluate
from gfx.utils.logs import get_logger

log = get_logger("playout")


class Playout:
    """
    Drives one on-air template from an external clock.

    Each ``frame(now)`` advances the phase machine, re-resolves bindings
    against the latest record sets (carrying last-known values over misses)
    and evaluates the template. Times are clock milliseconds.
    """

    def __init__(
        self,
        template: Template,
        frame_rate: Optional[float] = None,
        *,
        config: Optional[EngineConfig] = None,
        selection: Optional[Mapping[str, int]] = None,
        origin: float = 0.0,
    ):
        config = config or EngineConfig()
        self.frame_rate = frame_rate or config.playout.default_frame_rate
        if self.frame_rate <= 0:
            raise ValueError(f"frame rate must be positive, got {self.frame_rate}")
        self.machine = PhaseMachine(template)
        self.records: Dict[str, RecordSet] = {}
        self.selection: Dict[str, int] = dict(selection or {})
        self.overlay: BindingOverlay = EMPTY_OVERLAY
        self.origin = origin

    @property
    def template(self) -> Template:
        return self.machine.template

    @property
    def state(self) -> PhaseState:
        return self.machine.state

    def set_template(self, template: Template) -> None:
        """Swap in an edited template without taking surviving elements off air."""
        self.machine.set_template(template)
        log.info(f"Template replaced: {template.id}")

    def push_data(self, record_set: RecordSet) -> bool:
        """Store a fetched record set; older deliveries for the same source are ignored."""
        current = self.records.get(record_set.source)
        if current is not None and record_set.fetched_at < current.fetched_at:
            log.warning(
                f"Ignoring stale data for '{record_set.source}' "
                f"(fetched_at {record_set.fetched_at} < {current.fetched_at})"
            )
            return False
        self.records[record_set.source] = record_set
        return True

    def select(self, source: str, index: int) -> None:
        if index < 0:
            raise ValueError(f"record index must be >= 0, got {index}")
        self.selection[source] = index

    def activate(self, now: float, element_ids: Optional[Iterable[str]] = None) -> PhaseState:
        return self.machine.activate(now, element_ids)

    def deactivate(self, now: float, element_ids: Optional[Iterable[str]] = None) -> PhaseState:
        return self.machine.deactivate(now, element_ids, self._resolve())

    def _resolve(self) -> BindingOverlay:
        self.overlay = resolve_template_bindings(self.template, self.records, self.selection, self.overlay)
        return self.overlay

    def frame(self, now: float) -> FrameSnapshot:
        state = self.machine.advance(now)
        return evaluate(self.template, state, now, self._resolve())

    def frame_at(self, index: int) -> FrameSnapshot:
        """Sample frame ``index`` counted from ``origin`` at the playout frame rate."""
        return self.frame(self.origin + frames_to_ms(index, self.frame_rate))

    def frame_index(self, now: float) -> int:
        return ms_to_frames(now - self.origin, self.frame_rate)
