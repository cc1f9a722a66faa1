"""
Immutable phase snapshots shared by the phase machine and the evaluator.

A ``PhaseState`` is replaced wholesale on every transition, so a reader holding
one never sees a half-applied change.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from .sdk import Phase


class PhaseStatus(str, Enum):
    IDLE = "idle"
    ENTERING = "entering"
    LOOPING = "looping"
    EXITING = "exiting"

    @property
    def phase(self) -> Optional[Phase]:
        """Animation phase that drives this status (None when idle)."""
        return _STATUS_PHASE.get(self)


_STATUS_PHASE = {
    PhaseStatus.ENTERING: Phase.IN,
    PhaseStatus.LOOPING: Phase.LOOP,
    PhaseStatus.EXITING: Phase.OUT,
}


@dataclass(frozen=True)
class ElementPhase:
    element_id: str
    status: PhaseStatus = PhaseStatus.IDLE
    started_at: float = 0.0  # clock ms at which the current phase began
    start_values: Mapping[str, Any] = field(default_factory=dict)
    loop_count: int = 0

    def local_time(self, now: float) -> float:
        return max(0.0, now - self.started_at)

    def with_status(self, status: PhaseStatus, started_at: float, **changes: Any) -> "ElementPhase":
        return replace(self, status=status, started_at=started_at, **changes)


@dataclass(frozen=True)
class PhaseState:
    elements: Mapping[str, ElementPhase] = field(default_factory=dict)
    updated_at: float = 0.0

    def __post_init__(self):
        if not isinstance(self.elements, MappingProxyType):
            object.__setattr__(self, "elements", MappingProxyType(dict(self.elements)))

    @classmethod
    def idle(cls, element_ids: Iterable[str]) -> "PhaseState":
        return cls({eid: ElementPhase(eid) for eid in element_ids})

    def get(self, element_id: str) -> ElementPhase:
        return self.elements.get(element_id) or ElementPhase(element_id)

    def status_of(self, element_id: str) -> PhaseStatus:
        return self.get(element_id).status

    def with_elements(self, changed: Dict[str, ElementPhase], now: float) -> "PhaseState":
        merged = dict(self.elements)
        merged.update(changed)
        return PhaseState(merged, updated_at=now)

    @property
    def active(self) -> bool:
        return any(ep.status != PhaseStatus.IDLE for ep in self.elements.values())
