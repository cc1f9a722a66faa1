import math
from typing import Iterable, List, Optional, Tuple

from gfx.config.schemas import TransformSettings
from gfx.scene.mutations import move_elements, update_elements
from gfx.scene.sdk import Template
from gfx.utils.logs import get_logger

log = get_logger("transform")

MODES = ("move", "resize", "rotate")


class TransformController:
    """
    Turns one pointer gesture into geometry changes for the selected elements.

    Deltas are always measured from the press point against the template as it
    was at press time, so a long drag never accumulates rounding drift.
    Screen deltas are divided by ``scale_factor`` (canvas zoom).
    """

    def __init__(self, settings: Optional[TransformSettings] = None, scale_factor: float = 1.0, mode: str = "move"):
        self.settings = settings or TransformSettings()
        self.scale_factor = scale_factor
        self.mode = mode
        self._origin: Optional[Template] = None
        self._start: Optional[Tuple[float, float]] = None
        self._ids: List[str] = []
        self._preview: Optional[Template] = None
        self.dragging = False

    @property
    def scale_factor(self) -> float:
        return self._scale_factor

    @scale_factor.setter
    def scale_factor(self, value: float) -> None:
        if not value > 0:
            raise ValueError(f"scale_factor must be positive, got {value}")
        self._scale_factor = float(value)

    @property
    def mode(self) -> str:
        return self._mode

    @mode.setter
    def mode(self, value: str) -> None:
        if value not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {value!r}")
        self._mode = value

    @property
    def active(self) -> bool:
        return self._start is not None

    def begin(self, x: float, y: float, element_ids: Iterable[str], template: Template, mode: Optional[str] = None) -> None:
        if mode is not None:
            self.mode = mode
        self._origin = template
        self._start = (x, y)
        index = template.element_index()
        self._ids = [eid for eid in element_ids if eid in index]
        self._preview = None
        self.dragging = False

    def _snap(self, value: float) -> float:
        if not self.settings.snap_to_grid:
            return value
        grid = self.settings.grid_size
        return round(value / grid) * grid

    def _movable(self) -> List[str]:
        index = self._origin.element_index()
        return [eid for eid in self._ids if not index[eid].locked]

    def move(self, x: float, y: float) -> Optional[Template]:
        """Return the template as it should look mid-drag, or None below the drag threshold."""
        if not self.active or not self._ids:
            return None
        sx, sy = x - self._start[0], y - self._start[1]
        if not self.dragging:
            if math.hypot(sx, sy) < self.settings.drag_threshold_px:
                return None
            self.dragging = True
            log.debug(f"{self.mode} started for {len(self._ids)} element(s)")

        movable = self._movable()
        if not movable:
            return self._origin
        index = self._origin.element_index()
        dx, dy = sx / self.scale_factor, sy / self.scale_factor

        if self.mode == "move":
            # snap the primary element; everyone else follows by the same delta
            primary = index[movable[0]]
            dx = self._snap(primary.position_x + dx) - primary.position_x
            dy = self._snap(primary.position_y + dy) - primary.position_y
            self._preview = move_elements(self._origin, movable, dx, dy)
        elif self.mode == "resize":
            changes = {
                eid: {
                    "width": max(0.0, self._snap(index[eid].width + dx)),
                    "height": max(0.0, self._snap(index[eid].height + dy)),
                }
                for eid in movable
            }
            self._preview = update_elements(self._origin, changes)
        else:
            turn = sx * self.settings.rotate_deg_per_px
            changes = {eid: {"rotation": index[eid].rotation + turn} for eid in movable}
            self._preview = update_elements(self._origin, changes)
        return self._preview

    def release(self) -> Optional[Template]:
        """Finish the gesture; returns the template to commit, or None if it never became a drag."""
        result = self._preview if self.dragging else None
        self._reset()
        return result

    def cancel(self) -> Optional[Template]:
        """Abort the gesture; returns the template as it was at press time."""
        origin = self._origin
        self._reset()
        return origin

    def _reset(self) -> None:
        self._origin = None
        self._start = None
        self._ids = []
        self._preview = None
        self.dragging = False

    def nudge(self, template: Template, element_ids: Iterable[str], dx: int, dy: int, large: bool = False) -> Template:
        """Arrow-key move: ``dx``/``dy`` are step counts in canvas units."""
        step = self.settings.nudge_large_px if large else self.settings.nudge_px
        return move_elements(template, list(element_ids), dx * step, dy * step)
