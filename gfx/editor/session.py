from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from gfx.config.schemas import EngineConfig
from gfx.editor.history import HistoryManager
from gfx.editor.transform import TransformController
from gfx.scene.mutations import delete_elements
from gfx.scene.sdk import Template
from gfx.utils.logs import get_logger

log = get_logger("session")


class EditorSession:
    """
    The one place editor state changes.

    Holds the live template, the selection and the undo history. Every
    committed change goes through ``apply`` (or a gesture release), so history
    always matches what the operator sees.
    """

    def __init__(self, template: Template, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.history = HistoryManager.from_settings(self.config.history)
        self.transform = TransformController(self.config.transform)
        self.template = template
        self.selection: List[str] = []
        self.history.push("Initial state", template)

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def apply(self, label: str, fn: Callable[..., Template], *args: Any, now: Optional[float] = None, **kwargs: Any) -> Template:
        """Run a pure mutation against the live template and record it."""
        updated = fn(self.template, *args, **kwargs)
        if updated is self.template:
            return updated
        self.template = updated
        self.history.push(label, updated, now=now)
        self._prune_selection()
        return updated

    def preview(self, template: Template) -> None:
        """Show an uncommitted state (mid-gesture); nothing is recorded."""
        self.template = template

    def commit(self, label: str, template: Template, now: Optional[float] = None, coalesce: bool = True) -> None:
        self.template = template
        self.history.push(label, template, now=now, coalesce=coalesce)
        self._prune_selection()

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.template = snapshot
        self._prune_selection()
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.template = snapshot
        self._prune_selection()
        return True

    # ------------------------------------------------------------------
    # selection
    # ------------------------------------------------------------------

    def select(self, element_ids: Iterable[str], additive: bool = False) -> List[str]:
        index = self.template.element_index()
        picked = [eid for eid in element_ids if eid in index]
        if additive:
            picked = self.selection + [eid for eid in picked if eid not in self.selection]
        self.selection = picked
        return self.selection

    def clear_selection(self) -> None:
        self.selection = []

    def _prune_selection(self) -> None:
        index = self.template.element_index()
        self.selection = [eid for eid in self.selection if eid in index]

    def delete_selected(self) -> bool:
        if not self.selection:
            return False
        ids = list(self.selection)
        self.apply(f"Delete {len(ids)} element(s)", delete_elements, ids)
        self.selection = []
        return True

    # ------------------------------------------------------------------
    # pointer gestures
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, mode: Optional[str] = None) -> None:
        self.transform.begin(x, y, self.selection, self.template, mode)

    def pointer_move(self, x: float, y: float) -> None:
        preview = self.transform.move(x, y)
        if preview is not None:
            self.preview(preview)

    def pointer_up(self, now: Optional[float] = None) -> bool:
        """End the gesture; a real drag becomes exactly one history entry."""
        mode = self.transform.mode
        result = self.transform.release()
        if result is None:
            return False
        self.commit(mode.capitalize(), result, now=now, coalesce=False)
        return True

    def pointer_cancel(self) -> None:
        origin = self.transform.cancel()
        if origin is not None:
            self.template = origin

    def nudge(self, dx: int, dy: int, large: bool = False, now: Optional[float] = None) -> Template:
        if not self.selection:
            return self.template
        return self.apply("Nudge", self.transform.nudge, self.selection, dx, dy, large, now=now)
