"""
History Manager for Undo/Redo

Keeps whole immutable snapshots (a Template or Project value) in one bounded
timeline with a cursor:
- push() drops anything ahead of the cursor, then appends
- undo()/redo() move the cursor and hand back the snapshot to restore
- the oldest entries fall off once the depth limit is reached

Restoring a whole snapshot means a cascading edit (say, deleting an element
together with its animations and bindings) comes back in one piece.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Optional

from gfx.config.schemas import HistorySettings
from gfx.utils.logs import get_logger

log = get_logger("history")


@dataclass
class HistoryEntry:
    label: str
    snapshot: Any
    timestamp: float  # ms


class HistoryManager:
    """Bounded undo/redo over immutable snapshots."""

    def __init__(self, max_depth: int = 50, coalesce_window_ms: float = 500.0):
        """
        Args:
            max_depth: Maximum number of undo steps kept; older ones are evicted
            coalesce_window_ms: Pushes with the label of the current entry that
                arrive within this window replace it instead of adding a step
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self.max_depth = max_depth
        self.coalesce_window_ms = coalesce_window_ms
        # the entry under the cursor is the current state, so keep one extra
        self.entries: Deque[HistoryEntry] = deque(maxlen=max_depth + 1)
        self.index = -1

    @classmethod
    def from_settings(cls, settings: HistorySettings) -> "HistoryManager":
        return cls(settings.max_depth, settings.coalesce_window_ms)

    @staticmethod
    def _now() -> float:
        return time.monotonic() * 1000.0

    def push(self, label: str, snapshot: Any, now: Optional[float] = None, coalesce: bool = True) -> None:
        """
        Record ``snapshot`` as the new current state.

        With ``coalesce=False`` the push always adds its own entry, as each
        finished pointer gesture does.
        """
        now = self._now() if now is None else now
        at_head = self.index == len(self.entries) - 1
        while len(self.entries) > self.index + 1:
            self.entries.pop()

        current = self.entries[self.index] if self.index >= 0 else None
        if (
            coalesce
            and current is not None
            and at_head
            and self.index > 0
            and current.label == label
            and now - current.timestamp <= self.coalesce_window_ms
        ):
            current.snapshot = snapshot
            current.timestamp = now
            return

        evicting = len(self.entries) == self.entries.maxlen
        self.entries.append(HistoryEntry(label, snapshot, now))
        self.index = len(self.entries) - 1
        if evicting:
            log.debug(f"History full ({self.max_depth}); dropped oldest entry")

    def undo(self) -> Optional[Any]:
        """Step back; returns the snapshot to restore, or None if nothing to undo."""
        if not self.can_undo():
            return None
        label = self.entries[self.index].label
        self.index -= 1
        log.debug(f"Undo: {label}")
        return self.entries[self.index].snapshot

    def redo(self) -> Optional[Any]:
        """Step forward; returns the snapshot to restore, or None if nothing to redo."""
        if not self.can_redo():
            return None
        self.index += 1
        log.debug(f"Redo: {self.entries[self.index].label}")
        return self.entries[self.index].snapshot

    def can_undo(self) -> bool:
        return self.index > 0

    def can_redo(self) -> bool:
        return self.index < len(self.entries) - 1

    @property
    def current(self) -> Optional[Any]:
        return self.entries[self.index].snapshot if self.index >= 0 else None

    def clear(self, snapshot: Any = None, label: str = "Initial state") -> None:
        """Forget everything; optionally start over from ``snapshot``."""
        self.entries.clear()
        self.index = -1
        if snapshot is not None:
            self.push(label, snapshot)

    def labels(self) -> List[str]:
        return [e.label for e in self.entries]

    def get_stats(self) -> dict:
        """
        Get statistics about history usage

        Returns:
            dict: undo/redo counts, the depth limit and whether it is reached
        """
        undo_count = max(self.index, 0)
        return {
            "undo_count": undo_count,
            "redo_count": len(self.entries) - 1 - self.index if self.entries else 0,
            "limit": self.max_depth,
            "undo_full": undo_count >= self.max_depth,
        }
