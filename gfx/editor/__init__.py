"""
Broadcast Graphics Engine - Editor Package

Undo/redo history, pointer transforms and the session that owns editor state.
"""

from .history import HistoryEntry, HistoryManager
from .session import EditorSession
from .transform import MODES, TransformController

__version__ = "0.1.0"
__all__ = [
    "HistoryEntry",
    "HistoryManager",
    "TransformController",
    "MODES",
    "EditorSession",
]
