"""Frame/millisecond conversion and timeline labels."""

import math

from .sdk import FPS


def frame_duration(fps: float = FPS) -> float:
    if fps <= 0:
        raise ValueError(f"frame rate must be positive, got {fps}")
    return 1000.0 / fps


def ms_to_frames(ms: float, fps: float = FPS) -> int:
    """Nearest frame index for a time in milliseconds."""
    return int(math.floor(ms / frame_duration(fps) + 0.5))


def frames_to_ms(frames: int, fps: float = FPS) -> float:
    return frames * frame_duration(fps)


def format_time(ms: float, show_frames: bool = False, fps: float = FPS) -> str:
    """
    Label a timeline position.

    ``show_frames`` gives ``MM:SS:FF`` (frames within the second); otherwise
    ``S.ds`` below a minute and ``M:SS.d`` above it.
    """
    ms = max(0.0, ms)
    minutes = int(ms // 60000)
    seconds = int((ms // 1000) % 60)
    if show_frames:
        frames = int((ms % 1000) // frame_duration(fps))
        return f"{minutes:02d}:{seconds:02d}:{frames:02d}"
    tenths = int((ms % 1000) // 100)
    if minutes > 0:
        return f"{minutes}:{seconds:02d}.{tenths}"
    return f"{seconds}.{tenths}s"
