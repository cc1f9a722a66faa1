from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class HistorySettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    max_depth: int = Field(50, ge=1, le=10_000)
    # identical-label pushes closer together than this collapse into one entry
    coalesce_window_ms: float = Field(500.0, ge=0, le=60_000)


class TransformSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    # pointer travel (screen px) before a press turns into a drag
    drag_threshold_px: float = Field(3.0, ge=0, le=100)
    snap_to_grid: bool = False
    grid_size: float = Field(10.0, gt=0)
    rotate_deg_per_px: float = Field(0.5, gt=0)
    nudge_px: float = Field(1.0, gt=0)
    nudge_large_px: float = Field(10.0, gt=0)


class PlayoutSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    default_frame_rate: float = Field(30.0, gt=0, le=240)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    level: LogLevel = "INFO"
    log_file: Optional[str] = None


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    history: HistorySettings = HistorySettings()
    transform: TransformSettings = TransformSettings()
    playout: PlayoutSettings = PlayoutSettings()
    logging: LoggingSettings = LoggingSettings()
