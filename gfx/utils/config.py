# gfx/utils/config.py
import os
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml
except Exception as e:  # pragma: no cover
    raise RuntimeError("PyYAML is required: pip install pyyaml") from e

from dotenv import load_dotenv
from pydantic import ValidationError

from gfx.config.schemas import EngineConfig
from gfx.utils.logs import get_logger

log = get_logger("config")

DEFAULT_CONFIG_PATH = "conf/engine.yaml"

# env var -> (section, key, caster)
_ENV_KEYS = {
    "GFX_HISTORY_MAX_DEPTH": ("history", "max_depth", int),
    "GFX_HISTORY_COALESCE_MS": ("history", "coalesce_window_ms", float),
    "GFX_DRAG_THRESHOLD_PX": ("transform", "drag_threshold_px", float),
    "GFX_SNAP_TO_GRID": ("transform", "snap_to_grid", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "GFX_GRID_SIZE": ("transform", "grid_size", float),
    "GFX_FRAME_RATE": ("playout", "default_frame_rate", float),
    "GFX_LOG_LEVEL": ("logging", "level", lambda v: v.strip().upper()),
}


def _read_yaml(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"YAML at {path} must be a mapping/object.")
        return data


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overlay() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for var, (section, key, cast) in _ENV_KEYS.items():
        raw = os.getenv(var)
        if not raw:
            continue
        try:
            out.setdefault(section, {})[key] = cast(raw)
        except ValueError:
            log.warning(f"Ignoring {var}={raw!r}: not a valid {key}")
    return out


def load_engine_config(
    path: Optional[str] = None,
    *,
    overrides: Optional[Dict[str, Any]] = None,
    use_env: bool = True,
) -> EngineConfig:
    """
    Load and validate the engine configuration with strict precedence.

    Precedence (low -> high):
      1) Defaults baked into the models
      2) conf/engine.yaml (or ``path``)
      3) Environment variables (GFX_*, .env honoured)
      4) Explicit overrides

    Raises:
        ValueError: If the YAML file is not a mapping
        pydantic.ValidationError: If a value is out of range
    """
    merged = _read_yaml(path or os.getenv("GFX_CONFIG", DEFAULT_CONFIG_PATH))
    if use_env:
        load_dotenv(os.path.join(os.getcwd(), ".env"))
        merged = _deep_merge(merged, _env_overlay())
    if overrides:
        merged = _deep_merge(merged, overrides)

    try:
        return EngineConfig(**merged)
    except ValidationError as e:
        log.error(f"Config validation failed: {e}")
        raise
