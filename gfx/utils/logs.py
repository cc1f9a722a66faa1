# gfx/utils/logs.py
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_ROOT = "gfx"


def get_logger(name: str = _ROOT) -> logging.Logger:
    """
    Return a named logger under the ``gfx`` hierarchy.

    Handlers are attached once, to the ``gfx`` root logger; module loggers
    propagate into it so a single ``configure_logging`` call adjusts all of them.
    """
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        root.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.propagate = False
    if name == _ROOT or name.startswith(_ROOT + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    root = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    root.setLevel(level)
    if log_file and not any(isinstance(h, logging.FileHandler) for h in root.handlers):
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(fh)
    return root
