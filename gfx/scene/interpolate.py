"""
Value interpolation for keyframe tracks.

Numbers lerp, ``rotation`` takes the shortest way round the circle, colors
(hex, rgb/rgba, a handful of names) and unit-suffixed CSS values interpolate
component-wise, and transform function lists interpolate per function.
Anything else switches from one value to the other at the half-way point.
"""

import math
import re
from typing import Dict, List, Optional, Tuple, Union

Value = Union[float, int, str]

NAMED_COLORS = {
    "black": "#000000", "white": "#ffffff", "red": "#ff0000", "green": "#00ff00",
    "blue": "#0000ff", "yellow": "#ffff00", "cyan": "#00ffff", "magenta": "#ff00ff",
    "orange": "#ffa500", "purple": "#800080", "pink": "#ffc0cb", "gray": "#808080",
    "grey": "#808080", "brown": "#a52a2a", "navy": "#000080", "teal": "#008080",
    "lime": "#00ff00", "aqua": "#00ffff", "maroon": "#800000", "olive": "#808000",
    "silver": "#c0c0c0", "fuchsia": "#ff00ff", "transparent": "rgba(0, 0, 0, 0)",
}

_RGB_RE = re.compile(
    r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([\d.]+)\s*)?\)$"
)
_CSS_RE = re.compile(r"^\s*(-?(?:\d+(?:\.\d*)?|\.\d+))([a-z%]*)\s*$", re.IGNORECASE)
_TRANSFORM_FN_RE = re.compile(r"(\w+)\(([^)]*)\)")

# identity arguments for transform functions missing on one side
_TRANSFORM_DEFAULTS = {
    "translateX": (0.0, "px"), "translateY": (0.0, "px"), "translateZ": (0.0, "px"),
    "scale": (1.0, ""), "scaleX": (1.0, ""), "scaleY": (1.0, ""),
    "rotate": (0.0, "deg"), "rotateX": (0.0, "deg"), "rotateY": (0.0, "deg"), "rotateZ": (0.0, "deg"),
    "skewX": (0.0, "deg"), "skewY": (0.0, "deg"),
}

RGBA = Tuple[float, float, float, float]


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _fmt(v: float) -> str:
    v = round(v, 4)
    if v == int(v):
        return str(int(v))
    return repr(v)


def lerp(a: float, b: float, f: float) -> float:
    return a + (b - a) * f


def lerp_angle(a: float, b: float, f: float) -> float:
    """Interpolate degrees along the shorter arc; endpoints are returned untouched."""
    if f <= 0.0:
        return a
    if f >= 1.0:
        return b
    delta = (b - a) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return a + delta * f


def parse_color(value) -> Optional[RGBA]:
    if value is None or not isinstance(value, str):
        return None
    s = value.strip().lower()
    if s in NAMED_COLORS:
        s = NAMED_COLORS[s]
    if s.startswith("#"):
        h = s[1:]
        if len(h) == 3:
            h = "".join(c * 2 for c in h)
        try:
            if len(h) == 6:
                return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), 1.0)
            if len(h) == 8:
                return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16) / 255)
        except ValueError:
            return None
        return None
    m = _RGB_RE.match(s)
    if m:
        alpha = float(m.group(4)) if m.group(4) else 1.0
        return (int(m.group(1)), int(m.group(2)), int(m.group(3)), alpha)
    return None


def format_color(rgba: RGBA) -> str:
    r, g, b, a = rgba
    r, g, b = (int(round(c)) for c in (r, g, b))
    if a >= 1.0:
        return f"rgb({r}, {g}, {b})"
    return f"rgba({r}, {g}, {b}, {a:.3f})"


def interpolate_color(a: str, b: str, f: float) -> str:
    ca, cb = parse_color(a), parse_color(b)
    if ca is None or cb is None:
        return step(a, b, f)
    return format_color(tuple(lerp(x, y, f) for x, y in zip(ca, cb)))


def parse_css_value(value) -> Optional[Tuple[float, str]]:
    """``"12px"`` -> ``(12.0, "px")``; plain numbers get an empty unit."""
    if _is_number(value):
        return float(value), ""
    if not isinstance(value, str):
        return None
    m = _CSS_RE.match(value)
    if not m:
        return None
    return float(m.group(1)), m.group(2)


def parse_transform(value: str) -> Dict[str, List[Tuple[float, str]]]:
    out: Dict[str, List[Tuple[float, str]]] = {}
    for fn, args in _TRANSFORM_FN_RE.findall(value or ""):
        parsed = []
        for arg in args.split(","):
            css = parse_css_value(arg.strip())
            parsed.append(css if css is not None else (0.0, ""))
        out[fn] = parsed
    return out


def interpolate_transform(a: str, b: str, f: float) -> str:
    ta, tb = parse_transform(a), parse_transform(b)
    if not ta and not tb:
        return step(a, b, f)
    parts = []
    for fn in list(ta) + [name for name in tb if name not in ta]:
        default = [_TRANSFORM_DEFAULTS.get(fn, (0.0, ""))]
        from_args = ta.get(fn) or default
        to_args = tb.get(fn) or default
        args = []
        for i, (va, ua) in enumerate(from_args):
            vb, ub = to_args[i] if i < len(to_args) else (va, ua)
            args.append(f"{_fmt(lerp(va, vb, f))}{ua or ub}")
        parts.append(f"{fn}({', '.join(args)})")
    return " ".join(parts)


def step(a: Value, b: Value, f: float) -> Value:
    return b if f >= 0.5 else a


def _looks_like_transform(v) -> bool:
    return isinstance(v, str) and bool(_TRANSFORM_FN_RE.search(v)) and parse_color(v) is None


def interpolate_value(prop: str, a: Value, b: Value, f: float) -> Value:
    """Blend two keyframe values of property ``prop`` at eased fraction ``f``."""
    if f <= 0.0:
        return a
    if f >= 1.0:
        return b
    if _is_number(a) and _is_number(b):
        if prop == "rotation":
            return lerp_angle(float(a), float(b), f)
        return lerp(float(a), float(b), f)
    if prop == "transform" or (_looks_like_transform(a) and _looks_like_transform(b)):
        return interpolate_transform(str(a), str(b), f)
    if parse_color(a) is not None and parse_color(b) is not None:
        return interpolate_color(a, b, f)
    ca, cb = parse_css_value(a), parse_css_value(b)
    if ca is not None and cb is not None and (ca[1] == cb[1] or not ca[1] or not cb[1]):
        value = lerp(ca[0], cb[0], f)
        unit = ca[1] or cb[1]
        if not math.isfinite(value):
            return step(a, b, f)
        return f"{_fmt(value)}{unit}"
    return step(a, b, f)
