"""
Easing functions keyed by identifier.

Named curves mirror the editor's easing dropdown; ``cubic-bezier(x1, y1, x2, y2)``
is accepted as well. Every function maps [0, 1] -> approximately [0, 1]
(elastic and bounce curves may overshoot; callers clamp where it matters).
"""

import math
import re
from functools import lru_cache
from typing import Callable, Dict, Optional

EasingFn = Callable[[float], float]

_BEZIER_RE = re.compile(
    r"^cubic-bezier\(\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*\)$"
)


def _ease_in_out(t: float) -> float:
    return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t


def _elastic_out(t: float) -> float:
    if t in (0.0, 1.0):
        return t
    c4 = (2 * math.pi) / 3
    return math.pow(2, -10 * t) * math.sin((t * 10 - 0.75) * c4) + 1


def _bounce_out(t: float) -> float:
    n1 = 7.5625
    d1 = 2.75
    if t < 1 / d1:
        return n1 * t * t
    if t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    if t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


EASINGS: Dict[str, EasingFn] = {
    "linear": lambda t: t,
    "ease-in": lambda t: t * t,
    "ease-out": lambda t: t * (2 - t),
    "ease-in-out": _ease_in_out,
    "ease": _ease_in_out,
    "cubic-in": lambda t: t * t * t,
    "cubic-out": lambda t: 1 - math.pow(1 - t, 3),
    "cubic-in-out": lambda t: 4 * t * t * t if t < 0.5 else 1 - math.pow(-2 * t + 2, 3) / 2,
    "elastic-out": _elastic_out,
    "bounce-out": _bounce_out,
}


def _cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> EasingFn:
    def sample(a1: float, a2: float, s: float) -> float:
        return 3 * a1 * s * (1 - s) ** 2 + 3 * a2 * s * s * (1 - s) + s ** 3

    def slope(a1: float, a2: float, s: float) -> float:
        return 3 * a1 * (1 - s) ** 2 + 6 * (a2 - a1) * s * (1 - s) + 3 * (1 - a2) * s * s

    def solve(x: float) -> float:
        # Newton first, bisection if the slope flattens out
        s = x
        for _ in range(8):
            err = sample(x1, x2, s) - x
            if abs(err) < 1e-7:
                return s
            d = slope(x1, x2, s)
            if abs(d) < 1e-6:
                break
            s -= err / d
        lo, hi = 0.0, 1.0
        s = x
        for _ in range(50):
            err = sample(x1, x2, s) - x
            if abs(err) < 1e-7:
                break
            if err > 0:
                hi = s
            else:
                lo = s
            s = (lo + hi) / 2
        return s

    def ease(t: float) -> float:
        if t <= 0.0 or t >= 1.0:
            return t
        return sample(y1, y2, solve(t))

    return ease


@lru_cache(maxsize=128)
def _parse_bezier(name: str) -> Optional[EasingFn]:
    m = _BEZIER_RE.match(name.strip())
    if not m:
        return None
    x1, y1, x2, y2 = (float(g) for g in m.groups())
    if not (0.0 <= x1 <= 1.0 and 0.0 <= x2 <= 1.0):
        return None
    return _cubic_bezier(x1, y1, x2, y2)


def is_known_easing(name: str) -> bool:
    return name in EASINGS or _parse_bezier(name) is not None


def get_easing(name: Optional[str]) -> EasingFn:
    """Return the easing function for ``name``; unknown names fall back to linear."""
    if not name:
        return EASINGS["linear"]
    fn = EASINGS.get(name)
    if fn is not None:
        return fn
    return _parse_bezier(name) or EASINGS["linear"]


def apply_easing(t: float, name: Optional[str]) -> float:
    """Ease a progress fraction; the input is clamped to [0, 1] first."""
    return get_easing(name)(max(0.0, min(1.0, t)))
