"""Named easing curves.

Every curve maps ``[0, 1] -> [0, 1]`` and is pure. Names follow two
conventions: camelCase (``easeInOutCubic``) and GSAP-style
(``power2.inOut``); both resolve through ``resolve_easing``.
"""

import logging
import math
from collections.abc import Callable

logger = logging.getLogger(__name__)

EasingFn = Callable[[float], float]


def linear(t: float) -> float:
    return t


def ease_in_quad(t: float) -> float:
    return t * t


def ease_out_quad(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


def ease_in_out_quad(t: float) -> float:
    return 2 * t * t if t < 0.5 else 1 - math.pow(-2 * t + 2, 2) / 2


def ease_in_cubic(t: float) -> float:
    return t * t * t


def ease_out_cubic(t: float) -> float:
    return 1 - math.pow(1 - t, 3)


def ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - math.pow(-2 * t + 2, 3) / 2


def ease_in_sine(t: float) -> float:
    return 1 - math.cos((t * math.pi) / 2)


def ease_out_sine(t: float) -> float:
    return math.sin((t * math.pi) / 2)


def ease_in_out_sine(t: float) -> float:
    return -(math.cos(math.pi * t) - 1) / 2


def _power_in(power: int) -> EasingFn:
    def ease(t: float) -> float:
        return math.pow(t, power + 1)

    return ease


def _power_out(power: int) -> EasingFn:
    def ease(t: float) -> float:
        return 1 - math.pow(1 - t, power + 1)

    return ease


def _power_in_out(power: int) -> EasingFn:
    def ease(t: float) -> float:
        if t < 0.5:
            return math.pow(2 * t, power + 1) / 2
        return 1 - math.pow(2 * (1 - t), power + 1) / 2

    return ease


def cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> EasingFn:
    """CSS-style cubic bezier curve solved for ``t`` by Newton-Raphson, then bisection."""

    def coefficients(p1: float, p2: float) -> tuple[float, float, float]:
        c = 3.0 * p1
        b = 3.0 * (p2 - p1) - c
        a = 1.0 - c - b
        return a, b, c

    ax, bx, cx = coefficients(x1, x2)
    ay, by, cy = coefficients(y1, y2)

    def sample_x(t: float) -> float:
        return ((ax * t + bx) * t + cx) * t

    def sample_y(t: float) -> float:
        return ((ay * t + by) * t + cy) * t

    def slope_x(t: float) -> float:
        return (3.0 * ax * t + 2.0 * bx) * t + cx

    def solve_t(x: float) -> float:
        t = x
        for _ in range(8):
            error = sample_x(t) - x
            if abs(error) < 1e-7:
                return t
            slope = slope_x(t)
            if abs(slope) < 1e-6:
                break
            t -= error / slope
        low, high = 0.0, 1.0
        t = x
        for _ in range(50):
            error = sample_x(t) - x
            if abs(error) < 1e-7:
                break
            if error > 0:
                high = t
            else:
                low = t
            t = (low + high) / 2
        return t

    def ease(t: float) -> float:
        if t <= 0:
            return 0.0
        if t >= 1:
            return 1.0
        return sample_y(solve_t(t))

    return ease


EASINGS: dict[str, EasingFn] = {
    "linear": linear,
    "none": linear,
    "easeInQuad": ease_in_quad,
    "easeOutQuad": ease_out_quad,
    "easeInOutQuad": ease_in_out_quad,
    "easeInCubic": ease_in_cubic,
    "easeOutCubic": ease_out_cubic,
    "easeInOutCubic": ease_in_out_cubic,
    "easeInSine": ease_in_sine,
    "easeOutSine": ease_out_sine,
    "easeInOutSine": ease_in_out_sine,
    "sine.in": ease_in_sine,
    "sine.out": ease_out_sine,
    "sine.inOut": ease_in_out_sine,
    "ease": cubic_bezier(0.25, 0.1, 0.25, 1.0),
    "ease-in": cubic_bezier(0.42, 0.0, 1.0, 1.0),
    "ease-out": cubic_bezier(0.0, 0.0, 0.58, 1.0),
    "ease-in-out": cubic_bezier(0.42, 0.0, 0.58, 1.0),
}

for _power in range(1, 5):
    EASINGS[f"power{_power}.in"] = _power_in(_power)
    EASINGS[f"power{_power}.out"] = _power_out(_power)
    EASINGS[f"power{_power}.inOut"] = _power_in_out(_power)
    EASINGS[f"power{_power}"] = EASINGS[f"power{_power}.out"]


def resolve_easing(name: str | None) -> EasingFn:
    """Look up a named easing curve; unknown names resolve to ``linear``."""
    if name and name in EASINGS:
        return EASINGS[name]
    if name:
        logger.debug("Unknown easing %r, using linear", name)
    return linear
