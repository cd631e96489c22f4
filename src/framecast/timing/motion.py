"""Declarative frame-driven motion.

These helpers compute animated values directly from ``(frame, fps)``.
There is no engine instance and nothing to load, so any frame is
reproducible on its own.
"""

import math

from pydantic import BaseModel, Field

from framecast.timing.easing import EasingFn, resolve_easing
from framecast.timing.frame_time import TimeUnit, clamp, to_elapsed


class CyclicMotion(BaseModel):
    """Position within a back-and-forth cycle."""

    direction: int = Field(..., description="+1 on the first half-cycle, -1 on the second")
    phase: float = Field(..., ge=0, le=1, description="Linear progress through the half-cycle")
    eased: float = Field(..., description="phase passed through the easing curve")

    def between(self, start: float, end: float) -> float:
        """Interpolate a back-and-forth value between ``start`` and ``end``."""
        origin, target = (start, end) if self.direction > 0 else (end, start)
        return origin + (target - origin) * self.eased


def cyclic_motion(
    frame: int,
    fps: float,
    cycle_sec: float,
    easing: str | EasingFn | None = "power2.inOut",
) -> CyclicMotion:
    """Direction and eased progress of a ``cycle_sec`` long ping-pong cycle."""
    if cycle_sec <= 0:
        raise ValueError(f"cycle_sec must be positive, got {cycle_sec}")
    ease = easing if callable(easing) else resolve_easing(easing)
    time = to_elapsed(frame, max(1.0, fps), unit=TimeUnit.SECONDS)
    half = cycle_sec / 2
    local = math.fmod(time, cycle_sec)
    if local < 0:
        local += cycle_sec
    if local < half:
        direction, phase = 1, local / half
    else:
        direction, phase = -1, (local - half) / half
    phase = clamp(phase, 0.0, 1.0)
    return CyclicMotion(direction=direction, phase=phase, eased=ease(phase))


def interpolate(
    value: float,
    input_range: tuple[float, float],
    output_range: tuple[float, float],
    *,
    clamp_output: bool = False,
    easing: EasingFn | None = None,
) -> float:
    in_min, in_max = input_range
    out_min, out_max = output_range
    if in_max == in_min:
        return out_min
    t = (value - in_min) / (in_max - in_min)
    if clamp_output:
        t = clamp(t, 0.0, 1.0)
    eased = easing(t) if easing else t
    mapped = out_min + (out_max - out_min) * eased
    if clamp_output:
        return clamp(mapped, min(out_min, out_max), max(out_min, out_max))
    return mapped


def frame_progress(
    frame: int,
    start_frame: int = 0,
    duration_frames: int = 30,
    easing: EasingFn | None = None,
    clamp_output: bool = True,
) -> float:
    """Progress of ``frame`` through a ``duration_frames`` long window."""
    raw = (frame - start_frame) / max(1, duration_frames)
    eased = easing(raw) if easing else raw
    if not clamp_output:
        return eased
    return clamp(eased, 0.0, 1.0)


def spring(
    frame: int,
    fps: float,
    *,
    start: float = 0.0,
    end: float = 1.0,
    mass: float = 1.0,
    stiffness: float = 100.0,
    damping: float = 10.0,
) -> float:
    """Closed-form damped spring position at ``frame``."""
    if start == end:
        return end
    mass = max(0.0001, mass)
    stiffness = max(0.0001, stiffness)
    damping = max(0.0, damping)
    t = max(0, frame) / max(1e-6, fps)
    w0 = math.sqrt(stiffness / mass)
    zeta = damping / (2 * math.sqrt(stiffness * mass))
    delta = end - start

    if zeta < 1:
        wd = w0 * math.sqrt(1 - zeta * zeta)
        envelope = math.exp(-zeta * w0 * t)
        coeff = zeta / math.sqrt(1 - zeta * zeta)
        displacement = envelope * (math.cos(wd * t) + coeff * math.sin(wd * t))
    elif zeta == 1:
        displacement = math.exp(-w0 * t) * (1 + w0 * t)
    else:
        root = math.sqrt(zeta * zeta - 1)
        r1 = -w0 * (zeta - root)
        r2 = -w0 * (zeta + root)
        displacement = (r1 * math.exp(r2 * t) - r2 * math.exp(r1 * t)) / (r1 - r2)
    return end - delta * displacement
