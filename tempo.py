# -*- coding: utf-8 -*-
########################
# tempo.py
########################
# Purpose:
# - BPM validation for every tempo change request before it reaches the scroll synchronizer.
# - Quick tempo presets (half, three quarters, full, one and a quarter speed).
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - Out of range values are clamped, never rejected. Non-finite values fall back to the default tempo.
# - The upper limit is configurable up to ABSOLUTE_MAX_BPM.
#
########################
# Interfaces:
# Public constants:
# - MIN_BPM = 40.0, MAX_BPM = 200.0, ABSOLUTE_MAX_BPM = 240.0, DEFAULT_BPM = 90.0
# - PRESET_FACTORS = (0.5, 0.75, 1.0, 1.25)
#
# Public dataclasses:
# - BpmLimits(min_bpm: float, max_bpm: float, default_bpm: float)
#   - clamp(bpm: float) -> float
#   - adjust(current: float, delta: float) -> float
#
# Public functions:
# - clamp_bpm(bpm, *, limits=DEFAULT_LIMITS) -> float
# - adjust_bpm(current, delta, *, limits=DEFAULT_LIMITS) -> float
# - preset_bpm(base, factor, *, limits=DEFAULT_LIMITS) -> float
#
# Inputs:
# - Tempo requests from user input or settings.
#
# Outputs:
# - Tempo values safe to feed into auto_scroll and chord_timeline.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math

MIN_BPM = 40.0
MAX_BPM = 200.0
ABSOLUTE_MAX_BPM = 240.0
DEFAULT_BPM = 90.0

PRESET_FACTORS = (0.5, 0.75, 1.0, 1.25)


@dataclass(frozen=True)
class BpmLimits:
    min_bpm: float = MIN_BPM
    max_bpm: float = MAX_BPM
    default_bpm: float = DEFAULT_BPM

    def clamp(self, bpm: float) -> float:
        low = float(self.min_bpm)
        high = min(max(float(self.max_bpm), low), ABSOLUTE_MAX_BPM)
        try:
            value = float(bpm)
        except (TypeError, ValueError):
            value = float("nan")
        if not math.isfinite(value):
            value = float(self.default_bpm)
        return max(low, min(high, value))

    def adjust(self, current: float, delta: float) -> float:
        return self.clamp(float(current) + float(delta))


DEFAULT_LIMITS = BpmLimits()


def clamp_bpm(bpm: float, *, limits: BpmLimits = DEFAULT_LIMITS) -> float:
    return limits.clamp(bpm)


def adjust_bpm(current: float, delta: float, *, limits: BpmLimits = DEFAULT_LIMITS) -> float:
    return limits.adjust(current, delta)


def preset_bpm(base: float, factor: float, *, limits: BpmLimits = DEFAULT_LIMITS) -> float:
    scaled = float(base) * float(factor)
    if not math.isfinite(scaled):
        return limits.clamp(scaled)
    return limits.clamp(math.floor(scaled))


def _run_unit_tests() -> None:
    assert clamp_bpm(20.0) == 40.0
    assert clamp_bpm(500.0) == 200.0
    assert clamp_bpm(float("nan")) == 90.0
    assert adjust_bpm(195.0, 10.0) == 200.0
    assert adjust_bpm(90.0, -5.0) == 85.0

    wide = BpmLimits(max_bpm=240.0)
    assert wide.clamp(230.0) == 230.0
    assert BpmLimits(max_bpm=300.0).clamp(280.0) == 240.0

    assert preset_bpm(90.0, 0.75) == 67.0


if __name__ == "__main__":
    _run_unit_tests()
    print("tempo.py: ok")
