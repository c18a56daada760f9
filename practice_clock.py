# -*- coding: utf-8 -*-
########################
# practice_clock.py
########################
# Purpose:
# - Audio Clock implementations without Qt: a playback-fed clock and a manual clock.
# - Single source of truth for practice time and tempo inside the engine.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic.
# - Times are milliseconds. Playback time is clamped to non-negative and never runs backwards
#   unless the owner explicitly seeks.
# - Tempo changes pass through tempo.BpmLimits before they are stored.
# - The Qt wall-clock variant lives in practice_driver.ElapsedClock.
#
########################
# Interfaces:
# Public dataclasses:
# - ClockSnapshot(playback_time_ms: float, latency_offset_ms: float, practice_time_ms: float, tempo_bpm: float)
#
# Public classes:
# - class PlaybackClock
#   - now_ms() -> float
#   - current_tempo_bpm() -> float
#   - playback_time_ms() -> float
#   - latency_offset_ms() -> float
#   - set_latency_offset_ms(offset_ms: float) -> None
#   - update_playback_time_ms(playback_time_ms: float) -> None
#   - seek_ms(playback_time_ms: float) -> None
#   - set_tempo_bpm(bpm: float) -> float
#   - snapshot() -> ClockSnapshot
#
# - class ManualClock
#   - now_ms() -> float
#   - current_tempo_bpm() -> float
#   - advance_ms(delta_ms: float) -> float
#   - set_time_ms(time_ms: float) -> None
#   - set_tempo_bpm(bpm: float) -> float
#
# Inputs:
# - Playback position reports from the audio layer, tempo requests from the practice panel.
#
# Outputs:
# - now_ms and current_tempo_bpm used by PracticeEngine and ScrollPracticeController.
#
########################

from __future__ import annotations

from dataclasses import dataclass

import tempo


@dataclass(frozen=True)
class ClockSnapshot:
    playback_time_ms: float
    latency_offset_ms: float
    practice_time_ms: float
    tempo_bpm: float


class PlaybackClock:
    def __init__(self, *, tempo_bpm: float = tempo.DEFAULT_BPM, limits: tempo.BpmLimits = tempo.DEFAULT_LIMITS) -> None:
        self._limits = limits
        self._playback_time_ms = 0.0
        self._latency_offset_ms = 0.0
        self._tempo_bpm = limits.clamp(tempo_bpm)

    def playback_time_ms(self) -> float:
        return float(self._playback_time_ms)

    def latency_offset_ms(self) -> float:
        return float(self._latency_offset_ms)

    def now_ms(self) -> float:
        # Latency offset may be negative, so practice time may be negative near the start.
        return float(self._playback_time_ms) + float(self._latency_offset_ms)

    def current_tempo_bpm(self) -> float:
        return float(self._tempo_bpm)

    def set_latency_offset_ms(self, offset_ms: float) -> None:
        self._latency_offset_ms = float(offset_ms)

    def update_playback_time_ms(self, playback_time_ms: float) -> None:
        value = max(0.0, float(playback_time_ms))
        if value < self._playback_time_ms:
            return
        self._playback_time_ms = value

    def seek_ms(self, playback_time_ms: float) -> None:
        self._playback_time_ms = max(0.0, float(playback_time_ms))

    def set_tempo_bpm(self, bpm: float) -> float:
        self._tempo_bpm = self._limits.clamp(bpm)
        return float(self._tempo_bpm)

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            playback_time_ms=self.playback_time_ms(),
            latency_offset_ms=self.latency_offset_ms(),
            practice_time_ms=self.now_ms(),
            tempo_bpm=self.current_tempo_bpm(),
        )


class ManualClock:
    """Clock advanced by hand. Used by the headless simulation and tests."""

    def __init__(self, *, start_ms: float = 0.0, tempo_bpm: float = tempo.DEFAULT_BPM, limits: tempo.BpmLimits = tempo.DEFAULT_LIMITS) -> None:
        self._limits = limits
        self._time_ms = float(start_ms)
        self._tempo_bpm = limits.clamp(tempo_bpm)

    def now_ms(self) -> float:
        return float(self._time_ms)

    def current_tempo_bpm(self) -> float:
        return float(self._tempo_bpm)

    def advance_ms(self, delta_ms: float) -> float:
        self._time_ms += max(0.0, float(delta_ms))
        return float(self._time_ms)

    def set_time_ms(self, time_ms: float) -> None:
        self._time_ms = float(time_ms)

    def set_tempo_bpm(self, bpm: float) -> float:
        self._tempo_bpm = self._limits.clamp(bpm)
        return float(self._tempo_bpm)


def _run_unit_tests() -> None:
    clock = PlaybackClock()
    clock.set_latency_offset_ms(-200.0)
    clock.update_playback_time_ms(-5000.0)
    assert clock.playback_time_ms() == 0.0
    assert abs(clock.now_ms() - (-200.0)) < 1e-9

    clock.update_playback_time_ms(1500.0)
    clock.update_playback_time_ms(1400.0)
    assert abs(clock.now_ms() - 1300.0) < 1e-9
    clock.seek_ms(100.0)
    assert clock.playback_time_ms() == 100.0

    assert clock.set_tempo_bpm(10.0) == 40.0
    assert clock.snapshot().tempo_bpm == 40.0

    manual = ManualClock()
    assert manual.advance_ms(16.5) == 16.5


if __name__ == "__main__":
    _run_unit_tests()
    print("practice_clock.py: ok")
