# -*- coding: utf-8 -*-
########################
# note_simulator.py
########################
# Purpose:
# - Own the active falling-note set and advance it one frame at a time.
# - Report notes that fell past the hit zone unhit as MissEvent values.
# - Drop resolved notes once they leave the visible container.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Every note moves before any note is classified, so misses are judged on updated positions.
# - Misses are returned, not signalled. The caller folds them into the session.
# - Active set order is insertion order. HitDetector tie-breaks rely on it.
#
########################
# Interfaces:
# Public constants:
# - MISS_THRESHOLD_PX = 50.0
# - OFFSCREEN_MARGIN_PX = 100.0
#
# Public dataclasses:
# - SimulationStep(notes: list[FallingNote], misses: list[MissEvent], collected_count: int)
#
# Public functions:
# - delta_per_frame(geometry: PlayfieldGeometry) -> float
# - advance_notes(notes, geometry, *, now_ms: float) -> SimulationStep
#
# Public classes:
# - class NoteSimulator
#   - __init__(geometry: PlayfieldGeometry)
#   - geometry() -> PlayfieldGeometry
#   - set_geometry(geometry: PlayfieldGeometry) -> None
#   - active_notes() -> list[FallingNote]
#   - insert(notes: Iterable[FallingNote]) -> None
#   - advance(now_ms: float) -> list[MissEvent]
#   - clear() -> None
#
# Inputs:
# - FallingNote instances from the spawn scheduler, geometry, clock time.
#
# Outputs:
# - The surviving note list and the misses produced this frame.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import practice_models

MISS_THRESHOLD_PX = 50.0
OFFSCREEN_MARGIN_PX = 100.0


@dataclass(frozen=True)
class SimulationStep:
    notes: List[practice_models.FallingNote]
    misses: List[practice_models.MissEvent]
    collected_count: int


def delta_per_frame(geometry: practice_models.PlayfieldGeometry) -> float:
    frames_per_second = float(geometry.frames_per_second)
    if frames_per_second <= 0.0:
        return 0.0
    return float(geometry.fall_speed_px_per_sec) / frames_per_second


def advance_notes(
    notes: Iterable[practice_models.FallingNote],
    geometry: practice_models.PlayfieldGeometry,
    *,
    now_ms: float,
) -> SimulationStep:
    moving = list(notes)
    step = delta_per_frame(geometry)
    for note in moving:
        note.y = float(note.y) + step

    miss_line = float(geometry.hit_zone_y) + MISS_THRESHOLD_PX
    offscreen_line = float(geometry.container_height) + OFFSCREEN_MARGIN_PX

    surviving: List[practice_models.FallingNote] = []
    misses: List[practice_models.MissEvent] = []
    collected_count = 0

    for note in moving:
        if not note.hit and note.y > miss_line:
            note.quality = practice_models.HitQuality.MISS
            misses.append(
                practice_models.MissEvent(
                    chord=str(note.chord),
                    target_timestamp_ms=float(note.target_timestamp_ms),
                    time_ms=float(now_ms),
                )
            )
            continue
        if note.y > offscreen_line:
            collected_count += 1
            continue
        surviving.append(note)

    return SimulationStep(notes=surviving, misses=misses, collected_count=collected_count)


class NoteSimulator:
    def __init__(self, geometry: practice_models.PlayfieldGeometry) -> None:
        self._geometry = geometry
        self._notes: List[practice_models.FallingNote] = []

    def geometry(self) -> practice_models.PlayfieldGeometry:
        return self._geometry

    def set_geometry(self, geometry: practice_models.PlayfieldGeometry) -> None:
        self._geometry = geometry

    def active_notes(self) -> List[practice_models.FallingNote]:
        return list(self._notes)

    def insert(self, notes: Iterable[practice_models.FallingNote]) -> None:
        self._notes.extend(notes)

    def advance(self, now_ms: float) -> List[practice_models.MissEvent]:
        step = advance_notes(self._notes, self._geometry, now_ms=now_ms)
        self._notes = step.notes
        return step.misses

    def clear(self) -> None:
        self._notes.clear()


def _run_unit_tests() -> None:
    geometry = practice_models.PlayfieldGeometry(
        hit_zone_y=100.0,
        spawn_y=0.0,
        fall_speed_px_per_sec=60.0,
        container_height=200.0,
    )
    simulator = NoteSimulator(geometry)
    pending = practice_models.FallingNote(chord="G", color="#fff", y=150.0, target_timestamp_ms=0.0)
    resolved = practice_models.FallingNote(chord="C", color="#fff", y=299.0, target_timestamp_ms=10.0, hit=True)
    simulator.insert([pending, resolved])

    misses = simulator.advance(now_ms=500.0)
    assert [m.chord for m in misses] == ["G"]
    assert simulator.active_notes() == [resolved]

    misses = simulator.advance(now_ms=516.0)
    assert misses == []
    assert simulator.active_notes() == []


if __name__ == "__main__":
    _run_unit_tests()
    print("note_simulator.py: ok")
