# -*- coding: utf-8 -*-
########################
# spawn_scheduler.py
########################
# Purpose:
# - Decide when a scheduled chord materializes as a falling note.
# - A note spawns one travel time ahead of its scheduled time so it reaches the hit zone on the beat.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Spawn window is a fixed 50 ms so irregular tick cadence neither skips nor doubles a spawn.
# - Duplicate guard: an existing note within 10 ms of the scheduled time blocks the spawn.
# - Returns new notes only. The caller owns insertion into the active set.
#
########################
# Interfaces:
# Public constants:
# - SPAWN_WINDOW_MS = 50.0
# - DUPLICATE_THRESHOLD_MS = 10.0
#
# Public functions:
# - travel_time_ms(geometry: PlayfieldGeometry) -> float
# - spawn_time_ms(item: ChordSequenceItem, geometry: PlayfieldGeometry) -> float
# - should_spawn(item, now_ms, geometry) -> bool
# - is_already_spawned(existing_notes, timestamp_ms) -> bool
# - create_falling_note(item, spawn_y) -> FallingNote
# - spawn_note(item, now_ms, geometry, existing_notes) -> Optional[FallingNote]
# - spawn_due_notes(sequence, now_ms, geometry, existing_notes) -> list[FallingNote]
#
# Inputs:
# - ChordSequenceItem values, the current clock time in ms, and playfield geometry.
#
# Outputs:
# - FallingNote instances positioned at spawn_y.
#
########################

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import chord_timeline
import practice_models

SPAWN_WINDOW_MS = 50.0
DUPLICATE_THRESHOLD_MS = 10.0


def travel_time_ms(geometry: practice_models.PlayfieldGeometry) -> float:
    fall_speed = float(geometry.fall_speed_px_per_sec)
    if fall_speed <= 0.0:
        return float("inf")
    return (float(geometry.hit_zone_y) - float(geometry.spawn_y)) / fall_speed * 1000.0


def spawn_time_ms(item: practice_models.ChordSequenceItem, geometry: practice_models.PlayfieldGeometry) -> float:
    return float(item.scheduled_time_ms) - travel_time_ms(geometry)


def should_spawn(
    item: practice_models.ChordSequenceItem,
    now_ms: float,
    geometry: practice_models.PlayfieldGeometry,
) -> bool:
    start = spawn_time_ms(item, geometry)
    now = float(now_ms)
    return start <= now < start + SPAWN_WINDOW_MS


def is_already_spawned(existing_notes: Iterable[practice_models.FallingNote], timestamp_ms: float) -> bool:
    target = float(timestamp_ms)
    return any(abs(float(note.target_timestamp_ms) - target) < DUPLICATE_THRESHOLD_MS for note in existing_notes)


def create_falling_note(item: practice_models.ChordSequenceItem, spawn_y: float) -> practice_models.FallingNote:
    return practice_models.FallingNote(
        chord=str(item.chord),
        color=chord_timeline.chord_color(item.chord),
        y=float(spawn_y),
        target_timestamp_ms=float(item.scheduled_time_ms),
        hit=False,
    )


def spawn_note(
    item: practice_models.ChordSequenceItem,
    now_ms: float,
    geometry: practice_models.PlayfieldGeometry,
    existing_notes: Sequence[practice_models.FallingNote],
) -> Optional[practice_models.FallingNote]:
    if not should_spawn(item, now_ms, geometry):
        return None
    if is_already_spawned(existing_notes, item.scheduled_time_ms):
        return None
    return create_falling_note(item, geometry.spawn_y)


def spawn_due_notes(
    sequence: Iterable[practice_models.ChordSequenceItem],
    now_ms: float,
    geometry: practice_models.PlayfieldGeometry,
    existing_notes: Sequence[practice_models.FallingNote],
) -> List[practice_models.FallingNote]:
    # Dedup covers notes spawned earlier in this same call.
    known: List[practice_models.FallingNote] = list(existing_notes)
    spawned: List[practice_models.FallingNote] = []
    for item in sequence:
        note = spawn_note(item, now_ms, geometry, known)
        if note is None:
            continue
        known.append(note)
        spawned.append(note)
    return spawned


def _run_unit_tests() -> None:
    geometry = practice_models.PlayfieldGeometry(
        hit_zone_y=480.0,
        spawn_y=-100.0,
        fall_speed_px_per_sec=200.0,
        container_height=600.0,
    )
    assert abs(travel_time_ms(geometry) - 2900.0) < 1e-9

    item = practice_models.ChordSequenceItem(chord="Am", scheduled_time_ms=4000.0)
    assert not should_spawn(item, 1099.0, geometry)
    assert should_spawn(item, 1100.0, geometry)
    assert should_spawn(item, 1149.9, geometry)
    assert not should_spawn(item, 1150.0, geometry)

    first = spawn_note(item, 1100.0, geometry, [])
    assert first is not None
    assert first.y == -100.0 and first.hit is False
    assert spawn_note(item, 1120.0, geometry, [first]) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("spawn_scheduler.py: ok")
