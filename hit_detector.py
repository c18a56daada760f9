# -*- coding: utf-8 -*-
########################
# hit_detector.py
########################
# Purpose:
# - Match a recognized chord to the best live falling note.
# - Credits the unhit note of the same chord whose target time is closest to the input time.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Inputs outside the good window are ignored, never penalized.
# - The detector marks the note hit and reports the distance. It does no scoring.
# - Tie break: the first candidate in active-set order wins (strict less-than comparison).
#
########################
# Interfaces:
# Public constants:
# - MATCH_WINDOW_MS = 200.0
#
# Public dataclasses:
# - HitMatch(note: FallingNote, distance_ms: float)
#
# Public functions:
# - find_best_candidate(notes, chord, now_ms, *, max_distance_ms=MATCH_WINDOW_MS) -> Optional[HitMatch]
# - detect_hit(notes, chord, now_ms, *, max_distance_ms=MATCH_WINDOW_MS) -> Optional[HitMatch]
#
# Inputs:
# - The simulator's active notes, the recognized chord label, and the input time in ms.
#
# Outputs:
# - HitMatch for the scoring engine, or None when nothing qualifies.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import practice_models
import scoring

MATCH_WINDOW_MS = scoring.GOOD_WINDOW_MS


@dataclass(frozen=True)
class HitMatch:
    note: practice_models.FallingNote
    distance_ms: float


def find_best_candidate(
    notes: Iterable[practice_models.FallingNote],
    chord: str,
    now_ms: float,
    *,
    max_distance_ms: float = MATCH_WINDOW_MS,
) -> Optional[HitMatch]:
    label = str(chord)
    target = float(now_ms)
    window = float(max_distance_ms)

    best_note: Optional[practice_models.FallingNote] = None
    best_distance = window

    for note in notes:
        if note.hit or note.chord != label:
            continue
        distance = abs(float(note.target_timestamp_ms) - target)
        if distance < best_distance:
            best_note = note
            best_distance = distance

    if best_note is None:
        return None
    return HitMatch(note=best_note, distance_ms=best_distance)


def detect_hit(
    notes: Iterable[practice_models.FallingNote],
    chord: str,
    now_ms: float,
    *,
    max_distance_ms: float = MATCH_WINDOW_MS,
) -> Optional[HitMatch]:
    match = find_best_candidate(notes, chord, now_ms, max_distance_ms=max_distance_ms)
    if match is None:
        return None
    match.note.hit = True
    return match


def _run_unit_tests() -> None:
    early = practice_models.FallingNote(chord="Am", color="#e91e63", y=0.0, target_timestamp_ms=1000.0)
    late = practice_models.FallingNote(chord="Am", color="#e91e63", y=0.0, target_timestamp_ms=1200.0)
    other = practice_models.FallingNote(chord="G", color="#f06292", y=0.0, target_timestamp_ms=1100.0)
    notes = [early, late, other]

    assert detect_hit(notes, "Am", 1450.0) is None

    tie = find_best_candidate(notes, "Am", 1100.0)
    assert tie is not None and tie.note is early

    match = detect_hit(notes, "Am", 1180.0)
    assert match is not None
    assert match.note is late and late.hit
    assert abs(match.distance_ms - 20.0) < 1e-9

    assert detect_hit(notes, "Am", 1180.0).note is early  # type: ignore[union-attr]
    assert detect_hit(notes, "Am", 1000.0) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("hit_detector.py: ok")
