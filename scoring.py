# -*- coding: utf-8 -*-
########################
# scoring.py
########################
# Purpose:
# - Hit quality classification, points, combo and star rating.
# - Folds HitEvent and MissEvent values into the PracticeSession record.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Every function takes a session and returns the next one. Sessions are never mutated in place.
# - combo resets to 0 on any miss and otherwise grows by one per event.
# - The combo multiplier is informational unless the caller opts in with apply_multiplier.
#
########################
# Interfaces:
# Public constants:
# - PERFECT_WINDOW_MS = 100.0
# - GOOD_WINDOW_MS = 200.0
# - PERFECT_POINTS = 100, GOOD_POINTS = 50, MISS_POINTS = 0
# - COMBO_STEP = 10
#
# Public functions:
# - classify_distance(distance_ms: float) -> HitQuality
# - points_for(quality: HitQuality) -> int
# - process_hit(distance_ms: float) -> HitResult
# - combo_multiplier(combo: int) -> int
# - accuracy_percent(session: PracticeSession) -> float
# - calculate_stars(session: PracticeSession) -> int
# - apply_hit_result(session, result, *, apply_multiplier=False) -> PracticeSession
# - apply_miss(session) -> PracticeSession
# - apply_event(session, event, *, apply_multiplier=False) -> PracticeSession
# - apply_events(session, events, *, apply_multiplier=False) -> PracticeSession
#
# Inputs:
# - Timing distances from HitDetector and MissEvent values from NoteSimulator.
#
# Outputs:
# - HitResult values and successive PracticeSession snapshots.
#
########################

from __future__ import annotations

import dataclasses
from typing import Iterable

import practice_models

PERFECT_WINDOW_MS = 100.0
GOOD_WINDOW_MS = 200.0

PERFECT_POINTS = 100
GOOD_POINTS = 50
MISS_POINTS = 0

COMBO_STEP = 10


def classify_distance(distance_ms: float) -> practice_models.HitQuality:
    distance = abs(float(distance_ms))
    if distance < PERFECT_WINDOW_MS:
        return practice_models.HitQuality.PERFECT
    if distance < GOOD_WINDOW_MS:
        return practice_models.HitQuality.GOOD
    return practice_models.HitQuality.MISS


def points_for(quality: practice_models.HitQuality) -> int:
    if quality is practice_models.HitQuality.PERFECT:
        return PERFECT_POINTS
    if quality is practice_models.HitQuality.GOOD:
        return GOOD_POINTS
    if quality is practice_models.HitQuality.MISS:
        return MISS_POINTS
    raise ValueError(f"Unhandled hit quality: {quality!r}")


def process_hit(distance_ms: float) -> practice_models.HitResult:
    quality = classify_distance(distance_ms)
    return practice_models.HitResult(
        quality=quality,
        points=points_for(quality),
        distance_ms=abs(float(distance_ms)),
    )


def combo_multiplier(combo: int) -> int:
    return max(0, int(combo)) // COMBO_STEP + 1


def accuracy_percent(session: practice_models.PracticeSession) -> float:
    judged = session.judged_count
    if judged <= 0:
        return 0.0
    earned = session.perfect_count * PERFECT_POINTS + session.good_count * GOOD_POINTS
    return earned / (judged * PERFECT_POINTS) * 100.0


def calculate_stars(session: practice_models.PracticeSession) -> int:
    if session.judged_count <= 0:
        return 0
    accuracy = accuracy_percent(session)
    if accuracy >= 95.0:
        return 5
    if accuracy >= 85.0:
        return 4
    if accuracy >= 70.0:
        return 3
    if accuracy >= 50.0:
        return 2
    return 1


def _with_stars(session: practice_models.PracticeSession) -> practice_models.PracticeSession:
    return dataclasses.replace(session, stars=calculate_stars(session))


def apply_miss(session: practice_models.PracticeSession) -> practice_models.PracticeSession:
    updated = dataclasses.replace(
        session,
        combo=0,
        miss_count=session.miss_count + 1,
    )
    return _with_stars(updated)


def apply_hit_result(
    session: practice_models.PracticeSession,
    result: practice_models.HitResult,
    *,
    apply_multiplier: bool = False,
) -> practice_models.PracticeSession:
    quality = result.quality
    if quality is practice_models.HitQuality.MISS:
        return apply_miss(session)

    if quality is practice_models.HitQuality.PERFECT:
        perfect_count = session.perfect_count + 1
        good_count = session.good_count
    elif quality is practice_models.HitQuality.GOOD:
        perfect_count = session.perfect_count
        good_count = session.good_count + 1
    else:
        raise ValueError(f"Unhandled hit quality: {quality!r}")

    combo = session.combo + 1
    points = max(0, int(result.points))
    if apply_multiplier:
        points *= combo_multiplier(combo)

    updated = dataclasses.replace(
        session,
        score=session.score + points,
        combo=combo,
        max_combo=max(session.max_combo, combo),
        perfect_count=perfect_count,
        good_count=good_count,
    )
    return _with_stars(updated)


def apply_event(
    session: practice_models.PracticeSession,
    event: practice_models.PracticeEvent,
    *,
    apply_multiplier: bool = False,
) -> practice_models.PracticeSession:
    if isinstance(event, practice_models.HitEvent):
        return apply_hit_result(session, event.result, apply_multiplier=apply_multiplier)
    if isinstance(event, practice_models.MissEvent):
        return apply_miss(session)
    raise TypeError(f"Unsupported practice event: {type(event).__name__}")


def apply_events(
    session: practice_models.PracticeSession,
    events: Iterable[practice_models.PracticeEvent],
    *,
    apply_multiplier: bool = False,
) -> practice_models.PracticeSession:
    for event in events:
        session = apply_event(session, event, apply_multiplier=apply_multiplier)
    return session


def _run_unit_tests() -> None:
    assert process_hit(80.0) == practice_models.HitResult(practice_models.HitQuality.PERFECT, 100, 80.0)
    assert process_hit(150.0).quality is practice_models.HitQuality.GOOD
    assert process_hit(150.0).points == 50
    assert process_hit(250.0).quality is practice_models.HitQuality.MISS
    assert combo_multiplier(23) == 3

    session = practice_models.PracticeSession()
    session = apply_hit_result(session, process_hit(10.0))
    session = apply_hit_result(session, process_hit(150.0))
    assert (session.score, session.combo, session.max_combo) == (150, 2, 2)

    session = apply_miss(session)
    assert session.combo == 0 and session.max_combo == 2 and session.miss_count == 1
    assert session.stars == 2


if __name__ == "__main__":
    _run_unit_tests()
    print("scoring.py: ok")
