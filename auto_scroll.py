# -*- coding: utf-8 -*-
########################
# auto_scroll.py
########################
# Purpose:
# - Compute the chord sheet scroll velocity that keeps the sheet in lockstep with tempo.
# - Step the scroll position forward by elapsed time and detect the end of the sheet.
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - Musical assumption: one chord change every two beats.
# - The sheet is divided evenly between chord changes: scrollable height / chord change count.
# - Every degenerate input (no chords, nothing to scroll, non-positive tempo) yields velocity 0.
#
########################
# Interfaces:
# Public constants:
# - BEATS_PER_CHORD_CHANGE = 2
# - SECONDS_PER_MINUTE = 60.0
#
# Public dataclasses:
# - ScrollStep(position: float, reached_end: bool)
#
# Public functions:
# - count_chord_changes(sections: list[SongSection]) -> int
# - calculate_scroll_velocity(sections, scrollable_height: float, bpm: float) -> float
# - velocity_for_layout(sections, layout: LayoutQueryService, bpm: float) -> float
# - step_scroll(scroll_top, velocity_px_per_sec, elapsed_seconds, max_scroll) -> ScrollStep
#
# Inputs:
# - Song sections (for counting chord lines), scroll metrics, and a clamped tempo.
#
# Outputs:
# - Velocity in pixels per second and next scroll positions.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import chord_timeline
import practice_models

BEATS_PER_CHORD_CHANGE = chord_timeline.BEATS_PER_CHORD_CHANGE
SECONDS_PER_MINUTE = 60.0


@dataclass(frozen=True)
class ScrollStep:
    position: float
    reached_end: bool


def count_chord_changes(sections: Sequence[practice_models.SongSection]) -> int:
    return sum(1 for section in sections for line in section.lines if line.chord)


def calculate_scroll_velocity(
    sections: Sequence[practice_models.SongSection],
    scrollable_height: float,
    bpm: float,
) -> float:
    tempo = float(bpm)
    if tempo <= 0.0:
        return 0.0

    total_chord_changes = count_chord_changes(sections)
    if total_chord_changes == 0:
        return 0.0

    height = float(scrollable_height)
    if height <= 0.0:
        return 0.0

    pixels_per_chord_change = height / total_chord_changes
    beats_per_second = tempo / SECONDS_PER_MINUTE
    chord_changes_per_second = beats_per_second / BEATS_PER_CHORD_CHANGE
    return pixels_per_chord_change * chord_changes_per_second


def velocity_for_layout(
    sections: Sequence[practice_models.SongSection],
    layout: practice_models.LayoutQueryService,
    bpm: float,
) -> float:
    metrics = layout.scroll_metrics()
    return calculate_scroll_velocity(sections, metrics.scrollable_height, bpm)


def step_scroll(
    scroll_top: float,
    velocity_px_per_sec: float,
    elapsed_seconds: float,
    max_scroll: float,
) -> ScrollStep:
    limit = max(0.0, float(max_scroll))
    delta = max(0.0, float(velocity_px_per_sec)) * max(0.0, float(elapsed_seconds))
    position = min(float(scroll_top) + delta, limit)
    return ScrollStep(position=position, reached_end=position >= limit)


def _run_unit_tests() -> None:
    sections = [
        practice_models.SongSection(
            name="Verse",
            lines=[practice_models.SongLine(chord=name) for name in ("Am", "G", "C")]
            + [practice_models.SongLine(chord=None, lyric="tail")],
        ),
        practice_models.SongSection(name="Chorus", lines=[practice_models.SongLine(chord="F"), practice_models.SongLine(chord="E7")]),
    ]
    assert count_chord_changes(sections) == 5
    assert abs(calculate_scroll_velocity(sections, 1000.0, 90.0) - 150.0) < 1e-9
    assert calculate_scroll_velocity(sections, 1000.0, 0.0) == 0.0
    assert calculate_scroll_velocity([], 1000.0, 90.0) == 0.0
    assert calculate_scroll_velocity(sections, 0.0, 90.0) == 0.0

    step = step_scroll(90.0, 150.0, 0.1, 100.0)
    assert step.position == 100.0 and step.reached_end


if __name__ == "__main__":
    _run_unit_tests()
    print("auto_scroll.py: ok")
