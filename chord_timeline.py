# -*- coding: utf-8 -*-
########################
# chord_timeline.py
########################
# Purpose:
# - Build the timed chord sequence for a song from its section/line structure.
# - Assign display colours to chord labels.
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - One chord change every two beats, starting at time zero.
# - Lines without a chord label take no time in the sequence.
#
########################
# Interfaces:
# Public constants:
# - BEATS_PER_CHORD_CHANGE = 2
# - CHORD_COLORS: dict[str, str]
#
# Public functions:
# - chord_color(chord: str) -> str
# - beat_duration_ms(bpm: float) -> float
# - build_chord_sequence(sections: list[SongSection], bpm: float, *, beats_per_chord: int = 2) -> list[ChordSequenceItem]
#
# Inputs:
# - SongSection lists (already parsed) and the practice tempo.
#
# Outputs:
# - ChordSequenceItem lists consumed by the spawn scheduler.
#
########################

from __future__ import annotations

from typing import Dict, List, Sequence

import practice_models

BEATS_PER_CHORD_CHANGE = 2

CHORD_COLORS: Dict[str, str] = {
    "Am": "#e91e63",
    "E7": "#9c27b0",
    "G": "#f06292",
    "D": "#3f51b5",
    "F": "#ab47bc",
    "C": "#42a5f5",
    "Dm": "#9fa8da",
}


def chord_color(chord: str) -> str:
    text = str(chord)
    known = CHORD_COLORS.get(text)
    if known is not None:
        return known
    if not text:
        return "hsl(0, 70%, 60%)"
    hue = (ord(text[0]) * 137) % 360
    return f"hsl({hue}, 70%, 60%)"


def beat_duration_ms(bpm: float) -> float:
    value = float(bpm)
    if value <= 0.0:
        return 0.0
    return 60.0 / value * 1000.0


def build_chord_sequence(
    sections: Sequence[practice_models.SongSection],
    bpm: float,
    *,
    beats_per_chord: int = BEATS_PER_CHORD_CHANGE,
) -> List[practice_models.ChordSequenceItem]:
    step_ms = beat_duration_ms(bpm) * int(beats_per_chord)
    sequence: List[practice_models.ChordSequenceItem] = []
    current_time_ms = 0.0

    for section in sections:
        for line in section.lines:
            if not line.chord:
                continue
            sequence.append(
                practice_models.ChordSequenceItem(chord=str(line.chord), scheduled_time_ms=current_time_ms)
            )
            current_time_ms += step_ms

    return sequence


def _run_unit_tests() -> None:
    sections = [
        practice_models.SongSection(
            name="Verse",
            lines=[
                practice_models.SongLine(chord="Am", lyric="one"),
                practice_models.SongLine(chord=None, lyric="no chord"),
                practice_models.SongLine(chord="G", lyric="two"),
            ],
        ),
        practice_models.SongSection(name="Chorus", lines=[practice_models.SongLine(chord="C")]),
    ]
    sequence = build_chord_sequence(sections, bpm=120.0)
    assert [(item.chord, item.scheduled_time_ms) for item in sequence] == [("Am", 0.0), ("G", 1000.0), ("C", 2000.0)]

    assert chord_color("Am") == "#e91e63"
    assert chord_color("Bb") == f"hsl({(ord('B') * 137) % 360}, 70%, 60%)"
    assert build_chord_sequence(sections, bpm=0.0)[-1].scheduled_time_ms == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("chord_timeline.py: ok")
