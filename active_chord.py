# -*- coding: utf-8 -*-
########################
# active_chord.py
########################
# Purpose:
# - Answer "which chord is centered right now" for chord sheet highlighting.
# - Independent of the falling-note game. Reads only layout offsets and scroll metrics.
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - The anchor is a point in the viewport, the middle by default.
# - Lines without a chord label are never highlighted.
# - Ties resolve to the earlier line in sheet order.
#
########################
# Interfaces:
# Public constants:
# - DEFAULT_ANCHOR_RATIO = 0.5
#
# Public functions:
# - viewport_anchor(metrics: ScrollMetrics, anchor_ratio: float) -> float
# - find_closest_active_chord(lines, metrics, *, anchor_ratio=DEFAULT_ANCHOR_RATIO) -> Optional[ChordLineOffset]
# - closest_active_chord_for_layout(layout, *, anchor_ratio=DEFAULT_ANCHOR_RATIO) -> Optional[ChordLineOffset]
#
# Inputs:
# - ChordLineOffset values and ScrollMetrics from the LayoutQueryService.
#
# Outputs:
# - The chord line to highlight, or None.
#
########################

from __future__ import annotations

from typing import Iterable, Optional

import practice_models

DEFAULT_ANCHOR_RATIO = 0.5


def viewport_anchor(metrics: practice_models.ScrollMetrics, anchor_ratio: float = DEFAULT_ANCHOR_RATIO) -> float:
    ratio = min(1.0, max(0.0, float(anchor_ratio)))
    return float(metrics.scroll_top) + float(metrics.client_height) * ratio


def find_closest_active_chord(
    lines: Iterable[practice_models.ChordLineOffset],
    metrics: practice_models.ScrollMetrics,
    *,
    anchor_ratio: float = DEFAULT_ANCHOR_RATIO,
) -> Optional[practice_models.ChordLineOffset]:
    anchor = viewport_anchor(metrics, anchor_ratio)
    ordered = sorted(
        (line for line in lines if line.chord),
        key=lambda item: (int(item.section_index), int(item.line_index)),
    )

    best_line: Optional[practice_models.ChordLineOffset] = None
    best_distance = float("inf")
    for line in ordered:
        distance = abs(line.center - anchor)
        if distance < best_distance:
            best_line = line
            best_distance = distance
    return best_line


def closest_active_chord_for_layout(
    layout: practice_models.LayoutQueryService,
    *,
    anchor_ratio: float = DEFAULT_ANCHOR_RATIO,
) -> Optional[practice_models.ChordLineOffset]:
    return find_closest_active_chord(
        layout.chord_line_offsets(),
        layout.scroll_metrics(),
        anchor_ratio=anchor_ratio,
    )


def _run_unit_tests() -> None:
    lines = [
        practice_models.ChordLineOffset(section_index=0, line_index=0, chord="Am", top=0.0, height=40.0),
        practice_models.ChordLineOffset(section_index=0, line_index=1, chord=None, top=40.0, height=40.0),
        practice_models.ChordLineOffset(section_index=0, line_index=2, chord="G", top=80.0, height=40.0),
    ]
    metrics = practice_models.ScrollMetrics(scroll_top=0.0, scroll_height=500.0, client_height=120.0)
    closest = find_closest_active_chord(lines, metrics)
    assert closest is not None and closest.chord == "Am"

    scrolled = practice_models.ScrollMetrics(scroll_top=50.0, scroll_height=500.0, client_height=120.0)
    closest = find_closest_active_chord(lines, scrolled)
    assert closest is not None and closest.chord == "G"

    assert find_closest_active_chord([], metrics) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("active_chord.py: ok")
