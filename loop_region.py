# -*- coding: utf-8 -*-
########################
# loop_region.py
########################
# Purpose:
# - Keep auto-scroll practice inside a configured section range and restart it at the end.
# - Resolve loop boundaries from the layout service and decide when to seek back.
# - Edit the loop range the way the practice panel's Longer / Shorter controls do.
#
# Design notes:
# - No Qt usage. Pure gameplay logic plus a small stateful controller (loop count, enabled flag).
# - The controller never scrolls. It returns seek decisions for the scroll driver.
# - Boundaries are resolved on every check. Layout changes (resize, late render) are never stale.
# - Invalid ranges and unresolvable sections disable looping for that check. Nothing raises.
#
########################
# Interfaces:
# Public constants:
# - RESTART_BUFFER_PX = 50.0
# - DEFAULT_LINE_LIMIT = 8
# - LINE_STEP = 4
#
# Public dataclasses:
# - LoopDecision(boundaries: Optional[LoopBoundaries], seek_to: Optional[float])
#   - restart -> bool
#
# Public functions:
# - resolve_loop_boundaries(loop_range, layout) -> Optional[LoopBoundaries]
# - should_restart(scroll_bottom, end_bottom, buffer_px=RESTART_BUFFER_PX) -> bool
# - evaluate_loop(loop_range, layout, *, buffer_px=RESTART_BUFFER_PX, scroll_bottom=None, at_end=False) -> LoopDecision
# - default_loop_range(sections, *, line_limit=DEFAULT_LINE_LIMIT) -> Optional[LoopRange]
# - expand_loop_range(loop_range, sections) -> LoopRange
# - contract_loop_range(loop_range, sections) -> LoopRange
#
# Public classes:
# - class LoopRegionController
#   - loop_range() -> Optional[LoopRange]
#   - set_loop_range(loop_range: Optional[LoopRange]) -> None
#   - is_enabled() -> bool
#   - loop_count() -> int
#   - enable(layout) -> Optional[float]
#   - disable() -> None
#   - reset() -> Optional[float]
#   - check(layout, *, scroll_bottom=None, at_end=False) -> LoopDecision
#
# Inputs:
# - LoopRange from settings, LayoutQueryService for section offsets and scroll metrics.
#
# Outputs:
# - Seek positions (pixels) for the Render Sink / scroll driver.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import practice_models

RESTART_BUFFER_PX = 50.0
DEFAULT_LINE_LIMIT = 8
LINE_STEP = 4


@dataclass(frozen=True)
class LoopDecision:
    boundaries: Optional[practice_models.LoopBoundaries]
    seek_to: Optional[float] = None

    @property
    def restart(self) -> bool:
        return self.seek_to is not None


def resolve_loop_boundaries(
    loop_range: Optional[practice_models.LoopRange],
    layout: practice_models.LayoutQueryService,
) -> Optional[practice_models.LoopBoundaries]:
    if loop_range is None or not loop_range.is_valid():
        return None

    start_offset = layout.resolve_section_offset(int(loop_range.start_section))
    end_offset = layout.resolve_section_offset(int(loop_range.end_section))
    if start_offset is None or end_offset is None:
        return None

    return practice_models.LoopBoundaries(
        start_top=float(start_offset.top),
        end_bottom=float(end_offset.top) + float(end_offset.height),
    )


def should_restart(scroll_bottom: float, end_bottom: float, buffer_px: float = RESTART_BUFFER_PX) -> bool:
    return float(scroll_bottom) >= float(end_bottom) + float(buffer_px)


def evaluate_loop(
    loop_range: Optional[practice_models.LoopRange],
    layout: practice_models.LayoutQueryService,
    *,
    buffer_px: float = RESTART_BUFFER_PX,
    scroll_bottom: Optional[float] = None,
    at_end: bool = False,
) -> LoopDecision:
    """Decide whether the scroll position has run past the loop range.

    scroll_bottom overrides the layout's reported bottom edge when the caller tracks a position
    the layout has not applied yet. at_end forces a restart when the sheet cannot scroll further,
    since a range ending on the last section may never reach end_bottom plus the buffer. The forced
    restart only happens when start_top lies above the bottom scroll limit, otherwise the seek would
    be clamped back to where the view already is.
    """
    boundaries = resolve_loop_boundaries(loop_range, layout)
    if boundaries is None:
        return LoopDecision(boundaries=None)

    metrics = layout.scroll_metrics()
    bottom = metrics.scroll_bottom if scroll_bottom is None else float(scroll_bottom)
    force_restart = at_end and boundaries.start_top < metrics.scrollable_height
    if force_restart or should_restart(bottom, boundaries.end_bottom, buffer_px):
        return LoopDecision(boundaries=boundaries, seek_to=boundaries.start_top)
    return LoopDecision(boundaries=boundaries)


def _last_line_index(sections: Sequence[practice_models.SongSection], section_index: int) -> int:
    return max(0, len(sections[section_index].lines) - 1)


def default_loop_range(
    sections: Sequence[practice_models.SongSection],
    *,
    line_limit: int = DEFAULT_LINE_LIMIT,
) -> Optional[practice_models.LoopRange]:
    if not sections:
        return None
    end_line = min(_last_line_index(sections, 0), max(0, int(line_limit) - 1))
    return practice_models.LoopRange(start_section=0, start_line=0, end_section=0, end_line=end_line)


def expand_loop_range(
    loop_range: practice_models.LoopRange,
    sections: Sequence[practice_models.SongSection],
) -> practice_models.LoopRange:
    if not loop_range.is_valid() or loop_range.end_section >= len(sections):
        return loop_range

    if loop_range.end_section < len(sections) - 1:
        next_section = loop_range.end_section + 1
        return practice_models.LoopRange(
            start_section=loop_range.start_section,
            start_line=loop_range.start_line,
            end_section=next_section,
            end_line=min(_last_line_index(sections, next_section), DEFAULT_LINE_LIMIT - 1),
        )

    last_line = _last_line_index(sections, loop_range.end_section)
    if loop_range.end_line < last_line:
        return practice_models.LoopRange(
            start_section=loop_range.start_section,
            start_line=loop_range.start_line,
            end_section=loop_range.end_section,
            end_line=min(last_line, loop_range.end_line + LINE_STEP),
        )

    return loop_range


def contract_loop_range(
    loop_range: practice_models.LoopRange,
    sections: Sequence[practice_models.SongSection],
) -> practice_models.LoopRange:
    if not loop_range.is_valid() or loop_range.end_section >= len(sections):
        return loop_range

    shortest_end = loop_range.start_line + (LINE_STEP - 1)
    if loop_range.end_line > shortest_end:
        return practice_models.LoopRange(
            start_section=loop_range.start_section,
            start_line=loop_range.start_line,
            end_section=loop_range.end_section,
            end_line=max(shortest_end, loop_range.end_line - LINE_STEP),
        )

    if loop_range.end_section > loop_range.start_section:
        previous_section = loop_range.end_section - 1
        return practice_models.LoopRange(
            start_section=loop_range.start_section,
            start_line=loop_range.start_line,
            end_section=previous_section,
            end_line=min(_last_line_index(sections, previous_section), DEFAULT_LINE_LIMIT - 1),
        )

    return loop_range


class LoopRegionController:
    def __init__(
        self,
        loop_range: Optional[practice_models.LoopRange] = None,
        *,
        restart_buffer_px: float = RESTART_BUFFER_PX,
    ) -> None:
        self._loop_range = loop_range
        self._restart_buffer_px = float(restart_buffer_px)
        self._enabled = False
        self._loop_count = 0
        self._last_start_top: Optional[float] = None

    def loop_range(self) -> Optional[practice_models.LoopRange]:
        return self._loop_range

    def set_loop_range(self, loop_range: Optional[practice_models.LoopRange]) -> None:
        self._loop_range = loop_range
        self._last_start_top = None

    def is_enabled(self) -> bool:
        return bool(self._enabled)

    def loop_count(self) -> int:
        return int(self._loop_count)

    def enable(self, layout: practice_models.LayoutQueryService) -> Optional[float]:
        """Turn looping on and return the seek position for the start of the range, if resolvable."""
        self._enabled = True
        self._loop_count = 0
        boundaries = resolve_loop_boundaries(self._loop_range, layout)
        if boundaries is None:
            return None
        self._last_start_top = boundaries.start_top
        return boundaries.start_top

    def disable(self) -> None:
        self._enabled = False

    def reset(self) -> Optional[float]:
        self._loop_count = 0
        return self._last_start_top

    def check(
        self,
        layout: practice_models.LayoutQueryService,
        *,
        scroll_bottom: Optional[float] = None,
        at_end: bool = False,
    ) -> LoopDecision:
        if not self._enabled:
            return LoopDecision(boundaries=None)

        decision = evaluate_loop(
            self._loop_range,
            layout,
            buffer_px=self._restart_buffer_px,
            scroll_bottom=scroll_bottom,
            at_end=at_end,
        )
        if decision.boundaries is not None:
            self._last_start_top = decision.boundaries.start_top
        if decision.restart:
            self._loop_count += 1
        return decision


def _run_unit_tests() -> None:
    class _Layout:
        def resolve_section_offset(self, section_index: int) -> Optional[practice_models.SectionOffset]:
            offsets = {0: practice_models.SectionOffset(0.0, 400.0), 1: practice_models.SectionOffset(400.0, 400.0)}
            return offsets.get(section_index)

        def scroll_metrics(self) -> practice_models.ScrollMetrics:
            return practice_models.ScrollMetrics(scroll_top=0.0, scroll_height=1200.0, client_height=400.0)

        def chord_line_offsets(self):
            return []

    layout = _Layout()
    inverted = practice_models.LoopRange(start_section=2, start_line=0, end_section=1, end_line=0)
    assert resolve_loop_boundaries(inverted, layout) is None

    controller = LoopRegionController(practice_models.LoopRange(0, 0, 1, 7))
    assert controller.enable(layout) == 0.0
    assert not controller.check(layout, scroll_bottom=849.0).restart
    assert controller.check(layout, scroll_bottom=850.0).seek_to == 0.0
    assert controller.loop_count() == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("loop_region.py: ok")
