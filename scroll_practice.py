# -*- coding: utf-8 -*-
########################
# scroll_practice.py
########################
# Purpose:
# - Auto-scroll practice mode: advance the chord sheet at the tempo-synchronized velocity,
#   keep it inside the loop range, and report the currently centered chord.
# - Turns elapsed time into discrete scroll commands for the Render Sink.
#
# Design notes:
# - No Qt usage. The frame source is external (PracticeDriver or a test loop).
# - Velocity, loop boundaries and the centered chord are re-resolved from the layout on every step.
# - Tempo requests pass through tempo.BpmLimits.
# - The controller tracks its own fractional scroll position and resyncs when the layout reports
#   a position more than RESYNC_TOLERANCE_PX away (the user scrolled by hand).
# - Reaching the bottom of the sheet stops auto-scroll, unless looping is active, in which case
#   it restarts the loop.
#
########################
# Interfaces:
# Public constants:
# - RESYNC_TOLERANCE_PX = 1.0
#
# Public enums:
# - class ScrollCommandKind(enum.Enum): SCROLL_TO | LOOP_RESTART | STOP
#
# Public dataclasses:
# - ScrollCommand(kind: ScrollCommandKind, position: float)
# - ScrollFrame(velocity_px_per_sec: float, commands: list[ScrollCommand],
#               active_chord: Optional[ChordLineOffset], loop_count: int, is_running: bool)
#
# Public classes:
# - class ScrollPracticeController
#   - __init__(sections, layout, *, tempo_bpm, limits, loop_controller=None, anchor_ratio=0.5)
#   - tempo_bpm() -> float
#   - set_tempo_bpm(bpm: float) -> float
#   - adjust_tempo(delta: float) -> float
#   - apply_tempo_preset(factor: float) -> float
#   - loop_controller() -> LoopRegionController
#   - is_running() -> bool
#   - start() -> list[ScrollCommand]
#   - stop() -> None
#   - enable_loop() -> list[ScrollCommand]
#   - disable_loop() -> None
#   - reset_loop() -> list[ScrollCommand]
#   - step(elapsed_seconds: float) -> ScrollFrame
#
# Inputs:
# - Song sections, LayoutQueryService, elapsed frame time.
#
# Outputs:
# - ScrollFrame values carrying scroll commands and the centered chord.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
import logging
from typing import List, Optional, Sequence

import active_chord
import auto_scroll
import loop_region
import practice_models
import tempo

logger = logging.getLogger(__name__)

RESYNC_TOLERANCE_PX = 1.0


class ScrollCommandKind(enum.Enum):
    SCROLL_TO = "scroll_to"
    LOOP_RESTART = "loop_restart"
    STOP = "stop"


@dataclass(frozen=True)
class ScrollCommand:
    kind: ScrollCommandKind
    position: float


@dataclass(frozen=True)
class ScrollFrame:
    velocity_px_per_sec: float
    commands: List[ScrollCommand] = field(default_factory=list)
    active_chord: Optional[practice_models.ChordLineOffset] = None
    loop_count: int = 0
    is_running: bool = False


class ScrollPracticeController:
    def __init__(
        self,
        sections: Sequence[practice_models.SongSection],
        layout: practice_models.LayoutQueryService,
        *,
        tempo_bpm: float = tempo.DEFAULT_BPM,
        limits: tempo.BpmLimits = tempo.DEFAULT_LIMITS,
        loop_controller: Optional[loop_region.LoopRegionController] = None,
        anchor_ratio: float = active_chord.DEFAULT_ANCHOR_RATIO,
    ) -> None:
        self._sections = list(sections)
        self._layout = layout
        self._limits = limits
        self._base_tempo_bpm = limits.clamp(tempo_bpm)
        self._tempo_bpm = self._base_tempo_bpm
        self._loop = loop_controller if loop_controller is not None else loop_region.LoopRegionController()
        self._anchor_ratio = float(anchor_ratio)
        self._running = False
        self._position = 0.0

    def tempo_bpm(self) -> float:
        return float(self._tempo_bpm)

    def set_tempo_bpm(self, bpm: float) -> float:
        self._tempo_bpm = self._limits.clamp(bpm)
        return float(self._tempo_bpm)

    def adjust_tempo(self, delta: float) -> float:
        self._tempo_bpm = self._limits.adjust(self._tempo_bpm, delta)
        return float(self._tempo_bpm)

    def apply_tempo_preset(self, factor: float) -> float:
        self._tempo_bpm = tempo.preset_bpm(self._base_tempo_bpm, factor, limits=self._limits)
        return float(self._tempo_bpm)

    def loop_controller(self) -> loop_region.LoopRegionController:
        return self._loop

    def is_running(self) -> bool:
        return bool(self._running)

    def start(self) -> List[ScrollCommand]:
        self._running = True
        self._position = float(self._layout.scroll_metrics().scroll_top)
        logger.info("Auto-scroll started at %.0f BPM", self._tempo_bpm)
        if self._loop.is_enabled():
            return self.enable_loop()
        return []

    def stop(self) -> None:
        if self._running:
            logger.info("Auto-scroll stopped")
        self._running = False

    def enable_loop(self) -> List[ScrollCommand]:
        start_top = self._loop.enable(self._layout)
        if start_top is None:
            logger.debug("Loop enabled but range is not resolvable yet")
            return []
        self._position = float(start_top)
        return [ScrollCommand(kind=ScrollCommandKind.SCROLL_TO, position=float(start_top))]

    def disable_loop(self) -> None:
        self._loop.disable()

    def reset_loop(self) -> List[ScrollCommand]:
        start_top = self._loop.reset()
        if start_top is None:
            return []
        self._position = float(start_top)
        return [ScrollCommand(kind=ScrollCommandKind.SCROLL_TO, position=float(start_top))]

    def step(self, elapsed_seconds: float) -> ScrollFrame:
        metrics = self._layout.scroll_metrics()
        if not self._running:
            return ScrollFrame(
                velocity_px_per_sec=0.0,
                active_chord=self._closest_chord(metrics),
                loop_count=self._loop.loop_count(),
                is_running=False,
            )

        if abs(float(metrics.scroll_top) - self._position) > RESYNC_TOLERANCE_PX:
            self._position = float(metrics.scroll_top)

        velocity = auto_scroll.velocity_for_layout(self._sections, self._layout, self._tempo_bpm)
        scroll_step = auto_scroll.step_scroll(self._position, velocity, elapsed_seconds, metrics.scrollable_height)
        self._position = scroll_step.position
        # Nothing to scroll yet means the sheet is not laid out. Retry next step instead of stopping.
        reached_end = scroll_step.reached_end and metrics.scrollable_height > 0.0

        commands: List[ScrollCommand] = []
        decision = self._loop.check(
            self._layout,
            scroll_bottom=self._position + float(metrics.client_height),
            at_end=reached_end,
        )
        if decision.restart and decision.seek_to is not None:
            self._position = float(decision.seek_to)
            commands.append(ScrollCommand(kind=ScrollCommandKind.LOOP_RESTART, position=self._position))
            logger.info("Loop restart %d at %.0f px", self._loop.loop_count(), self._position)
        elif reached_end:
            commands.append(ScrollCommand(kind=ScrollCommandKind.SCROLL_TO, position=self._position))
            commands.append(ScrollCommand(kind=ScrollCommandKind.STOP, position=self._position))
            self.stop()
        else:
            commands.append(ScrollCommand(kind=ScrollCommandKind.SCROLL_TO, position=self._position))

        current = practice_models.ScrollMetrics(
            scroll_top=self._position,
            scroll_height=metrics.scroll_height,
            client_height=metrics.client_height,
        )
        return ScrollFrame(
            velocity_px_per_sec=velocity,
            commands=commands,
            active_chord=self._closest_chord(current),
            loop_count=self._loop.loop_count(),
            is_running=self._running,
        )

    def _closest_chord(self, metrics: practice_models.ScrollMetrics) -> Optional[practice_models.ChordLineOffset]:
        return active_chord.find_closest_active_chord(
            self._layout.chord_line_offsets(),
            metrics,
            anchor_ratio=self._anchor_ratio,
        )
