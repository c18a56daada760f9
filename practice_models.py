# -*- coding: utf-8 -*-
########################
# practice_models.py
########################
# Purpose:
# - Core data models for the rhythm practice and scroll synchronization pipeline.
# - Defines chord timing items, falling notes, hit results, the practice session record,
#   loop configuration values, layout values, tick events, and collaborator protocols.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses and typing.Protocol definitions.
# - FallingNote is the only mutable model. PracticeSession is replaced, never mutated.
# - Times are milliseconds, positions are pixels, tempo is beats per minute.
#
########################
# Interfaces:
# Public enums:
# - class HitQuality(enum.Enum): PERFECT | GOOD | MISS
#
# Public dataclasses:
# - ChordSequenceItem(chord: str, scheduled_time_ms: float)
# - FallingNote(chord: str, color: str, y: float, target_timestamp_ms: float, hit: bool, quality: Optional[HitQuality])
# - HitResult(quality: HitQuality, points: int, distance_ms: float)
# - PracticeSession(score, combo, max_combo, perfect_count, good_count, miss_count, stars)
# - LoopRange(start_section, start_line, end_section, end_line)
# - LoopBoundaries(start_top: float, end_bottom: float)
# - SongLine(chord: Optional[str], lyric: str)
# - SongSection(name: str, lines: list[SongLine])
# - SectionOffset(top: float, height: float)
# - ScrollMetrics(scroll_top: float, scroll_height: float, client_height: float)
# - ChordLineOffset(section_index, line_index, chord, top, height)
# - PlayfieldGeometry(hit_zone_y, spawn_y, fall_speed_px_per_sec, container_height, frames_per_second)
# - HitEvent(chord, target_timestamp_ms, time_ms, result)
# - MissEvent(chord, target_timestamp_ms, time_ms)
# - TickReport(time_ms, active_notes, session, events)
#
# Public protocols:
# - AudioClock: now_ms() -> float, current_tempo_bpm() -> float
# - LayoutQueryService: resolve_section_offset(int) -> Optional[SectionOffset], scroll_metrics() -> ScrollMetrics,
#                       chord_line_offsets() -> list[ChordLineOffset]
# - RenderSink: on_frame(TickReport), on_loop_restart(float), on_scroll_to(float)
#
# Inputs/Outputs:
# - These types are exchanged between SpawnScheduler, NoteSimulator, HitDetector, the scoring engine,
#   PracticeEngine, ScrollPracticeController, and PracticeDriver.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import List, Optional, Protocol, Union, runtime_checkable


class HitQuality(enum.Enum):
    PERFECT = "perfect"
    GOOD = "good"
    MISS = "miss"


@dataclass(frozen=True)
class ChordSequenceItem:
    chord: str
    scheduled_time_ms: float


@dataclass
class FallingNote:
    chord: str
    color: str
    y: float
    target_timestamp_ms: float
    hit: bool = False
    quality: Optional[HitQuality] = None


@dataclass(frozen=True)
class HitResult:
    quality: HitQuality
    points: int
    distance_ms: float


@dataclass(frozen=True)
class PracticeSession:
    score: int = 0
    combo: int = 0
    max_combo: int = 0
    perfect_count: int = 0
    good_count: int = 0
    miss_count: int = 0
    stars: int = 0

    @property
    def judged_count(self) -> int:
        return int(self.perfect_count + self.good_count + self.miss_count)


@dataclass(frozen=True)
class LoopRange:
    start_section: int
    start_line: int
    end_section: int
    end_line: int

    def is_valid(self) -> bool:
        if min(self.start_section, self.start_line, self.end_section, self.end_line) < 0:
            return False
        if self.start_section > self.end_section:
            return False
        if self.start_section == self.end_section and self.start_line > self.end_line:
            return False
        return True


@dataclass(frozen=True)
class LoopBoundaries:
    start_top: float
    end_bottom: float


@dataclass(frozen=True)
class SongLine:
    chord: Optional[str] = None
    lyric: str = ""


@dataclass(frozen=True)
class SongSection:
    name: str
    lines: List[SongLine] = field(default_factory=list)


@dataclass(frozen=True)
class SectionOffset:
    top: float
    height: float


@dataclass(frozen=True)
class ScrollMetrics:
    scroll_top: float
    scroll_height: float
    client_height: float

    @property
    def scrollable_height(self) -> float:
        return float(self.scroll_height) - float(self.client_height)

    @property
    def scroll_bottom(self) -> float:
        return float(self.scroll_top) + float(self.client_height)


@dataclass(frozen=True)
class ChordLineOffset:
    section_index: int
    line_index: int
    chord: Optional[str]
    top: float
    height: float

    @property
    def center(self) -> float:
        return float(self.top) + float(self.height) / 2.0


@dataclass(frozen=True)
class PlayfieldGeometry:
    hit_zone_y: float
    spawn_y: float
    fall_speed_px_per_sec: float
    container_height: float
    frames_per_second: float = 60.0


@dataclass(frozen=True)
class HitEvent:
    chord: str
    target_timestamp_ms: float
    time_ms: float
    result: HitResult


@dataclass(frozen=True)
class MissEvent:
    chord: str
    target_timestamp_ms: float
    time_ms: float


PracticeEvent = Union[HitEvent, MissEvent]


@dataclass(frozen=True)
class TickReport:
    time_ms: float
    active_notes: List[FallingNote]
    session: PracticeSession
    events: List[PracticeEvent]


@runtime_checkable
class AudioClock(Protocol):
    def now_ms(self) -> float:
        ...

    def current_tempo_bpm(self) -> float:
        ...


@runtime_checkable
class LayoutQueryService(Protocol):
    """Read-only view of the rendered chord sheet.

    resolve_section_offset returns None while a section is not rendered yet.
    Offsets are relative to the top of the scrollable content.
    """

    def resolve_section_offset(self, section_index: int) -> Optional[SectionOffset]:
        ...

    def scroll_metrics(self) -> ScrollMetrics:
        ...

    def chord_line_offsets(self) -> List[ChordLineOffset]:
        ...


@runtime_checkable
class RenderSink(Protocol):
    def on_frame(self, report: TickReport) -> None:
        ...

    def on_loop_restart(self, start_top: float) -> None:
        ...

    def on_scroll_to(self, position: float) -> None:
        ...
