# -*- coding: utf-8 -*-
########################
# practice_engine.py
########################
# Purpose:
# - Falling-chord practice session: owns the active notes and the PracticeSession record.
# - Runs one tick in the fixed order: pending hits, positions, misses, spawns.
# - Queues recognized chords from any thread and resolves them on the next tick.
#
# Design notes:
# - No Qt usage. The tick source is external (PracticeDriver or a test loop).
# - One lock guards the note set, the pending input queue and the session. No two mutations interleave.
# - Pending hits resolve before misses are evaluated, so an on-time hit is never miss-scored.
# - stop() discards notes, pending input and the session together. Ticks after stop return None.
# - Inputs that match no live note are ignored, never penalized.
#
########################
# Interfaces:
# Public dataclasses:
# - PendingInput(chord: str, at_time_ms: float)
#
# Public classes:
# - class PracticeEngine
#   - __init__(sequence: list[ChordSequenceItem], geometry: PlayfieldGeometry, *, apply_multiplier: bool = False)
#   - sequence() -> list[ChordSequenceItem]
#   - geometry() -> PlayfieldGeometry
#   - set_geometry(geometry: PlayfieldGeometry) -> None
#   - is_running() -> bool
#   - start() -> None
#   - stop() -> None
#   - restart() -> None
#   - session() -> PracticeSession
#   - active_notes() -> list[FallingNote]
#   - submit_chord(chord: str, at_time_ms: float) -> bool
#   - tick(now_ms: float) -> Optional[TickReport]
#   - is_finished(now_ms: float) -> bool
#
# Inputs:
# - Chord sequence, playfield geometry, recognized chords, clock time per tick.
#
# Outputs:
# - TickReport per tick for the Render Sink.
#
########################

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
import logging
import threading
from typing import List, Optional, Sequence

import hit_detector
import note_simulator
import practice_models
import scoring
import spawn_scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingInput:
    chord: str
    at_time_ms: float


class PracticeEngine:
    def __init__(
        self,
        sequence: Sequence[practice_models.ChordSequenceItem],
        geometry: practice_models.PlayfieldGeometry,
        *,
        apply_multiplier: bool = False,
    ) -> None:
        self._sequence: List[practice_models.ChordSequenceItem] = sorted(
            sequence, key=lambda item: float(item.scheduled_time_ms)
        )
        self._simulator = note_simulator.NoteSimulator(geometry)
        self._apply_multiplier = bool(apply_multiplier)

        self._lock = threading.Lock()
        self._running = False
        self._session = practice_models.PracticeSession()
        self._pending: List[PendingInput] = []
        self._spawn_cursor = 0

    def sequence(self) -> List[practice_models.ChordSequenceItem]:
        return list(self._sequence)

    def geometry(self) -> practice_models.PlayfieldGeometry:
        return self._simulator.geometry()

    def set_geometry(self, geometry: practice_models.PlayfieldGeometry) -> None:
        with self._lock:
            self._simulator.set_geometry(geometry)

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._running)

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._reset_locked()
            self._running = True
        logger.info("Practice session started with %d chords", len(self._sequence))

    def stop(self) -> None:
        with self._lock:
            was_running = self._running
            self._running = False
            self._reset_locked()
        if was_running:
            logger.info("Practice session stopped")

    def restart(self) -> None:
        with self._lock:
            self._reset_locked()
            self._running = True
        logger.info("Practice session restarted")

    def session(self) -> practice_models.PracticeSession:
        with self._lock:
            return self._session

    def active_notes(self) -> List[practice_models.FallingNote]:
        with self._lock:
            return [dataclasses.replace(note) for note in self._simulator.active_notes()]

    def submit_chord(self, chord: str, at_time_ms: float) -> bool:
        with self._lock:
            if not self._running:
                return False
            self._pending.append(PendingInput(chord=str(chord), at_time_ms=float(at_time_ms)))
            return True

    def tick(self, now_ms: float) -> Optional[practice_models.TickReport]:
        now = float(now_ms)
        with self._lock:
            if not self._running:
                return None

            events: List[practice_models.PracticeEvent] = []
            events.extend(self._resolve_pending_locked())

            misses = self._simulator.advance(now)
            for miss in misses:
                logger.debug("Missed %s scheduled at %.1f ms", miss.chord, miss.target_timestamp_ms)
                self._session = scoring.apply_event(self._session, miss)
            events.extend(misses)

            self._spawn_locked(now)

            return practice_models.TickReport(
                time_ms=now,
                active_notes=[dataclasses.replace(note) for note in self._simulator.active_notes()],
                session=self._session,
                events=events,
            )

    def is_finished(self, now_ms: float) -> bool:
        """True once every chord has spawned and no live note remains."""
        with self._lock:
            self._advance_spawn_cursor_locked(float(now_ms))
            return self._spawn_cursor >= len(self._sequence) and not self._simulator.active_notes()

    def _reset_locked(self) -> None:
        self._simulator.clear()
        self._pending.clear()
        self._session = practice_models.PracticeSession()
        self._spawn_cursor = 0

    def _resolve_pending_locked(self) -> List[practice_models.PracticeEvent]:
        resolved: List[practice_models.PracticeEvent] = []
        pending = list(self._pending)
        self._pending.clear()

        for item in pending:
            match = hit_detector.detect_hit(self._simulator.active_notes(), item.chord, item.at_time_ms)
            if match is None:
                logger.debug("Ignored %s at %.1f ms: no live note in window", item.chord, item.at_time_ms)
                continue

            result = scoring.process_hit(match.distance_ms)
            match.note.quality = result.quality
            event = practice_models.HitEvent(
                chord=str(match.note.chord),
                target_timestamp_ms=float(match.note.target_timestamp_ms),
                time_ms=float(item.at_time_ms),
                result=result,
            )
            self._session = scoring.apply_event(self._session, event, apply_multiplier=self._apply_multiplier)
            resolved.append(event)
        return resolved

    def _advance_spawn_cursor_locked(self, now: float) -> None:
        travel = spawn_scheduler.travel_time_ms(self._simulator.geometry())
        while self._spawn_cursor < len(self._sequence):
            item = self._sequence[self._spawn_cursor]
            window_end = float(item.scheduled_time_ms) - travel + spawn_scheduler.SPAWN_WINDOW_MS
            if window_end > now:
                break
            self._spawn_cursor += 1

    def _spawn_locked(self, now: float) -> None:
        geometry = self._simulator.geometry()
        self._advance_spawn_cursor_locked(now)

        travel = spawn_scheduler.travel_time_ms(geometry)
        end = self._spawn_cursor
        while end < len(self._sequence) and float(self._sequence[end].scheduled_time_ms) - travel <= now:
            end += 1
        if end == self._spawn_cursor:
            return

        spawned = spawn_scheduler.spawn_due_notes(
            self._sequence[self._spawn_cursor:end],
            now,
            geometry,
            self._simulator.active_notes(),
        )
        self._simulator.insert(spawned)


def _run_unit_tests() -> None:
    geometry = practice_models.PlayfieldGeometry(
        hit_zone_y=480.0,
        spawn_y=-100.0,
        fall_speed_px_per_sec=200.0,
        container_height=600.0,
    )
    sequence = [practice_models.ChordSequenceItem(chord="Am", scheduled_time_ms=3000.0)]
    engine = PracticeEngine(sequence, geometry)
    assert engine.tick(0.0) is None

    engine.start()
    report = engine.tick(100.0)
    assert report is not None and len(report.active_notes) == 1

    assert engine.submit_chord("Am", 3040.0)
    report = engine.tick(116.0)
    assert report is not None
    assert report.session.perfect_count == 1 and report.session.score == 100

    engine.stop()
    assert engine.tick(132.0) is None
    assert engine.session() == practice_models.PracticeSession()


if __name__ == "__main__":
    _run_unit_tests()
    print("practice_engine.py: ok")
