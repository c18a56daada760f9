# -*- coding: utf-8 -*-
########################
# practice_driver.py
########################
# Purpose:
# - Qt tick source for practice mode. Drives PracticeEngine and ScrollPracticeController once per frame.
# - Exposes the Render Sink boundary as Qt signals and forwards recognized chords into the engine.
# - Provides ElapsedClock, a wall-clock Audio Clock backed by QElapsedTimer.
#   Time starts at -lead_in_ms so chords scheduled at 0 ms still get a spawn window.
#
# Design notes:
# - This is the only module that owns a timer. The engine and scroll controller stay Qt-free.
# - One timer, one thread: ticks, scroll steps and signal emission all happen on the driver's thread.
# - Chord input may arrive from any thread. PracticeEngine queues it until the next tick.
# - stop() kills the timer and discards the engine state before sessionStopped is emitted.
#   No frame is emitted after stop.
#
########################
# Interfaces:
# Public classes:
# - class ElapsedClock(PyQt6.QtCore.QObject)
#   - Signals:
#     - tempoChanged(float)
#   - Methods:
#     - start() -> None
#     - now_ms() -> float
#     - current_tempo_bpm() -> float
#     - set_tempo_bpm(bpm: float) -> float
#
# - class PracticeDriver(PyQt6.QtCore.QObject)
#   - Signals:
#     - frameReady(TickReport)
#     - scrollFrameReady(ScrollFrame)
#     - scrollRequested(float)
#     - loopRestart(float)
#     - sessionFinished(PracticeSession)
#     - sessionStopped()
#   - Methods:
#     - attach_render_sink(sink: RenderSink) -> None
#     - attach_input_router(router: ChordInputRouter) -> None
#     - is_running() -> bool
#     - start() -> None
#     - stop() -> None
#     - set_tempo_bpm(bpm: float) -> float
#     - submit_chord(chord: str, time_ms: float) -> None
#     - tick() -> None
#
# Inputs:
# - AudioClock time, recognized chords, layout through ScrollPracticeController.
#
# Outputs:
# - Per-frame TickReport and ScrollFrame signals, discrete scroll and loop restart commands.
#
########################

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QElapsedTimer, QObject, Qt, pyqtSignal

import chord_input_router
import practice_engine
import practice_models
import scroll_practice
import tempo

logger = logging.getLogger(__name__)


class ElapsedClock(QObject):
    tempoChanged = pyqtSignal(float)

    def __init__(
        self,
        *,
        tempo_bpm: float = tempo.DEFAULT_BPM,
        limits: tempo.BpmLimits = tempo.DEFAULT_LIMITS,
        lead_in_ms: float = 0.0,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._limits = limits
        self._lead_in_ms = max(0.0, float(lead_in_ms))
        self._tempo_bpm = limits.clamp(tempo_bpm)
        self._timer = QElapsedTimer()

    def start(self) -> None:
        self._timer.start()

    def now_ms(self) -> float:
        if not self._timer.isValid():
            return -self._lead_in_ms
        return float(self._timer.nsecsElapsed()) / 1_000_000.0 - self._lead_in_ms

    def current_tempo_bpm(self) -> float:
        return float(self._tempo_bpm)

    def set_tempo_bpm(self, bpm: float) -> float:
        self._tempo_bpm = self._limits.clamp(bpm)
        self.tempoChanged.emit(float(self._tempo_bpm))
        return float(self._tempo_bpm)


class PracticeDriver(QObject):
    frameReady = pyqtSignal(object)
    scrollFrameReady = pyqtSignal(object)
    scrollRequested = pyqtSignal(float)
    loopRestart = pyqtSignal(float)
    sessionFinished = pyqtSignal(object)
    sessionStopped = pyqtSignal()

    def __init__(
        self,
        *,
        clock: practice_models.AudioClock,
        engine: Optional[practice_engine.PracticeEngine] = None,
        scroll_controller: Optional[scroll_practice.ScrollPracticeController] = None,
        frames_per_second: float = 60.0,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._clock = clock
        self._engine = engine
        self._scroll = scroll_controller
        fps = float(frames_per_second) if float(frames_per_second) > 0.0 else 60.0
        self._interval_ms = max(1, int(round(1000.0 / fps)))
        self._timer_id: int = 0
        self._running = False
        self._last_tick_ms: Optional[float] = None

    @property
    def engine(self) -> Optional[practice_engine.PracticeEngine]:
        return self._engine

    @property
    def scroll_controller(self) -> Optional[scroll_practice.ScrollPracticeController]:
        return self._scroll

    def attach_render_sink(self, sink: practice_models.RenderSink) -> None:
        self.frameReady.connect(sink.on_frame)
        self.loopRestart.connect(sink.on_loop_restart)
        self.scrollRequested.connect(sink.on_scroll_to)

    def attach_input_router(self, router: chord_input_router.ChordInputRouter) -> None:
        router.chordRecognized.connect(self.submit_chord)

    def is_running(self) -> bool:
        return bool(self._running)

    # -----------------
    # Lifecycle
    # -----------------

    def start(self) -> None:
        if self._running:
            return
        start_method = getattr(self._clock, "start", None)
        if callable(start_method):
            start_method()

        if self._engine is not None:
            self._engine.start()
        if self._scroll is not None:
            self._emit_scroll_commands(self._scroll.start())

        self._last_tick_ms = float(self._clock.now_ms())
        self._timer_id = self.startTimer(self._interval_ms, Qt.TimerType.PreciseTimer)
        self._running = True
        logger.info("Practice driver started (%d ms interval)", self._interval_ms)

    def stop(self) -> None:
        if self._timer_id:
            self.killTimer(self._timer_id)
            self._timer_id = 0
        was_running = self._running
        self._running = False
        self._last_tick_ms = None

        if self._engine is not None:
            self._engine.stop()
        if self._scroll is not None:
            self._scroll.stop()

        if was_running:
            logger.info("Practice driver stopped")
            self.sessionStopped.emit()

    def set_tempo_bpm(self, bpm: float) -> float:
        """Apply a tempo change to the clock and the scroll controller, returning the clamped value."""
        applied = float(bpm)
        set_clock_tempo = getattr(self._clock, "set_tempo_bpm", None)
        if callable(set_clock_tempo):
            applied = float(set_clock_tempo(applied))
        if self._scroll is not None:
            applied = self._scroll.set_tempo_bpm(applied)
        return applied

    def submit_chord(self, chord: str, time_ms: float) -> None:
        if self._engine is None:
            return
        self._engine.submit_chord(str(chord), float(time_ms))

    # -----------------
    # Timer loop
    # -----------------

    def timerEvent(self, event) -> None:  # type: ignore[override]
        if event.timerId() != self._timer_id:
            return
        self.tick()

    def tick(self) -> None:
        if not self._running:
            return

        now_ms = float(self._clock.now_ms())

        if self._engine is not None:
            report = self._engine.tick(now_ms)
            if report is not None:
                self.frameReady.emit(report)

        if self._scroll is not None:
            previous_ms = self._last_tick_ms if self._last_tick_ms is not None else now_ms
            elapsed_seconds = max(0.0, now_ms - previous_ms) / 1000.0
            frame = self._scroll.step(elapsed_seconds)
            self._emit_scroll_commands(frame.commands)
            self.scrollFrameReady.emit(frame)

        self._last_tick_ms = now_ms

        # An engine stopped from outside has no session left to report.
        if self._engine is not None and self._engine.is_running() and self._engine.is_finished(now_ms):
            summary = self._engine.session()
            self.stop()
            self.sessionFinished.emit(summary)

    def _emit_scroll_commands(self, commands) -> None:
        for command in commands:
            if command.kind is scroll_practice.ScrollCommandKind.LOOP_RESTART:
                self.loopRestart.emit(float(command.position))
            elif command.kind is scroll_practice.ScrollCommandKind.SCROLL_TO:
                self.scrollRequested.emit(float(command.position))
            elif command.kind is scroll_practice.ScrollCommandKind.STOP:
                logger.info("Auto-scroll reached the end of the sheet")
