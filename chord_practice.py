"""
chord_practice.py

Command line entrypoint for the chord practice engine.

Commands
- simulate: deterministic headless session at a fixed frame rate with an autoplay player.
  Prints a JSON summary (score, combo, counts, stars, loop restarts).
- play: runs PracticeDriver on the Qt event loop against the wall clock for a fixed duration,
  with the same autoplay player feeding chords in real time.
- config: prints the resolved settings as JSON.

The autoplay player strums every chord at its scheduled time plus a fixed offset and can skip
chords by index, which is enough to exercise hits, misses and combo resets without a keyboard.
"""

from __future__ import annotations

import argparse
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import chord_timeline
import demo_song
import loop_region
import practice_config
import practice_engine
import practice_models
import scoring
import scroll_practice
import spawn_scheduler
from practice_clock import ManualClock

logger = logging.getLogger(__name__)


class AutoplayPlayer:
    """Plays the chord sequence back with a fixed timing offset."""

    def __init__(
        self,
        sequence: Sequence[practice_models.ChordSequenceItem],
        *,
        offset_ms: float = 0.0,
        skip_indices: Iterable[int] = (),
    ) -> None:
        self._sequence = sorted(sequence, key=lambda item: float(item.scheduled_time_ms))
        self._offset_ms = float(offset_ms)
        self._skip: Set[int] = {int(index) for index in skip_indices}
        self._cursor = 0

    def reset(self) -> None:
        self._cursor = 0

    def due_inputs(self, now_ms: float) -> List[practice_engine.PendingInput]:
        due: List[practice_engine.PendingInput] = []
        while self._cursor < len(self._sequence):
            item = self._sequence[self._cursor]
            input_time_ms = float(item.scheduled_time_ms) + self._offset_ms
            if input_time_ms > float(now_ms):
                break
            if self._cursor not in self._skip:
                due.append(practice_engine.PendingInput(chord=str(item.chord), at_time_ms=input_time_ms))
            self._cursor += 1
        return due


@dataclass
class SimulationSummary:
    difficulty: str
    bpm: float
    chord_count: int
    frames: int
    end_time_ms: float
    session: practice_models.PracticeSession
    loop_count: int = 0
    scroll_positions: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        session = self.session
        return {
            "difficulty": self.difficulty,
            "bpm": self.bpm,
            "chords": self.chord_count,
            "frames": self.frames,
            "end_time_ms": round(self.end_time_ms, 3),
            "score": session.score,
            "combo": session.combo,
            "max_combo": session.max_combo,
            "perfect": session.perfect_count,
            "good": session.good_count,
            "miss": session.miss_count,
            "stars": session.stars,
            "accuracy_percent": round(scoring.accuracy_percent(session), 2),
            "loop_count": self.loop_count,
            "final_scroll_top": round(self.scroll_positions[-1], 3) if self.scroll_positions else 0.0,
        }


def lead_in_ms(geometry: practice_models.PlayfieldGeometry) -> float:
    """Time before 0 ms the clock must start at so the first chord's spawn window is reachable."""
    travel = spawn_scheduler.travel_time_ms(geometry)
    if not math.isfinite(travel):
        return 0.0
    return max(0.0, travel)


def run_simulation(
    sections: Sequence[practice_models.SongSection],
    config: practice_config.PracticeConfig,
    *,
    difficulty: str = "easy",
    bpm: Optional[float] = None,
    offset_ms: float = 0.0,
    skip_indices: Iterable[int] = (),
    with_scroll: bool = False,
    max_frames: int = 1_000_000,
) -> SimulationSummary:
    limits = config.bpm_limits()
    tempo_bpm = limits.clamp(config.tempo.default_bpm if bpm is None else bpm)
    geometry = config.to_geometry()
    sequence = chord_timeline.build_chord_sequence(sections, tempo_bpm)

    engine = practice_engine.PracticeEngine(
        sequence,
        geometry,
        apply_multiplier=bool(config.scoring.apply_combo_multiplier),
    )
    player = AutoplayPlayer(sequence, offset_ms=offset_ms, skip_indices=skip_indices)
    clock = ManualClock(start_ms=-lead_in_ms(geometry), tempo_bpm=tempo_bpm, limits=limits)
    frame_ms = 1000.0 / float(geometry.frames_per_second)

    layout: Optional[demo_song.DemoSheetLayout] = None
    scroller: Optional[scroll_practice.ScrollPracticeController] = None
    if with_scroll:
        layout = demo_song.DemoSheetLayout(sections)
        scroller = scroll_practice.ScrollPracticeController(
            sections,
            layout,
            tempo_bpm=tempo_bpm,
            limits=limits,
            loop_controller=loop_region.LoopRegionController(
                config.to_loop_range(),
                restart_buffer_px=config.loop.restart_buffer_px,
            ),
            anchor_ratio=config.scroll.anchor_ratio,
        )

    scroll_positions: List[float] = []

    def apply_scroll_commands(commands: Sequence[scroll_practice.ScrollCommand]) -> None:
        assert layout is not None
        for command in commands:
            if command.kind is not scroll_practice.ScrollCommandKind.STOP:
                layout.scroll_to(command.position)
                scroll_positions.append(layout.scroll_metrics().scroll_top)

    engine.start()
    if scroller is not None:
        apply_scroll_commands(scroller.start())
        if config.loop.enabled:
            apply_scroll_commands(scroller.enable_loop())

    frames = 0
    session = engine.session()
    while frames < int(max_frames):
        now_ms = clock.now_ms()
        for pending in player.due_inputs(now_ms):
            engine.submit_chord(pending.chord, pending.at_time_ms)

        report = engine.tick(now_ms)
        if report is not None:
            session = report.session
        if scroller is not None and scroller.is_running():
            apply_scroll_commands(scroller.step(frame_ms / 1000.0).commands)

        frames += 1
        if engine.is_finished(now_ms):
            break
        clock.advance_ms(frame_ms)

    end_time_ms = clock.now_ms()
    loop_count = scroller.loop_controller().loop_count() if scroller is not None else 0
    engine.stop()
    if scroller is not None:
        scroller.stop()

    logger.info("Simulation finished after %d frames with score %d", frames, session.score)
    return SimulationSummary(
        difficulty=str(difficulty),
        bpm=float(tempo_bpm),
        chord_count=len(sequence),
        frames=frames,
        end_time_ms=float(end_time_ms),
        session=session,
        loop_count=loop_count,
        scroll_positions=scroll_positions,
    )


def _parse_skip_indices(text: str) -> List[int]:
    indices: List[int] = []
    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            indices.append(int(part))
        except ValueError as exception:
            raise argparse.ArgumentTypeError(f"Invalid chord index: {part!r}") from exception
    return indices


def _load_config_or_exit(config_path: Optional[str]) -> Optional[practice_config.PracticeConfig]:
    try:
        config, _resolved_path = practice_config.load_config(Path(config_path) if config_path else None)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return None
    return config


def _command_simulate(parsed_args: argparse.Namespace) -> int:
    config = _load_config_or_exit(parsed_args.config)
    if config is None:
        return 2

    sections = demo_song.build_demo_song(difficulty=parsed_args.difficulty)
    summary = run_simulation(
        sections,
        config,
        difficulty=parsed_args.difficulty,
        bpm=parsed_args.bpm,
        offset_ms=parsed_args.offset_ms,
        skip_indices=parsed_args.skip,
        with_scroll=bool(parsed_args.scroll),
    )
    print(json.dumps({"ok": True, "summary": summary.to_dict()}, ensure_ascii=False, indent=2))
    return 0


def _command_play(parsed_args: argparse.Namespace) -> int:
    config = _load_config_or_exit(parsed_args.config)
    if config is None:
        return 2

    from PyQt6.QtCore import QCoreApplication, QTimer

    import practice_driver

    qt_application = QCoreApplication.instance() or QCoreApplication([])

    limits = config.bpm_limits()
    tempo_bpm = limits.clamp(config.tempo.default_bpm if parsed_args.bpm is None else parsed_args.bpm)
    geometry = config.to_geometry()
    sections = demo_song.build_demo_song(difficulty=parsed_args.difficulty)
    sequence = chord_timeline.build_chord_sequence(sections, tempo_bpm)
    layout = demo_song.DemoSheetLayout(sections)

    clock = practice_driver.ElapsedClock(tempo_bpm=tempo_bpm, limits=limits, lead_in_ms=lead_in_ms(geometry))
    engine = practice_engine.PracticeEngine(
        sequence,
        geometry,
        apply_multiplier=bool(config.scoring.apply_combo_multiplier),
    )
    scroller = scroll_practice.ScrollPracticeController(
        sections,
        layout,
        tempo_bpm=tempo_bpm,
        limits=limits,
        loop_controller=loop_region.LoopRegionController(
            config.to_loop_range(),
            restart_buffer_px=config.loop.restart_buffer_px,
        ),
        anchor_ratio=config.scroll.anchor_ratio,
    )
    driver = practice_driver.PracticeDriver(
        clock=clock,
        engine=engine,
        scroll_controller=scroller,
        frames_per_second=geometry.frames_per_second,
    )
    driver.scrollRequested.connect(layout.scroll_to)
    driver.loopRestart.connect(layout.scroll_to)

    player = AutoplayPlayer(sequence, offset_ms=parsed_args.offset_ms, skip_indices=parsed_args.skip)
    last_session: List[practice_models.PracticeSession] = [practice_models.PracticeSession()]

    def on_frame(report: practice_models.TickReport) -> None:
        last_session[0] = report.session
        for event in report.events:
            if isinstance(event, practice_models.HitEvent):
                logger.debug("%s %s (%.1f ms)", event.result.quality.value, event.chord, event.result.distance_ms)

    def feed_player() -> None:
        for pending in player.due_inputs(clock.now_ms()):
            driver.submit_chord(pending.chord, pending.at_time_ms)

    driver.frameReady.connect(on_frame)
    driver.sessionFinished.connect(lambda summary: qt_application.quit())

    input_timer = QTimer()
    input_timer.setInterval(5)
    input_timer.timeout.connect(feed_player)

    QTimer.singleShot(int(max(0.0, float(parsed_args.duration)) * 1000.0), qt_application.quit)

    driver.start()
    if config.loop.enabled:
        for command in scroller.enable_loop():
            layout.scroll_to(command.position)
    input_timer.start()
    qt_application.exec()
    input_timer.stop()

    session = last_session[0]
    driver.stop()

    output_payload = {
        "ok": True,
        "summary": {
            "difficulty": parsed_args.difficulty,
            "bpm": tempo_bpm,
            "chords": len(sequence),
            "score": session.score,
            "max_combo": session.max_combo,
            "perfect": session.perfect_count,
            "good": session.good_count,
            "miss": session.miss_count,
            "stars": session.stars,
            "loop_count": scroller.loop_controller().loop_count(),
        },
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


def _command_config(parsed_args: argparse.Namespace) -> int:
    try:
        config, resolved_path = practice_config.load_config(Path(parsed_args.config) if parsed_args.config else None)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(practice_config.to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--difficulty",
        choices=["easy", "medium", "hard"],
        default="easy",
        help="Length of the demo song.",
    )
    parser.add_argument("--bpm", type=float, default=None, help="Practice tempo (clamped to the configured limits).")
    parser.add_argument(
        "--offset-ms",
        type=float,
        default=0.0,
        help="Autoplay timing offset added to every chord (negative plays early).",
    )
    parser.add_argument(
        "--skip",
        type=_parse_skip_indices,
        default=[],
        help="Comma separated chord indices the autoplay player leaves out.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chord practice engine")
    parser.add_argument("--config", default=None, help="Settings file path (overrides the search order).")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for stderr output.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate_parser = subparsers.add_parser("simulate", help="Run a deterministic headless session.")
    _add_session_arguments(simulate_parser)
    simulate_parser.add_argument("--scroll", action="store_true", help="Also run auto-scroll against a demo layout.")
    simulate_parser.set_defaults(handler=_command_simulate)

    play_parser = subparsers.add_parser("play", help="Run the Qt driver against the wall clock.")
    _add_session_arguments(play_parser)
    play_parser.add_argument("--duration", type=float, default=10.0, help="Seconds to run before stopping.")
    play_parser.set_defaults(handler=_command_play)

    config_parser = subparsers.add_parser("config", help="Print the resolved settings.")
    config_parser.set_defaults(handler=_command_config)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(parsed_args.handler(parsed_args))


if __name__ == "__main__":
    raise SystemExit(main())
