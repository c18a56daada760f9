import pytest

import loop_region
import practice_models
import scroll_practice

CommandKind = scroll_practice.ScrollCommandKind


def _five_chord_sections():
    return [
        practice_models.SongSection(
            name="Verse",
            lines=[practice_models.SongLine(chord=chord) for chord in ("Am", "E7", "G", "C", "Am")],
        )
    ]


def _apply(layout, commands) -> None:
    for command in commands:
        if command.kind is not CommandKind.STOP:
            layout.scroll_to(command.position)


def test_scrolls_at_the_tempo_synchronized_velocity(make_layout) -> None:
    layout = make_layout(scroll_height=1400.0, client_height=400.0)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)

    assert controller.start() == []
    frame = controller.step(1.0)

    assert frame.velocity_px_per_sec == pytest.approx(150.0)
    assert [command.kind for command in frame.commands] == [CommandKind.SCROLL_TO]
    assert frame.commands[0].position == pytest.approx(150.0)
    assert frame.is_running is True


def test_fractional_position_accumulates_across_frames(make_layout) -> None:
    layout = make_layout(scroll_height=1400.0, client_height=400.0)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)
    controller.start()

    for _ in range(60):
        _apply(layout, controller.step(1.0 / 60.0).commands)

    assert layout.scroll_top == pytest.approx(150.0)


def test_manual_scroll_is_picked_up(make_layout) -> None:
    layout = make_layout(scroll_height=1400.0, client_height=400.0)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)
    controller.start()

    layout.scroll_to(500.0)
    frame = controller.step(1.0)

    assert frame.commands[0].position == pytest.approx(650.0)


def test_stops_at_the_bottom_without_a_loop(make_layout) -> None:
    layout = make_layout(scroll_top=990.0, scroll_height=1400.0, client_height=400.0)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)
    controller.start()

    frame = controller.step(1.0)

    assert [command.kind for command in frame.commands] == [CommandKind.SCROLL_TO, CommandKind.STOP]
    assert frame.commands[0].position == pytest.approx(1000.0)
    assert frame.is_running is False
    assert controller.is_running() is False


def test_unlaid_sheet_keeps_running(make_layout) -> None:
    layout = make_layout(scroll_height=0.0, client_height=400.0)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)
    controller.start()

    frame = controller.step(1.0)

    assert frame.velocity_px_per_sec == 0.0
    assert frame.is_running is True
    assert all(command.kind is not CommandKind.STOP for command in frame.commands)


def test_loop_restarts_past_the_range_end(three_section_layout) -> None:
    loop_controller = loop_region.LoopRegionController(practice_models.LoopRange(1, 0, 1, 7))
    controller = scroll_practice.ScrollPracticeController(
        _five_chord_sections(),
        three_section_layout,
        tempo_bpm=90.0,
        loop_controller=loop_controller,
    )
    controller.start()

    seek = controller.enable_loop()
    assert [(command.kind, command.position) for command in seek] == [(CommandKind.SCROLL_TO, 400.0)]
    _apply(three_section_layout, seek)

    frame = controller.step(0.5)

    assert [command.kind for command in frame.commands] == [CommandKind.LOOP_RESTART]
    assert frame.commands[0].position == pytest.approx(400.0)
    assert frame.loop_count == 1
    assert frame.is_running is True


def test_loop_ending_at_the_last_section_restarts_at_the_bottom(make_layout) -> None:
    layout = make_layout(
        {
            0: practice_models.SectionOffset(top=0.0, height=800.0),
            1: practice_models.SectionOffset(top=800.0, height=600.0),
        },
        scroll_top=990.0,
        scroll_height=1400.0,
        client_height=400.0,
    )
    loop_controller = loop_region.LoopRegionController(practice_models.LoopRange(1, 0, 1, 7))
    controller = scroll_practice.ScrollPracticeController(
        _five_chord_sections(),
        layout,
        tempo_bpm=90.0,
        loop_controller=loop_controller,
    )
    loop_controller.enable(layout)
    controller.start()
    _apply(layout, [scroll_practice.ScrollCommand(CommandKind.SCROLL_TO, 990.0)])

    frame = controller.step(1.0)

    assert [command.kind for command in frame.commands] == [CommandKind.LOOP_RESTART]
    assert frame.commands[0].position == pytest.approx(800.0)
    assert controller.is_running() is True


def test_loop_on_a_short_final_section_stops_at_the_bottom(make_layout) -> None:

    """A range starting below the bottom scroll limit never restarts. Auto-scroll stops instead."""

    layout = make_layout(
        {
            0: practice_models.SectionOffset(top=0.0, height=600.0),
            1: practice_models.SectionOffset(top=600.0, height=700.0),
            2: practice_models.SectionOffset(top=1300.0, height=100.0),
        },
        scroll_height=1400.0,
        client_height=400.0,
    )
    loop_controller = loop_region.LoopRegionController(practice_models.LoopRange(2, 0, 2, 0))
    controller = scroll_practice.ScrollPracticeController(
        _five_chord_sections(),
        layout,
        tempo_bpm=90.0,
        loop_controller=loop_controller,
    )
    controller.start()
    _apply(layout, controller.enable_loop())
    assert layout.scroll_top == pytest.approx(1000.0)

    kinds = []
    for _ in range(60):
        frame = controller.step(1.0 / 60.0)
        kinds.extend(command.kind for command in frame.commands)
        _apply(layout, frame.commands)

    assert CommandKind.LOOP_RESTART not in kinds
    assert kinds == [CommandKind.SCROLL_TO, CommandKind.STOP]
    assert loop_controller.loop_count() == 0
    assert layout.scroll_top == pytest.approx(1000.0)
    assert controller.is_running() is False


def test_reset_loop_seeks_to_the_range_start(three_section_layout) -> None:
    loop_controller = loop_region.LoopRegionController(practice_models.LoopRange(1, 0, 1, 7))
    controller = scroll_practice.ScrollPracticeController(
        _five_chord_sections(),
        three_section_layout,
        loop_controller=loop_controller,
    )
    controller.start()
    controller.enable_loop()

    commands = controller.reset_loop()

    assert [command.position for command in commands] == [400.0]
    assert loop_controller.loop_count() == 0


def test_tempo_requests_are_clamped(make_layout) -> None:
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), make_layout(), tempo_bpm=90.0)

    assert controller.set_tempo_bpm(500.0) == pytest.approx(200.0)
    assert controller.adjust_tempo(-300.0) == pytest.approx(40.0)
    assert controller.apply_tempo_preset(0.75) == pytest.approx(67.0)
    assert controller.tempo_bpm() == pytest.approx(67.0)


def test_frame_reports_the_centered_chord(make_layout) -> None:
    lines = [
        practice_models.ChordLineOffset(section_index=0, line_index=0, chord="Am", top=180.0, height=40.0),
        practice_models.ChordLineOffset(section_index=0, line_index=1, chord="E7", top=480.0, height=40.0),
    ]
    layout = make_layout(scroll_height=1400.0, client_height=400.0, chord_lines=lines)
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), layout, tempo_bpm=90.0)

    assert controller.step(1.0).active_chord.chord == "Am"

    controller.start()
    frame = controller.step(2.0)

    assert frame.commands[0].position == pytest.approx(300.0)
    assert frame.active_chord.chord == "E7"


def test_stopped_controller_emits_nothing(make_layout) -> None:
    controller = scroll_practice.ScrollPracticeController(_five_chord_sections(), make_layout())

    frame = controller.step(1.0)

    assert frame.commands == []
    assert frame.velocity_px_per_sec == 0.0
    assert frame.is_running is False
