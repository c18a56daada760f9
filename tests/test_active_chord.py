import active_chord
import practice_models


def _line(section: int, line: int, top: float, *, chord="Am", height: float = 40.0) -> practice_models.ChordLineOffset:
    return practice_models.ChordLineOffset(section_index=section, line_index=line, chord=chord, top=top, height=height)


def _metrics(scroll_top: float) -> practice_models.ScrollMetrics:
    return practice_models.ScrollMetrics(scroll_top=scroll_top, scroll_height=2000.0, client_height=400.0)


def test_anchor_is_the_viewport_center() -> None:
    assert active_chord.viewport_anchor(_metrics(100.0)) == 300.0
    assert active_chord.viewport_anchor(_metrics(100.0), 0.0) == 100.0


def test_closest_line_to_center_wins() -> None:
    lines = [_line(0, 0, 0.0), _line(0, 1, 180.0), _line(0, 2, 400.0)]

    closest = active_chord.find_closest_active_chord(lines, _metrics(0.0))

    assert closest is not None
    assert (closest.section_index, closest.line_index) == (0, 1)


def test_lines_without_chords_are_skipped() -> None:
    lines = [_line(0, 0, 180.0, chord=None), _line(0, 1, 400.0)]

    closest = active_chord.find_closest_active_chord(lines, _metrics(0.0))

    assert closest is not None
    assert closest.line_index == 1


def test_ties_go_to_the_earlier_line_in_song_order() -> None:
    later = _line(1, 0, 260.0)
    earlier = _line(0, 3, 100.0)

    closest = active_chord.find_closest_active_chord([later, earlier], _metrics(0.0))

    assert closest is earlier


def test_no_chord_lines_gives_none(make_layout) -> None:
    assert active_chord.find_closest_active_chord([], _metrics(0.0)) is None
    assert active_chord.closest_active_chord_for_layout(make_layout()) is None


def test_layout_lookup_follows_scroll_position(make_layout) -> None:
    layout = make_layout(chord_lines=[_line(0, 0, 180.0), _line(0, 1, 580.0)])

    assert active_chord.closest_active_chord_for_layout(layout).line_index == 0

    layout.scroll_to(400.0)
    assert active_chord.closest_active_chord_for_layout(layout).line_index == 1
