import pytest

import chord_timeline
import practice_models


def _sections():
    return [
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


def test_chords_land_every_two_beats() -> None:
    sequence = chord_timeline.build_chord_sequence(_sections(), 120.0)

    assert [(item.chord, item.scheduled_time_ms) for item in sequence] == [
        ("Am", 0.0),
        ("G", 1000.0),
        ("C", 2000.0),
    ]


def test_beats_per_chord_is_configurable() -> None:
    sequence = chord_timeline.build_chord_sequence(_sections(), 60.0, beats_per_chord=1)

    assert [item.scheduled_time_ms for item in sequence] == pytest.approx([0.0, 1000.0, 2000.0])


def test_beat_duration() -> None:
    assert chord_timeline.beat_duration_ms(90.0) == pytest.approx(666.6667, rel=1e-6)
    assert chord_timeline.beat_duration_ms(0.0) == 0.0


@pytest.mark.parametrize("chord", ["Am", "E7", "G", "D", "F", "C", "Dm"])
def test_palette_covers_the_practice_chords(chord: str) -> None:
    assert chord_timeline.chord_color(chord) == chord_timeline.CHORD_COLORS[chord]


def test_unknown_chords_get_a_hue_from_their_first_letter() -> None:
    assert chord_timeline.chord_color("Bb") == f"hsl({(ord('B') * 137) % 360}, 70%, 60%)"
    assert chord_timeline.chord_color("Bm7") == chord_timeline.chord_color("Bb")
