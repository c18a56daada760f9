import math

import pytest

import chord_timeline
import practice_models
import spawn_scheduler


def _item(chord: str, time_ms: float) -> practice_models.ChordSequenceItem:
    return practice_models.ChordSequenceItem(chord=chord, scheduled_time_ms=time_ms)


def test_travel_time_from_spawn_to_hit_zone(geometry) -> None:

    """580 px at 200 px/s takes 2900 ms."""

    assert spawn_scheduler.travel_time_ms(geometry) == pytest.approx(2900.0)
    assert spawn_scheduler.spawn_time_ms(_item("Am", 3000.0), geometry) == pytest.approx(100.0)


def test_non_positive_speed_never_spawns(geometry) -> None:
    stalled = practice_models.PlayfieldGeometry(
        hit_zone_y=geometry.hit_zone_y,
        spawn_y=geometry.spawn_y,
        fall_speed_px_per_sec=0.0,
        container_height=geometry.container_height,
    )

    assert math.isinf(spawn_scheduler.travel_time_ms(stalled))
    assert not spawn_scheduler.should_spawn(_item("Am", 3000.0), 100.0, stalled)


@pytest.mark.parametrize(
    "now_ms, expected",
    [
        (99.9, False),
        (100.0, True),
        (149.9, True),
        (150.0, False),
    ],
)
def test_spawn_window_is_half_open(geometry, now_ms: float, expected: bool) -> None:
    assert spawn_scheduler.should_spawn(_item("Am", 3000.0), now_ms, geometry) is expected


def test_created_note_starts_at_spawn_line(geometry) -> None:
    note = spawn_scheduler.spawn_note(_item("G", 3000.0), 120.0, geometry, [])

    assert note is not None
    assert note.chord == "G"
    assert note.y == pytest.approx(-100.0)
    assert note.target_timestamp_ms == pytest.approx(3000.0)
    assert note.hit is False
    assert note.quality is None
    assert note.color == chord_timeline.chord_color("G")


def test_spawning_is_idempotent_within_the_window(geometry) -> None:

    """Every tick inside the spawn window yields at most one note per scheduled chord."""

    sequence = [_item("Am", 3000.0)]
    active = []
    for now_ms in (100.0, 116.7, 133.3, 149.0):
        active.extend(spawn_scheduler.spawn_due_notes(sequence, now_ms, geometry, active))

    assert len(active) == 1


def test_duplicate_threshold_uses_target_timestamp(geometry) -> None:
    existing = [spawn_scheduler.create_falling_note(_item("Am", 3000.0), geometry.spawn_y)]

    assert spawn_scheduler.is_already_spawned(existing, 3009.0)
    assert not spawn_scheduler.is_already_spawned(existing, 3010.0)


def test_same_call_dedups_near_identical_items(geometry) -> None:
    sequence = [_item("Am", 3000.0), _item("C", 3005.0), _item("G", 3020.0)]

    spawned = spawn_scheduler.spawn_due_notes(sequence, 125.0, geometry, [])

    assert [note.chord for note in spawned] == ["Am", "G"]
