import pytest

import practice_models
import scoring

HitQuality = practice_models.HitQuality


def _hit_event(distance_ms: float) -> practice_models.HitEvent:
    return practice_models.HitEvent(
        chord="Am",
        target_timestamp_ms=1000.0,
        time_ms=1000.0 + distance_ms,
        result=scoring.process_hit(distance_ms),
    )


def _miss_event() -> practice_models.MissEvent:
    return practice_models.MissEvent(chord="Am", target_timestamp_ms=1000.0, time_ms=1300.0)


def test_perfect_hit_at_80_ms() -> None:

    """An 80 ms distance is Perfect and worth 100 points."""

    result = scoring.process_hit(80.0)

    assert result.quality is HitQuality.PERFECT
    assert result.points == 100
    assert result.distance_ms == pytest.approx(80.0)


def test_good_hit_at_150_ms() -> None:
    result = scoring.process_hit(150.0)

    assert result.quality is HitQuality.GOOD
    assert result.points == 50


@pytest.mark.parametrize(
    "distance_ms, expected",
    [
        (0.0, HitQuality.PERFECT),
        (99.9, HitQuality.PERFECT),
        (100.0, HitQuality.GOOD),
        (199.9, HitQuality.GOOD),
        (200.0, HitQuality.MISS),
        (-150.0, HitQuality.GOOD),
    ],
)
def test_window_boundaries_are_exclusive(distance_ms: float, expected: HitQuality) -> None:
    assert scoring.classify_distance(distance_ms) is expected


def test_quality_never_improves_with_distance() -> None:

    """Larger distances never yield a better quality or more points."""

    rank = {HitQuality.PERFECT: 0, HitQuality.GOOD: 1, HitQuality.MISS: 2}
    previous = scoring.process_hit(0.0)
    for step in range(1, 300):
        current = scoring.process_hit(float(step))
        assert rank[current.quality] >= rank[previous.quality]
        assert current.points <= previous.points
        previous = current


def test_points_for_rejects_unknown_quality() -> None:
    with pytest.raises(ValueError):
        scoring.points_for("perfect")  # type: ignore[arg-type]


def test_combo_multiplier_at_23_is_3() -> None:
    assert scoring.combo_multiplier(23) == 3
    assert scoring.combo_multiplier(0) == 1
    assert scoring.combo_multiplier(9) == 1
    assert scoring.combo_multiplier(10) == 2


def test_combo_grows_on_hits_and_resets_on_miss() -> None:
    session = practice_models.PracticeSession()
    session = scoring.apply_events(session, [_hit_event(10.0), _hit_event(150.0), _hit_event(20.0)])

    assert session.combo == 3
    assert session.max_combo == 3

    session = scoring.apply_event(session, _miss_event())

    assert session.combo == 0
    assert session.max_combo == 3
    assert session.miss_count == 1

    session = scoring.apply_event(session, _hit_event(10.0))

    assert session.combo == 1
    assert session.max_combo == 3


@pytest.mark.parametrize("hits", [1, 4, 12])
def test_combo_grows_by_one_per_hit_from_any_start(hits: int) -> None:
    session = practice_models.PracticeSession(combo=23, max_combo=30)

    session = scoring.apply_events(session, [_hit_event(10.0 * index) for index in range(hits)])

    assert session.combo == 23 + hits
    assert session.max_combo == max(30, 23 + hits)


def test_score_never_decreases() -> None:
    events = [_hit_event(10.0), _miss_event(), _hit_event(150.0), _miss_event(), _miss_event(), _hit_event(50.0)]
    session = practice_models.PracticeSession()
    previous_score = session.score

    for event in events:
        session = scoring.apply_event(session, event)
        assert session.score >= previous_score
        assert session.max_combo >= session.combo
        previous_score = session.score

    assert session.score == 250
    assert (session.perfect_count, session.good_count, session.miss_count) == (2, 1, 3)


def test_miss_quality_result_counts_as_miss() -> None:
    session = scoring.apply_hit_result(practice_models.PracticeSession(), scoring.process_hit(250.0))

    assert session.miss_count == 1
    assert session.score == 0


def test_multiplier_applies_only_when_enabled() -> None:
    session = practice_models.PracticeSession(combo=9, max_combo=9)
    result = scoring.process_hit(10.0)

    plain = scoring.apply_hit_result(session, result)
    boosted = scoring.apply_hit_result(session, result, apply_multiplier=True)

    assert plain.score == 100
    assert boosted.score == 200
    assert boosted.combo == 10


def test_apply_event_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        scoring.apply_event(practice_models.PracticeSession(), object())  # type: ignore[arg-type]


def test_stars_follow_accuracy() -> None:
    assert scoring.calculate_stars(practice_models.PracticeSession()) == 0
    assert scoring.calculate_stars(practice_models.PracticeSession(perfect_count=20)) == 5
    assert scoring.calculate_stars(practice_models.PracticeSession(perfect_count=1, good_count=1)) == 3
    assert scoring.calculate_stars(practice_models.PracticeSession(perfect_count=1, miss_count=3)) == 1


def test_session_stars_update_with_events() -> None:
    session = scoring.apply_event(practice_models.PracticeSession(), _hit_event(10.0))

    assert session.stars == 5
    assert scoring.accuracy_percent(session) == pytest.approx(100.0)
