import json

import pytest

import practice_config
import practice_models


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch, tmp_path):

    """Isolate every test from the developer's real settings and environment."""

    for name in (
        "CHORD_PRACTICE_CONFIG_PATH",
        "CHORD_PRACTICE_BPM",
        "CHORD_PRACTICE_MAX_BPM",
        "CHORD_PRACTICE_FALL_SPEED",
        "CHORD_PRACTICE_APPLY_MULTIPLIER",
        "CHORD_PRACTICE_LOOP_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(practice_config, "_default_config_candidates", lambda: [tmp_path / "absent.json"])


def _write(path, payload) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_missing_file_falls_back_to_defaults() -> None:
    config, resolved_path = practice_config.load_config()

    assert resolved_path is None
    assert config.tempo.default_bpm == pytest.approx(90.0)
    assert config.tempo.min_bpm == pytest.approx(40.0)
    assert config.tempo.max_bpm == pytest.approx(200.0)
    assert config.scoring.apply_combo_multiplier is False
    assert config.loop.enabled is False


def test_file_values_are_loaded(tmp_path) -> None:
    settings_path = tmp_path / "chord_practice.json"
    _write(
        settings_path,
        {
            "tempo": {"default_bpm": 110, "max_bpm": 240},
            "playfield": {"fall_speed_px_per_sec": 300, "container_height": 800},
            "loop": {"enabled": True, "start_section": 1, "end_section": 2},
        },
    )

    config, resolved_path = practice_config.load_config(settings_path)

    assert resolved_path == settings_path
    assert config.tempo.default_bpm == pytest.approx(110.0)
    assert config.bpm_limits().clamp(235.0) == pytest.approx(235.0)
    assert config.to_loop_range() == practice_models.LoopRange(1, 0, 2, 7)


def test_geometry_places_the_hit_zone_above_the_bottom() -> None:
    config, _ = practice_config.load_config()

    geometry = config.to_geometry()

    assert geometry.hit_zone_y == pytest.approx(480.0)
    assert geometry.spawn_y == pytest.approx(-100.0)
    assert geometry.fall_speed_px_per_sec == pytest.approx(200.0)
    assert geometry.frames_per_second == pytest.approx(60.0)


def test_explicit_path_variable_is_used(tmp_path, monkeypatch) -> None:
    settings_path = tmp_path / "elsewhere.json"
    _write(settings_path, {"scoring": {"apply_combo_multiplier": True}})
    monkeypatch.setenv("CHORD_PRACTICE_CONFIG_PATH", str(settings_path))

    config, resolved_path = practice_config.load_config()

    assert resolved_path == settings_path
    assert config.scoring.apply_combo_multiplier is True


def test_environment_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("CHORD_PRACTICE_BPM", "120")
    monkeypatch.setenv("CHORD_PRACTICE_FALL_SPEED", "250")
    monkeypatch.setenv("CHORD_PRACTICE_APPLY_MULTIPLIER", "yes")
    monkeypatch.setenv("CHORD_PRACTICE_LOOP_ENABLED", "off")

    config, _ = practice_config.load_config()

    assert config.tempo.default_bpm == pytest.approx(120.0)
    assert config.playfield.fall_speed_px_per_sec == pytest.approx(250.0)
    assert config.scoring.apply_combo_multiplier is True
    assert config.loop.enabled is False


def test_malformed_override_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("CHORD_PRACTICE_BPM", "fast")

    config, _ = practice_config.load_config()

    assert config.tempo.default_bpm == pytest.approx(90.0)


def test_unknown_switch_word_leaves_the_file_value(tmp_path, monkeypatch) -> None:
    settings_path = tmp_path / "settings.json"
    _write(settings_path, {"loop": {"enabled": True, "end_line": 3}})
    monkeypatch.setenv("CHORD_PRACTICE_LOOP_ENABLED", "maybe")

    config, _ = practice_config.load_config(settings_path)

    assert config.loop.enabled is True
    assert config.loop.end_line == 3


def test_invalid_json_raises_value_error(tmp_path) -> None:
    settings_path = tmp_path / "broken.json"
    settings_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="not valid JSON"):
        practice_config.load_config(settings_path)


def test_non_object_root_is_rejected(tmp_path) -> None:
    settings_path = tmp_path / "list.json"
    _write(settings_path, [1, 2, 3])

    with pytest.raises(ValueError, match="JSON object"):
        practice_config.load_config(settings_path)


@pytest.mark.parametrize(
    "payload",
    [
        {"tempo": {"min_bpm": 150, "max_bpm": 100}},
        {"tempo": {"max_bpm": 300}},
        {"playfield": {"fall_speed_px_per_sec": 0}},
        {"scroll": {"anchor_ratio": 1.5}},
    ],
)
def test_validation_errors_are_reported(tmp_path, payload) -> None:
    settings_path = tmp_path / "invalid.json"
    _write(settings_path, payload)

    with pytest.raises(ValueError, match="Settings validation failed"):
        practice_config.load_config(settings_path)


def test_explicit_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        practice_config.load_config(tmp_path / "nope.json")


def test_to_json_round_trips_through_the_model() -> None:
    config, _ = practice_config.load_config()

    restored = practice_config.PracticeConfig.model_validate(json.loads(practice_config.to_json(config)))

    assert restored == config
