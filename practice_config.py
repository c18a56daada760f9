"""
practice_config.py

Typed practice settings loading and validation for Chord Practice.

Design goals
- Load at most one UTF-8 JSON settings file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- Fall back to defaults when no settings file exists
- No other I/O beyond reading the settings file (no directory creation)

Settings file location
- If CHORD_PRACTICE_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./chord_practice.json (current working directory)
  2) <user config dir>/ChordPractice/ChordPractice/chord_practice.json
  3) <user config dir>/ChordPractice/ChordPractice/config.json

Example settings file (chord_practice.json)
{
  "tempo": {
    "default_bpm": 90,
    "min_bpm": 40,
    "max_bpm": 200
  },
  "playfield": {
    "fall_speed_px_per_sec": 200,
    "spawn_y": -100,
    "hit_zone_offset_px": 120,
    "container_height": 600,
    "frames_per_second": 60
  },
  "scoring": {
    "apply_combo_multiplier": false
  },
  "loop": {
    "enabled": true,
    "start_section": 1,
    "start_line": 0,
    "end_section": 2,
    "end_line": 7
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import practice_models
import tempo

logger = logging.getLogger(__name__)


class TempoConfig(BaseModel):
    default_bpm: float = Field(default=tempo.DEFAULT_BPM, gt=0, description="Starting practice tempo.")
    min_bpm: float = Field(default=tempo.MIN_BPM, gt=0, description="Lowest tempo the practice panel allows.")
    max_bpm: float = Field(
        default=tempo.MAX_BPM,
        gt=0,
        le=tempo.ABSOLUTE_MAX_BPM,
        description="Highest tempo the practice panel allows (200 or up to 240).",
    )

    @model_validator(mode="after")
    def validate_order(self) -> "TempoConfig":
        if self.min_bpm > self.max_bpm:
            raise ValueError("min_bpm must not exceed max_bpm")
        return self


class PlayfieldConfig(BaseModel):
    fall_speed_px_per_sec: float = Field(default=200.0, gt=0, description="Falling note speed in pixels per second.")
    spawn_y: float = Field(default=-100.0, description="Vertical position where notes appear.")
    hit_zone_offset_px: float = Field(default=120.0, ge=0, description="Hit zone distance above the container bottom.")
    container_height: float = Field(default=600.0, gt=0, description="Playfield height in pixels.")
    frames_per_second: float = Field(default=60.0, gt=0, description="Tick cadence of the simulation.")


class ScoringConfig(BaseModel):
    apply_combo_multiplier: bool = Field(default=False, description="Multiply awarded points by the combo multiplier.")


class LoopConfig(BaseModel):
    enabled: bool = Field(default=False, description="Start auto-scroll with looping active.")
    start_section: int = Field(default=0, description="First section of the loop range.")
    start_line: int = Field(default=0, description="First line within the start section.")
    end_section: int = Field(default=0, description="Last section of the loop range.")
    end_line: int = Field(default=7, description="Last line within the end section.")
    restart_buffer_px: float = Field(default=50.0, ge=0, description="Overscroll past the range end before restarting.")


class ScrollConfig(BaseModel):
    anchor_ratio: float = Field(default=0.5, ge=0, le=1, description="Viewport point used to pick the centered chord.")

    @field_validator("anchor_ratio")
    @classmethod
    def round_anchor_ratio(cls, value: float) -> float:
        return round(float(value), 4)


class PracticeConfig(BaseModel):
    tempo: TempoConfig = Field(default_factory=TempoConfig)
    playfield: PlayfieldConfig = Field(default_factory=PlayfieldConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    scroll: ScrollConfig = Field(default_factory=ScrollConfig)

    def bpm_limits(self) -> tempo.BpmLimits:
        return tempo.BpmLimits(
            min_bpm=float(self.tempo.min_bpm),
            max_bpm=float(self.tempo.max_bpm),
            default_bpm=float(self.tempo.default_bpm),
        )

    def to_geometry(self) -> practice_models.PlayfieldGeometry:
        playfield = self.playfield
        return practice_models.PlayfieldGeometry(
            hit_zone_y=float(playfield.container_height) - float(playfield.hit_zone_offset_px),
            spawn_y=float(playfield.spawn_y),
            fall_speed_px_per_sec=float(playfield.fall_speed_px_per_sec),
            container_height=float(playfield.container_height),
            frames_per_second=float(playfield.frames_per_second),
        )

    def to_loop_range(self) -> practice_models.LoopRange:
        # Invalid ranges are kept as-is. The loop controller disables looping for them.
        return practice_models.LoopRange(
            start_section=int(self.loop.start_section),
            start_line=int(self.loop.start_line),
            end_section=int(self.loop.end_section),
            end_line=int(self.loop.end_line),
        )


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("ChordPractice", "ChordPractice"))
    return [
        Path.cwd() / "chord_practice.json",
        config_directory / "chord_practice.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("CHORD_PRACTICE_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _load_settings_object(settings_path: Path) -> Dict[str, Any]:
    # FileNotFoundError propagates unchanged so an explicit but missing path is reported as such.
    text = settings_path.read_text(encoding="utf-8")
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Settings file is not valid JSON: {settings_path} (line {exception.lineno})") from exception
    if not isinstance(loaded, dict):
        raise ValueError(f"Settings file must hold a JSON object, got {type(loaded).__name__}: {settings_path}")
    return loaded


_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def _parse_switch(text: str) -> bool:
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"expected one of {sorted(_TRUE_WORDS | _FALSE_WORDS)}")


# (variable, settings section, field, parser)
_ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("CHORD_PRACTICE_BPM", "tempo", "default_bpm", float),
    ("CHORD_PRACTICE_MAX_BPM", "tempo", "max_bpm", float),
    ("CHORD_PRACTICE_FALL_SPEED", "playfield", "fall_speed_px_per_sec", float),
    ("CHORD_PRACTICE_APPLY_MULTIPLIER", "scoring", "apply_combo_multiplier", _parse_switch),
    ("CHORD_PRACTICE_LOOP_ENABLED", "loop", "enabled", _parse_switch),
)


def _apply_environment_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Layer CHORD_PRACTICE_* variables over the file values. Unparseable values are logged and skipped."""
    merged = {name: dict(value) if isinstance(value, dict) else value for name, value in settings.items()}
    for variable, section_name, field_name, parse in _ENVIRONMENT_OVERRIDES:
        raw = os.environ.get(variable, "").strip()
        if not raw:
            continue
        try:
            parsed = parse(raw)
        except ValueError as exception:
            logger.warning("Ignoring %s=%r: %s", variable, raw, exception)
            continue
        section = merged.get(section_name)
        if not isinstance(section, dict):
            section = {}
            merged[section_name] = section
        section[field_name] = parsed
    return merged


def load_config(config_path: Optional[Path] = None) -> Tuple[PracticeConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    if resolved_path is None:
        logger.info("No settings file found, using defaults")
        settings: Dict[str, Any] = {}
    else:
        settings = _load_settings_object(resolved_path)
        logger.debug("Loaded settings from %s", resolved_path)
    settings = _apply_environment_overrides(settings)

    try:
        config = PracticeConfig.model_validate(settings)
    except ValidationError as exception:
        raise ValueError(f"Settings validation failed for {resolved_path or 'defaults'}:\n{exception}") from exception

    return config, resolved_path


def to_json(config: PracticeConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)
