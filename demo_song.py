# demo_song.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from practice_models import ChordLineOffset, ScrollMetrics, SectionOffset, SongLine, SongSection

DEMO_CHORDS = ["Am", "E7", "G", "D", "F", "C", "Dm"]


def build_demo_song(*, difficulty: str) -> List[SongSection]:
    normalized_difficulty = (difficulty or "easy").strip().lower() or "easy"

    if normalized_difficulty == "hard":
        section_names = ["Intro", "Verse 1", "Chorus", "Verse 2", "Bridge", "Chorus"]
        lines_per_section = 8
    elif normalized_difficulty == "medium":
        section_names = ["Intro", "Verse", "Chorus", "Outro"]
        lines_per_section = 6
    else:
        section_names = ["Verse", "Chorus"]
        lines_per_section = 4

    # Deterministic progression that walks the whole chord set.
    chord_pattern = [
        "Am", "E7", "Am", "G",
        "F", "C", "Dm", "E7",
        "Am", "D", "F", "E7",
    ]

    sections: List[SongSection] = []
    pattern_index = 0

    for section_index, name in enumerate(section_names):
        lines: List[SongLine] = []
        for line_index in range(lines_per_section):
            # The fourth line of every section after the first is a lyric-only pickup.
            if section_index > 0 and line_index == 3:
                lines.append(SongLine(chord=None, lyric=f"{name.lower()} pickup"))
                continue
            chord = chord_pattern[pattern_index % len(chord_pattern)]
            pattern_index += 1
            lines.append(SongLine(chord=chord, lyric=f"{name.lower()} line {line_index + 1}"))
        sections.append(SongSection(name=name, lines=lines))

    return sections


class DemoSheetLayout:
    """
    Fixed-size layout of a song sheet for headless runs.

    Every section is a header followed by equally tall lines. Scrolling is clamped to the
    scrollable range the way a browser clamps scrollTop.
    """

    def __init__(
        self,
        sections: Sequence[SongSection],
        *,
        line_height_px: float = 40.0,
        header_height_px: float = 32.0,
        section_gap_px: float = 16.0,
        client_height_px: float = 400.0,
    ) -> None:
        self._section_offsets: Dict[int, SectionOffset] = {}
        self._chord_lines: List[ChordLineOffset] = []

        top = 0.0
        for section_index, section in enumerate(sections):
            section_top = top
            line_top = section_top + float(header_height_px)
            for line_index, line in enumerate(section.lines):
                if line.chord:
                    self._chord_lines.append(
                        ChordLineOffset(
                            section_index=section_index,
                            line_index=line_index,
                            chord=str(line.chord),
                            top=line_top,
                            height=float(line_height_px),
                        )
                    )
                line_top += float(line_height_px)
            self._section_offsets[section_index] = SectionOffset(top=section_top, height=line_top - section_top)
            top = line_top + float(section_gap_px)

        self._scroll_height = max(0.0, top - float(section_gap_px)) if sections else 0.0
        self._client_height = float(client_height_px)
        self._scroll_top = 0.0

    def resolve_section_offset(self, section_index: int) -> Optional[SectionOffset]:
        return self._section_offsets.get(int(section_index))

    def scroll_metrics(self) -> ScrollMetrics:
        return ScrollMetrics(
            scroll_top=self._scroll_top,
            scroll_height=self._scroll_height,
            client_height=self._client_height,
        )

    def chord_line_offsets(self) -> List[ChordLineOffset]:
        return list(self._chord_lines)

    def scroll_to(self, position: float) -> None:
        limit = max(0.0, self._scroll_height - self._client_height)
        self._scroll_top = min(max(0.0, float(position)), limit)
