from __future__ import annotations

from typing import Dict, List, Optional

import pytest

import practice_models


class FakeLayout:

    """Layout service stub with fixed section offsets and a settable scroll position."""

    def __init__(
        self,
        section_offsets: Optional[Dict[int, practice_models.SectionOffset]] = None,
        *,
        scroll_top: float = 0.0,
        scroll_height: float = 1400.0,
        client_height: float = 400.0,
        chord_lines: Optional[List[practice_models.ChordLineOffset]] = None,
    ) -> None:
        self.section_offsets: Dict[int, practice_models.SectionOffset] = dict(section_offsets or {})
        self.scroll_top = float(scroll_top)
        self.scroll_height = float(scroll_height)
        self.client_height = float(client_height)
        self.chord_lines: List[practice_models.ChordLineOffset] = list(chord_lines or [])
        self.scroll_calls: List[float] = []

    def resolve_section_offset(self, section_index: int) -> Optional[practice_models.SectionOffset]:
        return self.section_offsets.get(int(section_index))

    def scroll_metrics(self) -> practice_models.ScrollMetrics:
        return practice_models.ScrollMetrics(
            scroll_top=self.scroll_top,
            scroll_height=self.scroll_height,
            client_height=self.client_height,
        )

    def chord_line_offsets(self) -> List[practice_models.ChordLineOffset]:
        return list(self.chord_lines)

    def scroll_to(self, position: float) -> None:
        self.scroll_calls.append(float(position))
        limit = max(0.0, self.scroll_height - self.client_height)
        self.scroll_top = min(max(0.0, float(position)), limit)


class FakeRenderSink:

    """Render sink that records everything it is handed."""

    def __init__(self) -> None:
        self.frames: List[practice_models.TickReport] = []
        self.loop_restarts: List[float] = []
        self.scroll_positions: List[float] = []

    def on_frame(self, report: practice_models.TickReport) -> None:
        self.frames.append(report)

    def on_loop_restart(self, start_top: float) -> None:
        self.loop_restarts.append(float(start_top))

    def on_scroll_to(self, position: float) -> None:
        self.scroll_positions.append(float(position))


@pytest.fixture
def geometry() -> practice_models.PlayfieldGeometry:

    """Default playfield: hit zone at 480, spawn at -100, 200 px/s, 600 px tall, 60 fps."""

    return practice_models.PlayfieldGeometry(
        hit_zone_y=480.0,
        spawn_y=-100.0,
        fall_speed_px_per_sec=200.0,
        container_height=600.0,
        frames_per_second=60.0,
    )


@pytest.fixture
def three_section_layout() -> FakeLayout:

    """Three 400 px sections stacked at 0, 400 and 800."""

    return FakeLayout(
        {
            0: practice_models.SectionOffset(top=0.0, height=400.0),
            1: practice_models.SectionOffset(top=400.0, height=400.0),
            2: practice_models.SectionOffset(top=800.0, height=400.0),
        },
        scroll_height=1400.0,
        client_height=400.0,
    )


@pytest.fixture
def render_sink() -> FakeRenderSink:
    return FakeRenderSink()


@pytest.fixture(scope="session")
def qapp():

    """One QCoreApplication for every Qt test in the session."""

    from PyQt6.QtCore import QCoreApplication

    application = QCoreApplication.instance() or QCoreApplication([])
    yield application


@pytest.fixture
def make_layout():

    """Factory for FakeLayout instances with custom offsets and metrics."""

    return FakeLayout
