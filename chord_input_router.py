# -*- coding: utf-8 -*-
########################
# chord_input_router.py
########################
# Purpose:
# - Single keyboard listener for chord practice input.
# - Translates QKeyEvent into recognized chord labels and emits a Qt signal with the input time.
#
# Design notes:
# - This must be the only chord input source for the keyboard. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
# - Time source is injected as a callable returning practice time in milliseconds.
# - A chord recognizer (audio or MIDI) can feed PracticeDriver.submit_chord directly instead.
#
########################
# Interfaces:
# Public classes:
# - class ChordInputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - chordRecognized(str, float)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - handle_key_code(key_code: int, *, is_auto_repeat: bool = False) -> bool
#     - release_key_code(key_code: int) -> bool
#     - clear_pressed_keys() -> None
#     - reset_stats() -> None
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - (chord label, time in ms) pairs consumed by PracticeDriver.submit_chord.
#
########################

from __future__ import annotations

from typing import Callable, Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent


def _build_default_key_to_chord_map() -> Dict[int, str]:
    """
    Default chord mapping for the seven practice lanes.

    Keys (home row):
      A = Am, S = E7, D = G, F = D, J = F, K = C, L = Dm
    """
    key_to_chord: Dict[int, str] = {}

    def bind(key_constant: Qt.Key, chord: str) -> None:
        key_to_chord[int(key_constant.value)] = str(chord)

    bind(Qt.Key.Key_A, "Am")
    bind(Qt.Key.Key_S, "E7")
    bind(Qt.Key.Key_D, "G")
    bind(Qt.Key.Key_F, "D")
    bind(Qt.Key.Key_J, "F")
    bind(Qt.Key.Key_K, "C")
    bind(Qt.Key.Key_L, "Dm")

    return key_to_chord


class ChordInputRouter(QObject):
    """
    Central keyboard router for chord practice input.

    This object never judges timing. Its only job is to:
      - map keys to chord labels
      - attach the current practice time from the injected time provider
      - emit chordRecognized for each valid press
    """

    chordRecognized = pyqtSignal(str, float)

    def __init__(
        self,
        time_provider_ms: Callable[[], float],
        parent: Optional[QObject] = None,
        key_to_chord_map: Optional[Dict[int, str]] = None,
    ) -> None:
        super().__init__(parent)

        self._time_provider_ms: Callable[[], float] = time_provider_ms
        self._key_to_chord: Dict[int, str] = (
            dict(key_to_chord_map) if key_to_chord_map is not None else _build_default_key_to_chord_map()
        )

        # Press tracking for debounce and focus loss handling.
        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API used by PracticeDriver
    # ------------------------------------------------------------------

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Handle a Qt key press.

        Returns True if this router consumed the event, False otherwise.
        """
        return self.handle_key_code(int(event.key()), is_auto_repeat=bool(event.isAutoRepeat()))

    def handle_key_release(self, event: QKeyEvent) -> bool:
        key_code = int(event.key())
        if event.isAutoRepeat():
            return key_code in self._key_to_chord
        return self.release_key_code(key_code)

    def handle_key_code(self, key_code: int, *, is_auto_repeat: bool = False) -> bool:
        code = int(key_code)

        # Holding a key must not spam chord inputs.
        if is_auto_repeat or code in self._pressed_keys:
            if code in self._key_to_chord:
                self._ignored_presses += 1
                return True
            return False

        self._pressed_keys.add(code)

        chord = self._key_to_chord.get(code)
        if chord is None:
            return False

        self._total_presses += 1
        self._emit_chord(chord)
        return True

    def release_key_code(self, key_code: int) -> bool:
        code = int(key_code)
        self._pressed_keys.discard(code)
        return code in self._key_to_chord

    def clear_pressed_keys(self) -> None:
        """
        Clear pressed state for all keys.

        Called by the driver on focus loss or window deactivation.
        """
        self._pressed_keys.clear()

    def reset_stats(self) -> None:
        self._total_presses = 0
        self._ignored_presses = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit_chord(self, chord: str) -> None:
        time_ms = float(self._time_provider_ms())
        self.chordRecognized.emit(str(chord), time_ms)

    @property
    def key_to_chord_map(self) -> Dict[int, str]:
        return dict(self._key_to_chord)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


def _run_unit_tests() -> None:
    router = ChordInputRouter(lambda: 1250.0)
    received = []
    router.chordRecognized.connect(lambda chord, time_ms: received.append((chord, time_ms)))

    key_a = int(Qt.Key.Key_A.value)
    assert router.handle_key_code(key_a)
    assert router.handle_key_code(key_a)
    assert router.release_key_code(key_a)
    assert not router.handle_key_code(int(Qt.Key.Key_Q.value))

    assert received == [("Am", 1250.0)]
    assert router.ignored_presses == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("chord_input_router.py: ok")
