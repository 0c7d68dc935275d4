# -*- coding: utf-8 -*-
########################
# round_timer.py
########################
# Purpose:
# - Elapsed-time accumulator for one guessing round.
# - Advances only while started, driven by a repeating QTimer.
#
# Design notes:
# - Each tick adds the monotonic clock delta since the previous tick, so the value tracks wall time
#   even if the event loop delivers a tick late.
# - stop() folds the partial interval since the last tick into the value.
# - The clock is injectable so tests can drive ticks deterministically.
#
########################
# Interfaces:
# Public classes:
# - class RoundTimer(PyQt6.QtCore.QObject)
#   - Signals:
#     - elapsedChanged(float)
#   - Methods:
#     - elapsed_seconds() -> float
#     - is_running() -> bool
#     - tick_interval_ms() -> int
#     - start() -> None
#     - stop() -> None
#     - reset() -> None
#     - shutdown() -> None
#
# Inputs:
# - start/stop requests from RoundSession, tied to its state transitions.
#
# Outputs:
# - elapsedChanged for the play and guess screens, elapsed_seconds for scoring.
#
########################

from __future__ import annotations

import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal


DEFAULT_TICK_INTERVAL_MS = 100


class RoundTimer(QObject):
    elapsedChanged = pyqtSignal(float)

    def __init__(
        self,
        *,
        tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._clock = clock
        self._tick_interval_ms = max(1, int(tick_interval_ms))

        self._elapsed_seconds: float = 0.0
        self._last_sample_seconds: Optional[float] = None

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(self._tick_interval_ms)
        self._tick_timer.timeout.connect(self._on_tick)

    def elapsed_seconds(self) -> float:
        return float(self._elapsed_seconds)

    def is_running(self) -> bool:
        return self._last_sample_seconds is not None

    def tick_interval_ms(self) -> int:
        return int(self._tick_interval_ms)

    def start(self) -> None:
        if self.is_running():
            return
        self._last_sample_seconds = float(self._clock())
        self._tick_timer.start()

    def stop(self) -> None:
        if not self.is_running():
            return
        self._tick_timer.stop()
        self._accumulate()
        self._last_sample_seconds = None
        self.elapsedChanged.emit(self.elapsed_seconds())

    def reset(self) -> None:
        self._tick_timer.stop()
        self._last_sample_seconds = None
        self._elapsed_seconds = 0.0
        self.elapsedChanged.emit(0.0)

    def shutdown(self) -> None:
        # Teardown: no further ticks, no further emissions.
        self._tick_timer.stop()
        self._last_sample_seconds = None
        try:
            self._tick_timer.timeout.disconnect(self._on_tick)
        except TypeError:
            pass

    def _accumulate(self) -> None:
        if self._last_sample_seconds is None:
            return
        now_seconds = float(self._clock())
        delta_seconds = now_seconds - self._last_sample_seconds
        if delta_seconds > 0.0:
            self._elapsed_seconds += delta_seconds
        self._last_sample_seconds = now_seconds

    def _on_tick(self) -> None:
        if not self.is_running():
            return
        self._accumulate()
        self.elapsedChanged.emit(self.elapsed_seconds())
