# -*- coding: utf-8 -*-
########################
# round_session.py
########################
# Purpose:
# - State machine for one guessing round: start a track, let it play, pause to guess, score the guess.
# - Owns the RoundTimer and the per-round fields (track, guess, result, error text).
#
# Design notes:
# - Single writer: only the transition methods below mutate round fields.
# - Timer start/stop happens synchronously inside the transition that causes it.
# - Pausing the player is fire-and-forget. The session moves to GUESSING on request, not on confirmation.
# - Pause-and-guess is accepted from AWAITING_PLAYBACK too; the guess is then scored with elapsed 0.
# - Player errors never change state. They are surfaced through errorChanged and the round stays usable.
# - Supplying a track mid-round fully resets timer, guess and result before the new track starts.
# - "Play again" clears the round and calls the caller's hook; the caller owns the played set and the next draw.
#
########################
# Interfaces:
# Public protocols:
# - PlayerPort
#   - Signals: playerReadyChanged(bool), playingChanged(bool), errorOccurred(str)
#   - Methods: is_ready() -> bool, is_playing() -> bool, load_track(track, *, autoplay=True) -> None,
#              play() -> None, pause() -> None
#
# Public dataclasses:
# - RoundSnapshot(state, track, guess, result, elapsed_seconds, error_text)
#
# Public classes:
# - class RoundSession(PyQt6.QtCore.QObject)
#   - Signals:
#     - stateChanged(RoundState)
#     - trackChanged(Optional[Track])
#     - elapsedChanged(float)
#     - guessChanged(Guess)
#     - resultReady(GuessResult)
#     - roundCompleted(int)
#     - errorChanged(str)
#   - Methods:
#     - state(), track(), guess(), result(), elapsed_seconds(), error_text(), snapshot()
#     - set_play_again_hook(hook: Optional[Callable[[], None]]) -> None
#     - set_track(track: Track) -> None
#     - request_pause_and_guess() -> bool
#     - set_title_guess(text: str) -> bool
#     - set_artist_guess(text: str) -> bool
#     - submit_guess() -> Optional[GuessResult]
#     - play_again() -> bool
#     - shutdown() -> None
#
# Inputs:
# - Tracks from GameController, player signals, user intents from MainWindow.
#
# Outputs:
# - Player commands (load_track, pause), roundCompleted score once per SCORED transition.
#
########################

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

import round_timer
import similarity
from gameplay_models import Guess, GuessResult, RoundState, Track


logger = logging.getLogger(__name__)


class PlayerPort(Protocol):
    playerReadyChanged: Any
    playingChanged: Any
    errorOccurred: Any

    def is_ready(self) -> bool:
        ...

    def is_playing(self) -> bool:
        ...

    def load_track(self, track: Track, *, autoplay: bool = True) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...


@dataclass(frozen=True)
class RoundSnapshot:
    state: RoundState
    track: Optional[Track]
    guess: Guess
    result: Optional[GuessResult]
    elapsed_seconds: float
    error_text: str


class RoundSession(QObject):
    stateChanged = pyqtSignal(object)
    trackChanged = pyqtSignal(object)
    elapsedChanged = pyqtSignal(float)
    guessChanged = pyqtSignal(object)
    resultReady = pyqtSignal(object)
    roundCompleted = pyqtSignal(int)
    errorChanged = pyqtSignal(str)

    def __init__(
        self,
        *,
        player: PlayerPort,
        scoring_rules: Optional[similarity.ScoringRules] = None,
        timer: Optional[round_timer.RoundTimer] = None,
        tick_interval_ms: int = round_timer.DEFAULT_TICK_INTERVAL_MS,
        play_again_hook: Optional[Callable[[], None]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._player = player
        self._scoring_rules = scoring_rules if scoring_rules is not None else similarity.ScoringRules()
        self._timer = timer if timer is not None else round_timer.RoundTimer(tick_interval_ms=tick_interval_ms, parent=self)
        self._play_again_hook = play_again_hook

        self._state: RoundState = RoundState.UNINITIALIZED
        self._track: Optional[Track] = None
        self._guess = Guess()
        self._result: Optional[GuessResult] = None
        self._error_text: str = ""
        self._is_shut_down = False

        self._timer.elapsedChanged.connect(self.elapsedChanged)

        self._player.playerReadyChanged.connect(self._on_player_ready_changed)
        self._player.playingChanged.connect(self._on_player_playing_changed)
        self._player.errorOccurred.connect(self._on_player_error)

    # -----------------
    # Read access
    # -----------------

    @property
    def timer(self) -> round_timer.RoundTimer:
        return self._timer

    def state(self) -> RoundState:
        return self._state

    def track(self) -> Optional[Track]:
        return self._track

    def guess(self) -> Guess:
        return self._guess

    def result(self) -> Optional[GuessResult]:
        return self._result

    def elapsed_seconds(self) -> float:
        return self._timer.elapsed_seconds()

    def error_text(self) -> str:
        return self._error_text

    def snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            state=self._state,
            track=self._track,
            guess=self._guess,
            result=self._result,
            elapsed_seconds=self.elapsed_seconds(),
            error_text=self._error_text,
        )

    def set_play_again_hook(self, hook: Optional[Callable[[], None]]) -> None:
        self._play_again_hook = hook

    # -----------------
    # Transitions
    # -----------------

    def set_track(self, track: Track) -> None:
        if self._is_shut_down:
            return

        if self._state not in (RoundState.UNINITIALIZED, RoundState.SCORED):
            logger.info("Track %s replaces round in state %s", track.track_id, self._state.value)

        self._clear_round_fields()
        self._track = track
        self._set_error("")
        self._set_state(RoundState.UNINITIALIZED)
        self.trackChanged.emit(track)

        self._begin_playback_if_ready()

    def request_pause_and_guess(self) -> bool:
        # A video that never starts (embed refused, removed) can still be guessed at elapsed 0.
        if self._state not in (RoundState.AWAITING_PLAYBACK, RoundState.PLAYING):
            logger.debug("Pause-and-guess ignored in state %s", self._state.value)
            return False

        self._timer.stop()
        self._set_state(RoundState.GUESSING)

        try:
            self._player.pause()
        except Exception as exc:
            logger.warning("Player pause request failed: %s", exc)
            self._set_error(f"Could not pause playback: {exc}")
        return True

    def set_title_guess(self, text: str) -> bool:
        if self._state != RoundState.GUESSING:
            return False
        self._guess = Guess(title_guess=str(text or ""), artist_guess=self._guess.artist_guess)
        self.guessChanged.emit(self._guess)
        return True

    def set_artist_guess(self, text: str) -> bool:
        if self._state != RoundState.GUESSING:
            return False
        self._guess = Guess(title_guess=self._guess.title_guess, artist_guess=str(text or ""))
        self.guessChanged.emit(self._guess)
        return True

    def submit_guess(self) -> Optional[GuessResult]:
        if self._state != RoundState.GUESSING or self._track is None:
            logger.debug("Submit ignored in state %s", self._state.value)
            return None

        result = similarity.score_guess(self._guess, self._track, self._timer.elapsed_seconds(), self._scoring_rules)
        self._result = result
        self._set_state(RoundState.SCORED)

        logger.info(
            "Round scored: track=%s score=%d correct=%s elapsed=%.1fs",
            self._track.track_id,
            result.score,
            result.is_correct,
            result.elapsed_seconds,
        )
        self.resultReady.emit(result)
        self.roundCompleted.emit(int(result.score))
        return result

    def play_again(self) -> bool:
        if self._state != RoundState.SCORED:
            logger.debug("Play again ignored in state %s", self._state.value)
            return False

        self._clear_round_fields()
        self._track = None
        self._set_error("")
        self._set_state(RoundState.UNINITIALIZED)
        self.trackChanged.emit(None)

        hook = self._play_again_hook
        if hook is None:
            return True
        try:
            hook()
        except Exception as exc:
            logger.exception("Play again hook failed")
            self._set_error(f"Could not start the next round: {exc}")
        return True

    def shutdown(self) -> None:
        if self._is_shut_down:
            return
        self._is_shut_down = True
        self._timer.shutdown()
        for signal, slot in (
            (self._player.playerReadyChanged, self._on_player_ready_changed),
            (self._player.playingChanged, self._on_player_playing_changed),
            (self._player.errorOccurred, self._on_player_error),
        ):
            try:
                signal.disconnect(slot)
            except TypeError:
                pass

    # -----------------
    # Internals
    # -----------------

    def _clear_round_fields(self) -> None:
        self._timer.reset()
        self._result = None
        if self._guess != Guess():
            self._guess = Guess()
            self.guessChanged.emit(self._guess)

    def _set_state(self, new_state: RoundState) -> None:
        if new_state == self._state:
            return
        logger.debug("Round state %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        self.stateChanged.emit(new_state)

    def _set_error(self, text: str) -> None:
        if text == self._error_text:
            return
        self._error_text = text
        self.errorChanged.emit(text)

    def _begin_playback_if_ready(self) -> None:
        if self._state != RoundState.UNINITIALIZED or self._track is None:
            return
        if not self._player.is_ready():
            logger.debug("Player not ready, holding track %s", self._track.track_id)
            return

        self._set_state(RoundState.AWAITING_PLAYBACK)
        try:
            self._player.load_track(self._track, autoplay=True)
        except Exception as exc:
            logger.warning("Player failed to load track %s: %s", self._track.track_id, exc)
            self._set_error(f"Could not start playback: {exc}")

    # -----------------
    # Player callbacks
    # -----------------

    def _on_player_ready_changed(self, is_ready: bool) -> None:
        if bool(is_ready):
            self._begin_playback_if_ready()

    def _on_player_playing_changed(self, is_playing: bool) -> None:
        if self._state == RoundState.AWAITING_PLAYBACK:
            if bool(is_playing):
                self._timer.start()
                self._set_state(RoundState.PLAYING)
            return

        if self._state == RoundState.PLAYING:
            if bool(is_playing):
                self._timer.start()
            else:
                self._timer.stop()

    def _on_player_error(self, message: str) -> None:
        logger.warning("Player error: %s", message)
        self._set_error(str(message))
