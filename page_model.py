# -*- coding: utf-8 -*-
########################
# page_model.py
########################
# Purpose:
# - Decide which MainWindow page is visible and what its status and error lines say.
#
# Design notes:
# - No Qt widgets. Plain functions over round state so the window logic is testable headless.
# - Controller messages and round messages are independent sources; clearing one never hides the other.
#
########################
# Interfaces:
# Public constants:
# - PAGE_COLLECTIONS, PAGE_INITIALIZING, PAGE_PLAY, PAGE_GUESS, PAGE_RESULT
#
# Public functions:
# - choose_page(*, browsing_collections: bool, has_track: bool, player_ready: bool, state: RoundState) -> str
# - pause_and_guess_enabled(state: RoundState) -> bool
# - play_status_text(state: RoundState, error_text: str) -> str
# - result_error_text(controller_error: str, round_error: str) -> str
#
########################

from __future__ import annotations

from gameplay_models import RoundState


PAGE_COLLECTIONS = "collections"
PAGE_INITIALIZING = "initializing"
PAGE_PLAY = "play"
PAGE_GUESS = "guess"
PAGE_RESULT = "result"

_PLAY_PAGE_STATES = (RoundState.UNINITIALIZED, RoundState.AWAITING_PLAYBACK, RoundState.PLAYING)


def choose_page(*, browsing_collections: bool, has_track: bool, player_ready: bool, state: RoundState) -> str:
    if browsing_collections or not has_track:
        return PAGE_COLLECTIONS
    if state == RoundState.UNINITIALIZED and not player_ready:
        return PAGE_INITIALIZING
    if state in _PLAY_PAGE_STATES:
        return PAGE_PLAY
    if state == RoundState.GUESSING:
        return PAGE_GUESS
    return PAGE_RESULT


def pause_and_guess_enabled(state: RoundState) -> bool:
    # Loading counts: a track that never starts can still be guessed.
    return state in (RoundState.AWAITING_PLAYBACK, RoundState.PLAYING)


def play_status_text(state: RoundState, error_text: str) -> str:
    if state == RoundState.PLAYING:
        return "Playing"
    if (error_text or "").strip():
        return "This track won't start. Guess anyway or choose another playlist."
    return "Starting track..."


def result_error_text(controller_error: str, round_error: str) -> str:
    lines = []
    for text in (controller_error, round_error):
        cleaned = (text or "").strip()
        if cleaned and cleaned not in lines:
            lines.append(cleaned)
    return "\n".join(lines)
