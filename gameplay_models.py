# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core data models for the guessing round pipeline.
# - Defines Track and Collection as delivered by the catalog, and the per-round Guess, GuessResult and RoundState.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Tracks reaching the round engine are already validated (non-empty title, at least one artist).
#
########################
# Interfaces:
# Public enums:
# - RoundState: UNINITIALIZED, AWAITING_PLAYBACK, PLAYING, GUESSING, SCORED
#
# Public dataclasses:
# - Track(track_id: str, title: str, artists: tuple[str, ...], album_art_url: Optional[str])
# - Collection(collection_id: str, name: str, image_url: Optional[str], track_total: int)
# - Guess(title_guess: str, artist_guess: str)
# - GuessResult(score: int, is_correct: bool, title_similarity: float, artist_similarity: float,
#               time_bonus: float, elapsed_seconds: float)
#
# Inputs/Outputs:
# - These types are exchanged between catalog_validation, track_pool, similarity, round_session,
#   game_controller and main_window.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class RoundState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    AWAITING_PLAYBACK = "AWAITING_PLAYBACK"
    PLAYING = "PLAYING"
    GUESSING = "GUESSING"
    SCORED = "SCORED"


@dataclass(frozen=True)
class Track:
    track_id: str
    title: str
    artists: Tuple[str, ...]
    album_art_url: Optional[str] = None

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def artist_display(self) -> str:
        return ", ".join(self.artists)


@dataclass(frozen=True)
class Collection:
    collection_id: str
    name: str
    image_url: Optional[str] = None
    track_total: int = 0


@dataclass(frozen=True)
class Guess:
    title_guess: str = ""
    artist_guess: str = ""


@dataclass(frozen=True)
class GuessResult:
    score: int
    is_correct: bool
    title_similarity: float
    artist_similarity: float
    time_bonus: float
    elapsed_seconds: float
