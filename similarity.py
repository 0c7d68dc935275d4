# -*- coding: utf-8 -*-
########################
# similarity.py
########################
# Purpose:
# - Fuzzy text similarity between a typed guess and the true title or artist.
# - Composite round score that blends similarity with a speed bonus.
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - Both sides of a comparison go through the same normalize_text, so casing, spacing,
#   diacritics and punctuation never cost points.
# - Every function here is total: empty guesses or odd elapsed values give a low score, never an error.
#
########################
# Interfaces:
# Public dataclasses:
# - ScoringRules(similarity_weight: float, speed_weight: float, time_bonus_window_seconds: float,
#                correct_threshold: float, points_multiplier: int, clamp_score: bool)
#   - max_score() -> int
#
# Public functions:
# - normalize_text(text: str) -> str
# - similarity(a: str, b: str) -> float
# - time_bonus(elapsed_seconds: float, window_seconds: float = 30.0) -> float
# - is_correct_guess(title_similarity: float, artist_similarity: float, threshold: float = 0.8) -> bool
# - score_guess(guess: Guess, track: Track, elapsed_seconds: float, rules: Optional[ScoringRules]) -> GuessResult
#
# Inputs:
# - Guess text from the round session, Track from the catalog, elapsed seconds from RoundTimer.
#
# Outputs:
# - GuessResult consumed by RoundSession and the result screen.
#
########################

from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from rapidfuzz.distance import Levenshtein

from gameplay_models import Guess, GuessResult, Track


_APOSTROPHE_REGEX = re.compile("['\u2019]")
_NON_ALNUM_REGEX = re.compile(r"[\W_]+")


@dataclass(frozen=True)
class ScoringRules:
    similarity_weight: float = 80.0
    speed_weight: float = 20.0
    time_bonus_window_seconds: float = 30.0
    correct_threshold: float = 0.8
    points_multiplier: int = 100
    clamp_score: bool = True

    def max_score(self) -> int:
        return int(round((float(self.similarity_weight) + float(self.speed_weight)) * int(self.points_multiplier)))


def normalize_text(text: str) -> str:
    """Fold a free-text string to the form used for comparison.

    Steps: NFKD with combining marks dropped, casefold, apostrophes removed ('don't' -> 'dont'),
    '&' read as 'and', every run of non-alphanumerics turned into one space, outer spaces trimmed.
    """
    decomposed = unicodedata.normalize("NFKD", str(text or ""))
    without_marks = "".join(character for character in decomposed if not unicodedata.combining(character))
    folded = _APOSTROPHE_REGEX.sub("", without_marks.casefold()).replace("&", " and ")
    return _NON_ALNUM_REGEX.sub(" ", folded).strip()


def _raw_form(text: str) -> str:
    return " ".join(str(text or "").casefold().split())


def similarity(a: str, b: str) -> float:
    normalized_a = normalize_text(a)
    normalized_b = normalize_text(b)
    if not normalized_a or not normalized_b:
        # Names made only of symbols ("!!!", "?") normalize to nothing; compare them as typed.
        normalized_a = _raw_form(a)
        normalized_b = _raw_form(b)
        if not normalized_a or not normalized_b:
            return 0.0
    if normalized_a == normalized_b:
        return 1.0
    value = float(Levenshtein.normalized_similarity(normalized_a, normalized_b))
    return min(1.0, max(0.0, value))


def time_bonus(elapsed_seconds: float, window_seconds: float = 30.0) -> float:
    window = float(window_seconds)
    elapsed = float(elapsed_seconds)
    if window <= 0.0 or math.isnan(elapsed):
        return 0.0
    if elapsed < 0.0:
        elapsed = 0.0
    return max(0.0, 1.0 - elapsed / window)


def is_correct_guess(title_similarity: float, artist_similarity: float, threshold: float = 0.8) -> bool:
    # Both must clear the threshold on their own; equal to the threshold is not enough.
    return float(title_similarity) > float(threshold) and float(artist_similarity) > float(threshold)


def score_guess(
    guess: Guess,
    track: Track,
    elapsed_seconds: float,
    rules: Optional[ScoringRules] = None,
) -> GuessResult:
    active_rules = rules if rules is not None else ScoringRules()

    title_similarity = similarity(guess.title_guess, track.title)
    artist_similarity = similarity(guess.artist_guess, track.primary_artist)
    average_similarity = (title_similarity + artist_similarity) / 2.0
    bonus = time_bonus(elapsed_seconds, active_rules.time_bonus_window_seconds)

    weighted = average_similarity * float(active_rules.similarity_weight) + bonus * float(active_rules.speed_weight)
    score = int(round(weighted * int(active_rules.points_multiplier)))
    if active_rules.clamp_score:
        score = min(active_rules.max_score(), max(0, score))

    return GuessResult(
        score=score,
        is_correct=is_correct_guess(title_similarity, artist_similarity, active_rules.correct_threshold),
        title_similarity=title_similarity,
        artist_similarity=artist_similarity,
        time_bonus=bonus,
        elapsed_seconds=max(0.0, float(elapsed_seconds)),
    )


def _run_unit_tests() -> None:
    assert similarity("Bohemian Rhapsody", "Bohemian Rhapsody") == 1.0
    assert similarity("  queen ", "QUEEN") == 1.0
    assert similarity("!!!", "!!!") == 1.0
    assert similarity("Beyoncé", "beyonce") == 1.0
    assert similarity("", "Queen") == 0.0

    assert time_bonus(0.0) == 1.0
    assert time_bonus(30.0) == 0.0
    assert time_bonus(60.0) == 0.0

    assert not is_correct_guess(0.8, 0.95)
    assert is_correct_guess(0.81, 0.95)

    track = Track(track_id="t1", title="Bohemian Rhapsody", artists=("Queen",))
    result = score_guess(Guess("bohemian rhapsody", "Queen "), track, 2.0)
    assert result.is_correct
    assert result.score > 9000

    empty = score_guess(Guess("", ""), track, 25.0)
    assert not empty.is_correct
    assert empty.score < 500


if __name__ == "__main__":
    _run_unit_tests()
    print("similarity.py: ok")
