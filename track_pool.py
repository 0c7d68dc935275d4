# -*- coding: utf-8 -*-
########################
# track_pool.py
########################
# Purpose:
# - No-repeat random track selection across one session over a collection.
#
# Design notes:
# - No Qt usage. Pure selection logic.
# - draw_unplayed_track never mutates. The played set is owned by the caller (CollectionPool).
# - "Empty collection" and "exhausted" are different outcomes and are reported separately.
# - The played set only grows during a session. It is reset when a different collection is selected.
#
########################
# Interfaces:
# Public enums:
# - PoolStatus: OK, EMPTY_COLLECTION, EXHAUSTED
#
# Public dataclasses:
# - PoolDraw(status: PoolStatus, track: Optional[Track])
#
# Public functions:
# - draw_unplayed_track(candidates: Sequence[Track], played_ids: AbstractSet[str],
#                       random_generator: Optional[random.Random] = None) -> Optional[Track]
#
# Public classes:
# - class CollectionPool
#   - __init__(random_generator: Optional[random.Random] = None)
#   - collection_id() -> Optional[str]
#   - played_ids() -> frozenset[str]
#   - select_collection(collection_id: str) -> bool
#   - draw(candidates: Sequence[Track]) -> PoolDraw
#   - reset() -> None
#
# Inputs:
# - Candidate tracks from the catalog for the selected collection.
#
# Outputs:
# - One unplayed Track per draw, or a status explaining why none is available.
#
########################

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, List, Optional, Sequence, Set

from gameplay_models import Track


logger = logging.getLogger(__name__)


class PoolStatus(str, Enum):
    OK = "OK"
    EMPTY_COLLECTION = "EMPTY_COLLECTION"
    EXHAUSTED = "EXHAUSTED"


@dataclass(frozen=True)
class PoolDraw:
    status: PoolStatus
    track: Optional[Track] = None


def draw_unplayed_track(
    candidates: Sequence[Track],
    played_ids: AbstractSet[str],
    random_generator: Optional[random.Random] = None,
) -> Optional[Track]:
    available: List[Track] = [track for track in candidates if track.track_id not in played_ids]
    if not available:
        return None
    chooser = random_generator if random_generator is not None else random
    return chooser.choice(available)


class CollectionPool:
    def __init__(self, random_generator: Optional[random.Random] = None) -> None:
        self._random_generator = random_generator
        self._collection_id: Optional[str] = None
        self._played_ids: Set[str] = set()

    def collection_id(self) -> Optional[str]:
        return self._collection_id

    def played_ids(self) -> frozenset:
        return frozenset(self._played_ids)

    def select_collection(self, collection_id: str) -> bool:
        """Make collection_id current. Returns True when this started a new session."""
        cleaned_id = str(collection_id)
        if cleaned_id == self._collection_id:
            return False
        self._collection_id = cleaned_id
        self._played_ids.clear()
        logger.info("Started track session for collection %s", cleaned_id)
        return True

    def draw(self, candidates: Sequence[Track]) -> PoolDraw:
        if len(candidates) == 0:
            return PoolDraw(status=PoolStatus.EMPTY_COLLECTION)

        track = draw_unplayed_track(candidates, self._played_ids, self._random_generator)
        if track is None:
            logger.info(
                "Collection %s exhausted after %d tracks",
                self._collection_id,
                len(self._played_ids),
            )
            return PoolDraw(status=PoolStatus.EXHAUSTED)

        self._played_ids.add(track.track_id)
        return PoolDraw(status=PoolStatus.OK, track=track)

    def reset(self) -> None:
        self._collection_id = None
        self._played_ids.clear()


def _run_unit_tests() -> None:
    tracks = [Track(track_id=str(index), title=f"Song {index}", artists=("Band",)) for index in range(3)]

    assert draw_unplayed_track(tracks, {"0", "1", "2"}) is None
    only_left = draw_unplayed_track(tracks, {"0", "2"})
    assert only_left is not None and only_left.track_id == "1"

    pool = CollectionPool(random.Random(7))
    pool.select_collection("playlist")
    drawn = [pool.draw(tracks) for _ in range(4)]
    assert [item.status for item in drawn] == [PoolStatus.OK] * 3 + [PoolStatus.EXHAUSTED]
    assert pool.played_ids() == {"0", "1", "2"}
    assert pool.draw([]).status == PoolStatus.EMPTY_COLLECTION


if __name__ == "__main__":
    _run_unit_tests()
    print("track_pool.py: ok")
