# -*- coding: utf-8 -*-
########################
# game_controller.py
########################
# Purpose:
# - App-level orchestrator for TuneGuess.
# - Connects the catalog (collections and their tracks), the no-repeat track pool and the RoundSession.
#
# Design notes:
# - Single owner of app state: current collection, its played set (through CollectionPool) and the scoreboard.
# - RoundSession owns everything inside a round. GameController only supplies tracks to it.
# - Catalog failures are caught here, logged, and turned into user-visible error text. Nothing is raised
#   back into the Qt event loop.
# - "Play again" is installed as the RoundSession hook and re-selects the current collection, so the played
#   set survives between rounds and resets only when a different collection is chosen.
#
########################
# Interfaces:
# Public protocols:
# - CatalogPort
#   - list_collections() -> list[Collection]
#   - fetch_collection_tracks(collection_id: str) -> list[Track]
#
# Public dataclasses:
# - SessionScoreboard(rounds_played: int, total_score: int, correct_count: int)
#
# Public classes:
# - class GameController(PyQt6.QtCore.QObject)
#   - Signals:
#     - collectionsChanged(list[Collection])
#     - currentCollectionChanged(Optional[Collection])
#     - errorChanged(str)
#     - scoreboardChanged(SessionScoreboard)
#   - Methods:
#     - collections(), current_collection(), error_text(), scoreboard(), round_session()
#     - load_collections() -> bool
#     - select_collection(collection: Collection) -> bool
#     - play_again() -> None
#     - shutdown() -> None
#
# Inputs:
# - User intents from MainWindow, RoundSession resultReady.
#
# Outputs:
# - Tracks handed to RoundSession.set_track, error text and scoreboard updates for MainWindow.
#
########################

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

import track_pool
from gameplay_models import Collection, GuessResult, Track
from round_session import RoundSession


logger = logging.getLogger(__name__)

ERROR_LOAD_COLLECTIONS = "Failed to load playlists"
ERROR_EMPTY_COLLECTION = "This playlist is empty"
ERROR_LOAD_TRACKS = "Failed to load tracks from this playlist"
ERROR_NO_PLAYABLE_TRACKS = "No playable tracks found in this playlist"
ERROR_EXHAUSTED = "You have played all tracks in this playlist!"


class CatalogPort(Protocol):
    def list_collections(self) -> List[Collection]:
        ...

    def fetch_collection_tracks(self, collection_id: str) -> List[Track]:
        ...


@dataclass(frozen=True)
class SessionScoreboard:
    rounds_played: int = 0
    total_score: int = 0
    correct_count: int = 0

    def average_score(self) -> float:
        if self.rounds_played <= 0:
            return 0.0
        return self.total_score / self.rounds_played


class GameController(QObject):
    collectionsChanged = pyqtSignal(object)
    currentCollectionChanged = pyqtSignal(object)
    errorChanged = pyqtSignal(str)
    scoreboardChanged = pyqtSignal(object)

    def __init__(
        self,
        *,
        catalog: CatalogPort,
        round_session: RoundSession,
        pool: Optional[track_pool.CollectionPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._catalog = catalog
        self._round_session = round_session
        self._pool = pool if pool is not None else track_pool.CollectionPool()

        self._collections: List[Collection] = []
        self._current_collection: Optional[Collection] = None
        self._error_text: str = ""
        self._scoreboard = SessionScoreboard()

        self._round_session.set_play_again_hook(self.play_again)
        self._round_session.resultReady.connect(self._on_result_ready)

    # -----------------
    # Read access
    # -----------------

    def collections(self) -> List[Collection]:
        return list(self._collections)

    def current_collection(self) -> Optional[Collection]:
        return self._current_collection

    def error_text(self) -> str:
        return self._error_text

    def scoreboard(self) -> SessionScoreboard:
        return self._scoreboard

    def round_session(self) -> RoundSession:
        return self._round_session

    def played_ids(self) -> frozenset:
        return self._pool.played_ids()

    # -----------------
    # Intents
    # -----------------

    def load_collections(self) -> bool:
        self._set_error("")
        try:
            collections = list(self._catalog.list_collections())
        except Exception:
            logger.exception("Listing collections failed")
            self._set_error(ERROR_LOAD_COLLECTIONS)
            return False

        logger.info("Loaded %d collections", len(collections))
        self._collections = collections
        self.collectionsChanged.emit(list(collections))
        return True

    def select_collection(self, collection: Collection) -> bool:
        self._set_error("")

        if collection.track_total <= 0:
            self._set_error(ERROR_EMPTY_COLLECTION)
            return False

        try:
            tracks = list(self._catalog.fetch_collection_tracks(collection.collection_id))
        except Exception:
            logger.exception("Fetching tracks for collection %s failed", collection.collection_id)
            self._set_error(ERROR_LOAD_TRACKS)
            return False

        if not tracks:
            self._set_error(ERROR_NO_PLAYABLE_TRACKS)
            return False

        self._pool.select_collection(collection.collection_id)
        self._set_current_collection(collection)

        draw = self._pool.draw(tracks)
        if draw.status == track_pool.PoolStatus.EMPTY_COLLECTION:
            self._set_error(ERROR_NO_PLAYABLE_TRACKS)
            return False
        if draw.status == track_pool.PoolStatus.EXHAUSTED or draw.track is None:
            self._set_error(ERROR_EXHAUSTED)
            return False

        logger.info(
            "Starting round in %s with track %s (%d/%d played)",
            collection.collection_id,
            draw.track.track_id,
            len(self._pool.played_ids()),
            len(tracks),
        )
        self._round_session.set_track(draw.track)
        return True

    def play_again(self) -> None:
        collection = self._current_collection
        if collection is None:
            logger.debug("Play again without a current collection")
            return
        self.select_collection(collection)

    def shutdown(self) -> None:
        self._round_session.set_play_again_hook(None)
        try:
            self._round_session.resultReady.disconnect(self._on_result_ready)
        except TypeError:
            pass
        close = getattr(self._catalog, "close", None)
        if callable(close):
            close()

    # -----------------
    # Internals
    # -----------------

    def _set_current_collection(self, collection: Optional[Collection]) -> None:
        if collection == self._current_collection:
            return
        self._current_collection = collection
        self.currentCollectionChanged.emit(collection)

    def _set_error(self, text: str) -> None:
        if text == self._error_text:
            return
        self._error_text = text
        self.errorChanged.emit(text)

    def _on_result_ready(self, result: GuessResult) -> None:
        self._scoreboard = replace(
            self._scoreboard,
            rounds_played=self._scoreboard.rounds_played + 1,
            total_score=self._scoreboard.total_score + int(result.score),
            correct_count=self._scoreboard.correct_count + (1 if result.is_correct else 0),
        )
        self.scoreboardChanged.emit(self._scoreboard)
