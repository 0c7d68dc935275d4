# -*- coding: utf-8 -*-
########################
# main_window.py
########################
# Purpose:
# - Primary Qt window for TuneGuess.
# - Shows the collection list, the player start-up notice, the play page, the guess form and the result page.
#
# Design notes:
# - MainWindow does not decide game transitions. It renders RoundSession and GameController state and
#   forwards user intents to them.
# - The WebPlayerBridge lives above the page stack for the lifetime of the window, behind its own cover,
#   so page switches never interrupt playback. Leaving the play page for the collection list pauses it.
# - The visible page comes from page_model.choose_page over (browsing flag, player ready, round state, track).
# - The result page shows controller and round errors together; each source updates only its own text.
#
########################
# Interfaces:
# Public classes:
# - class MainWindow(PyQt6.QtWidgets.QMainWindow)
#   - player_bridge() -> WebPlayerBridge
#   - attach_controller(controller: GameController) -> None
#   - current_page_name() -> str
#   - on_action_fullscreen_toggle(), on_action_exit()
#
# Inputs:
# - GameController and RoundSession signals, WebPlayerBridge ready signal, keyboard and button input.
#
# Outputs:
# - Intents to GameController (load/select collection) and RoundSession (pause-and-guess, guess, submit, play again).
#
########################
# Manual UI smoke:
# python tuneguess.py
########################

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PyQt6.QtCore import Qt, QUrl
from PyQt6.QtGui import QKeyEvent, QPixmap
from PyQt6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest
from PyQt6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from game_controller import GameController, SessionScoreboard
from gameplay_models import Collection, GuessResult, RoundState, Track
from page_model import (
    PAGE_COLLECTIONS,
    PAGE_GUESS,
    PAGE_INITIALIZING,
    PAGE_PLAY,
    PAGE_RESULT,
    choose_page,
    pause_and_guess_enabled,
    play_status_text,
    result_error_text,
)
from web_player_bridge import WebPlayerBridge


logger = logging.getLogger(__name__)

THEME_BACKGROUND = "#050313"
THEME_CYAN = "#ACE4FC"
THEME_PINK = "#F48CE4"
THEME_MUTED_MAGENTA = "#A4346C"
THEME_OFFWHITE = "#F3F0FC"

PLAYER_STRIP_HEIGHT_PX = 72
ALBUM_ART_SIZE_PX = 240

def _error_label() -> QLabel:
    label = QLabel("")
    label.setWordWrap(True)
    label.setStyleSheet(f"color: {THEME_PINK}; font-weight: bold;")
    label.hide()
    return label


def _set_error_label_text(label: QLabel, text: str) -> None:
    cleaned = (text or "").strip()
    label.setText(cleaned)
    label.setVisible(bool(cleaned))


def format_elapsed(elapsed_seconds: float) -> str:
    return f"{max(0.0, float(elapsed_seconds)):.1f}s"


class MainWindow(QMainWindow):
    def __init__(self, *, kiosk_mode: bool = False, volume_percent: int = 80, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("TuneGuess")
        self.setStyleSheet(
            f"QMainWindow, QWidget {{ background: {THEME_BACKGROUND}; color: {THEME_OFFWHITE}; }}"
            f"QPushButton {{ background: {THEME_MUTED_MAGENTA}; border-radius: 8px; padding: 8px 18px; }}"
            f"QPushButton:disabled {{ background: #333; color: #777; }}"
            f"QLineEdit {{ background: #1a1530; border: 1px solid {THEME_CYAN}; border-radius: 6px; padding: 6px; }}"
        )

        self._kiosk_mode = bool(kiosk_mode)
        self._apply_kiosk_settings(self._kiosk_mode)

        self._controller: Optional[GameController] = None
        self._browsing_collections = True
        self._page_indexes: Dict[str, int] = {}
        self._controller_error_text = ""
        self._round_error_text = ""
        self._album_art_url: Optional[str] = None
        self._album_art_reply: Optional[QNetworkReply] = None
        self._network_manager = QNetworkAccessManager(self)

        self.web_player = WebPlayerBridge(volume_percent=volume_percent)
        self.web_player.setFixedHeight(PLAYER_STRIP_HEIGHT_PX)

        self._pages = QStackedWidget()
        self._add_page(PAGE_COLLECTIONS, self._build_collections_page())
        self._add_page(PAGE_INITIALIZING, self._build_initializing_page())
        self._add_page(PAGE_PLAY, self._build_play_page())
        self._add_page(PAGE_GUESS, self._build_guess_page())
        self._add_page(PAGE_RESULT, self._build_result_page())

        central_widget = QWidget()
        root_layout = QVBoxLayout(central_widget)
        root_layout.setContentsMargins(16, 16, 16, 16)
        root_layout.setSpacing(12)
        root_layout.addWidget(self.web_player)
        root_layout.addWidget(self._pages, 1)
        self.setCentralWidget(central_widget)

        self._scoreboard_label = QLabel("")
        self.statusBar().addPermanentWidget(self._scoreboard_label)
        self._on_scoreboard_changed(SessionScoreboard())

        self.web_player.playerReadyChanged.connect(self._on_player_ready_changed)

        self._show_page(PAGE_COLLECTIONS)

    # -----------------
    # Public API
    # -----------------

    def player_bridge(self) -> WebPlayerBridge:
        return self.web_player

    def attach_controller(self, controller: GameController) -> None:
        self._controller = controller
        session = controller.round_session()

        controller.collectionsChanged.connect(self._on_collections_changed)
        controller.errorChanged.connect(self._on_controller_error_changed)
        controller.scoreboardChanged.connect(self._on_scoreboard_changed)

        session.stateChanged.connect(self._on_round_state_changed)
        session.trackChanged.connect(self._on_track_changed)
        session.elapsedChanged.connect(self._on_elapsed_changed)
        session.resultReady.connect(self._on_result_ready)
        session.errorChanged.connect(self._on_round_error_changed)

        self._on_collections_changed(controller.collections())
        self._refresh_page()

    def current_page_name(self) -> str:
        current_index = self._pages.currentIndex()
        for name, index in self._page_indexes.items():
            if index == current_index:
                return name
        return ""

    # -----------------
    # Menu actions
    # -----------------

    def on_action_fullscreen_toggle(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

    def on_action_exit(self) -> None:
        self.close()

    # -----------------
    # Page construction
    # -----------------

    def _add_page(self, name: str, widget: QWidget) -> None:
        self._page_indexes[name] = self._pages.addWidget(widget)

    def _build_collections_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        heading = QLabel("Choose a playlist")
        heading.setStyleSheet(f"color: {THEME_CYAN}; font-size: 24px; font-weight: bold;")

        self._collections_list = QListWidget()
        self._collections_list.itemClicked.connect(self._on_collection_activated)

        self._collections_error_label = _error_label()

        self._reload_button = QPushButton("Reload playlists")
        self._reload_button.clicked.connect(self._on_reload_clicked)

        layout.addWidget(heading)
        layout.addWidget(self._collections_error_label)
        layout.addWidget(self._collections_list, 1)
        layout.addWidget(self._reload_button, 0, Qt.AlignmentFlag.AlignRight)
        return page

    def _build_initializing_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        label = QLabel("Initializing player...")
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet("font-size: 20px;")
        layout.addWidget(label, 1)
        return page

    def _build_play_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        self._play_collection_label = QLabel("")
        self._play_collection_label.setStyleSheet(f"color: {THEME_CYAN};")

        self._elapsed_label = QLabel(format_elapsed(0.0))
        self._elapsed_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._elapsed_label.setStyleSheet("font-size: 64px; font-weight: bold;")

        self._play_status_label = QLabel("")
        self._play_status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._pause_and_guess_button = QPushButton("Pause && Guess")
        self._pause_and_guess_button.setEnabled(False)
        self._pause_and_guess_button.clicked.connect(self._on_pause_and_guess_clicked)

        self._play_change_collection_button = QPushButton("Choose another playlist")
        self._play_change_collection_button.clicked.connect(self._on_change_collection_clicked)

        self._play_error_label = _error_label()

        layout.addWidget(self._play_collection_label)
        layout.addStretch(1)
        layout.addWidget(self._elapsed_label)
        layout.addWidget(self._play_status_label)
        layout.addWidget(self._pause_and_guess_button, 0, Qt.AlignmentFlag.AlignCenter)
        layout.addStretch(1)
        layout.addWidget(self._play_error_label)
        layout.addWidget(self._play_change_collection_button, 0, Qt.AlignmentFlag.AlignRight)
        return page

    def _build_guess_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        heading = QLabel("What's this song?")
        heading.setStyleSheet(f"color: {THEME_CYAN}; font-size: 24px; font-weight: bold;")

        self._guess_elapsed_label = QLabel("")

        self._title_input = QLineEdit()
        self._title_input.setPlaceholderText("Song title")
        self._title_input.textEdited.connect(self._on_title_edited)
        self._title_input.returnPressed.connect(self._on_submit_clicked)

        self._artist_input = QLineEdit()
        self._artist_input.setPlaceholderText("Artist")
        self._artist_input.textEdited.connect(self._on_artist_edited)
        self._artist_input.returnPressed.connect(self._on_submit_clicked)

        form_layout = QFormLayout()
        form_layout.addRow("Title", self._title_input)
        form_layout.addRow("Artist", self._artist_input)

        self._submit_button = QPushButton("Submit")
        self._submit_button.clicked.connect(self._on_submit_clicked)

        self._guess_error_label = _error_label()

        layout.addWidget(heading)
        layout.addWidget(self._guess_elapsed_label)
        layout.addLayout(form_layout)
        layout.addWidget(self._submit_button, 0, Qt.AlignmentFlag.AlignRight)
        layout.addStretch(1)
        layout.addWidget(self._guess_error_label)
        return page

    def _build_result_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        self._verdict_label = QLabel("")
        self._verdict_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._verdict_label.setStyleSheet("font-size: 32px; font-weight: bold;")

        self._points_label = QLabel("")
        self._points_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._points_label.setStyleSheet(f"color: {THEME_CYAN}; font-size: 24px;")

        self._album_art_label = QLabel("")
        self._album_art_label.setFixedSize(ALBUM_ART_SIZE_PX, ALBUM_ART_SIZE_PX)
        self._album_art_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._answer_title_label = QLabel("")
        self._answer_title_label.setWordWrap(True)
        self._answer_title_label.setStyleSheet("font-size: 20px; font-weight: bold;")
        self._answer_artists_label = QLabel("")
        self._answer_artists_label.setWordWrap(True)
        self._result_details_label = QLabel("")
        self._result_details_label.setStyleSheet("color: #999;")

        answer_layout = QVBoxLayout()
        answer_layout.addStretch(1)
        answer_layout.addWidget(self._answer_title_label)
        answer_layout.addWidget(self._answer_artists_label)
        answer_layout.addWidget(self._result_details_label)
        answer_layout.addStretch(1)

        answer_row = QHBoxLayout()
        answer_row.addWidget(self._album_art_label)
        answer_row.addLayout(answer_layout, 1)

        self._play_again_button = QPushButton("Play Again")
        self._play_again_button.clicked.connect(self._on_play_again_clicked)
        self._change_collection_button = QPushButton("Change playlist")
        self._change_collection_button.clicked.connect(self._on_change_collection_clicked)

        button_row = QHBoxLayout()
        button_row.addStretch(1)
        button_row.addWidget(self._change_collection_button)
        button_row.addWidget(self._play_again_button)

        self._result_error_label = _error_label()

        layout.addWidget(self._verdict_label)
        layout.addWidget(self._points_label)
        layout.addLayout(answer_row, 1)
        layout.addWidget(self._result_error_label)
        layout.addLayout(button_row)
        return page

    # -----------------
    # Page selection
    # -----------------

    def _show_page(self, name: str) -> None:
        index = self._page_indexes[name]
        if self._pages.currentIndex() != index:
            logger.debug("Showing page %s", name)
            self._pages.setCurrentIndex(index)

    def _refresh_page(self) -> None:
        if self._controller is None:
            self._show_page(PAGE_COLLECTIONS)
            return

        session = self._controller.round_session()
        state = session.state()
        page = choose_page(
            browsing_collections=self._browsing_collections,
            has_track=session.track() is not None,
            player_ready=self.web_player.is_ready(),
            state=state,
        )

        if page == PAGE_PLAY:
            self._pause_and_guess_button.setEnabled(pause_and_guess_enabled(state))
            self._play_status_label.setText(play_status_text(state, session.error_text()))

        self._show_page(page)
        if page == PAGE_GUESS:
            self._title_input.setFocus()

    # -----------------
    # Controller and session callbacks
    # -----------------

    def _on_collections_changed(self, collections: List[Collection]) -> None:
        self._collections_list.clear()
        for collection in collections:
            item = QListWidgetItem(f"{collection.name}  ({collection.track_total} tracks)")
            item.setData(Qt.ItemDataRole.UserRole, collection)
            self._collections_list.addItem(item)

    def _on_controller_error_changed(self, text: str) -> None:
        self._controller_error_text = text or ""
        _set_error_label_text(self._collections_error_label, text)
        self._update_result_error_label()

    def _on_round_error_changed(self, text: str) -> None:
        self._round_error_text = text or ""
        for label in (self._play_error_label, self._guess_error_label):
            _set_error_label_text(label, text)
        self._update_result_error_label()
        self._refresh_page()

    def _update_result_error_label(self) -> None:
        _set_error_label_text(self._result_error_label, result_error_text(self._controller_error_text, self._round_error_text))

    def _on_scoreboard_changed(self, scoreboard: SessionScoreboard) -> None:
        self._scoreboard_label.setText(
            f"Rounds: {scoreboard.rounds_played}   Correct: {scoreboard.correct_count}   "
            f"Total: {scoreboard.total_score} points"
        )

    def _on_player_ready_changed(self, _is_ready: bool) -> None:
        self._refresh_page()

    def _on_round_state_changed(self, _state: RoundState) -> None:
        self._refresh_page()

    def _on_track_changed(self, track: Optional[Track]) -> None:
        self._elapsed_label.setText(format_elapsed(0.0))
        self._title_input.clear()
        self._artist_input.clear()
        if track is not None:
            self._browsing_collections = False
        collection = self._controller.current_collection() if self._controller is not None else None
        self._play_collection_label.setText(collection.name if collection is not None else "")
        self._refresh_page()

    def _on_elapsed_changed(self, elapsed_seconds: float) -> None:
        text = format_elapsed(elapsed_seconds)
        self._elapsed_label.setText(text)
        self._guess_elapsed_label.setText(f"Paused at {text}")

    def _on_result_ready(self, result: GuessResult) -> None:
        track = self._controller.round_session().track() if self._controller is not None else None

        self._verdict_label.setText("Correct!" if result.is_correct else "Nice Try!")
        self._verdict_label.setStyleSheet(
            f"font-size: 32px; font-weight: bold; color: {THEME_CYAN if result.is_correct else THEME_PINK};"
        )
        self._points_label.setText(f"{result.score} points")
        self._result_details_label.setText(
            f"Title {result.title_similarity:.0%}  |  Artist {result.artist_similarity:.0%}  |  "
            f"answered after {format_elapsed(result.elapsed_seconds)}"
        )

        if track is not None:
            self._answer_title_label.setText(track.title)
            self._answer_artists_label.setText(track.artist_display)
            self._load_album_art(track.album_art_url)

    # -----------------
    # User intents
    # -----------------

    def _on_reload_clicked(self) -> None:
        if self._controller is not None:
            self._controller.load_collections()

    def _on_collection_activated(self, item: QListWidgetItem) -> None:
        if self._controller is None:
            return
        collection = item.data(Qt.ItemDataRole.UserRole)
        if not isinstance(collection, Collection):
            return
        self._controller.select_collection(collection)

    def _on_pause_and_guess_clicked(self) -> None:
        if self._controller is not None:
            self._controller.round_session().request_pause_and_guess()

    def _on_title_edited(self, text: str) -> None:
        if self._controller is not None:
            self._controller.round_session().set_title_guess(text)

    def _on_artist_edited(self, text: str) -> None:
        if self._controller is not None:
            self._controller.round_session().set_artist_guess(text)

    def _on_submit_clicked(self) -> None:
        if self._controller is not None:
            self._controller.round_session().submit_guess()

    def _on_play_again_clicked(self) -> None:
        if self._controller is not None:
            self._controller.round_session().play_again()
        self._refresh_page()

    def _on_change_collection_clicked(self) -> None:
        if self.current_page_name() == PAGE_PLAY:
            self.web_player.pause()
        self._browsing_collections = True
        self._refresh_page()

    # -----------------
    # Album art
    # -----------------

    def _load_album_art(self, url: Optional[str]) -> None:
        self._album_art_label.clear()
        self._album_art_url = url
        if self._album_art_reply is not None:
            self._album_art_reply.abort()
            self._album_art_reply = None
        if not url:
            self._album_art_label.setText("No artwork")
            return

        reply = self._network_manager.get(QNetworkRequest(QUrl(url)))
        reply.finished.connect(lambda: self._on_album_art_finished(reply, url))
        self._album_art_reply = reply

    def _on_album_art_finished(self, reply: QNetworkReply, url: str) -> None:
        try:
            if url != self._album_art_url:
                return
            self._album_art_reply = None
            if reply.error() != QNetworkReply.NetworkError.NoError:
                logger.debug("Album art download failed for %s: %s", url, reply.errorString())
                self._album_art_label.setText("No artwork")
                return

            pixmap = QPixmap()
            if not pixmap.loadFromData(bytes(reply.readAll())):
                self._album_art_label.setText("No artwork")
                return
            self._album_art_label.setPixmap(
                pixmap.scaled(
                    ALBUM_ART_SIZE_PX,
                    ALBUM_ART_SIZE_PX,
                    Qt.AspectRatioMode.KeepAspectRatio,
                    Qt.TransformationMode.SmoothTransformation,
                )
            )
        finally:
            reply.deleteLater()

    # -----------------
    # Window behavior
    # -----------------

    def _apply_kiosk_settings(self, enabled: bool) -> None:
        if enabled:
            self.setWindowFlag(Qt.WindowType.FramelessWindowHint, True)
            self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)
        else:
            self.setWindowFlag(Qt.WindowType.FramelessWindowHint, False)
            self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, False)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:
        if event is None:
            return

        if event.key() == Qt.Key.Key_Space and self.current_page_name() == PAGE_PLAY:
            self._on_pause_and_guess_clicked()
            event.accept()
            return

        if event.key() == Qt.Key.Key_Escape and self.isFullScreen():
            self.showNormal()
            event.accept()
            return

        if event.key() == Qt.Key.Key_F11:
            self.on_action_fullscreen_toggle()
            event.accept()
            return

        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        self.web_player.shutdown()
        super().closeEvent(event)
