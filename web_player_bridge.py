# -*- coding: utf-8 -*-
########################
# web_player_bridge.py
########################
# Purpose:
# - Qt widget that plays TuneGuess tracks through the YouTube IFrame player embedded in QWebEngineView.
# - Implements the player capability used by RoundSession: ready state, playing state, errors, load/play/pause.
#
########################
# Key Logic:
# - The web view stays behind an opaque cover so the video title and picture never reveal the answer.
# - Player state is polled from JavaScript and reduced to two booleans (ready, playing) plus error text.
# - JavaScript calls issued before the bootstrap page finishes loading are queued and replayed.
#
########################
# Interfaces:
# Public classes:
# - class WebPlayerBridge(PyQt6.QtWidgets.QFrame)
#   - Signals:
#     - playerReadyChanged(bool)
#     - playingChanged(bool)
#     - errorOccurred(str)
#   - Methods:
#     - is_ready() -> bool
#     - is_playing() -> bool
#     - load_track(track: Track, *, autoplay: bool = True) -> None
#     - play() -> None
#     - pause() -> None
#     - set_volume(volume_percent: int) -> None
#     - set_cover_text(text: str) -> None
#     - shutdown() -> None
#
# Inputs:
# - Track ids (YouTube video ids) and playback commands.
#
# Outputs:
# - Ready/playing/error signals consumed by RoundSession and MainWindow.
#
########################
# Manual check:
# python web_player_bridge.py <video_id>
########################

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

from PyQt6.QtCore import QObject, Qt, QTimer, QUrl, pyqtSignal
from PyQt6.QtWebEngineCore import QWebEngineSettings
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import QFrame, QLabel, QStackedLayout, QVBoxLayout, QWidget

from gameplay_models import Track


logger = logging.getLogger(__name__)

_YOUTUBE_ID_REGEX = re.compile(r"^[a-zA-Z0-9_-]{11}$")

# YouTube IFrame API state codes:
# -1 unstarted, 0 ended, 1 playing, 2 paused, 3 buffering, 5 video cued
YOUTUBE_STATE_PLAYING = 1

POLL_INTERVAL_MS = 50


def is_valid_video_id(video_id: str) -> bool:
    return bool(_YOUTUBE_ID_REGEX.match(str(video_id or "").strip()))


def friendly_error_for_iframe_api_code(error_code: int) -> str:
    # YouTube IFrame API error codes:
    # 2 invalid parameter value
    # 5 HTML5 player error
    # 100 video not found / removed
    # 101 and 150 embedding not allowed
    mapping = {
        2: "Invalid video id or parameter",
        5: "HTML5 player error",
        100: "This track is no longer available",
        101: "This track cannot be played outside YouTube",
        150: "This track cannot be played outside YouTube",
    }
    return mapping.get(int(error_code), f"YouTube player error code {int(error_code)}")


_BOOTSTRAP_HTML = r"""
<!doctype html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>
html, body { margin:0; padding:0; width:100%; height:100%; background:#000; overflow:hidden; }
#player { width:100%; height:100%; }
</style>
</head>
<body>
<div id="player"></div>
<script src="https://www.youtube.com/iframe_api"></script>
<script>
let tuneguessPlayer = null;
let tuneguessReady = false;
let tuneguessPendingLoad = null;
let tuneguessLastError = null;
let tuneguessErrorSerial = 0;
let tuneguessVolume = null;

function _applyPendingLoadIfAny() {
  if (!tuneguessReady || !tuneguessPendingLoad) { return; }
  const request = tuneguessPendingLoad;
  tuneguessPendingLoad = null;
  try {
    if (request.autoplay) {
      tuneguessPlayer.loadVideoById({videoId: request.videoId, startSeconds: 0});
    } else {
      tuneguessPlayer.cueVideoById({videoId: request.videoId, startSeconds: 0});
    }
  } catch (e) {}
}

window.onYouTubeIframeAPIReady = function() {
  try {
    tuneguessPlayer = new YT.Player('player', {
      width: '100%',
      height: '100%',
      playerVars: {
        playsinline: 1,
        autoplay: 0,
        controls: 0,
        disablekb: 1,
        rel: 0,
        origin: window.location.origin
      },
      events: {
        'onReady': function(event) {
          tuneguessReady = true;
          if (tuneguessVolume !== null) {
            try { tuneguessPlayer.setVolume(tuneguessVolume); } catch (e) {}
          }
          _applyPendingLoadIfAny();
        },
        'onError': function(event) {
          try { tuneguessLastError = event.data; } catch (e) { tuneguessLastError = -1; }
          tuneguessErrorSerial += 1;
        }
      }
    });
  } catch (e) {
    tuneguessPlayer = null;
  }
};

window.tuneguessLoadTrack = function(videoId, autoplay) {
  tuneguessPendingLoad = { videoId: String(videoId || ''), autoplay: !!autoplay };
  _applyPendingLoadIfAny();
};

window.tuneguessPlay = function() {
  if (tuneguessPlayer && tuneguessReady) { try { tuneguessPlayer.playVideo(); } catch (e) {} }
};

window.tuneguessPause = function() {
  if (tuneguessPlayer && tuneguessReady) { try { tuneguessPlayer.pauseVideo(); } catch (e) {} }
};

window.tuneguessSetVolume = function(volumePercent) {
  tuneguessVolume = Number(volumePercent || 0);
  if (tuneguessPlayer && tuneguessReady) { try { tuneguessPlayer.setVolume(tuneguessVolume); } catch (e) {} }
};

window.tuneguessGetSnapshot = function() {
  let stateCode = -2;
  try {
    if (tuneguessPlayer && tuneguessReady) { stateCode = tuneguessPlayer.getPlayerState(); }
  } catch (e) {}
  return {
    ready: !!tuneguessReady,
    state_code: stateCode,
    error_code: (typeof(tuneguessLastError) === 'number') ? tuneguessLastError : null,
    error_serial: tuneguessErrorSerial
  };
};
</script>
</body>
</html>
"""


class _WebEngineBackend(QObject):
    playerReadyChanged = pyqtSignal(bool)
    playingChanged = pyqtSignal(bool)
    errorOccurred = pyqtSignal(str)

    def __init__(self, view: QWebEngineView) -> None:
        super().__init__()
        self._view = view

        self._html_loaded = False
        self._is_ready = False
        self._is_playing = False
        self._last_error_serial = 0
        self._pending_js_calls: List[str] = []

        self._poll_timer = QTimer()
        self._poll_timer.setInterval(POLL_INTERVAL_MS)
        self._poll_timer.timeout.connect(self._poll_snapshot)

        self._view.loadFinished.connect(self._on_load_finished)

        self._configure_view_settings()
        self._load_bootstrap_html()

    def is_ready(self) -> bool:
        return self._is_ready

    def is_playing(self) -> bool:
        return self._is_playing

    def load_track(self, video_id: str, autoplay: bool) -> None:
        # A new video starts from "not playing", so its first playing report is always a change.
        if self._is_playing:
            self._is_playing = False
            self.playingChanged.emit(False)
        autoplay_flag = "true" if bool(autoplay) else "false"
        self._run_js_or_queue("window.tuneguessLoadTrack(" + repr(str(video_id)) + ", " + autoplay_flag + ");")
        self._poll_snapshot()

    def play(self) -> None:
        self._run_js_or_queue("window.tuneguessPlay();")

    def pause(self) -> None:
        self._run_js_or_queue("window.tuneguessPause();")
        self._poll_snapshot()

    def set_volume(self, volume_percent: int) -> None:
        volume_value = int(max(0, min(100, int(volume_percent))))
        self._run_js_or_queue("window.tuneguessSetVolume(" + repr(volume_value) + ");")

    def shutdown(self) -> None:
        self._poll_timer.stop()
        self._pending_js_calls.clear()

    def _configure_view_settings(self) -> None:
        settings = self._view.settings()
        settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessRemoteUrls, True)
        settings.setAttribute(QWebEngineSettings.WebAttribute.PlaybackRequiresUserGesture, False)

    def _load_bootstrap_html(self) -> None:
        # setHtml() uses base_url as the document URL.
        # Keep the origin on localhost to avoid youtube.com origin edge cases.
        try:
            self._view.setHtml(_BOOTSTRAP_HTML, QUrl("http://localhost/"))
        except Exception as exc:
            self.errorOccurred.emit(f"Failed to initialize web player: {exc!r}")

    def _on_load_finished(self, ok: bool) -> None:
        self._html_loaded = bool(ok)
        if not ok:
            self.errorOccurred.emit("Web player failed to load")
            return

        pending_calls = list(self._pending_js_calls)
        self._pending_js_calls.clear()
        for js in pending_calls:
            self._view.page().runJavaScript(js)

        self._poll_timer.start()
        self._poll_snapshot()

    def _run_js_or_queue(self, js: str) -> None:
        if not self._html_loaded:
            self._pending_js_calls.append(str(js))
            return
        try:
            self._view.page().runJavaScript(str(js))
        except Exception as exc:
            self.errorOccurred.emit(f"Web player call failed: {exc!r}")

    def _poll_snapshot(self) -> None:
        if not self._html_loaded:
            return
        try:
            self._view.page().runJavaScript("window.tuneguessGetSnapshot();", self._on_snapshot_result)
        except Exception as exc:
            self.errorOccurred.emit(f"Web player poll failed: {exc!r}")

    def _on_snapshot_result(self, result: Any) -> None:
        if not isinstance(result, dict):
            return

        try:
            state_code_value = int(result.get("state_code", -2))
        except (TypeError, ValueError):
            state_code_value = -2

        try:
            error_serial_value = int(result.get("error_serial", 0) or 0)
        except (TypeError, ValueError):
            error_serial_value = 0

        if error_serial_value != self._last_error_serial:
            self._last_error_serial = error_serial_value
            error_code_raw = result.get("error_code")
            try:
                message = friendly_error_for_iframe_api_code(int(error_code_raw))
            except (TypeError, ValueError):
                message = "YouTube player error"
            self.errorOccurred.emit(message)

        ready_value = bool(result.get("ready", False))
        if ready_value != self._is_ready:
            self._is_ready = ready_value
            self.playerReadyChanged.emit(ready_value)

        playing_value = state_code_value == YOUTUBE_STATE_PLAYING
        if playing_value != self._is_playing:
            self._is_playing = playing_value
            self.playingChanged.emit(playing_value)


class WebPlayerBridge(QFrame):
    playerReadyChanged = pyqtSignal(bool)
    playingChanged = pyqtSignal(bool)
    errorOccurred = pyqtSignal(str)

    def __init__(self, parent: Optional[QWidget] = None, *, volume_percent: int = 80) -> None:
        super().__init__(parent=parent)

        self._web_view: Optional[QWebEngineView] = None
        self._web_backend: Optional[_WebEngineBackend] = None

        self._cover_label = QLabel("Listen closely...")
        self._cover_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._cover_label.setWordWrap(True)
        self._cover_label.setAutoFillBackground(True)
        self._cover_label.setStyleSheet("background:#111; color:#ddd; font-size:18px;")

        # StackAll keeps the web view rendering (and playing audio) underneath the cover.
        self._stack_layout = QStackedLayout()
        self._stack_layout.setStackingMode(QStackedLayout.StackingMode.StackAll)

        try:
            self._web_view = QWebEngineView()
            self._web_backend = _WebEngineBackend(self._web_view)
            self._stack_layout.addWidget(self._web_view)

            self._web_backend.playerReadyChanged.connect(self.playerReadyChanged)
            self._web_backend.playingChanged.connect(self.playingChanged)
            self._web_backend.errorOccurred.connect(self.errorOccurred)
            self._web_backend.errorOccurred.connect(self._on_backend_error)
            self._web_backend.set_volume(volume_percent)
        except Exception as exc:
            logger.exception("Web player backend failed to initialize")
            self._cover_label.setText(f"Player unavailable: {exc!r}")

        self._stack_layout.addWidget(self._cover_label)
        self._stack_layout.setCurrentWidget(self._cover_label)
        self._cover_label.raise_()

        root_layout = QVBoxLayout()
        root_layout.setContentsMargins(0, 0, 0, 0)
        root_layout.addLayout(self._stack_layout)
        self.setLayout(root_layout)

    def is_ready(self) -> bool:
        return self._web_backend is not None and self._web_backend.is_ready()

    def is_playing(self) -> bool:
        return self._web_backend is not None and self._web_backend.is_playing()

    def load_track(self, track: Track, *, autoplay: bool = True) -> None:
        if self._web_backend is None:
            raise RuntimeError("Web player backend is unavailable")
        if not is_valid_video_id(track.track_id):
            raise ValueError(f"Not a playable YouTube video id: {track.track_id!r}")

        logger.debug("Loading track %s (autoplay=%s)", track.track_id, autoplay)
        self._web_backend.load_track(track.track_id, bool(autoplay))

    def play(self) -> None:
        if self._web_backend is None:
            return
        self._web_backend.play()

    def pause(self) -> None:
        if self._web_backend is None:
            return
        self._web_backend.pause()

    def set_volume(self, volume_percent: int) -> None:
        if self._web_backend is None:
            return
        self._web_backend.set_volume(int(volume_percent))

    def set_cover_text(self, text: str) -> None:
        self._cover_label.setText(str(text))

    def shutdown(self) -> None:
        if self._web_backend is None:
            return
        self._web_backend.shutdown()

    def _on_backend_error(self, message: str) -> None:
        logger.warning("Web player error: %s", message)


def main() -> int:
    import sys
    from PyQt6.QtCore import QCoreApplication
    from PyQt6.QtWidgets import QApplication

    QCoreApplication.setAttribute(Qt.ApplicationAttribute.AA_ShareOpenGLContexts)

    app = QApplication(sys.argv)

    video_id = sys.argv[1] if len(sys.argv) > 1 else "dQw4w9WgXcQ"
    track = Track(track_id=video_id, title="Manual check", artists=("Unknown",))

    widget = WebPlayerBridge()
    widget.resize(480, 270)
    widget.playerReadyChanged.connect(lambda ready: ready and widget.load_track(track))
    widget.playingChanged.connect(lambda playing: widget.set_cover_text("Playing" if playing else "Paused"))
    widget.errorOccurred.connect(widget.set_cover_text)
    widget.show()

    return int(app.exec())


if __name__ == "__main__":
    raise SystemExit(main())
