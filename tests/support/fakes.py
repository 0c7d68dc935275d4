"""Shared fakes for the player, the catalog, the clock and the YouTube client."""

from typing import Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from gameplay_models import Collection, Track


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


class FakePlayer(QObject):
    playerReadyChanged = pyqtSignal(bool)
    playingChanged = pyqtSignal(bool)
    errorOccurred = pyqtSignal(str)

    def __init__(self, *, ready: bool = True, fail_load: bool = False, fail_pause: bool = False) -> None:
        super().__init__()
        self._ready = bool(ready)
        self._playing = False
        self.fail_load = fail_load
        self.fail_pause = fail_pause
        self.loaded: List[Track] = []
        self.pause_calls = 0
        self.play_calls = 0

    def is_ready(self) -> bool:
        return self._ready

    def is_playing(self) -> bool:
        return self._playing

    def load_track(self, track: Track, *, autoplay: bool = True) -> None:
        if self.fail_load:
            raise RuntimeError("load failed")
        self.loaded.append(track)
        self._set_playing(False)

    def play(self) -> None:
        self.play_calls += 1

    def pause(self) -> None:
        self.pause_calls += 1
        if self.fail_pause:
            raise RuntimeError("pause failed")

    # Driver helpers: simulate what the embedded player reports.

    def become_ready(self) -> None:
        self._ready = True
        self.playerReadyChanged.emit(True)

    def report_playing(self, is_playing: bool) -> None:
        self._set_playing(is_playing)

    def _set_playing(self, is_playing: bool) -> None:
        # Like the embedded player, only a change of playing state is reported.
        if bool(is_playing) == self._playing:
            return
        self._playing = bool(is_playing)
        self.playingChanged.emit(self._playing)

    def report_error(self, message: str) -> None:
        self.errorOccurred.emit(message)


class FakeCatalog:
    def __init__(
        self,
        collections: Optional[List[Collection]] = None,
        tracks_by_collection: Optional[Dict[str, List[Track]]] = None,
    ) -> None:
        self.collections = list(collections or [])
        self.tracks_by_collection = dict(tracks_by_collection or {})
        self.fail_list = False
        self.fail_fetch = False
        self.fetch_calls: List[str] = []
        self.closed = False

    def list_collections(self) -> List[Collection]:
        if self.fail_list:
            raise RuntimeError("catalog unavailable")
        return list(self.collections)

    def fetch_collection_tracks(self, collection_id: str) -> List[Track]:
        self.fetch_calls.append(collection_id)
        if self.fail_fetch:
            raise RuntimeError("catalog unavailable")
        return list(self.tracks_by_collection.get(collection_id, []))

    def close(self) -> None:
        self.closed = True


class _FakeRequest:
    def __init__(self, response: Optional[dict] = None, error: Optional[Exception] = None) -> None:
        self._response = response or {}
        self._error = error

    def execute(self) -> dict:
        if self._error is not None:
            raise self._error
        return self._response


class _FakeResource:
    def __init__(self, service: "FakeYouTubeService", name: str) -> None:
        self._service = service
        self._name = name

    def list(self, **kwargs) -> _FakeRequest:
        self._service.calls.append((self._name, kwargs))
        if self._service.error is not None:
            return _FakeRequest(error=self._service.error)
        if self._name == "playlists":
            return _FakeRequest({"items": list(self._service.playlist_resources)})
        pages = self._service.playlist_item_pages.get(kwargs.get("playlistId"), [])
        page_index = int(kwargs.get("pageToken") or 0)
        if page_index >= len(pages):
            return _FakeRequest({"items": []})
        response: dict = {"items": list(pages[page_index])}
        if page_index + 1 < len(pages):
            response["nextPageToken"] = str(page_index + 1)
        return _FakeRequest(response)


class FakeYouTubeService:
    """Stands in for googleapiclient's discovery resource; pages are addressed by index tokens."""

    def __init__(self) -> None:
        self.playlist_resources: List[dict] = []
        self.playlist_item_pages: Dict[str, List[List[dict]]] = {}
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []

    def playlists(self) -> _FakeResource:
        return _FakeResource(self, "playlists")

    def playlistItems(self) -> _FakeResource:  # noqa: N802
        return _FakeResource(self, "playlistItems")


def playlist_item(video_id: str, title: str, channel: str = "Some Channel", thumbnail: Optional[str] = None) -> dict:
    snippet: dict = {
        "title": title,
        "videoOwnerChannelTitle": channel,
        "resourceId": {"kind": "youtube#video", "videoId": video_id},
    }
    if thumbnail:
        snippet["thumbnails"] = {"high": {"url": thumbnail}}
    return {"snippet": snippet, "contentDetails": {"videoId": video_id}}


def playlist_resource(playlist_id: str, title: str, item_count: int) -> dict:
    return {
        "id": playlist_id,
        "snippet": {"title": title, "thumbnails": {"default": {"url": f"https://img/{playlist_id}.jpg"}}},
        "contentDetails": {"itemCount": item_count},
    }
