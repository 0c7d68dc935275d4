"""
catalog_api.py

YouTube playlist catalog for the TuneGuess game.

Purpose
- List the configured collections (one YouTube playlist per collection)
- Fetch and validate the tracks of a collection

Integration
- GameController depends only on list_collections() and fetch_collection_tracks()
- Raw resources go through catalog_validation before leaving this module
- Results are cached to reduce quota usage and improve speed

Standalone usage
python -m catalog_api

Prints the configured collections and the first few tracks of each as JSON.

Configuration
- Loads settings via config.py (JSON config file + optional env overrides)
- Requires youtube.api_key to be set in the config file
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from platformdirs import user_cache_dir

import catalog_validation
from config import AppConfig, CollectionEntry, get_config
from gameplay_models import Collection, Track


logger = logging.getLogger(__name__)

PLAYLIST_PAGE_SIZE = 50


# -----------------------------
# Errors
# -----------------------------


class CatalogError(Exception):
    pass


class CatalogAuthError(CatalogError):
    pass


class CatalogQuotaError(CatalogError):
    pass


class CatalogRequestError(CatalogError):
    pass


# -----------------------------
# Cache hooks
# -----------------------------


class CatalogCache(Protocol):
    def get_text(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_text(self, key: str, value: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        raise NotImplementedError


class NullCache:
    def get_text(self, key: str) -> Optional[str]:
        return None

    def set_text(self, key: str, value: str) -> None:
        return None

    def flush(self) -> None:
        return None


class JsonFileCache:
    """All keys in one JSON file, written atomically on flush."""

    def __init__(self, cache_path: Path) -> None:
        self._cache_path = cache_path
        self._cache_path.parent.mkdir(parents=True, exist_ok=True)
        self._data: Dict[str, str] = {}
        self._dirty = False
        self._load_from_disk()

    def get_text(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_text(self, key: str, value: str) -> None:
        self._data[key] = value
        self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        temporary_path = self._cache_path.with_suffix(self._cache_path.suffix + ".tmp")
        temporary_path.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
        temporary_path.replace(self._cache_path)
        self._dirty = False

    def _load_from_disk(self) -> None:
        if not self._cache_path.exists():
            return
        try:
            loaded_data = json.loads(self._cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exception:
            logger.warning("Ignoring unreadable catalog cache %s: %s", self._cache_path, exception)
            return
        if isinstance(loaded_data, dict):
            self._data = {str(key): str(value) for key, value in loaded_data.items()}


# -----------------------------
# Helpers
# -----------------------------


def _stable_json_dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _hash_key(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _wrap_cached_value(value: Any) -> str:
    return _stable_json_dumps({"fetched_at": int(time.time()), "value": value})


def _unwrap_cached_value(value_text: str, ttl_seconds: int) -> Optional[Any]:
    try:
        parsed_value = json.loads(value_text)
    except ValueError:
        return None
    if not isinstance(parsed_value, dict):
        return None
    fetched_at = parsed_value.get("fetched_at")
    if not isinstance(fetched_at, int):
        return None
    if ttl_seconds >= 0 and int(time.time()) - fetched_at > ttl_seconds:
        return None
    return parsed_value.get("value")


def _raise_for_http_error(http_error: HttpError) -> None:
    status_code = getattr(http_error.resp, "status", None)
    error_reason = ""

    try:
        error_body = json.loads(http_error.content.decode("utf-8", errors="replace"))
    except (AttributeError, ValueError):
        error_body = None

    if isinstance(error_body, dict):
        error_block = error_body.get("error")
        if isinstance(error_block, dict):
            errors_list = error_block.get("errors")
            if isinstance(errors_list, list) and errors_list and isinstance(errors_list[0], dict):
                error_reason = str(errors_list[0].get("reason") or "")

    if status_code in (400, 401, 403) and error_reason in ("keyInvalid", "forbidden", "badRequest"):
        raise CatalogAuthError(f"YouTube API auth error (status {status_code}, reason {error_reason}).")

    if status_code == 403 and error_reason in ("quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded"):
        raise CatalogQuotaError(f"YouTube API quota error (status {status_code}, reason {error_reason}).")

    raise CatalogRequestError(f"YouTube API request failed (status {status_code}, reason {error_reason}).")


def _track_to_dict(track: Track) -> Dict[str, Any]:
    payload = asdict(track)
    payload["artists"] = list(track.artists)
    return payload


def _track_from_dict(payload: Dict[str, Any]) -> Optional[Track]:
    try:
        artists = tuple(str(name) for name in payload.get("artists") or [])
        track = Track(
            track_id=str(payload["track_id"]),
            title=str(payload["title"]),
            artists=artists,
            album_art_url=payload.get("album_art_url") or None,
        )
    except (KeyError, TypeError):
        return None
    if not track.track_id or not track.title or not track.artists:
        return None
    return track


# -----------------------------
# Catalog client
# -----------------------------


class YouTubeCatalog:
    def __init__(
        self,
        *,
        api_key: str,
        collections: Sequence[CollectionEntry],
        cache: Optional[CatalogCache] = None,
        cache_ttl_seconds: int = 24 * 60 * 60,
        max_tracks_per_collection: int = 200,
        service: Optional[Any] = None,
    ) -> None:
        cleaned_api_key = (api_key or "").strip()
        if service is None and not cleaned_api_key:
            raise CatalogAuthError("Missing YouTube API key. Set youtube.api_key in the TuneGuess config file.")

        self._collection_entries = list(collections)
        self._cache = cache if cache is not None else NullCache()
        self._cache_ttl_seconds = int(cache_ttl_seconds)
        self._max_tracks = max(1, int(max_tracks_per_collection))

        if service is None:
            service = build("youtube", "v3", developerKey=cleaned_api_key, cache_discovery=False)
        self._service = service

    @classmethod
    def from_app_config(cls, app_config: AppConfig, *, cache: Optional[CatalogCache] = None) -> "YouTubeCatalog":
        if cache is None:
            cache_directory = Path(user_cache_dir("TuneGuess", "TuneGuess"))
            cache = JsonFileCache(cache_directory / "catalog_cache.json")

        youtube_config = app_config.youtube
        return cls(
            api_key=youtube_config.api_key,
            collections=app_config.collections,
            cache=cache,
            cache_ttl_seconds=youtube_config.cache_ttl_seconds,
            max_tracks_per_collection=youtube_config.max_tracks_per_collection,
        )

    @classmethod
    def from_config_file(cls, *, cache: Optional[CatalogCache] = None) -> "YouTubeCatalog":
        app_config, _config_path = get_config()
        return cls.from_app_config(app_config, cache=cache)

    def close(self) -> None:
        self._cache.flush()

    # Public methods used by GameController

    def list_collections(self) -> List[Collection]:
        if not self._collection_entries:
            return []

        playlist_ids = [entry.playlist_id for entry in self._collection_entries]
        cache_key = "collections:" + _hash_key(_stable_json_dumps(playlist_ids))
        cached_value = self._cache_get_value(cache_key)

        resources_by_id: Dict[str, Dict[str, Any]]
        if isinstance(cached_value, dict):
            resources_by_id = cached_value
        else:
            resources_by_id = self._perform_playlists_request(playlist_ids)
            self._cache_set_value(cache_key, resources_by_id)

        collections: List[Collection] = []
        for entry in self._collection_entries:
            resource = resources_by_id.get(entry.playlist_id)
            if resource is None:
                logger.warning("Playlist %s not found or not public", entry.playlist_id)
                continue
            collection = catalog_validation.collection_from_playlist_resource(resource, name_override=entry.name)
            if collection is not None:
                collections.append(collection)
        return collections

    def fetch_collection_tracks(self, collection_id: str) -> List[Track]:
        cleaned_id = (collection_id or "").strip()
        if not cleaned_id:
            return []

        cache_key = "tracks:" + _hash_key(f"{cleaned_id}:{self._max_tracks}")
        cached_value = self._cache_get_value(cache_key)
        if isinstance(cached_value, list):
            cached_tracks = [_track_from_dict(item) for item in cached_value if isinstance(item, dict)]
            return [track for track in cached_tracks if track is not None]

        raw_items = self._perform_playlist_items_requests(cleaned_id)
        tracks = catalog_validation.tracks_from_playlist_items(raw_items)
        logger.info(
            "Collection %s: %d playlist items, %d playable tracks",
            cleaned_id,
            len(raw_items),
            len(tracks),
        )

        self._cache_set_value(cache_key, [_track_to_dict(track) for track in tracks])
        return tracks

    # Internal request helpers

    def _perform_playlists_request(self, playlist_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        resources_by_id: Dict[str, Dict[str, Any]] = {}
        for batch_start in range(0, len(playlist_ids), PLAYLIST_PAGE_SIZE):
            batch_ids = list(playlist_ids[batch_start : batch_start + PLAYLIST_PAGE_SIZE])
            try:
                response = self._service.playlists().list(
                    part="snippet,contentDetails",
                    id=",".join(batch_ids),
                    maxResults=PLAYLIST_PAGE_SIZE,
                ).execute()
            except HttpError as http_error:
                _raise_for_http_error(http_error)
            except Exception as exception:
                raise CatalogRequestError(f"YouTube API playlists.list failed: {exception}") from exception

            for item in response.get("items") or []:
                if isinstance(item, dict) and isinstance(item.get("id"), str):
                    resources_by_id[item["id"]] = item
        return resources_by_id

    def _perform_playlist_items_requests(self, playlist_id: str) -> List[Dict[str, Any]]:
        collected_items: List[Dict[str, Any]] = []
        page_token: Optional[str] = None

        while len(collected_items) < self._max_tracks:
            request_kwargs: Dict[str, Any] = {
                "part": "snippet,contentDetails",
                "playlistId": playlist_id,
                "maxResults": PLAYLIST_PAGE_SIZE,
            }
            if page_token:
                request_kwargs["pageToken"] = page_token

            try:
                response = self._service.playlistItems().list(**request_kwargs).execute()
            except HttpError as http_error:
                _raise_for_http_error(http_error)
            except Exception as exception:
                raise CatalogRequestError(f"YouTube API playlistItems.list failed: {exception}") from exception

            items = [item for item in response.get("items") or [] if isinstance(item, dict)]
            collected_items.extend(items)

            next_page_token = response.get("nextPageToken")
            if not isinstance(next_page_token, str) or not next_page_token or not items:
                break
            page_token = next_page_token

        return collected_items[: self._max_tracks]

    def _cache_get_value(self, key: str) -> Optional[Any]:
        cached_text = self._cache.get_text(key)
        if cached_text is None:
            return None
        return _unwrap_cached_value(cached_text, self._cache_ttl_seconds)

    def _cache_set_value(self, key: str, value: Any) -> None:
        self._cache.set_text(key, _wrap_cached_value(value))


# -----------------------------
# Standalone main()
# -----------------------------


def main() -> int:
    try:
        catalog = YouTubeCatalog.from_config_file()
    except CatalogError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2
    except Exception as exception:
        print(json.dumps({"ok": False, "error": f"Failed to initialize catalog: {exception}"}, ensure_ascii=False, indent=2))
        return 2

    try:
        output_collections = []
        for collection in catalog.list_collections():
            tracks = catalog.fetch_collection_tracks(collection.collection_id)
            output_collections.append(
                {
                    "collection": asdict(collection),
                    "playable_tracks": len(tracks),
                    "sample": [_track_to_dict(track) for track in tracks[:5]],
                }
            )
        print(json.dumps({"ok": True, "collections": output_collections}, ensure_ascii=False, indent=2))
        return 0
    except CatalogError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 1
    finally:
        catalog.close()


if __name__ == "__main__":
    raise SystemExit(main())
