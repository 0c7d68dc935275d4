# -*- coding: utf-8 -*-
########################
# catalog_validation.py
########################
# Purpose:
# - Turn raw YouTube Data API resources into validated Collection and Track models.
# - Derive a guessable title and artist list from a music video's title and uploader channel.
#
# Design notes:
# - No Qt usage, no network. Pure functions over dicts as returned by the API client.
# - Anything that cannot yield a non-empty title and at least one artist is dropped here,
#   so the round engine never sees a malformed Track.
# - Collections with missing fields get defaults instead of being dropped (only the id is required).
#
########################
# Interfaces:
# Public functions:
# - best_thumbnail_url(snippet: dict) -> Optional[str]
# - collection_from_playlist_resource(resource: dict, *, name_override: Optional[str] = None) -> Optional[Collection]
# - clean_video_title(text: str) -> str
# - artist_from_channel_title(channel_title: str) -> str
# - parse_video_title(video_title: str, channel_title: str) -> Optional[tuple[str, tuple[str, ...]]]
# - track_from_playlist_item(item: dict) -> Optional[Track]
# - tracks_from_playlist_items(items: Iterable[dict]) -> list[Track]
#
# Inputs:
# - playlists.list and playlistItems.list resources (dicts).
#
# Outputs:
# - Collection and Track instances for GameController and the round engine.
#
########################

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from gameplay_models import Collection, Track


UNTITLED_COLLECTION_NAME = "Untitled Playlist"

_UNAVAILABLE_VIDEO_TITLES = {"deleted video", "private video"}

_THUMBNAIL_PREFERRED_ORDER = ["maxres", "standard", "high", "medium", "default"]

_NOISE_WORDS = (
    "official",
    "video",
    "audio",
    "lyric",
    "lyrics",
    "visualizer",
    "visualiser",
    "remaster",
    "remastered",
    "hd",
    "hq",
    "4k",
    "mv",
    "clip",
)

_BRACKETED_SEGMENT_REGEX = re.compile(r"\s*[\(\[]([^\)\]]*)[\)\]]")
_FEATURING_REGEX = re.compile(r"\s*[\(\[]?\s*\b(?:feat\.?|ft\.?|featuring)\s+([^\)\]]+)[\)\]]?", re.IGNORECASE)
_ARTIST_TITLE_SEPARATOR_REGEX = re.compile(r"\s+[-\u2013\u2014]\s+")
_PIPE_SUFFIX_REGEX = re.compile(r"\s*\|.*$")
_WHITESPACE_REGEX = re.compile(r"\s+")


def _text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _WHITESPACE_REGEX.sub(" ", value).strip()


def best_thumbnail_url(snippet: Dict[str, Any]) -> Optional[str]:
    thumbnails_block = snippet.get("thumbnails") if isinstance(snippet, dict) else None
    if not isinstance(thumbnails_block, dict):
        return None

    ordered_keys = list(_THUMBNAIL_PREFERRED_ORDER)
    ordered_keys.extend(key for key in thumbnails_block.keys() if key not in _THUMBNAIL_PREFERRED_ORDER)

    for key in ordered_keys:
        entry = thumbnails_block.get(key)
        if not isinstance(entry, dict):
            continue
        url = entry.get("url")
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def collection_from_playlist_resource(
    resource: Dict[str, Any],
    *,
    name_override: Optional[str] = None,
) -> Optional[Collection]:
    if not isinstance(resource, dict):
        return None

    collection_id = _text(resource.get("id"))
    if not collection_id:
        return None

    snippet = resource.get("snippet") if isinstance(resource.get("snippet"), dict) else {}
    content_details = resource.get("contentDetails") if isinstance(resource.get("contentDetails"), dict) else {}

    name = _text(name_override) or _text(snippet.get("title")) or UNTITLED_COLLECTION_NAME

    item_count = content_details.get("itemCount")
    track_total = int(item_count) if isinstance(item_count, int) and item_count > 0 else 0

    return Collection(
        collection_id=collection_id,
        name=name,
        image_url=best_thumbnail_url(snippet),
        track_total=track_total,
    )


def _is_noise_segment(segment_text: str) -> bool:
    words = re.findall(r"[0-9a-z]+", segment_text.lower())
    return bool(words) and any(word in _NOISE_WORDS for word in words)


def clean_video_title(text: str) -> str:
    """Drop upload noise like "(Official Video)" or "[Lyrics]" and anything after a '|'."""
    cleaned = _PIPE_SUFFIX_REGEX.sub("", _text(text))

    def replace_segment(match: "re.Match[str]") -> str:
        return "" if _is_noise_segment(match.group(1)) else match.group(0)

    cleaned = _BRACKETED_SEGMENT_REGEX.sub(replace_segment, cleaned)
    return _WHITESPACE_REGEX.sub(" ", cleaned).strip(" -\u2013\u2014\"'")


def artist_from_channel_title(channel_title: str) -> str:
    name = _text(channel_title)
    if name.endswith(" - Topic"):
        name = name[: -len(" - Topic")]
    if name.upper().endswith("VEVO") and len(name) > 4:
        name = name[:-4]
    return name.strip()


def _split_featured(text: str) -> Tuple[str, List[str]]:
    featured: List[str] = []

    def collect(match: "re.Match[str]") -> str:
        for name in re.split(r",|&| and ", match.group(1)):
            cleaned_name = _text(name)
            if cleaned_name:
                featured.append(cleaned_name)
        return ""

    remaining = _FEATURING_REGEX.sub(collect, text)
    return _text(remaining), featured


def parse_video_title(video_title: str, channel_title: str) -> Optional[Tuple[str, Tuple[str, ...]]]:
    cleaned_title = clean_video_title(video_title)
    if not cleaned_title:
        return None

    parts = _ARTIST_TITLE_SEPARATOR_REGEX.split(cleaned_title, maxsplit=1)
    if len(parts) == 2 and _text(parts[0]) and _text(parts[1]):
        artist_part, artist_featured = _split_featured(parts[0])
        title, title_featured = _split_featured(parts[1])
        artists = ([artist_part] if artist_part else []) + artist_featured + title_featured
    else:
        title, title_featured = _split_featured(cleaned_title)
        channel_artist = artist_from_channel_title(channel_title)
        artists = ([channel_artist] if channel_artist else []) + title_featured

    unique_artists: List[str] = []
    for artist in artists:
        if artist and artist.lower() not in {existing.lower() for existing in unique_artists}:
            unique_artists.append(artist)

    if not title or not unique_artists:
        return None
    return title, tuple(unique_artists)


def _video_id_for_item(item: Dict[str, Any], snippet: Dict[str, Any]) -> str:
    content_details = item.get("contentDetails")
    if isinstance(content_details, dict):
        video_id = _text(content_details.get("videoId"))
        if video_id:
            return video_id

    resource_id = snippet.get("resourceId")
    if isinstance(resource_id, dict):
        return _text(resource_id.get("videoId"))
    return ""


def track_from_playlist_item(item: Dict[str, Any]) -> Optional[Track]:
    if not isinstance(item, dict):
        return None
    snippet = item.get("snippet")
    if not isinstance(snippet, dict):
        return None

    video_id = _video_id_for_item(item, snippet)
    if not video_id:
        return None

    video_title = _text(snippet.get("title"))
    if not video_title or video_title.lower() in _UNAVAILABLE_VIDEO_TITLES:
        return None

    parsed = parse_video_title(video_title, _text(snippet.get("videoOwnerChannelTitle")))
    if parsed is None:
        return None

    title, artists = parsed
    return Track(
        track_id=video_id,
        title=title,
        artists=artists,
        album_art_url=best_thumbnail_url(snippet),
    )


def tracks_from_playlist_items(items: Iterable[Dict[str, Any]]) -> List[Track]:
    """Validate playlist items in order, keeping the first occurrence of each video."""
    tracks: List[Track] = []
    seen_ids: Set[str] = set()
    for item in items:
        track = track_from_playlist_item(item)
        if track is None or track.track_id in seen_ids:
            continue
        seen_ids.add(track.track_id)
        tracks.append(track)
    return tracks
