"""
config.py

Typed configuration loading and validation for TuneGuess.

Design goals
- Load exactly one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

How to obtain a YouTube Data API key
1) Go to Google Cloud Console.
2) Create (or select) a project.
3) Enable "YouTube Data API v3" for the project.
4) Create an API key in "APIs & Services" -> "Credentials".
5) Put the key in your TuneGuess config file under: youtube.api_key

Config file location
- If TUNEGUESS_CONFIG_PATH is set, that file is used.
- Otherwise TuneGuess searches these paths in order and uses the first one that exists:
  1) ./tuneguess_config.json (current working directory)
  2) <user config dir>/TuneGuess/TuneGuess/tuneguess_config.json
  3) <user config dir>/TuneGuess/TuneGuess/config.json

Example config file (tuneguess_config.json)
{
  "youtube": {
    "api_key": "YOUR_KEY_HERE",
    "cache_ttl_seconds": 86400,
    "max_tracks_per_collection": 200
  },
  "collections": [
    {"playlist_id": "PLxxxxxxxxxxxxxxxx", "name": "Classic Rock"}
  ],
  "scoring": {
    "time_bonus_window_seconds": 30
  },
  "timer": {
    "tick_interval_ms": 100
  },
  "logging": {
    "level": "INFO"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import similarity


class YouTubeConfig(BaseModel):
    api_key: str = Field(default="", description="YouTube Data API v3 key from Google Cloud Console.")
    cache_ttl_seconds: int = Field(default=24 * 60 * 60, ge=0, description="Cache time to live in seconds.")
    max_tracks_per_collection: int = Field(
        default=200,
        ge=1,
        le=5000,
        description="Upper bound on playlist items read for one collection.",
    )


class CollectionEntry(BaseModel):
    playlist_id: str = Field(description="YouTube playlist id.")
    name: Optional[str] = Field(default=None, description="Display name override.")

    @field_validator("playlist_id")
    @classmethod
    def validate_playlist_id(cls, value: str) -> str:
        trimmed = (value or "").strip()
        if not trimmed:
            raise ValueError("playlist_id must not be empty")
        return trimmed

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class ScoringConfig(BaseModel):
    similarity_weight: float = Field(default=80.0, ge=0.0)
    speed_weight: float = Field(default=20.0, ge=0.0)
    time_bonus_window_seconds: float = Field(default=30.0, gt=0.0, description="Seconds until the speed bonus reaches zero.")
    correct_threshold: float = Field(default=0.8, ge=0.0, le=1.0, description="Both similarities must exceed this.")
    points_multiplier: int = Field(default=100, ge=1)
    clamp_score: bool = Field(default=True, description="Clamp the rounded score to its nominal range.")

    def to_rules(self) -> similarity.ScoringRules:
        return similarity.ScoringRules(**self.model_dump())


class TimerConfig(BaseModel):
    tick_interval_ms: int = Field(default=100, ge=10, le=1000, description="Round timer sampling interval.")


class PlayerConfig(BaseModel):
    volume_percent: int = Field(default=80, ge=0, le=100)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    json_output: bool = Field(default=False, description="Emit one JSON object per log line.")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError("level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized


class AppConfig(BaseModel):
    youtube: YouTubeConfig = Field(default_factory=YouTubeConfig)
    collections: List[CollectionEntry] = Field(default_factory=list)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    player: PlayerConfig = Field(default_factory=PlayerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def drop_duplicate_collections(self) -> "AppConfig":
        seen_ids = set()
        unique_entries: List[CollectionEntry] = []
        for entry in self.collections:
            if entry.playlist_id in seen_ids:
                continue
            seen_ids.add(entry.playlist_id)
            unique_entries.append(entry)
        self.collections = unique_entries
        return self


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("TuneGuess", "TuneGuess"))
    return [
        Path.cwd() / "tuneguess_config.json",
        config_directory / "tuneguess_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Path:
    explicit_path_text = os.environ.get("TUNEGUESS_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    candidates_text = "\n".join("  - " + str(path) for path in _default_config_candidates())
    raise FileNotFoundError(
        "No TuneGuess config file found. Create tuneguess_config.json in one of these locations:\n" + candidates_text
    )


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - TUNEGUESS_YOUTUBE_API_KEY
    - TUNEGUESS_YOUTUBE_CACHE_TTL_SECONDS
    - TUNEGUESS_YOUTUBE_MAX_TRACKS
    - TUNEGUESS_TIME_BONUS_WINDOW_SECONDS
    - TUNEGUESS_TIMER_TICK_MS
    - TUNEGUESS_PLAYER_VOLUME
    - TUNEGUESS_LOG_LEVEL
    - TUNEGUESS_LOG_JSON
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    youtube_section = ensure_nested(updated_config, "youtube")
    scoring_section = ensure_nested(updated_config, "scoring")
    timer_section = ensure_nested(updated_config, "timer")
    player_section = ensure_nested(updated_config, "player")
    logging_section = ensure_nested(updated_config, "logging")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_number(env_name: str, target_dict: Dict[str, Any], key_name: str, parse) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = parse(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_string("TUNEGUESS_YOUTUBE_API_KEY", youtube_section, "api_key")
    override_number("TUNEGUESS_YOUTUBE_CACHE_TTL_SECONDS", youtube_section, "cache_ttl_seconds", int)
    override_number("TUNEGUESS_YOUTUBE_MAX_TRACKS", youtube_section, "max_tracks_per_collection", int)

    override_number("TUNEGUESS_TIME_BONUS_WINDOW_SECONDS", scoring_section, "time_bonus_window_seconds", float)
    override_number("TUNEGUESS_TIMER_TICK_MS", timer_section, "tick_interval_ms", int)
    override_number("TUNEGUESS_PLAYER_VOLUME", player_section, "volume_percent", int)

    override_string("TUNEGUESS_LOG_LEVEL", logging_section, "level")
    override_bool("TUNEGUESS_LOG_JSON", logging_section, "json_output")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Path]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        raise ValueError(f"Config validation failed for {resolved_path}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Path]:
    return load_config()


def to_redacted_json(config: AppConfig) -> str:
    config_dict = config.model_dump()
    youtube_section = config_dict.get("youtube")
    if isinstance(youtube_section, dict):
        api_key_value = str(youtube_section.get("api_key") or "")
        youtube_section["api_key"] = "(set)" if api_key_value else "(missing)"
    return json.dumps(config_dict, ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path),
        "config": json.loads(to_redacted_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
