import json

import pytest

import config
import similarity


def _write_config(tmp_path, payload):
    config_path = tmp_path / "tuneguess_config.json"
    config_path.write_text(json.dumps(payload), encoding="utf-8")
    return config_path


def test_defaults_fill_missing_sections(tmp_path):
    app_config, resolved_path = config.load_config(_write_config(tmp_path, {}))

    assert resolved_path == tmp_path / "tuneguess_config.json"
    assert app_config.youtube.api_key == ""
    assert app_config.collections == []
    assert app_config.timer.tick_interval_ms == 100
    assert app_config.scoring.to_rules() == similarity.ScoringRules()
    assert app_config.logging.level == "INFO"


def test_collections_are_trimmed_and_deduplicated(tmp_path):
    payload = {
        "collections": [
            {"playlist_id": " PL1 ", "name": "  Rock "},
            {"playlist_id": "PL2", "name": "   "},
            {"playlist_id": "PL1", "name": "Duplicate"},
        ]
    }
    app_config, _path = config.load_config(_write_config(tmp_path, payload))

    assert [(entry.playlist_id, entry.name) for entry in app_config.collections] == [("PL1", "Rock"), ("PL2", None)]


def test_invalid_values_raise_readable_error(tmp_path):
    with pytest.raises(ValueError, match="Config validation failed"):
        config.load_config(_write_config(tmp_path, {"logging": {"level": "LOUD"}}))

    with pytest.raises(ValueError, match="Config validation failed"):
        config.load_config(_write_config(tmp_path, {"collections": [{"playlist_id": ""}]}))


def test_non_json_and_non_object_files_are_rejected(tmp_path):
    broken_path = tmp_path / "broken.json"
    broken_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        config.load_config(broken_path)

    list_path = tmp_path / "list.json"
    list_path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        config.load_config(list_path)


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("TUNEGUESS_YOUTUBE_API_KEY", "env-key")
    monkeypatch.setenv("TUNEGUESS_TIME_BONUS_WINDOW_SECONDS", "45")
    monkeypatch.setenv("TUNEGUESS_TIMER_TICK_MS", "50")
    monkeypatch.setenv("TUNEGUESS_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUNEGUESS_LOG_JSON", "yes")
    monkeypatch.setenv("TUNEGUESS_PLAYER_VOLUME", "not a number")

    app_config, _path = config.load_config(_write_config(tmp_path, {"youtube": {"api_key": "file-key"}}))

    assert app_config.youtube.api_key == "env-key"
    assert app_config.scoring.time_bonus_window_seconds == 45.0
    assert app_config.timer.tick_interval_ms == 50
    assert app_config.logging.level == "DEBUG"
    assert app_config.logging.json_output is True
    assert app_config.player.volume_percent == 80


def test_config_path_from_environment(tmp_path, monkeypatch):
    config_path = _write_config(tmp_path, {"timer": {"tick_interval_ms": 200}})
    monkeypatch.setenv("TUNEGUESS_CONFIG_PATH", str(config_path))

    app_config, resolved_path = config.load_config()

    assert resolved_path == config_path
    assert app_config.timer.tick_interval_ms == 200


def test_missing_config_lists_searched_locations(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_default_config_candidates", lambda: [tmp_path / "tuneguess_config.json"])

    with pytest.raises(FileNotFoundError, match="tuneguess_config.json"):
        config.load_config()


def test_redacted_json_hides_api_key(tmp_path):
    app_config, _path = config.load_config(_write_config(tmp_path, {"youtube": {"api_key": "secret"}}))
    redacted = json.loads(config.to_redacted_json(app_config))
    assert redacted["youtube"]["api_key"] == "(set)"
    assert "secret" not in config.to_redacted_json(app_config)


def test_scoring_section_builds_rules(tmp_path):
    payload = {"scoring": {"time_bonus_window_seconds": 60, "points_multiplier": 1, "clamp_score": False}}
    app_config, _path = config.load_config(_write_config(tmp_path, payload))

    rules = app_config.scoring.to_rules()
    assert rules.time_bonus_window_seconds == 60.0
    assert rules.points_multiplier == 1
    assert rules.clamp_score is False
    assert rules.max_score() == 100
