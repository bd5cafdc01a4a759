"""Tests for vault configuration."""

import json

from solo_notation.config import CONFIG_FILENAME, default_config, get_config, update_config


def test_defaults_without_vault():
    config = get_config(None)
    assert config == {
        "enable_indexing": True,
        "campaign_folder": "",
        "near_complete_threshold": 0.75,
        "timer_urgent_threshold": 2,
    }


def test_defaults_without_file(tmp_path):
    assert get_config(tmp_path) == default_config()


def test_stored_values_are_merged(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text(
        json.dumps({"campaign_folder": "/Campaigns/", "timer_urgent_threshold": 3, "theme": "dark"}),
        encoding="utf-8",
    )
    config = get_config(tmp_path)
    assert config["campaign_folder"] == "Campaigns"
    assert config["timer_urgent_threshold"] == 3
    assert config["near_complete_threshold"] == 0.75
    assert "theme" not in config


def test_invalid_json_falls_back_to_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text("{not json", encoding="utf-8")
    assert get_config(tmp_path) == default_config()


def test_update_config_persists(tmp_path):
    result = update_config(tmp_path, {"enable_indexing": False, "unknown": 1})
    assert result["enable_indexing"] is False
    assert "unknown" not in result

    reloaded = get_config(tmp_path)
    assert reloaded["enable_indexing"] is False


def test_default_config_is_a_copy():
    config = default_config()
    config["enable_indexing"] = False
    assert default_config()["enable_indexing"] is True
