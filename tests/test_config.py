import json
import logging

import pytest

from dualsync import config


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr(config, "_SEARCH_PATHS", [str(tmp_path / "missing.json"), str(path)])
    yield path
    # Next reader loads from the real search paths again
    config._config = None
    config._source = None


def test_reads_first_existing_file(config_file):
    config_file.write_text(json.dumps({
        "master": {"url": "http://10.0.0.2:8080"},
        "sync": {"drift_tolerance": 0.25},
    }))
    config.reload_config()

    assert config.cfg("master", "url") == "http://10.0.0.2:8080"
    assert config.cfg("sync", "drift_tolerance", default=0.5) == 0.25
    assert config.cfg("sync", "lead_compensation", default=1.0) == 1.0
    assert config.cfg("delays", default={}) == {}


def test_invalid_json_falls_back_to_empty(config_file, caplog):
    config_file.write_text("{broken")
    with caplog.at_level(logging.ERROR):
        config.reload_config()
    assert config.cfg("master", "url", default="fallback") == "fallback"
    assert "Invalid JSON" in caplog.text


def test_warns_about_missing_participants(config_file, caplog):
    config_file.write_text(json.dumps({"master": {"url": "http://a"},
                                       "sync": {"status_attempts": 0}}))
    with caplog.at_level(logging.WARNING):
        config.reload_config()
    assert "missing slave.url" in caplog.text
    assert "status_attempts" in caplog.text


def test_password_comes_from_environment(monkeypatch):
    monkeypatch.setenv("VLC_PASSWORD", "hunter2")
    assert config.vlc_password() == "hunter2"
    monkeypatch.delenv("VLC_PASSWORD")
    assert config.vlc_password() == ""


def test_records_which_file_was_used(config_file):
    config_file.write_text(json.dumps({"slave": {"url": "http://b"}}))
    config.reload_config()
    assert config.config_source() == str(config_file)


def test_non_object_file_is_skipped(config_file, caplog):
    config_file.write_text("[1, 2]")
    with caplog.at_level(logging.ERROR):
        config.reload_config()
    assert config.cfg("sync", default={}) == {}
    assert config.config_source() is None
    assert "top level must be an object" in caplog.text
