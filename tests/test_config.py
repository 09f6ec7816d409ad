import json

from nodeweave.config import EditorSettings, get_settings, load_config, save_config


def test_defaults_without_config_file(tmp_path):
    settings = get_settings(config_path=tmp_path / "config.json", environ={})
    assert settings == EditorSettings()
    assert settings.proximity_threshold == 110.0
    assert settings.canvas_width == 1200


def test_config_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.json"
    save_config({"canvas_width": 1600, "link_distance": 90, "unknown_key": 1}, path)
    settings = get_settings(config_path=path, environ={})
    assert settings.canvas_width == 1600
    assert settings.link_distance == 90.0
    assert isinstance(settings.link_distance, float)


def test_environment_wins_over_config_file(tmp_path):
    path = tmp_path / "config.json"
    save_config({"canvas_width": 1600}, path)
    settings = get_settings(config_path=path, environ={
        "NODEWEAVE_CANVAS_WIDTH": "2000",
        "NODEWEAVE_TICK_INTERVAL": "0.05",
        "NODEWEAVE_LOG_LEVEL": "DEBUG",
        "OTHER_CANVAS_WIDTH": "10",
    })
    assert settings.canvas_width == 2000
    assert settings.tick_interval == 0.05
    assert settings.log_level == "DEBUG"


def test_invalid_values_are_skipped(tmp_path, caplog):
    path = tmp_path / "config.json"
    save_config({"canvas_width": "wide", "max_iterations": 10.5}, path)
    settings = get_settings(config_path=path, environ={"NODEWEAVE_LINK_DISTANCE": "far"})
    assert settings.canvas_width == 1200
    assert settings.max_iterations == 600
    assert settings.link_distance == 150.0
    assert "canvas_width" in caplog.text


def test_broken_config_file_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{ not json", encoding="utf-8")
    assert load_config(path) == {}
    assert get_settings(config_path=path, environ={}) == EditorSettings()


def test_non_object_config_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_config(path) == {}


def test_save_config_round_trip(tmp_path):
    path = tmp_path / "config.json"
    save_config({"log_level": "WARNING"}, path)
    assert load_config(path) == {"log_level": "WARNING"}


def test_config_and_env_files_live_in_app_dir():
    from nodeweave.paths import get_app_dir, get_config_path, get_env_path

    assert get_config_path() == get_app_dir() / "config.json"
    assert get_env_path() == get_app_dir() / ".env"
    assert (get_app_dir() / "nodeweave").is_dir()
