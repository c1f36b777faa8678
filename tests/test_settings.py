"""Tests for settings loading."""

import yaml

from app.core.settings import (
    CONFIG_DIR_ENV_VAR,
    Settings,
    get_config_dir,
    load_settings,
    resolve_packs_directory,
)


def test_missing_file_is_created_with_defaults(tmp_path):
    settings = load_settings(tmp_path)

    assert settings == Settings()
    written = yaml.safe_load((tmp_path / "settings.yaml").read_text())
    assert written["packs"]["scan_cooldown"] == 2.0
    assert written["server"]["port"] == 8080


def test_partial_file_is_merged_with_defaults(tmp_path):
    (tmp_path / "settings.yaml").write_text(
        "packs:\n  directory: /srv/packs\n  file_monitor: false\n"
    )

    settings = load_settings(tmp_path)

    assert settings.packs.directory == "/srv/packs"
    assert settings.packs.file_monitor is False
    assert settings.packs.file_monitor_interval == 0.5
    assert settings.server.host == "0.0.0.0"


def test_invalid_file_falls_back_to_defaults(tmp_path):
    (tmp_path / "settings.yaml").write_text("packs: [unclosed\n")

    assert load_settings(tmp_path) == Settings()


def test_out_of_range_values_fall_back_to_defaults(tmp_path):
    (tmp_path / "settings.yaml").write_text("packs:\n  scan_cooldown: -1\n")

    assert load_settings(tmp_path).packs.scan_cooldown == 2.0


def test_config_dir_from_environment(tmp_path, monkeypatch):
    target = tmp_path / "conf"
    monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(target))

    assert get_config_dir() == target
    assert target.is_dir()


def test_relative_packs_directory_is_resolved_against_base(tmp_path):
    settings = Settings()
    settings.packs.directory = "resourcepacks"

    assert resolve_packs_directory(settings, tmp_path) == tmp_path / "resourcepacks"


def test_log_level_is_case_insensitive(tmp_path):
    (tmp_path / "settings.yaml").write_text("logging:\n  level: debug\n")

    assert load_settings(tmp_path).logging.level == "DEBUG"


def test_unknown_log_level_falls_back_to_defaults(tmp_path):
    (tmp_path / "settings.yaml").write_text(
        "packs:\n  directory: /srv/packs\nlogging:\n  level: VERBOSE\n"
    )

    settings = load_settings(tmp_path)

    assert settings == Settings()
    assert settings.logging.level == "INFO"
