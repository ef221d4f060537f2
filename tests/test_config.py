import pytest

from app_config import TexConfig, load_config
from config import TestingConfig, get_config, get_tex_config


def test_defaults():
    config = TexConfig()
    assert config.edit_tracking.grouping_threshold_ms == 1000
    assert config.edit_tracking.adjacency_columns == 20
    assert config.edit_tracking.max_history_size == 20
    assert config.compiler.formatting_passes == 5
    assert config.compiler.base_mathjax_packages == [
        "base", "ams", "noerrors", "noundefined", "enumerate"
    ]
    assert (config.preview.debounce_ms, config.preview.settle_ms) == (800, 300)


def test_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TEXCORE_GROUPING_THRESHOLD_MS", "250")
    monkeypatch.setenv("TEXCORE_KEEP_EMPTY_GROUPS", "false")
    monkeypatch.setenv("TEXCORE_LOG_LEVEL", "debug")
    monkeypatch.setenv("TEXCORE_LOG_FILE", str(tmp_path / "tex.log"))

    config = TexConfig.from_environment()
    assert config.edit_tracking.grouping_threshold_ms == 250
    assert config.edit_tracking.keep_empty_groups is False
    assert config.logging.level == "DEBUG"
    assert config.logging.log_file == tmp_path / "tex.log"


def test_from_yaml(tmp_path):
    path = tmp_path / "texcore.yaml"
    path.write_text(
        "compiler:\n"
        "  formatting_passes: 3\n"
        "edit_tracking:\n"
        "  max_history_size: 5\n"
    )
    config = TexConfig.from_yaml(path)
    assert config.compiler.formatting_passes == 3
    assert config.edit_tracking.max_history_size == 5
    assert config.edit_tracking.adjacency_columns == 20


def test_unknown_setting_rejected(tmp_path):
    path = tmp_path / "texcore.yaml"
    path.write_text("compiler:\n  colour: blue\n")
    with pytest.raises(ValueError):
        TexConfig.from_yaml(path)


def test_load_config_validates(tmp_path, monkeypatch):
    path = tmp_path / "texcore.yaml"
    path.write_text("edit_tracking:\n  max_history_size: 0\n")
    with pytest.raises(ValueError, match="max_history_size"):
        load_config(path)

    monkeypatch.setenv("TEXCORE_CONFIG_FILE", str(path))
    with pytest.raises(ValueError):
        load_config()


def test_flask_config_selection(monkeypatch):
    monkeypatch.setenv("FLASK_ENV", "testing")
    assert get_config() is TestingConfig
    assert TestingConfig.LOG_LEVEL == "WARNING"
    assert get_tex_config(TestingConfig).logging.level == "WARNING"

    monkeypatch.setenv("TEXCORE_LOG_LEVEL", "ERROR")
    assert get_tex_config(TestingConfig).logging.level == "ERROR"
