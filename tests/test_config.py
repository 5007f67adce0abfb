import json
from pathlib import Path
from unittest.mock import patch

import pytest

from race_compare import config
from race_compare.config import CompareOptions


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("RACE_COMPARE_GLOBAL", raising=False)
    monkeypatch.delenv("RACE_COMPARE_DISABLE_POSITION_KEEP", raising=False)


def test_shipped_config_is_loaded():
    assert config.BALANCE_CONFIG is not None
    assert config.get_config("comparison.body_length") == pytest.approx(2.5)
    assert config.get_config("comparison.default_seed") == config.DEFAULT_SEED


def test_get_config_walks_dot_path(monkeypatch):
    monkeypatch.setattr(config, "BALANCE_CONFIG", {"comparison": {"nested": {"value": 7}}})

    assert config.get_config("comparison.nested.value") == 7


def test_get_config_missing_key_warns_and_returns_default(monkeypatch, capsys):
    monkeypatch.setattr(config, "BALANCE_CONFIG", {"comparison": {}})

    assert config.get_config("comparison.body_length", 3.0) == 3.0
    assert "Could not find config key: comparison.body_length" in capsys.readouterr().out


def test_get_config_without_config_returns_default():
    with patch.object(config, "BALANCE_CONFIG", None):
        assert config.get_config("comparison.default_samples", 42) == 42


def test_load_config_reports_missing_file(tmp_path, capsys):
    assert config.load_config(tmp_path / "missing.json") is None
    assert "FATAL ERROR" in capsys.readouterr().out


def test_load_config_reports_bad_json(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    assert config.load_config(path) is None
    assert "Could not parse config file" in capsys.readouterr().out


def test_load_config_reads_file(tmp_path):
    path = tmp_path / "compare.json"
    path.write_text(json.dumps({"comparison": {"default_samples": 10}}), encoding="utf-8")

    assert config.load_config(path) == {"comparison": {"default_samples": 10}}


def test_options_from_config_use_file_values(monkeypatch):
    monkeypatch.setattr(
        config,
        "BALANCE_CONFIG",
        {"comparison": {"default_seed": 11, "use_pos_keep": False, "use_int_checks": True, "global_ruleset": False}},
    )

    assert CompareOptions.from_config() == CompareOptions(
        seed=11, use_pos_keep=False, use_int_checks=True, global_ruleset=False
    )


def test_options_overrides_skip_none():
    options = CompareOptions.from_config(seed=5, use_pos_keep=None, global_ruleset=True)

    assert options.seed == 5
    assert options.use_pos_keep is True
    assert options.global_ruleset is True


def test_environment_flags(monkeypatch):
    monkeypatch.setenv("RACE_COMPARE_GLOBAL", "yes")
    monkeypatch.setenv("RACE_COMPARE_DISABLE_POSITION_KEEP", "1")
    options = CompareOptions.from_config()

    assert options.global_ruleset is True
    assert options.use_pos_keep is False


def test_environment_flag_false_values(monkeypatch):
    monkeypatch.setenv("RACE_COMPARE_GLOBAL", "off")

    assert config.global_ruleset_enabled() is False


def test_default_config_ships_inside_the_package():
    package_dir = Path(config.__file__).resolve().parent

    assert config.DEFAULT_CONFIG_PATH == package_dir / "data" / "compare.json"
    assert config.DEFAULT_CONFIG_PATH.exists()
    assert config.load_config(config.DEFAULT_CONFIG_PATH)["comparison"]["default_samples"] == config.DEFAULT_SAMPLES
