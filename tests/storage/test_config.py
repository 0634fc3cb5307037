"""Tests for config storage: defaults, partial merges, validation."""

import json

import pytest
from pydantic import ValidationError

from backend import storage


@pytest.fixture(autouse=True)
def no_delay_override(monkeypatch):
    monkeypatch.delenv("TRANSMISSION_DELAY_MODE", raising=False)


def test_get_config_defaults():
    """Returns defaults when no config file exists."""
    config = storage.get_config()
    assert config["narrator_name"] == "Liz"
    assert config["host_username"] == "Symoné"
    assert config["state_cleanup_ms"] == 300000
    assert config["delays"]["mode"] == "dynamic"
    assert config["delays"]["narrator_max_ms"] == 6000


def test_env_overrides_default_delay_mode(monkeypatch):
    monkeypatch.setenv("TRANSMISSION_DELAY_MODE", "instant")
    assert storage.get_config()["delays"]["mode"] == "instant"


def test_update_config_partial():
    """Scalar and delay updates are independent."""
    storage.update_config({"delays": {"mode": "fixed"}})
    storage.update_config({"narrator_name": "Ava"})

    config = storage.get_config()
    assert config["narrator_name"] == "Ava"
    assert config["delays"]["mode"] == "fixed"
    assert config["delays"]["message_delay_ms"] == 2000


def test_update_config_persists():
    storage.update_config({"choice_gap_ms": 500})
    raw = json.loads((storage.data_dir() / "config.json").read_text())
    assert raw["choice_gap_ms"] == 500


def test_unknown_keys_ignored():
    config = storage.update_config({"theme": "dark", "delays": {"speed": 3}})
    assert "theme" not in config
    assert "speed" not in config["delays"]


def test_invalid_values_are_not_written():
    with pytest.raises(ValidationError):
        storage.update_config({"delays": {"mode": "warp"}})
    assert not (storage.data_dir() / "config.json").exists()


def test_runtime_settings_from_config():
    storage.update_config({"system_name": "Console", "delays": {"mode": "instant"}})
    settings = storage.runtime_settings_from_config()
    assert settings.system_name == "Console"
    assert settings.delays.mode == "instant"
