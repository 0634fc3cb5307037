"""Service configuration (runtime labels, pacing, cleanup)."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from transmission.delays import DelaySettings
from transmission.runtime import RuntimeSettings

from .core import data_dir

_RUNTIME_DEFAULTS = RuntimeSettings()

_CONFIG_DEFAULTS: dict[str, Any] = {
    "narrator_name": _RUNTIME_DEFAULTS.narrator_name,
    "system_name": _RUNTIME_DEFAULTS.system_name,
    "host_username": _RUNTIME_DEFAULTS.host_username,
    "state_cleanup_ms": _RUNTIME_DEFAULTS.state_cleanup_ms,
    "max_redirect_depth": _RUNTIME_DEFAULTS.max_redirect_depth,
    "choice_gap_ms": _RUNTIME_DEFAULTS.choice_gap_ms,
    "delays": DelaySettings().model_dump(),
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def _defaults() -> dict[str, Any]:
    config = copy.deepcopy(_CONFIG_DEFAULTS)
    mode = os.getenv("TRANSMISSION_DELAY_MODE")
    if mode:
        config["delays"]["mode"] = mode
    return config


def _merge(config: dict[str, Any], fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        if key not in config:
            continue
        if key == "delays":
            if isinstance(value, dict):
                config["delays"].update({k: v for k, v in value.items() if k in config["delays"]})
        else:
            config[key] = value


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = _defaults()
    path = _config_path()
    if path.is_file():
        _merge(config, json.loads(path.read_text()))
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config.

    Scalars are overwritten, `delays` is merged key-by-key. The merged
    result must still build valid RuntimeSettings, otherwise nothing is
    written and pydantic's ValidationError propagates.
    """
    config = get_config()
    _merge(config, fields)
    RuntimeSettings.model_validate(config)
    _config_path().write_text(json.dumps(config, indent=2))
    return config


def runtime_settings_from_config(config: dict[str, Any] | None = None) -> RuntimeSettings:
    return RuntimeSettings.model_validate(config if config is not None else get_config())
